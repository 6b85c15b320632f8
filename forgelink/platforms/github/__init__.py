"""GitHub platform implementation."""

from forgelink.platforms.github.adapter import GitHubAdapter
from forgelink.platforms.github.client import GitHubApiClient
from forgelink.platforms.github.context import is_github_environment, parse_github_context
from forgelink.platforms.github.permissions import (
    check_branch_permissions,
    check_comment_permissions,
    check_write_permissions,
)
from forgelink.platforms.github.token import get_github_token, get_token_info, validate_github_token

__all__ = [
    "GitHubAdapter",
    "GitHubApiClient",
    "parse_github_context",
    "is_github_environment",
    "check_write_permissions",
    "check_comment_permissions",
    "check_branch_permissions",
    "get_github_token",
    "validate_github_token",
    "get_token_info",
]
