"""GitLab platform implementation."""

from forgelink.platforms.gitlab.adapter import GitLabAdapter
from forgelink.platforms.gitlab.client import GitLabApiClient
from forgelink.platforms.gitlab.context import is_gitlab_environment, parse_gitlab_context
from forgelink.platforms.gitlab.permissions import (
    check_branch_permissions,
    check_comment_permissions,
    check_write_permissions,
)
from forgelink.platforms.gitlab.token import get_gitlab_token, get_token_info, validate_gitlab_token

__all__ = [
    "GitLabAdapter",
    "GitLabApiClient",
    "parse_gitlab_context",
    "is_gitlab_environment",
    "check_write_permissions",
    "check_comment_permissions",
    "check_branch_permissions",
    "get_gitlab_token",
    "validate_gitlab_token",
    "get_token_info",
]
