"""Forge platform abstraction: adapters, API clients and the detector."""

from forgelink.platforms.base import PlatformAdapter, PlatformApiClient
from forgelink.platforms.detector import (
    detect_platform,
    get_platform_adapter,
    get_platform_info,
    is_in_ci_environment,
)
from forgelink.platforms.errors import (
    ApiError,
    AuthError,
    ConfigurationError,
    ForgeError,
    ForgePermissionError,
    NotFoundError,
    TransientApiError,
)
from forgelink.platforms.github import GitHubAdapter, GitHubApiClient
from forgelink.platforms.gitlab import GitLabAdapter, GitLabApiClient

__all__ = [
    "PlatformAdapter",
    "PlatformApiClient",
    "detect_platform",
    "get_platform_adapter",
    "get_platform_info",
    "is_in_ci_environment",
    "ForgeError",
    "ConfigurationError",
    "AuthError",
    "ForgePermissionError",
    "ApiError",
    "TransientApiError",
    "NotFoundError",
    "GitLabAdapter",
    "GitLabApiClient",
    "GitHubAdapter",
    "GitHubApiClient",
]
