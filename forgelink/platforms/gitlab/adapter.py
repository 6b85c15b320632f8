"""
GitLab platform adapter.
"""

from typing import Optional, Union

import httpx

from forgelink.config import Settings, get_settings
from forgelink.models.context import GitLabPlatformContext, PlatformType
from forgelink.models.credential import Credential
from forgelink.platforms.errors import AuthError
from forgelink.platforms.gitlab.client import GitLabApiClient
from forgelink.platforms.gitlab.context import is_gitlab_environment, parse_gitlab_context
from forgelink.platforms.gitlab.permissions import check_write_permissions
from forgelink.platforms.gitlab.token import get_gitlab_token, validate_gitlab_token
from forgelink.utils.logging import get_logger
from forgelink.utils.resilience import BackoffRetrier

logger = get_logger(__name__, platform="gitlab")


class GitLabAdapter:
    """
    Binds GitLab context resolution, auth, API client and permission checks.

    Args:
        settings: Application settings (default: loaded from the environment)
        retrier: Retry executor handed to API clients
        transport: Optional httpx transport handed to API clients and token
            validation, used by tests
    """

    platform = PlatformType.GITLAB

    def __init__(
        self,
        settings: Optional[Settings] = None,
        retrier: Optional[BackoffRetrier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.retrier = retrier
        self.transport = transport

    @property
    def base_url(self) -> str:
        return self.settings.gitlab_api_url

    def is_current_platform(self) -> bool:
        return is_gitlab_environment()

    def parse_context(self) -> GitLabPlatformContext:
        return parse_gitlab_context()

    def create_api_client(
        self,
        token: Union[Credential, str],
        context: Optional[GitLabPlatformContext] = None,
    ) -> GitLabApiClient:
        """Create a client bound to the run's project."""
        context = context or self.parse_context()
        return GitLabApiClient(
            token,
            context.project_id,
            base_url=self.base_url,
            timeout=self.settings.http_timeout_seconds,
            retrier=self.retrier,
            transport=self.transport,
        )

    async def validate_permissions(self, client: GitLabApiClient, context: GitLabPlatformContext) -> bool:
        if not isinstance(client, GitLabApiClient):
            raise TypeError("Invalid client type for GitLab adapter")
        return await check_write_permissions(client, context)

    async def get_auth_token(self) -> Credential:
        """
        Resolve and validate the GitLab credential.

        Raises:
            AuthError: If no token is configured or GitLab rejects it
        """
        credential = get_gitlab_token()
        is_valid = await validate_gitlab_token(
            credential,
            self.base_url,
            timeout=self.settings.http_timeout_seconds,
            transport=self.transport,
        )
        if not is_valid:
            raise AuthError(f"Invalid GitLab token from {credential.variable}")
        return credential
