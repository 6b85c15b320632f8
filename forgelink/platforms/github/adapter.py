"""
GitHub platform adapter.
"""

from typing import Optional, Union

import httpx

from forgelink.config import Settings, get_settings
from forgelink.models.context import GitHubPlatformContext, PlatformType
from forgelink.models.credential import Credential
from forgelink.platforms.errors import AuthError
from forgelink.platforms.github.client import GitHubApiClient
from forgelink.platforms.github.context import is_github_environment, parse_github_context
from forgelink.platforms.github.permissions import check_write_permissions
from forgelink.platforms.github.token import get_github_token, validate_github_token
from forgelink.utils.logging import get_logger
from forgelink.utils.resilience import BackoffRetrier

logger = get_logger(__name__, platform="github")


class GitHubAdapter:
    """Binds GitHub context resolution, auth, API client and permission checks."""

    platform = PlatformType.GITHUB

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
        return self.settings.github_api_url

    def is_current_platform(self) -> bool:
        return is_github_environment()

    def parse_context(self) -> GitHubPlatformContext:
        return parse_github_context()

    def create_api_client(
        self,
        token: Union[Credential, str],
        context: Optional[GitHubPlatformContext] = None,
    ) -> GitHubApiClient:
        context = context or self.parse_context()
        return GitHubApiClient(
            token,
            context.repository.full_name,
            base_url=self.base_url,
            timeout=self.settings.http_timeout_seconds,
            retrier=self.retrier,
            transport=self.transport,
        )

    async def validate_permissions(self, client: GitHubApiClient, context: GitHubPlatformContext) -> bool:
        if not isinstance(client, GitHubApiClient):
            raise TypeError("Invalid client type for GitHub adapter")
        return await check_write_permissions(client, context)

    async def get_auth_token(self) -> Credential:
        """
        Resolve and validate the GitHub credential.

        Raises:
            AuthError: If no token is configured or GitHub rejects it
        """
        credential = get_github_token()
        is_valid = await validate_github_token(
            credential,
            self.base_url,
            timeout=self.settings.http_timeout_seconds,
            transport=self.transport,
        )
        if not is_valid:
            raise AuthError(f"Invalid GitHub token from {credential.variable}")
        return credential
