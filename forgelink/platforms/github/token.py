"""
GitHub token management.

Priority order:
1. Operator-provided tokens in OVERRIDE_GITHUB_TOKEN or GH_TOKEN
2. The Actions-issued GITHUB_TOKEN
"""

import os
from typing import Any, Dict, Optional

import httpx

from forgelink.models.credential import Credential, TokenSource
from forgelink.platforms.errors import AuthError, api_error_for
from forgelink.platforms.github.client import DEFAULT_GITHUB_API_URL, GITHUB_HEADERS, github_auth_headers
from forgelink.utils.logging import get_logger, mask_token

logger = get_logger(__name__, platform="github")

EXPLICIT_TOKEN_VARIABLES = ("OVERRIDE_GITHUB_TOKEN", "GH_TOKEN")
JOB_TOKEN_VARIABLE = "GITHUB_TOKEN"


def get_github_token() -> Credential:
    """
    Resolve the GitHub credential for this run.

    Raises:
        AuthError: If no token source is available
    """
    for variable in EXPLICIT_TOKEN_VARIABLES:
        value = os.environ.get(variable)
        if value:
            logger.info(f"Using explicit GitHub token from {variable} ({mask_token(value)})")
            return Credential(token=value, source=TokenSource.EXPLICIT, variable=variable)

    job_token = os.environ.get(JOB_TOKEN_VARIABLE)
    if job_token:
        logger.info("Using GitHub Actions token")
        return Credential(token=job_token, source=TokenSource.JOB_TOKEN, variable=JOB_TOKEN_VARIABLE)

    raise AuthError(
        "No GitHub token found. Please provide one of:\n"
        + "".join(f"- {name} environment variable\n" for name in EXPLICIT_TOKEN_VARIABLES)
        + f"Or expose {JOB_TOKEN_VARIABLE} to the workflow step"
    )


def _identity_endpoint(credential: Credential) -> str:
    # Installation tokens are not users; /rate_limit accepts any valid token.
    return "/rate_limit" if credential.source == TokenSource.JOB_TOKEN else "/user"


def _client(credential: Credential, base_url: str, timeout: float, transport) -> httpx.AsyncClient:
    headers = dict(GITHUB_HEADERS)
    headers.update(github_auth_headers(credential))
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        headers=headers,
        timeout=timeout,
        transport=transport,
    )


async def validate_github_token(
    credential: Credential,
    base_url: str = DEFAULT_GITHUB_API_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Check whether GitHub accepts the credential with a single request.

    Returns:
        True iff the identity endpoint answered with a 2xx status; network
        failures return False
    """
    try:
        async with _client(credential, base_url, timeout, transport) as client:
            response = await client.get(_identity_endpoint(credential))
    except httpx.HTTPError as e:
        logger.error(f"Token validation failed: {type(e).__name__}: {e}")
        return False

    if not response.is_success:
        logger.warning(f"GitHub rejected token from {credential.variable}: status {response.status_code}")
    return response.is_success


async def get_token_info(
    credential: Credential,
    base_url: str = DEFAULT_GITHUB_API_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Return the identity payload for the credential.

    Raises:
        ApiError: If GitHub answers with a non-2xx status
    """
    endpoint = _identity_endpoint(credential)
    async with _client(credential, base_url, timeout, transport) as client:
        response = await client.get(endpoint)

    if not response.is_success:
        raise api_error_for("GET", endpoint, response.status_code, response.text)
    return response.json()
