"""
GitLab token management.

Supported token types, in priority order:
1. Personal, project or group access token in GITLAB_TOKEN,
   GITLAB_ACCESS_TOKEN or PRIVATE_TOKEN
2. CI/CD job token (CI_JOB_TOKEN), with reduced API scope
"""

import os
from typing import Any, Dict, Optional

import httpx

from forgelink.models.credential import Credential, TokenSource
from forgelink.platforms.errors import AuthError, api_error_for
from forgelink.platforms.gitlab.client import DEFAULT_GITLAB_API_URL, gitlab_auth_headers
from forgelink.utils.logging import get_logger, mask_token

logger = get_logger(__name__, platform="gitlab")

EXPLICIT_TOKEN_VARIABLES = ("GITLAB_TOKEN", "GITLAB_ACCESS_TOKEN", "PRIVATE_TOKEN")
JOB_TOKEN_VARIABLE = "CI_JOB_TOKEN"


def get_gitlab_token() -> Credential:
    """
    Resolve the GitLab credential for this run.

    Returns:
        Credential from the first explicit variable that is set, else the CI
        job token when running inside GitLab CI

    Raises:
        AuthError: If no token source is available
    """
    for variable in EXPLICIT_TOKEN_VARIABLES:
        value = os.environ.get(variable)
        if value:
            logger.info(f"Using explicit GitLab token from {variable} ({mask_token(value)})")
            return Credential(token=value, source=TokenSource.EXPLICIT, variable=variable)

    job_token = os.environ.get(JOB_TOKEN_VARIABLE)
    if job_token and os.environ.get("GITLAB_CI") == "true":
        logger.info("Using GitLab CI job token (limited permissions)")
        return Credential(token=job_token, source=TokenSource.JOB_TOKEN, variable=JOB_TOKEN_VARIABLE)

    raise AuthError(
        "No GitLab token found. Please provide one of:\n"
        + "".join(f"- {name} environment variable\n" for name in EXPLICIT_TOKEN_VARIABLES)
        + f"Or ensure {JOB_TOKEN_VARIABLE} is available in GitLab CI/CD environment"
    )


def _identity_endpoint(credential: Credential) -> str:
    # Job tokens cannot call /user; /job returns the job that owns the token.
    return "/job" if credential.source == TokenSource.JOB_TOKEN else "/user"


async def validate_gitlab_token(
    credential: Credential,
    base_url: str = DEFAULT_GITLAB_API_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Check whether GitLab accepts the credential.

    Performs a single request without retries. Network failures count as an
    invalid token.

    Returns:
        True iff the identity endpoint answered with a 2xx status
    """
    endpoint = _identity_endpoint(credential)
    try:
        async with httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=gitlab_auth_headers(credential),
            timeout=timeout,
            transport=transport,
        ) as client:
            response = await client.get(endpoint)
    except httpx.HTTPError as e:
        logger.error(f"Token validation failed: {type(e).__name__}: {e}")
        return False

    if not response.is_success:
        logger.warning(f"GitLab rejected token from {credential.variable}: status {response.status_code}")
    return response.is_success


async def get_token_info(
    credential: Credential,
    base_url: str = DEFAULT_GITLAB_API_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Return the identity payload GitLab associates with the credential.

    Raises:
        ApiError: If GitLab answers with a non-2xx status
    """
    endpoint = _identity_endpoint(credential)
    async with httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        headers=gitlab_auth_headers(credential),
        timeout=timeout,
        transport=transport,
    ) as client:
        response = await client.get(endpoint)

    if not response.is_success:
        raise api_error_for("GET", endpoint, response.status_code, response.text)
    return response.json()
