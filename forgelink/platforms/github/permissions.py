"""
GitHub permission checks.

GitHub repository roles are mapped onto the shared access level scale:
read and triage count as reporter, write as developer, maintain as
maintainer, admin as owner. Checks fail closed.
"""

from typing import Any, Mapping, Optional

from forgelink.models.context import GitHubPlatformContext
from forgelink.models.permission import AccessLevel, OperationClass, is_permitted
from forgelink.platforms.errors import NotFoundError
from forgelink.platforms.github.client import GitHubApiClient
from forgelink.utils.logging import get_logger

logger = get_logger(__name__, platform="github")

ROLE_ACCESS_LEVELS = {
    "none": AccessLevel.NO_ACCESS,
    "read": AccessLevel.REPORTER,
    "pull": AccessLevel.REPORTER,
    "triage": AccessLevel.REPORTER,
    "write": AccessLevel.DEVELOPER,
    "push": AccessLevel.DEVELOPER,
    "maintain": AccessLevel.MAINTAINER,
    "admin": AccessLevel.OWNER,
}


def access_level_from_permissions(record: Optional[Mapping[str, Any]]) -> int:
    """
    Map a collaborator permission record onto an access level.

    Accepts either the collaborator endpoint's ``role_name``/``permission``
    strings or a repository ``permissions`` map of booleans.
    """
    if not record:
        return AccessLevel.NO_ACCESS

    for key in ("role_name", "permission"):
        role = record.get(key)
        if isinstance(role, str) and role in ROLE_ACCESS_LEVELS:
            return ROLE_ACCESS_LEVELS[role]

    flags = record.get("permissions") or {}
    granted = [ROLE_ACCESS_LEVELS[name] for name, allowed in flags.items() if allowed and name in ROLE_ACCESS_LEVELS]
    return max(granted, default=AccessLevel.NO_ACCESS)


async def get_access_level(client: GitHubApiClient, context: GitHubPlatformContext) -> int:
    username = context.actor if context.actor != "unknown" else None
    record = await client.get_user_permissions(username)
    return access_level_from_permissions(record)


async def check_write_permissions(
    client: GitHubApiClient,
    context: GitHubPlatformContext,
    operation: OperationClass = OperationClass.COMMIT,
) -> bool:
    """
    Check whether the triggering actor may perform ``operation``.

    Returns:
        True if the actor's role meets the operation's threshold; False
        otherwise, including when the lookup fails
    """
    try:
        level = await get_access_level(client, context)
    except Exception as e:
        logger.error(
            f"Failed to check permissions for {context.actor} on {context.repository.full_name}: {e}",
            extra={"project_id": context.repository.full_name},
        )
        return False

    permitted = is_permitted(level, operation)
    logger.info(
        f"Access level {level} for {context.actor} on {context.repository.full_name}: "
        f"{operation.value} {'allowed' if permitted else 'denied'}",
        extra={"project_id": context.repository.full_name},
    )
    return permitted


async def check_comment_permissions(client: GitHubApiClient, context: GitHubPlatformContext) -> bool:
    return await check_write_permissions(client, context, OperationClass.COMMENT)


async def check_branch_permissions(
    client: GitHubApiClient,
    context: GitHubPlatformContext,
    branch_name: str,
) -> bool:
    """Protected branches need maintainer access; others need developer access."""
    try:
        protected = (await client.get_branch(branch_name)).protected
    except NotFoundError:
        protected = False
    except Exception as e:
        logger.error(f"Failed to check branch permissions for {branch_name}: {e}")
        return False

    operation = OperationClass.PROTECTED_PUSH if protected else OperationClass.BRANCH
    return await check_write_permissions(client, context, operation)
