"""
GitLab permission checks.

GitLab access levels:
- 10 = Guest
- 20 = Reporter (can comment)
- 30 = Developer (can push to unprotected branches)
- 40 = Maintainer (can push to protected branches)
- 50 = Owner

Every check fails closed: if the access level cannot be read, the answer is
"not permitted".
"""

from typing import Any, Mapping, Optional

from forgelink.models.context import GitLabPlatformContext
from forgelink.models.permission import AccessLevel, OperationClass, is_permitted
from forgelink.platforms.errors import NotFoundError
from forgelink.platforms.gitlab.client import GitLabApiClient
from forgelink.utils.logging import get_logger

logger = get_logger(__name__, platform="gitlab")


def access_level_from_permissions(permissions: Optional[Mapping[str, Any]]) -> int:
    """Highest of the project-level and inherited group-level access."""
    if not permissions:
        return AccessLevel.NO_ACCESS

    levels = [AccessLevel.NO_ACCESS]
    for key in ("project_access", "group_access"):
        entry = permissions.get(key) or {}
        level = entry.get("access_level")
        if level is not None:
            levels.append(int(level))
    return max(levels)


async def get_access_level(client: GitLabApiClient) -> int:
    permissions = await client.get_user_permissions()
    return access_level_from_permissions(permissions)


async def check_write_permissions(
    client: GitLabApiClient,
    context: GitLabPlatformContext,
    operation: OperationClass = OperationClass.COMMIT,
) -> bool:
    """
    Check whether the token's user may perform ``operation`` on the project.

    Args:
        client: GitLab API client bound to the project
        context: Resolved run context
        operation: Operation class to check (default: commit)

    Returns:
        True if the access level meets the operation's threshold; False
        otherwise, including when the lookup fails
    """
    try:
        level = await get_access_level(client)
    except Exception as e:
        logger.error(
            f"Failed to check permissions for project {context.project_id}: {e}",
            extra={"project_id": context.project_id},
        )
        return False

    permitted = is_permitted(level, operation)
    logger.info(
        f"Access level {level} for {context.actor} on project {context.project_id}: "
        f"{operation.value} {'allowed' if permitted else 'denied'}",
        extra={"project_id": context.project_id},
    )
    return permitted


async def check_comment_permissions(client: GitLabApiClient, context: GitLabPlatformContext) -> bool:
    """Reporter access or above can comment on merge requests and issues."""
    return await check_write_permissions(client, context, OperationClass.COMMENT)


async def check_branch_permissions(
    client: GitLabApiClient,
    context: GitLabPlatformContext,
    branch_name: str,
) -> bool:
    """
    Check whether the user may push to ``branch_name``.

    A branch that does not exist yet only needs create rights (developer);
    a protected branch needs maintainer access.
    """
    try:
        branch = await client.get_branch(branch_name)
        protected = branch.protected
    except NotFoundError:
        protected = False
    except Exception as e:
        logger.error(f"Failed to check branch permissions for {branch_name}: {e}")
        return False

    operation = OperationClass.PROTECTED_PUSH if protected else OperationClass.BRANCH
    return await check_write_permissions(client, context, operation)
