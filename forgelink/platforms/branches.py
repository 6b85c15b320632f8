"""
Branch resolution shared by the forge clients.
"""

from typing import Optional

from forgelink.platforms.errors import NotFoundError
from forgelink.utils.logging import get_logger

logger = get_logger(__name__)


async def get_or_create_branch_ref(client, branch_name: str, base_branch: Optional[str] = None) -> str:
    """
    Resolve the head commit of ``branch_name``, creating the branch if needed.

    When the branch is missing it is created from the head of
    ``base_branch``, or of the project's default branch when no override is
    given or the override itself does not exist. Calling this for a branch
    that already exists has no side effects. Two processes creating the same
    branch at once are not serialized here; the loser gets the forge's
    conflict error.

    Branch lookups go through the shared API retry policy like every other
    call, so each 404 is only seen after all attempts: a missing branch
    costs about 3s of backoff (1s + 2s) before creation starts, and a
    missing ``base_branch`` override adds another 3s.

    Args:
        client: Forge API client
        branch_name: Branch to resolve
        base_branch: Optional branch to fork from

    Returns:
        Head commit id of the existing branch, or the base commit id the new
        branch was created from
    """
    try:
        branch = await client.get_branch(branch_name)
        return branch.head_commit_id
    except NotFoundError:
        logger.info(f"Branch {branch_name} not found, creating it")

    base_commit_id = await _resolve_base_commit(client, base_branch)
    await client.create_branch(branch_name, base_commit_id)
    logger.info(f"Created branch {branch_name} at {base_commit_id}")
    return base_commit_id


async def _resolve_base_commit(client, base_branch: Optional[str]) -> str:
    if base_branch:
        try:
            return (await client.get_branch(base_branch)).head_commit_id
        except NotFoundError:
            logger.warning(f"Base branch {base_branch} not found, using the default branch")

    default_branch = await client.get_default_branch()
    return (await client.get_branch(default_branch)).head_commit_id
