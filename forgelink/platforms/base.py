"""
Capability interfaces every forge implementation provides.

Concrete classes satisfy these protocols structurally; callers dispatch on
the ``platform`` tag, never on class hierarchy.
"""

from typing import Any, List, Optional, Protocol, Sequence, Union, runtime_checkable

from forgelink.models.commit import CommitFile
from forgelink.models.context import EntityType, PlatformContext, PlatformType
from forgelink.models.credential import Credential


@runtime_checkable
class PlatformApiClient(Protocol):
    """Forge operations used by trigger and tool logic."""

    platform: PlatformType

    async def get_merge_request(self, iid: int) -> Any: ...

    async def get_issue(self, iid: int) -> Any: ...

    async def create_comment(self, entity_id: int, body: str, entity_type: EntityType) -> Any: ...

    async def update_comment(
        self,
        comment_id: int,
        body: str,
        entity_id: Optional[int] = None,
        entity_type: Optional[EntityType] = None,
    ) -> Any: ...

    async def create_branch(self, branch_name: str, ref: str) -> Any: ...

    async def commit_files(self, branch_name: str, files: Sequence[CommitFile], message: str) -> Any: ...

    async def delete_files(self, branch_name: str, paths: Sequence[str], message: str) -> Any: ...

    async def get_project(self) -> Any: ...

    async def get_branch(self, branch_name: str) -> Any: ...

    async def get_branches(self) -> List[Any]: ...

    async def get_default_branch(self) -> str: ...

    async def get_user_permissions(self) -> Any: ...

    async def get_or_create_branch_ref(self, branch_name: str, base_branch: Optional[str] = None) -> str: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class PlatformAdapter(Protocol):
    """Composition of context resolution, auth, client and permission checks."""

    platform: PlatformType

    def is_current_platform(self) -> bool: ...

    def parse_context(self) -> PlatformContext: ...

    def create_api_client(
        self,
        token: Union[Credential, str],
        context: Optional[PlatformContext] = None,
    ) -> PlatformApiClient: ...

    async def validate_permissions(self, client: PlatformApiClient, context: PlatformContext) -> bool: ...

    async def get_auth_token(self) -> Credential: ...
