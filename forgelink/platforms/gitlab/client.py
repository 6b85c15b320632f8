"""
GitLab API client.

Wraps the GitLab REST v4 endpoints the agent needs: merge requests, issues,
notes, branches and multi-file commits. All calls go through ForgeHttp and
therefore through the shared retry policy.
"""

from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

import httpx

from forgelink.models.commit import CommitAction, CommitFile
from forgelink.models.context import EntityType, PlatformType
from forgelink.models.credential import Credential, TokenSource, as_credential
from forgelink.models.gitlab import (
    GitLabBranch,
    GitLabCommit,
    GitLabIssue,
    GitLabMergeRequest,
    GitLabNote,
    GitLabProject,
)
from forgelink.platforms.branches import get_or_create_branch_ref
from forgelink.platforms.files import encode_content
from forgelink.platforms.http import ForgeHttp
from forgelink.utils.logging import get_logger
from forgelink.utils.resilience import BackoffRetrier

logger = get_logger(__name__, platform="gitlab")

DEFAULT_GITLAB_API_URL = "https://gitlab.com/api/v4"

_ENTITY_PATHS = {
    EntityType.MERGE_REQUEST: "merge_requests",
    EntityType.ISSUE: "issues",
}


def gitlab_auth_headers(credential: Credential) -> Dict[str, str]:
    """CI job tokens use JOB-TOKEN; every other token uses PRIVATE-TOKEN."""
    if credential.source == TokenSource.JOB_TOKEN:
        return {"JOB-TOKEN": credential.value}
    return {"PRIVATE-TOKEN": credential.value}


class GitLabApiClient:
    """
    GitLab implementation of the PlatformApiClient protocol.

    Args:
        token: Credential (or raw token string) used for every request
        project_id: Numeric GitLab project ID
        base_url: GitLab API root
        timeout: Transport timeout in seconds
        retrier: Retry executor, injectable for tests
        transport: Optional httpx transport, used by tests
    """

    platform = PlatformType.GITLAB

    def __init__(
        self,
        token: Union[Credential, str],
        project_id: int,
        base_url: str = DEFAULT_GITLAB_API_URL,
        timeout: float = 30.0,
        retrier: Optional[BackoffRetrier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credential = as_credential(token)
        self.project_id = project_id
        self.base_url = base_url.rstrip("/")
        self._http = ForgeHttp(
            service="gitlab",
            base_url=self.base_url,
            auth_headers=gitlab_auth_headers(self.credential),
            timeout=timeout,
            retrier=retrier,
            transport=transport,
        )

        logger.info(f"GitLabApiClient initialized for project {project_id} at {self.base_url}")

    @property
    def _project_path(self) -> str:
        return f"/projects/{self.project_id}"

    def _entity_path(self, entity_id: int, entity_type: EntityType) -> str:
        return f"{self._project_path}/{_ENTITY_PATHS[EntityType(entity_type)]}/{entity_id}"

    async def get_merge_request(self, iid: int) -> GitLabMergeRequest:
        data = await self._http.get_json(f"{self._project_path}/merge_requests/{iid}")
        return GitLabMergeRequest.model_validate(data)

    async def get_issue(self, iid: int) -> GitLabIssue:
        data = await self._http.get_json(f"{self._project_path}/issues/{iid}")
        return GitLabIssue.model_validate(data)

    async def create_comment(self, entity_id: int, body: str, entity_type: EntityType) -> GitLabNote:
        """
        Create a note on a merge request or issue.

        Args:
            entity_id: Merge request or issue IID
            body: Markdown body
            entity_type: Which kind of entity ``entity_id`` refers to

        Returns:
            The created note
        """
        data = await self._http.send_json(
            "POST",
            f"{self._entity_path(entity_id, entity_type)}/notes",
            {"body": body},
        )
        note = GitLabNote.model_validate(data)
        logger.info(f"Created note {note.id} on {EntityType(entity_type).value} {entity_id}")
        return note

    async def update_comment(
        self,
        comment_id: int,
        body: str,
        entity_id: Optional[int] = None,
        entity_type: Optional[EntityType] = None,
    ) -> GitLabNote:
        """
        Update an existing note in place.

        GitLab addresses notes through their parent, so both ``entity_id``
        and ``entity_type`` are required.

        Raises:
            ValueError: If the parent entity is not given
        """
        if not entity_id or not entity_type:
            raise ValueError("entity_id and entity_type are required for GitLab update_comment")

        data = await self._http.send_json(
            "PUT",
            f"{self._entity_path(entity_id, entity_type)}/notes/{comment_id}",
            {"body": body},
        )
        return GitLabNote.model_validate(data)

    async def create_branch(self, branch_name: str, ref: str) -> GitLabBranch:
        data = await self._http.send_json(
            "POST",
            f"{self._project_path}/repository/branches",
            {"branch": branch_name, "ref": ref},
        )
        logger.info(f"Created branch {branch_name} from {ref}")
        return GitLabBranch.model_validate(data)

    async def commit_files(
        self,
        branch_name: str,
        files: Sequence[CommitFile],
        message: str,
    ) -> GitLabCommit:
        """
        Commit several file changes to a branch in a single commit.

        Paths on the binary extension list are base64-encoded; everything
        else is sent verbatim as text.

        Args:
            branch_name: Target branch, which must already exist
            files: File changes to apply
            message: Commit message

        Returns:
            The created commit
        """
        payload = {
            "branch": branch_name,
            "commit_message": message,
            "actions": [self._build_action(f) for f in files],
        }
        data = await self._http.send_json("POST", f"{self._project_path}/repository/commits", payload)
        commit = GitLabCommit.model_validate(data)
        logger.info(f"Committed {len(files)} files to {branch_name}: {commit.id}")
        return commit

    async def delete_files(self, branch_name: str, paths: Sequence[str], message: str) -> GitLabCommit:
        files = [CommitFile(path=p, action=CommitAction.DELETE) for p in paths]
        return await self.commit_files(branch_name, files, message)

    @staticmethod
    def _build_action(file: CommitFile) -> Dict[str, Any]:
        action: Dict[str, Any] = {"action": file.action.value, "file_path": file.path}
        if file.action == CommitAction.DELETE:
            return action

        content, encoding = encode_content(file.path, file.content)
        action["content"] = content
        if encoding:
            action["encoding"] = encoding
        return action

    async def get_project(self) -> GitLabProject:
        data = await self._http.get_json(self._project_path)
        return GitLabProject.model_validate(data)

    async def get_branch(self, branch_name: str) -> GitLabBranch:
        data = await self._http.get_json(
            f"{self._project_path}/repository/branches/{quote(branch_name, safe='')}"
        )
        return GitLabBranch.model_validate(data)

    async def get_branches(self) -> List[GitLabBranch]:
        data = await self._http.get_json(
            f"{self._project_path}/repository/branches",
            params={"per_page": 100},
        )
        return [GitLabBranch.model_validate(item) for item in data]

    async def get_default_branch(self) -> str:
        project = await self.get_project()
        return project.default_branch or "main"

    async def get_user_permissions(self) -> Dict[str, Any]:
        """Return the ``permissions`` block of the project for the token's user."""
        project = await self.get_project()
        return project.permissions or {}

    async def get_or_create_branch_ref(self, branch_name: str, base_branch: Optional[str] = None) -> str:
        return await get_or_create_branch_ref(self, branch_name, base_branch)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "GitLabApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
