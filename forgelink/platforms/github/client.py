"""
GitHub API client.

Pull requests and issues share GitHub's issue comment endpoints, so both
entity types are commented on the same way. Multi-file commits go through
the git data API: blobs for binary content, one tree, one commit, then a ref
update.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

import httpx

from forgelink.models.commit import CommitAction, CommitFile
from forgelink.models.context import EntityType, PlatformType
from forgelink.models.credential import Credential, as_credential
from forgelink.models.github import (
    GitHubBranch,
    GitHubComment,
    GitHubCommit,
    GitHubIssue,
    GitHubPullRequest,
    GitHubRepository,
)
from forgelink.platforms.branches import get_or_create_branch_ref
from forgelink.platforms.files import encode_content
from forgelink.platforms.http import ForgeHttp
from forgelink.utils.logging import get_logger
from forgelink.utils.resilience import BackoffRetrier

logger = get_logger(__name__, platform="github")

DEFAULT_GITHUB_API_URL = "https://api.github.com"

GITHUB_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

_SHA_PATTERN = re.compile(r"^[0-9a-f]{40}$")


def github_auth_headers(credential: Credential) -> Dict[str, str]:
    return {"Authorization": f"Bearer {credential.value}"}


class GitHubApiClient:
    """
    GitHub implementation of the PlatformApiClient protocol.

    Args:
        token: Credential (or raw token string) used for every request
        repository: Repository full name, ``owner/name``
        base_url: GitHub API root
        timeout: Transport timeout in seconds
        retrier: Retry executor, injectable for tests
        transport: Optional httpx transport, used by tests
    """

    platform = PlatformType.GITHUB

    def __init__(
        self,
        token: Union[Credential, str],
        repository: str,
        base_url: str = DEFAULT_GITHUB_API_URL,
        timeout: float = 30.0,
        retrier: Optional[BackoffRetrier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credential = as_credential(token)
        self.repository = repository
        self.base_url = base_url.rstrip("/")
        self._http = ForgeHttp(
            service="github",
            base_url=self.base_url,
            auth_headers=github_auth_headers(self.credential),
            timeout=timeout,
            retrier=retrier,
            transport=transport,
            extra_headers=GITHUB_HEADERS,
        )

        logger.info(f"GitHubApiClient initialized for {repository} at {self.base_url}")

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.repository}"

    async def get_merge_request(self, iid: int) -> GitHubPullRequest:
        data = await self._http.get_json(f"{self._repo_path}/pulls/{iid}")
        return GitHubPullRequest.model_validate(data)

    async def get_issue(self, iid: int) -> GitHubIssue:
        data = await self._http.get_json(f"{self._repo_path}/issues/{iid}")
        return GitHubIssue.model_validate(data)

    async def create_comment(self, entity_id: int, body: str, entity_type: EntityType) -> GitHubComment:
        data = await self._http.send_json(
            "POST",
            f"{self._repo_path}/issues/{entity_id}/comments",
            {"body": body},
        )
        comment = GitHubComment.model_validate(data)
        logger.info(f"Created comment {comment.id} on {EntityType(entity_type).value} {entity_id}")
        return comment

    async def update_comment(
        self,
        comment_id: int,
        body: str,
        entity_id: Optional[int] = None,
        entity_type: Optional[EntityType] = None,
    ) -> GitHubComment:
        # GitHub addresses comments directly; the parent entity is not needed.
        data = await self._http.send_json(
            "PATCH",
            f"{self._repo_path}/issues/comments/{comment_id}",
            {"body": body},
        )
        return GitHubComment.model_validate(data)

    async def create_branch(self, branch_name: str, ref: str) -> GitHubBranch:
        """
        Create ``branch_name`` pointing at ``ref``.

        Args:
            branch_name: New branch name
            ref: Commit SHA or existing branch name
        """
        sha = ref if _SHA_PATTERN.match(ref) else (await self.get_branch(ref)).head_commit_id
        await self._http.send_json(
            "POST",
            f"{self._repo_path}/git/refs",
            {"ref": f"refs/heads/{branch_name}", "sha": sha},
        )
        logger.info(f"Created branch {branch_name} from {ref}")
        return GitHubBranch(name=branch_name, commit={"sha": sha}, protected=False)

    async def commit_files(
        self,
        branch_name: str,
        files: Sequence[CommitFile],
        message: str,
    ) -> GitHubCommit:
        """
        Commit several file changes to a branch in a single commit.

        Args:
            branch_name: Target branch, which must already exist
            files: File changes to apply
            message: Commit message

        Returns:
            The created commit
        """
        head_sha = (await self.get_branch(branch_name)).head_commit_id
        head_commit = await self._http.get_json(f"{self._repo_path}/git/commits/{head_sha}")

        tree_entries = [await self._build_tree_entry(f) for f in files]
        tree = await self._http.send_json(
            "POST",
            f"{self._repo_path}/git/trees",
            {"base_tree": head_commit["tree"]["sha"], "tree": tree_entries},
        )
        commit_data = await self._http.send_json(
            "POST",
            f"{self._repo_path}/git/commits",
            {"message": message, "tree": tree["sha"], "parents": [head_sha]},
        )
        await self._http.send_json(
            "PATCH",
            f"{self._repo_path}/git/refs/heads/{branch_name}",
            {"sha": commit_data["sha"]},
        )

        commit = GitHubCommit.model_validate(commit_data)
        logger.info(f"Committed {len(files)} files to {branch_name}: {commit.sha}")
        return commit

    async def delete_files(self, branch_name: str, paths: Sequence[str], message: str) -> GitHubCommit:
        files = [CommitFile(path=p, action=CommitAction.DELETE) for p in paths]
        return await self.commit_files(branch_name, files, message)

    async def _build_tree_entry(self, file: CommitFile) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"path": file.path, "mode": "100644", "type": "blob"}
        if file.action == CommitAction.DELETE:
            entry["sha"] = None
            return entry

        content, encoding = encode_content(file.path, file.content)
        if encoding is None:
            entry["content"] = content
            return entry

        blob = await self._http.send_json(
            "POST",
            f"{self._repo_path}/git/blobs",
            {"content": content, "encoding": encoding},
        )
        entry["sha"] = blob["sha"]
        return entry

    async def get_project(self) -> GitHubRepository:
        data = await self._http.get_json(self._repo_path)
        return GitHubRepository.model_validate(data)

    async def get_branch(self, branch_name: str) -> GitHubBranch:
        data = await self._http.get_json(f"{self._repo_path}/branches/{quote(branch_name, safe='')}")
        return GitHubBranch.model_validate(data)

    async def get_branches(self) -> List[GitHubBranch]:
        data = await self._http.get_json(f"{self._repo_path}/branches", params={"per_page": 100})
        return [GitHubBranch.model_validate(item) for item in data]

    async def get_default_branch(self) -> str:
        repo = await self.get_project()
        return repo.default_branch or "main"

    async def get_user_permissions(self, username: Optional[str] = None) -> Dict[str, Any]:
        """
        Return the permission record for ``username``.

        Without a username the repository's ``permissions`` map for the
        token's own identity is returned instead.
        """
        if username:
            return await self._http.get_json(f"{self._repo_path}/collaborators/{quote(username, safe='')}/permission")
        repo = await self.get_project()
        return {"permissions": repo.permissions or {}}

    async def get_or_create_branch_ref(self, branch_name: str, base_branch: Optional[str] = None) -> str:
        return await get_or_create_branch_ref(self, branch_name, base_branch)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "GitHubApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
