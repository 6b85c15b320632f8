"""GitHub REST API response models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class _GitHubEntity(BaseModel):
    """Read-only mirror of a GitHub response; unknown fields are kept."""

    model_config = ConfigDict(frozen=True, extra="allow")


class GitHubUser(_GitHubEntity):
    id: int
    login: str


class GitHubPullRequest(_GitHubEntity):
    id: int
    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: Optional[GitHubUser] = None
    head: Dict[str, Any] = {}
    base: Dict[str, Any] = {}
    html_url: str = ""

    @property
    def description(self) -> Optional[str]:
        return self.body


class GitHubIssue(_GitHubEntity):
    id: int
    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: Optional[GitHubUser] = None
    html_url: str = ""

    @property
    def description(self) -> Optional[str]:
        return self.body


class GitHubComment(_GitHubEntity):
    id: int
    body: str
    user: Optional[GitHubUser] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    html_url: str = ""


class GitHubCommit(_GitHubEntity):
    sha: str
    message: str = ""
    html_url: str = ""


class GitHubBranch(_GitHubEntity):
    name: str
    commit: Dict[str, Any]
    protected: bool = False

    @property
    def head_commit_id(self) -> str:
        return self.commit["sha"]


class GitHubRepository(_GitHubEntity):
    id: int
    name: str
    full_name: str
    default_branch: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None
