"""GitLab REST API response models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class _GitLabEntity(BaseModel):
    """Read-only mirror of a GitLab response; unknown fields are kept."""

    model_config = ConfigDict(frozen=True, extra="allow")


class GitLabUser(_GitLabEntity):
    id: int
    username: str
    name: str = ""


class GitLabMergeRequest(_GitLabEntity):
    id: int
    iid: int
    title: str
    description: Optional[str] = None
    state: str
    author: Optional[GitLabUser] = None
    source_branch: str
    target_branch: str
    project_id: int
    web_url: str = ""


class GitLabIssue(_GitLabEntity):
    id: int
    iid: int
    title: str
    description: Optional[str] = None
    state: str
    author: Optional[GitLabUser] = None
    project_id: int
    web_url: str = ""


class GitLabNote(_GitLabEntity):
    id: int
    body: str
    author: Optional[GitLabUser] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    system: bool = False
    noteable_type: Optional[str] = None
    noteable_id: Optional[int] = None


class GitLabCommit(_GitLabEntity):
    id: str
    message: str = ""
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    authored_date: Optional[str] = None


class GitLabBranch(_GitLabEntity):
    name: str
    commit: GitLabCommit
    protected: bool = False

    @property
    def head_commit_id(self) -> str:
        return self.commit.id


class GitLabProject(_GitLabEntity):
    id: int
    name: str
    path_with_namespace: str = ""
    default_branch: Optional[str] = None
    permissions: Optional[Dict[str, Any]] = None
