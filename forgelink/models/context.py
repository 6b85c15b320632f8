"""Platform context data models."""

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PlatformType(str, Enum):
    """Supported forges."""
    GITHUB = "github"
    GITLAB = "gitlab"


class EventType(str, Enum):
    """Classification of the event that triggered the run."""
    MERGE_REQUEST = "merge_request"
    ISSUE = "issue"
    PIPELINE = "pipeline"
    PUSH = "push"


class EntityType(str, Enum):
    """Entities that can carry comments."""
    MERGE_REQUEST = "merge_request"
    ISSUE = "issue"


class RepositoryInfo(BaseModel):
    """Repository descriptor."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    full_name: str


class ContextInputs(BaseModel):
    """Operator-configured options for the run."""

    model_config = ConfigDict(frozen=True)

    prompt: str = ""
    trigger_phrase: str = "@claude"
    assignee_trigger: str = ""
    label_trigger: str = ""
    base_branch: Optional[str] = None
    branch_prefix: str = "claude/"
    use_sticky_comment: bool = False
    use_commit_signing: bool = False
    allowed_bots: str = ""


class BasePlatformContext(BaseModel):
    """Fields shared by every forge context. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformType
    run_id: str
    repository: RepositoryInfo
    actor: str
    event_type: EventType
    merge_request_iid: Optional[int] = None
    issue_iid: Optional[int] = None
    pipeline_id: Optional[int] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    inputs: ContextInputs = Field(default_factory=ContextInputs)

    @property
    def project_ref(self) -> str:
        """Identifier of the target repository on its forge."""
        return self.repository.full_name

    @property
    def entity_number(self) -> Optional[int]:
        """The merge request or issue number the event refers to."""
        if self.event_type == EventType.MERGE_REQUEST:
            return self.merge_request_iid
        if self.event_type == EventType.ISSUE:
            return self.issue_iid
        return None

    def is_merge_request_event(self) -> bool:
        return self.event_type == EventType.MERGE_REQUEST and bool(self.merge_request_iid)

    def is_issue_event(self) -> bool:
        return self.event_type == EventType.ISSUE and bool(self.issue_iid)


class GitLabPlatformContext(BasePlatformContext):
    """Context resolved from GitLab CI/CD predefined variables."""

    platform: Literal[PlatformType.GITLAB] = PlatformType.GITLAB
    project_id: int = Field(gt=0)

    @property
    def project_ref(self) -> str:
        return str(self.project_id)


class GitHubPlatformContext(BasePlatformContext):
    """Context resolved from GitHub Actions variables and the event payload."""

    platform: Literal[PlatformType.GITHUB] = PlatformType.GITHUB
    event_name: str
    event_action: Optional[str] = None


PlatformContext = Union[GitLabPlatformContext, GitHubPlatformContext]
