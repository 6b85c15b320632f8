"""
GitHub context resolver.

Builds a GitHubPlatformContext from GitHub Actions default variables and the
webhook payload GitHub writes to GITHUB_EVENT_PATH.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from forgelink.models.context import (
    ContextInputs,
    EventType,
    GitHubPlatformContext,
    RepositoryInfo,
)
from forgelink.platforms.errors import ConfigurationError
from forgelink.utils.logging import get_logger

logger = get_logger(__name__, platform="github")

PULL_REQUEST_EVENTS = frozenset({
    "pull_request",
    "pull_request_target",
    "pull_request_review",
    "pull_request_review_comment",
})


class GitHubEnvironment(BaseSettings):
    """Snapshot of the GitHub Actions variables the resolver reads."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    github_actions: Optional[str] = None
    github_repository: Optional[str] = None
    github_run_id: Optional[str] = None
    github_actor: Optional[str] = None
    github_event_name: Optional[str] = None
    github_event_path: Optional[str] = None

    prompt: Optional[str] = None
    trigger_phrase: Optional[str] = None
    assignee_trigger: Optional[str] = None
    label_trigger: Optional[str] = None
    base_branch: Optional[str] = None
    branch_prefix: Optional[str] = None
    use_sticky_comment: Optional[str] = None
    use_commit_signing: Optional[str] = None
    allowed_bots: Optional[str] = None


def _load_payload(event_path: Optional[str]) -> Dict[str, Any]:
    if not event_path:
        return {}
    try:
        return json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"GITHUB_EVENT_PATH could not be read as JSON: {e}", fields=["GITHUB_EVENT_PATH"]
        ) from e


def classify_event(event_name: str, payload: Dict[str, Any]) -> Tuple[EventType, Optional[int], Optional[int]]:
    """
    Derive the event type and entity numbers from the workflow event.

    Comments on pull requests arrive as ``issue_comment`` events whose issue
    carries a ``pull_request`` key; those count as merge request events.

    Returns:
        Tuple of (event_type, merge_request_iid, issue_iid)
    """
    if event_name in PULL_REQUEST_EVENTS:
        number = (payload.get("pull_request") or {}).get("number") or payload.get("number")
        return EventType.MERGE_REQUEST, number, None

    if event_name in ("issues", "issue_comment"):
        issue = payload.get("issue") or {}
        if issue.get("pull_request"):
            return EventType.MERGE_REQUEST, issue.get("number"), None
        return EventType.ISSUE, None, issue.get("number")

    if event_name == "push":
        return EventType.PUSH, None, None

    return EventType.PIPELINE, None, None


def parse_github_context() -> GitHubPlatformContext:
    """
    Parse the GitHub Actions environment into a platform context.

    Raises:
        ConfigurationError: If GITHUB_REPOSITORY is missing or malformed, the
            event payload cannot be read, or a pull request/issue event has
            no number
    """
    env = GitHubEnvironment()

    if not env.github_repository:
        raise ConfigurationError(
            "GITHUB_REPOSITORY environment variable is required for GitHub context",
            fields=["GITHUB_REPOSITORY"],
        )
    owner, _, name = env.github_repository.partition("/")
    if not owner or not name:
        raise ConfigurationError(
            f"GITHUB_REPOSITORY must look like owner/name, got {env.github_repository!r}",
            fields=["GITHUB_REPOSITORY"],
        )

    payload = _load_payload(env.github_event_path)
    event_name = env.github_event_name or "workflow_dispatch"
    event_type, merge_request_iid, issue_iid = classify_event(event_name, payload)

    if event_type in (EventType.MERGE_REQUEST, EventType.ISSUE) and not (merge_request_iid or issue_iid):
        raise ConfigurationError(
            f"{event_name} event payload does not carry an entity number",
            fields=["GITHUB_EVENT_PATH"],
        )

    pull_request = payload.get("pull_request") or {}
    default_base = (pull_request.get("base") or {}).get("ref")
    run_id = env.github_run_id or "unknown"

    context = GitHubPlatformContext(
        run_id=run_id,
        repository=RepositoryInfo(owner=owner, name=name, full_name=env.github_repository),
        actor=env.github_actor or "unknown",
        event_name=event_name,
        event_action=payload.get("action"),
        event_type=event_type,
        merge_request_iid=merge_request_iid,
        issue_iid=issue_iid,
        pipeline_id=int(run_id) if run_id.isdigit() else None,
        payload=payload,
        inputs=ContextInputs(
            prompt=env.prompt or "",
            trigger_phrase=env.trigger_phrase or "@claude",
            assignee_trigger=env.assignee_trigger or "",
            label_trigger=env.label_trigger or "",
            base_branch=env.base_branch or default_base,
            branch_prefix=env.branch_prefix or "claude/",
            use_sticky_comment=env.use_sticky_comment == "true",
            use_commit_signing=env.use_commit_signing == "true",
            allowed_bots=env.allowed_bots or "",
        ),
    )

    logger.info(
        f"Parsed GitHub context: {context.repository.full_name}, event {event_name} -> {event_type.value}",
        extra={"project_id": context.repository.full_name, "run_id": context.run_id},
    )
    return context


def is_github_environment() -> bool:
    """Detect a GitHub Actions job. Reads only the environment."""
    return os.environ.get("GITHUB_ACTIONS") == "true" or bool(os.environ.get("GITHUB_REPOSITORY"))
