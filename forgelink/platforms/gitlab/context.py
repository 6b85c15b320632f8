"""
GitLab context resolver.

Builds a GitLabPlatformContext from GitLab CI/CD predefined variables
(https://docs.gitlab.com/ee/ci/variables/predefined_variables.html) and the
operator inputs configured on the job.

GitLab CI does not expose an issue IID to pipelines, so ``issue_iid`` is
always left unset and the ``issue`` event type is never produced here.
"""

import os
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from forgelink.models.context import (
    ContextInputs,
    EventType,
    GitLabPlatformContext,
    RepositoryInfo,
)
from forgelink.platforms.errors import ConfigurationError
from forgelink.utils.logging import get_logger

logger = get_logger(__name__, platform="gitlab")


class GitLabEnvironment(BaseSettings):
    """Snapshot of the GitLab CI variables the resolver reads."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    gitlab_ci: Optional[str] = None
    ci_pipeline_id: Optional[str] = None
    ci_job_id: Optional[str] = None
    ci_project_id: Optional[str] = None
    ci_project_name: Optional[str] = None
    ci_project_namespace: Optional[str] = None
    ci_project_path: Optional[str] = None
    ci_merge_request_iid: Optional[str] = None
    ci_merge_request_target_branch_name: Optional[str] = None
    ci_merge_request_source_branch_name: Optional[str] = None
    ci_merge_request_event_type: Optional[str] = None
    ci_commit_ref_name: Optional[str] = None
    ci_commit_sha: Optional[str] = None
    gitlab_user_login: Optional[str] = None
    gitlab_user_name: Optional[str] = None

    # Operator inputs
    prompt: Optional[str] = None
    trigger_phrase: Optional[str] = None
    assignee_trigger: Optional[str] = None
    label_trigger: Optional[str] = None
    base_branch: Optional[str] = None
    branch_prefix: Optional[str] = None
    use_sticky_comment: Optional[str] = None
    use_commit_signing: Optional[str] = None
    allowed_bots: Optional[str] = None


def _parse_int(value: Optional[str], variable: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"{variable} must be an integer, got {value!r}", fields=[variable]
        ) from None


def classify_event(env: GitLabEnvironment) -> EventType:
    """
    Derive the event type from the pipeline variables.

    A merge request IID wins; otherwise a ref that differs from the merge
    target is a push; anything else is a plain pipeline run.
    """
    if env.ci_merge_request_iid:
        return EventType.MERGE_REQUEST
    if env.ci_commit_ref_name and env.ci_commit_ref_name != env.ci_merge_request_target_branch_name:
        return EventType.PUSH
    return EventType.PIPELINE


def parse_gitlab_context() -> GitLabPlatformContext:
    """
    Parse the GitLab CI/CD environment into a platform context.

    Returns:
        Immutable GitLabPlatformContext

    Raises:
        ConfigurationError: If project identity variables are missing or
            malformed
    """
    env = GitLabEnvironment()

    if not env.ci_project_id:
        raise ConfigurationError(
            "CI_PROJECT_ID environment variable is required for GitLab context",
            fields=["CI_PROJECT_ID"],
        )

    missing = [
        name
        for name, value in (
            ("CI_PROJECT_NAME", env.ci_project_name),
            ("CI_PROJECT_NAMESPACE", env.ci_project_namespace),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"{' and '.join(missing)} required for GitLab context", fields=missing)

    project_id = _parse_int(env.ci_project_id, "CI_PROJECT_ID")
    if project_id is None or project_id <= 0:
        raise ConfigurationError(
            f"CI_PROJECT_ID must be a positive integer, got {env.ci_project_id!r}",
            fields=["CI_PROJECT_ID"],
        )
    merge_request_iid = _parse_int(env.ci_merge_request_iid, "CI_MERGE_REQUEST_IID")
    pipeline_id = _parse_int(env.ci_pipeline_id, "CI_PIPELINE_ID")
    event_type = classify_event(env)

    context = GitLabPlatformContext(
        run_id=env.ci_job_id or env.ci_pipeline_id or "unknown",
        repository=RepositoryInfo(
            owner=env.ci_project_namespace,
            name=env.ci_project_name,
            full_name=env.ci_project_path or f"{env.ci_project_namespace}/{env.ci_project_name}",
        ),
        actor=env.gitlab_user_login or env.gitlab_user_name or "unknown",
        project_id=project_id,
        event_type=event_type,
        merge_request_iid=merge_request_iid,
        issue_iid=None,
        pipeline_id=pipeline_id,
        payload=_build_payload(env),
        inputs=ContextInputs(
            prompt=env.prompt or "",
            trigger_phrase=env.trigger_phrase or "@claude",
            assignee_trigger=env.assignee_trigger or "",
            label_trigger=env.label_trigger or "",
            base_branch=env.base_branch or env.ci_merge_request_target_branch_name,
            branch_prefix=env.branch_prefix or "claude/",
            use_sticky_comment=env.use_sticky_comment == "true",
            use_commit_signing=env.use_commit_signing == "true",
            allowed_bots=env.allowed_bots or "",
        ),
    )

    logger.info(
        f"Parsed GitLab context: project {context.project_id}, event {context.event_type.value}",
        extra={"project_id": context.project_id, "run_id": context.run_id},
    )
    return context


def _build_payload(env: GitLabEnvironment) -> dict:
    merge_request = None
    if env.ci_merge_request_iid:
        merge_request = {
            "iid": env.ci_merge_request_iid,
            "target_branch": env.ci_merge_request_target_branch_name,
            "source_branch": env.ci_merge_request_source_branch_name,
            "event_type": env.ci_merge_request_event_type,
        }

    return {
        "pipeline": {"id": env.ci_pipeline_id},
        "project": {
            "id": env.ci_project_id,
            "name": env.ci_project_name,
            "namespace": env.ci_project_namespace,
            "path": env.ci_project_path,
        },
        "merge_request": merge_request,
        "commit": {"sha": env.ci_commit_sha, "ref": env.ci_commit_ref_name},
        "user": {"login": env.gitlab_user_login, "name": env.gitlab_user_name},
    }


def is_gitlab_environment() -> bool:
    """Detect a GitLab CI/CD job. Reads only the environment."""
    return os.environ.get("GITLAB_CI") == "true" or bool(os.environ.get("CI_PROJECT_ID"))
