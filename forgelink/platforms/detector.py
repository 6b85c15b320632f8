"""
Platform detection.

Picks the forge adapter from CI marker variables. When no marker matches,
GitHub is assumed so that installations predating GitLab support keep
working unchanged.
"""

import os
from typing import Callable, Dict, Optional, Union

from forgelink.models.context import PlatformType
from forgelink.platforms.base import PlatformAdapter
from forgelink.platforms.github.adapter import GitHubAdapter
from forgelink.platforms.github.context import is_github_environment
from forgelink.platforms.gitlab.adapter import GitLabAdapter
from forgelink.platforms.gitlab.context import is_gitlab_environment
from forgelink.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PLATFORM = PlatformType.GITHUB

ADAPTERS: Dict[PlatformType, Callable[..., PlatformAdapter]] = {
    PlatformType.GITLAB: GitLabAdapter,
    PlatformType.GITHUB: GitHubAdapter,
}


def detect_platform() -> PlatformType:
    """Detect the forge the current job runs on."""
    if is_gitlab_environment():
        return PlatformType.GITLAB
    if is_github_environment():
        return PlatformType.GITHUB

    logger.info(f"No CI platform markers found, defaulting to {DEFAULT_PLATFORM.value}")
    return DEFAULT_PLATFORM


def get_platform_adapter(platform: Optional[Union[PlatformType, str]] = None, **kwargs) -> PlatformAdapter:
    """
    Build the adapter for ``platform``, or for the detected platform.

    Args:
        platform: Explicit platform tag; detected when omitted
        **kwargs: Passed to the adapter constructor (settings, retrier, transport)

    Raises:
        ValueError: If the platform tag is unknown
    """
    tag = PlatformType(platform) if platform else detect_platform()
    try:
        factory = ADAPTERS[tag]
    except KeyError:
        raise ValueError(f"Unsupported platform: {tag}") from None
    return factory(**kwargs)


def is_in_ci_environment() -> bool:
    return bool(os.environ.get("CI") or os.environ.get("GITLAB_CI") or os.environ.get("GITHUB_ACTIONS"))


_INFO_VARIABLES = {
    PlatformType.GITLAB: {
        "project_id": "CI_PROJECT_ID",
        "project_name": "CI_PROJECT_NAME",
        "project_namespace": "CI_PROJECT_NAMESPACE",
        "pipeline_id": "CI_PIPELINE_ID",
        "job_id": "CI_JOB_ID",
        "merge_request_iid": "CI_MERGE_REQUEST_IID",
        "commit_sha": "CI_COMMIT_SHA",
        "ref": "CI_COMMIT_REF_NAME",
    },
    PlatformType.GITHUB: {
        "repository": "GITHUB_REPOSITORY",
        "run_id": "GITHUB_RUN_ID",
        "run_number": "GITHUB_RUN_NUMBER",
        "actor": "GITHUB_ACTOR",
        "event_name": "GITHUB_EVENT_NAME",
        "sha": "GITHUB_SHA",
        "ref": "GITHUB_REF",
    },
}


def get_platform_info() -> dict:
    """Summarize the detected platform and its identifying variables."""
    platform = detect_platform()
    return {
        "platform": platform.value,
        "is_ci": is_in_ci_environment(),
        "environment_vars": {
            key: os.environ.get(variable, "")
            for key, variable in _INFO_VARIABLES[platform].items()
        },
    }
