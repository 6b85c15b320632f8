"""Unit tests for platform detection."""

import os
from unittest.mock import patch

import pytest

from forgelink.models.context import PlatformType
from forgelink.platforms.base import PlatformAdapter
from forgelink.platforms.detector import (
    detect_platform,
    get_platform_adapter,
    get_platform_info,
    is_in_ci_environment,
)
from forgelink.platforms.github.adapter import GitHubAdapter
from forgelink.platforms.gitlab.adapter import GitLabAdapter


@pytest.mark.parametrize("env,expected", [
    ({"GITLAB_CI": "true"}, PlatformType.GITLAB),
    ({"CI_PROJECT_ID": "5"}, PlatformType.GITLAB),
    ({"GITHUB_ACTIONS": "true"}, PlatformType.GITHUB),
    ({"GITLAB_CI": "true", "GITHUB_ACTIONS": "true"}, PlatformType.GITLAB),
    ({"GITLAB_CI": "false"}, PlatformType.GITHUB),
    ({}, PlatformType.GITHUB),
])
def test_detect_platform(env, expected):
    with patch.dict(os.environ, env, clear=True):
        assert detect_platform() == expected


def test_get_platform_adapter_detects(settings):
    with patch.dict(os.environ, {"GITLAB_CI": "true"}, clear=True):
        adapter = get_platform_adapter(settings=settings)

    assert isinstance(adapter, GitLabAdapter)
    assert isinstance(adapter, PlatformAdapter)
    assert adapter.base_url == "https://gitlab.example.com/api/v4"


def test_get_platform_adapter_explicit(settings):
    with patch.dict(os.environ, {"GITLAB_CI": "true"}, clear=True):
        adapter = get_platform_adapter("github", settings=settings)

    assert isinstance(adapter, GitHubAdapter)
    assert adapter.platform == PlatformType.GITHUB


def test_get_platform_adapter_unknown():
    with pytest.raises(ValueError):
        get_platform_adapter("bitbucket")


def test_is_in_ci_environment():
    with patch.dict(os.environ, {"CI": "true"}, clear=True):
        assert is_in_ci_environment() is True
    with patch.dict(os.environ, {}, clear=True):
        assert is_in_ci_environment() is False


def test_get_platform_info():
    env = {"GITLAB_CI": "true", "CI": "true", "CI_PROJECT_ID": "42", "CI_PIPELINE_ID": "7"}
    with patch.dict(os.environ, env, clear=True):
        info = get_platform_info()

    assert info["platform"] == "gitlab"
    assert info["is_ci"] is True
    assert info["environment_vars"]["project_id"] == "42"
    assert info["environment_vars"]["pipeline_id"] == "7"
    assert info["environment_vars"]["job_id"] == ""
