"""Data models for forgelink."""

from .commit import CommitAction, CommitFile
from .context import (
    BasePlatformContext,
    ContextInputs,
    EntityType,
    EventType,
    GitHubPlatformContext,
    GitLabPlatformContext,
    PlatformContext,
    PlatformType,
    RepositoryInfo,
)
from .credential import Credential, TokenSource, as_credential
from .permission import AccessLevel, OperationClass, REQUIRED_ACCESS, is_permitted
from .policy import API_RETRY_POLICY, RetryPolicy

__all__ = [
    # Context models
    "PlatformType",
    "EventType",
    "EntityType",
    "RepositoryInfo",
    "ContextInputs",
    "BasePlatformContext",
    "GitLabPlatformContext",
    "GitHubPlatformContext",
    "PlatformContext",
    # Credential models
    "Credential",
    "TokenSource",
    "as_credential",
    # Permission models
    "AccessLevel",
    "OperationClass",
    "REQUIRED_ACCESS",
    "is_permitted",
    # Retry models
    "RetryPolicy",
    "API_RETRY_POLICY",
    # Commit models
    "CommitAction",
    "CommitFile",
]
