"""File change models for multi-file commits."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator


class CommitAction(str, Enum):
    """Action applied to a path in a commit."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CommitFile(BaseModel):
    """
    A single file change destined for a commit.

    ``content`` holds text as ``str`` and binary data as ``bytes``; it is
    ``None`` only for deletions.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    content: Optional[Union[bytes, str]] = None
    action: CommitAction = CommitAction.CREATE

    @model_validator(mode="after")
    def _check_content(self) -> "CommitFile":
        if self.action != CommitAction.DELETE and self.content is None:
            raise ValueError(f"content is required to {self.action.value} {self.path}")
        return self

    @property
    def is_binary(self) -> bool:
        """Content was supplied as bytes. Wire encoding is decided by path."""
        return isinstance(self.content, bytes)
