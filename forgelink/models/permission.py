"""Access level tiers and the operation classes they gate."""

from enum import Enum, IntEnum


class AccessLevel(IntEnum):
    """
    Ordinal permission tiers.

    Values follow GitLab's numeric access levels; other forges map their own
    roles onto the same scale.
    """
    NO_ACCESS = 0
    GUEST = 10
    REPORTER = 20
    DEVELOPER = 30
    MAINTAINER = 40
    OWNER = 50


class OperationClass(str, Enum):
    """Kinds of operation a run may ask to perform."""
    READ = "read"
    COMMENT = "comment"
    BRANCH = "branch"
    COMMIT = "commit"
    PROTECTED_PUSH = "protected_push"


REQUIRED_ACCESS = {
    OperationClass.READ: AccessLevel.REPORTER,
    OperationClass.COMMENT: AccessLevel.REPORTER,
    OperationClass.BRANCH: AccessLevel.DEVELOPER,
    OperationClass.COMMIT: AccessLevel.DEVELOPER,
    OperationClass.PROTECTED_PUSH: AccessLevel.MAINTAINER,
}


def is_permitted(level: int, operation: OperationClass) -> bool:
    """Return whether ``level`` meets the minimum tier for ``operation``."""
    return level >= REQUIRED_ACCESS[operation]
