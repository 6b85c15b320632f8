"""Authentication credential model."""

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, SecretStr


class TokenSource(str, Enum):
    """Where a credential came from."""
    EXPLICIT = "explicit"
    JOB_TOKEN = "job_token"


class Credential(BaseModel):
    """
    A forge token and its provenance.

    The token is held as a SecretStr so it never shows up in reprs or logs.
    """

    model_config = ConfigDict(frozen=True)

    token: SecretStr
    source: TokenSource
    variable: str

    @property
    def value(self) -> str:
        return self.token.get_secret_value()

    @property
    def is_job_token(self) -> bool:
        return self.source == TokenSource.JOB_TOKEN


def as_credential(token: Union[Credential, str]) -> Credential:
    """Wrap a raw token string as an explicit credential."""
    if isinstance(token, Credential):
        return token
    return Credential(token=token, source=TokenSource.EXPLICIT, variable="<argument>")
