"""Retry policy value object."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryPolicy(BaseModel):
    """Bounded exponential backoff configuration."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=5.0, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1)

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetryPolicy":
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be greater than or equal to initial_delay")
        return self

    def delays(self) -> list[float]:
        """Sleep durations between consecutive attempts."""
        result = []
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            result.append(delay)
            delay = min(delay * self.backoff_factor, self.max_delay)
        return result


# Policy shared by every forge API call: CI jobs are time-boxed.
API_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    initial_delay=1.0,
    max_delay=5.0,
    backoff_factor=2.0,
)
