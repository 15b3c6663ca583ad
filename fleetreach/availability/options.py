from typing import Any, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from fleetreach.config import settings
from fleetreach.errors import ConfigurationError
from fleetreach.utils.timeparse import parse_duration


class PollOptions(BaseModel):
    """Options for waiting until targets are available."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    description: str = Field(default="wait until available", description="Description used in logs and failures")
    wait_time: float = Field(default=settings.WAIT_TIME, ge=0, description="Total time to wait, in seconds")
    retry_interval: float = Field(default=settings.RETRY_INTERVAL, gt=0, description="Pause between attempts, in seconds")
    catch_errors: bool = Field(
        default=False,
        validation_alias=AliasChoices("catch_errors", "_catch_errors"),
        description="Return failed results instead of raising AggregateFailure",
    )

    @field_validator("wait_time", "retry_interval", mode="before")
    @classmethod
    def parse_durations(cls, v):
        return parse_duration(v)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "PollOptions":
        """
        Build options from a plain mapping.

        Raises:
            ConfigurationError: If an option is unknown or out of range.
        """
        try:
            return cls.model_validate(dict(options or {}))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid wait options: {errors}") from e
