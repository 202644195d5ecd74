"""Reconciliation models."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way the API server stores timestamps (whole seconds)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class ReconcileOutcome(str, Enum):
    """Outcome recorded by the last reconciliation pass."""

    SUCCESS = "Success"
    FAILURE = "Failure"
    UNKNOWN = "Unknown"


class ReconcileStatus(BaseModel):
    """Status snapshot written by manage_error/manage_success."""

    model_config = ConfigDict(populate_by_name=True)

    last_update: Optional[datetime] = Field(default=None, alias="lastUpdate")
    reason: str = ""
    status: ReconcileOutcome = ReconcileOutcome.UNKNOWN

    @field_validator("last_update", mode="before")
    @classmethod
    def _empty_timestamp(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_validator("last_update")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status(cls, value: Any) -> Any:
        if value in (None, ""):
            return ReconcileOutcome.UNKNOWN
        return value

    @field_validator("reason", mode="before")
    @classmethod
    def _none_reason(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_serializer("last_update")
    def _serialize_last_update(self, value: Optional[datetime]) -> Optional[str]:
        return format_timestamp(value) if value is not None else None

    @property
    def is_zero(self) -> bool:
        """True if no status transition has ever been recorded."""
        return self.last_update is None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the manifest representation."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ReconcileStatus":
        """Build from the manifest representation (missing data is the zero status)."""
        return cls.model_validate(data or {})


@dataclass(frozen=True)
class ReconcileResult:
    """
    Result handed back to the scheduler that invoked a reconciliation pass.

    The scheduler requeues when ``requeue`` is set, waiting at least
    ``requeue_after`` before the next pass.
    """

    requeue: bool = False
    requeue_after: timedelta = timedelta(0)

    @classmethod
    def done(cls) -> "ReconcileResult":
        """No requeue; wait for an external trigger."""
        return cls()

    @classmethod
    def requeue_in(cls, delay: timedelta) -> "ReconcileResult":
        """Requeue after at least ``delay``."""
        return cls(requeue=True, requeue_after=delay)


class ClusterConfig(BaseModel):
    """Cluster connection configuration."""

    kubeconfig_path: Optional[str] = None
    kubeconfig_data: Optional[str] = None  # Base64 encoded kubeconfig
    context: Optional[str] = None  # Specific context to use
