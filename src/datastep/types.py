"""Type definitions for the datastep SDK."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Type aliases
Args = Dict[str, Any]
StepID = str
UserID = int
Metadata = Dict[str, Any]


class StepType(str, Enum):
    """How the step can be connected in a workflow."""

    PROCESS = "PROCESS"
    PROCESS_ONLY = "PROCESS_ONLY"


class StepPropertyType(str, Enum):
    """Kind of input a step property presents."""

    CUSTOM_CHOOSER = "CUSTOM_CHOOSER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"


class IconType(str, Enum):
    """Status icon shown next to a step property."""

    OK = "OK"
    ERROR = "ERROR"


class BackoffType(str, Enum):
    """Growth of the interval between cache polls."""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class ProvisionOutcome(str, Enum):
    """Result of ensuring a table exists."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class Selection:
    """Datastore and table chosen in the step's properties."""

    datastore: Optional[str] = None
    table: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return bool(self.datastore) and bool(self.table)


@dataclass(frozen=True)
class StepProperty:
    """A configurable argument of a step."""

    name: str
    type: StepPropertyType
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API dictionary format."""
        result: Dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.label:
            result["label"] = self.label
        return result


@dataclass(frozen=True)
class HTTPConfig:
    """HTTP configuration for served steps."""

    endpoint: str
    health_check: str = ""
    timeout_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API dictionary format."""
        result: Dict[str, Any] = {"endpoint": self.endpoint}
        if self.health_check:
            result["health_check"] = self.health_check
        if self.timeout_ms > 0:
            result["timeout_ms"] = self.timeout_ms
        return result


@dataclass(frozen=True)
class PollConfig:
    """How to wait for a table to finish caching.

    The defaults poll every 100 ms with no timeout. A positive
    ``timeout_ms`` bounds the wait; ``backoff_type`` grows the interval up
    to ``max_interval_ms`` (0 means uncapped).
    """

    interval_ms: int = 100
    timeout_ms: int = 0
    backoff_type: BackoffType = BackoffType.FIXED
    max_interval_ms: int = 0

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError(
                f"Poll interval must be positive, got {self.interval_ms}ms"
            )
        if self.timeout_ms < 0:
            raise ValueError(
                f"Cache timeout cannot be negative, got {self.timeout_ms}ms"
            )
        if self.max_interval_ms < 0:
            raise ValueError(
                "Max poll interval cannot be negative, "
                f"got {self.max_interval_ms}ms"
            )

    def next_interval(self, current_ms: int) -> int:
        """Interval to sleep after a poll that slept ``current_ms``."""
        if self.backoff_type == BackoffType.LINEAR:
            nxt = current_ms + self.interval_ms
        elif self.backoff_type == BackoffType.EXPONENTIAL:
            nxt = current_ms * 2
        else:
            nxt = current_ms
        if self.max_interval_ms > 0:
            nxt = min(nxt, self.max_interval_ms)
        return nxt

    @classmethod
    def from_env(cls) -> "PollConfig":
        """Read poll settings from ``DATASTEP_*`` environment variables."""
        return cls(
            interval_ms=int(os.getenv("DATASTEP_POLL_INTERVAL_MS", "100")),
            timeout_ms=int(os.getenv("DATASTEP_CACHE_TIMEOUT_MS", "0")),
            backoff_type=BackoffType(
                os.getenv("DATASTEP_POLL_BACKOFF", BackoffType.FIXED.value)
            ),
            max_interval_ms=int(os.getenv("DATASTEP_POLL_MAX_INTERVAL_MS", "0")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API dictionary format."""
        result: Dict[str, Any] = {
            "interval_ms": self.interval_ms,
            "backoff_type": self.backoff_type.value,
        }
        if self.timeout_ms > 0:
            result["timeout_ms"] = self.timeout_ms
        if self.max_interval_ms > 0:
            result["max_interval_ms"] = self.max_interval_ms
        return result


@dataclass(frozen=True)
class StepDefinition:
    """Complete step definition."""

    id: StepID
    name: str
    type: StepType
    description: str = ""
    icon: str = ""
    properties: List[StepProperty] = field(default_factory=list)
    http: Optional[HTTPConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API dictionary format."""
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
        }

        if self.description:
            result["description"] = self.description

        if self.icon:
            result["icon"] = self.icon

        if self.properties:
            result["properties"] = [p.to_dict() for p in self.properties]

        if self.http:
            result["http"] = self.http.to_dict()

        return result


@dataclass(frozen=True)
class RunReport:
    """What happened during one execution of the database step."""

    provision: Optional[ProvisionOutcome] = None
    provision_error: str = ""
    row_count: Optional[int] = None
    append_error: str = ""
    cleaned_up: bool = False
    selection_resolved: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API dictionary format."""
        result: Dict[str, Any] = {
            "cleaned_up": self.cleaned_up,
            "selection_resolved": self.selection_resolved,
        }
        if self.provision is not None:
            result["provision"] = self.provision.value
        if self.provision_error:
            result["provision_error"] = self.provision_error
        if self.row_count is not None:
            result["row_count"] = self.row_count
        if self.append_error:
            result["append_error"] = self.append_error
        return result


@dataclass(frozen=True)
class StepResult:
    """Result from step execution."""

    success: bool
    outputs: Args = field(default_factory=dict)
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API dictionary format."""
        result: Dict[str, Any] = {"success": self.success}
        if self.outputs:
            result["outputs"] = self.outputs
        if self.error:
            result["error"] = self.error
        return result
