"""Builder pattern for creating step definitions."""

import copy
import re
from typing import TYPE_CHECKING, Any, List, Optional

from .errors import StepRegistrationError, StepValidationError
from .types import (
    HTTPConfig,
    StepDefinition,
    StepID,
    StepProperty,
    StepPropertyType,
    StepType,
)

if TYPE_CHECKING:
    from .client import Client
    from .handlers import ChoicesHandler, CompleteHandler, StepHandler
    from .host import Host


def _to_kebab_case(s: str) -> str:
    """Convert string to kebab-case."""
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", s)
    s = re.sub(r"[^A-Za-z0-9]+", "-", s)
    return s.strip("-").lower()


class StepBuilder:
    """Immutable builder for creating step definitions."""

    def __init__(
        self,
        client: Optional["Client"],
        name: str,
        step_id: Optional[StepID] = None,
        step_type: StepType = StepType.PROCESS,
        description: str = "",
        icon: str = "",
        properties: Optional[List[StepProperty]] = None,
        http: Optional[HTTPConfig] = None,
        dirty: bool = False,
    ) -> None:
        self._client = client
        self._name = name
        self._id = step_id or _to_kebab_case(name)
        self._type = step_type
        self._description = description
        self._icon = icon
        self._properties = properties or []
        self._http = http
        self._dirty = dirty

    def _copy(self, **kwargs: Any) -> "StepBuilder":
        """Create a copy with updated attributes."""
        result = copy.copy(self)
        for key, value in kwargs.items():
            setattr(result, key, value)
        return result

    def with_id(self, step_id: StepID) -> "StepBuilder":
        """Set custom step ID."""
        return self._copy(_id=step_id)

    def with_description(self, description: str) -> "StepBuilder":
        return self._copy(_description=description)

    def with_icon(self, icon: str) -> "StepBuilder":
        return self._copy(_icon=icon)

    def process_only(self) -> "StepBuilder":
        """Only allow connecting the step to other processes."""
        return self._copy(_type=StepType.PROCESS_ONLY)

    def with_property(
        self, name: str, prop_type: StepPropertyType, label: str = ""
    ) -> "StepBuilder":
        """Add a configurable property."""
        new_props = list(self._properties)
        new_props.append(StepProperty(name=name, type=prop_type, label=label))
        return self._copy(_properties=new_props)

    def chooser(self, name: str, label: str = "") -> "StepBuilder":
        """Add a property whose values the step supplies."""
        return self.with_property(name, StepPropertyType.CUSTOM_CHOOSER, label)

    def with_endpoint(self, url: str) -> "StepBuilder":
        """Set HTTP endpoint."""
        new_http = HTTPConfig(
            endpoint=url,
            health_check=self._http.health_check if self._http else "",
            timeout_ms=self._http.timeout_ms if self._http else 0,
        )
        return self._copy(_http=new_http)

    def with_health_check(self, url: str) -> "StepBuilder":
        """Set health check endpoint."""
        new_http = HTTPConfig(
            endpoint=self._http.endpoint if self._http else "",
            health_check=url,
            timeout_ms=self._http.timeout_ms if self._http else 0,
        )
        return self._copy(_http=new_http)

    def with_timeout(self, ms: int) -> "StepBuilder":
        """Set execution timeout in milliseconds."""
        new_http = HTTPConfig(
            endpoint=self._http.endpoint if self._http else "",
            health_check=self._http.health_check if self._http else "",
            timeout_ms=ms,
        )
        return self._copy(_http=new_http)

    def update(self) -> "StepBuilder":
        """Mark step as updated (uses update instead of register on start)."""
        return self._copy(_dirty=True)

    def build(self) -> StepDefinition:
        """Create immutable StepDefinition."""
        step = StepDefinition(
            id=self._id,
            name=self._name,
            type=self._type,
            description=self._description,
            icon=self._icon,
            properties=list(self._properties),
            http=self._http,
        )
        _validate_step(step)
        return step

    def register(self) -> None:
        """Build and register step with the host."""
        if self._client is None:
            raise StepRegistrationError("No client to register with")
        step = self.build()
        try:
            self._client.register_step(step)
        except Exception as e:
            raise StepRegistrationError(
                f"Failed to register step {step.id}: {e}"
            ) from e

    def start(
        self,
        handler: "StepHandler",
        host: "Host",
        choices: Optional["ChoicesHandler"] = None,
        complete: Optional["CompleteHandler"] = None,
    ) -> None:
        """Build, register, and start Flask server."""
        from .handlers import create_step_server

        if self._client is None:
            raise StepRegistrationError("No client to register with")
        create_step_server(
            self._client, self, handler, host, choices=choices, complete=complete
        )


def _validate_step(step: StepDefinition) -> None:
    if not step.id:
        raise StepValidationError("Step ID cannot be empty")
    if not step.name:
        raise StepValidationError("Step name cannot be empty")

    if step.type not in {StepType.PROCESS, StepType.PROCESS_ONLY}:
        raise StepValidationError(f"Invalid step type: {step.type}")

    if step.http is not None and not step.http.endpoint:
        raise StepValidationError("HTTP config requires an endpoint")

    seen = set()
    for prop in step.properties:
        if not prop.name:
            raise StepValidationError("Property name cannot be empty")
        if prop.name in seen:
            raise StepValidationError(f"Duplicate property {prop.name}")
        seen.add(prop.name)
