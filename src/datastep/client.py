"""HTTP client for the host's step registry."""

from typing import TYPE_CHECKING, Optional

import requests

from .errors import ClientError
from .types import StepDefinition

if TYPE_CHECKING:
    from .builder import StepBuilder


class Client:
    """Registers step definitions with the host."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        trimmed = base_url.rstrip("/")
        if trimmed.endswith("/api"):
            trimmed = trimmed[: -len("/api")]
        self.base_url = trimmed
        self.timeout = timeout
        self.session = session or requests.Session()

    def register_step(self, step: StepDefinition) -> None:
        """Register a new step; a 409 status means it is already known."""
        self._send("POST", f"{self.base_url}/api/step", step, "register")

    def update_step(self, step: StepDefinition) -> None:
        self._send(
            "PUT", f"{self.base_url}/api/step/{step.id}", step, "update"
        )

    def new_step(self, name: str = "") -> "StepBuilder":
        """Create a step builder bound to this client."""
        from .builder import StepBuilder

        return StepBuilder(client=self, name=name)

    def _send(
        self, method: str, url: str, step: StepDefinition, action: str
    ) -> None:
        try:
            resp = self.session.request(
                method, url, json=step.to_dict(), timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            status = getattr(e.response, "status_code", None)
            raise ClientError(
                f"Failed to {action} step {step.id}: {e}", status_code=status
            ) from e
