"""Step execution context and server setup."""

import logging
import os
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from flask import Flask, jsonify, request

from .errors import ClientError, HTTPError, StepRegistrationError
from .types import Args, Metadata, StepID, StepResult, UserID

if TYPE_CHECKING:
    from .builder import StepBuilder
    from .client import Client
    from .host import Host

logger = logging.getLogger(__name__)

MAX_REGISTRATION_ATTEMPTS = 5
BACKOFF_MULTIPLIER_SECONDS = 2


@dataclass(frozen=True)
class StepContext:
    """Context provided to step handlers."""

    host: "Host"
    user_id: UserID
    step_id: StepID
    metadata: Metadata


StepHandler = Callable[[StepContext, Args], StepResult]
ChoicesHandler = Callable[[StepContext, str, Args], List[str]]
CompleteHandler = Callable[[StepContext, Args], bool]


def create_step_server(
    client: "Client",
    builder: "StepBuilder",
    handler: StepHandler,
    host: "Host",
    choices: Optional[ChoicesHandler] = None,
    complete: Optional[CompleteHandler] = None,
) -> None:
    """Register the step with the host and serve it with Flask."""
    port_str = os.getenv("STEP_PORT", "8081")
    port = int(port_str)
    hostname = os.getenv("STEP_HOSTNAME", "localhost")

    step_id = builder._id
    endpoint = f"http://{hostname}:{port}/{step_id}"
    health_endpoint = f"http://{hostname}:{port}/health"

    builder = builder.with_endpoint(endpoint).with_health_check(health_endpoint)

    step = builder.build()
    registered = False
    for attempt in range(1, MAX_REGISTRATION_ATTEMPTS + 1):
        try:
            if builder._dirty:
                client.update_step(step)
            else:
                try:
                    client.register_step(step)
                except ClientError as e:
                    if e.status_code != 409:
                        raise
                    client.update_step(step)
            registered = True
            break
        except Exception:
            if attempt >= MAX_REGISTRATION_ATTEMPTS:
                raise
            logger.warning(
                "Registering %s failed (attempt %d), retrying",
                step_id,
                attempt,
            )
            time.sleep(attempt * BACKOFF_MULTIPLIER_SECONDS)

    if not registered:
        raise StepRegistrationError("Failed to register step after retries")

    app = Flask(__name__)

    def context_from(metadata: Metadata) -> StepContext:
        user_id = metadata.get("user_id")
        if user_id is None:
            raise HTTPError(400, "user_id is required")
        try:
            user = int(user_id)
        except (TypeError, ValueError):
            raise HTTPError(400, f"Invalid user_id: {user_id}") from None
        return StepContext(
            host=host, user_id=user, step_id=step_id, metadata=metadata
        )

    @app.errorhandler(HTTPError)
    def http_error(e: HTTPError) -> Any:
        return jsonify({"error": e.args[0]}), e.status_code

    @app.route("/health", methods=["GET"])
    def health() -> Any:
        return jsonify({"status": "healthy", "service": step_id})

    @app.route(f"/{step_id}", methods=["POST"])
    def handle_step() -> Any:
        req_data = request.get_json(silent=True)
        if not req_data:
            return jsonify({"error": "Invalid JSON"}), 400

        arguments = req_data.get("arguments", {})
        ctx = context_from(req_data.get("metadata", {}))

        result = _execute_with_recovery(ctx, handler, arguments)
        return jsonify(result.to_dict())

    @app.route(f"/{step_id}/complete", methods=["GET"])
    def handle_complete() -> Any:
        if complete is None:
            raise HTTPError(404, "Step does not report completeness")
        args = request.args.to_dict()
        ctx = context_from({"user_id": args.pop("user_id", None)})
        return jsonify({"complete": complete(ctx, args)})

    @app.route(f"/{step_id}/choices/<name>", methods=["GET"])
    def handle_choices(name: str) -> Any:
        if choices is None:
            raise HTTPError(404, "Step has no choosers")
        args = request.args.to_dict()
        ctx = context_from({"user_id": args.pop("user_id", None)})
        return jsonify({"values": choices(ctx, name, args)})

    print(f"Starting step server: {step_id}")
    print(f"  Endpoint: {endpoint}")
    print(f"  Health: {health_endpoint}")

    app.run(host="0.0.0.0", port=port)


def _execute_with_recovery(
    ctx: StepContext, handler: StepHandler, args: Args
) -> StepResult:
    """Execute handler, turning unexpected exceptions into a failed result."""
    try:
        return handler(ctx, args)
    except HTTPError:
        raise
    except Exception as e:
        logger.exception("Step handler %s failed", ctx.step_id)
        return StepResult(success=False, error=f"Step handler failed: {e}")
