# executor.py
# Turns action requests into textual observations.
#
# Nothing raised by an action ever escapes this module: unknown names, bad
# arguments, collaborator faults and timeouts all come back as failure-shaped
# ActionResults that the orchestrator appends like any other observation.

import json
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

import pydantic
from loguru import logger

from repo_assistant.errors import UnknownActionError, ValidationError
from repo_assistant.models import ActionRequest, ActionResult
from repo_assistant.registry import ActionDefinition, ActionRegistry


def _describe_schema_errors(exc: pydantic.ValidationError) -> list[str]:
    problems: list[str] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "<arguments>"
        problems.append(f"{field}: {error.get('msg', 'invalid value')}")
    return problems


def render_observation(value: Any) -> str:
    """Deterministic text for an action's return value."""
    if isinstance(value, str):
        return value
    if isinstance(value, pydantic.BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


class ActionExecutor:
    """
    Runs registered actions on a worker pool.

    `timeout` bounds how long the executor waits for each batch; an action
    still running after that is reported as timed out but left to finish on
    its worker thread, so remote mutations are never interrupted halfway.
    """

    def __init__(self, registry: ActionRegistry, timeout: float = 120.0, max_workers: int = 8) -> None:
        self._registry = registry
        self._timeout = timeout
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="action")

    # ------------------------------------------------------------------
    # Preparation: resolve + validate, never execute on failure
    # ------------------------------------------------------------------

    def _prepare(self, request: ActionRequest) -> tuple[ActionDefinition, pydantic.BaseModel]:
        definition = self._registry.resolve(request.name)
        try:
            if isinstance(request.arguments, str):
                params = definition.schema.model_validate_json(request.arguments or "{}")
            else:
                params = definition.schema.model_validate(request.arguments)
        except pydantic.ValidationError as exc:
            raise ValidationError(request.name, _describe_schema_errors(exc)) from exc
        return definition, params

    def _failure(self, request: ActionRequest, message: str) -> ActionResult:
        logger.info("Action {} ({}) failed: {}", request.name, request.id, message)
        return ActionResult(request_id=request.id, action=request.name, ok=False, content=message)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, request: ActionRequest) -> ActionResult:
        return self.execute_all([request])[0]

    def execute_all(self, requests: list[ActionRequest]) -> list[ActionResult]:
        """
        Dispatch every request concurrently and join on all of them.

        Results come back in request order regardless of completion order.
        """
        results: list[ActionResult | None] = [None] * len(requests)
        pending: dict[int, Future] = {}

        for index, request in enumerate(requests):
            try:
                definition, params = self._prepare(request)
            except UnknownActionError:
                available = ", ".join(self._registry.names()) or "none"
                results[index] = self._failure(
                    request,
                    f"Unknown action '{request.name}'. Available actions: {available}.",
                )
                continue
            except ValidationError as exc:
                results[index] = self._failure(request, f"{exc} The action was not executed.")
                continue

            logger.debug("Dispatching action {} ({})", request.name, request.id)
            pending[index] = self._pool.submit(definition.handler, params)

        if pending:
            wait(pending.values(), timeout=self._timeout)

        for index, future in pending.items():
            request = requests[index]
            if not future.done():
                # queued work must never start after it was reported as failed
                if future.cancel():
                    results[index] = self._failure(
                        request,
                        f"Action '{request.name}' was not started within {self._timeout:g}s "
                        "and has been cancelled. It made no changes.",
                    )
                    continue
                if not future.done():
                    results[index] = self._failure(
                        request,
                        f"Action '{request.name}' did not finish within {self._timeout:g}s. "
                        "It may still complete in the background; check before retrying.",
                    )
                    continue
            exc = future.exception()
            if exc is not None:
                reason = str(exc) or type(exc).__name__
                results[index] = self._failure(request, f"Action '{request.name}' failed: {reason}")
                continue
            try:
                content = render_observation(future.result())
            except (TypeError, ValueError) as render_exc:
                results[index] = self._failure(
                    request, f"Action '{request.name}' returned an unreadable result: {render_exc}"
                )
                continue
            logger.debug("Action {} ({}) succeeded", request.name, request.id)
            results[index] = ActionResult(
                request_id=request.id, action=request.name, ok=True, content=content
            )

        return [result for result in results if result is not None]

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)
