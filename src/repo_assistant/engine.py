# engine.py
# Decision engine: wraps one call to an OpenAI-compatible chat completions
# endpoint. The model either answers or asks for actions; this module only
# translates between the conversation history and the wire format.

import json
from typing import Any, Protocol

from loguru import logger
from openai import OpenAI, OpenAIError

from repo_assistant.errors import EngineFault, MalformedResponseError
from repo_assistant.models import (
    ActionRequest,
    ActionsRequested,
    DecisionOutcome,
    FinalAnswer,
    Message,
    Role,
)
from repo_assistant.registry import ActionDefinition


SYSTEM_PROMPT = """\
You are a smart GitHub personal assistant that creates and manages GitHub \
repositories for the authenticated user.

Use the available tools whenever the request needs a repository operation. \
Call several tools at once when they are independent of each other.

When a tool reports a failure, read the message: retry with corrected \
arguments, pick a different tool, or explain the problem to the user. \
Never claim an operation succeeded unless a tool result confirms it.\
"""


class DecisionEngine(Protocol):
    def decide(self, history: list[Message], actions: list[ActionDefinition]) -> DecisionOutcome:
        ...


# ---------------------------------------------------------------------------
# Wire format helpers
# ---------------------------------------------------------------------------


def _tool_spec(definition: ActionDefinition) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": definition.name,
            "description": definition.description,
            "parameters": definition.parameters(),
        },
    }


def _encode_arguments(arguments: dict[str, Any] | str) -> str:
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments, sort_keys=True)


def _decode_arguments(raw: str | None) -> dict[str, Any] | str:
    """Parse tool-call arguments; hand malformed text through for validation to reject."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    return parsed if isinstance(parsed, dict) else raw


def to_chat_messages(history: list[Message], system_prompt: str) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for message in history:
        if message.role is Role.ACTION_RESULT:
            messages.append(
                {"role": "tool", "tool_call_id": message.request_id, "content": message.content}
            )
        elif message.role is Role.ASSISTANT and message.action_requests:
            messages.append(
                {
                    "role": "assistant",
                    "content": message.content or None,
                    "tool_calls": [
                        {
                            "id": request.id,
                            "type": "function",
                            "function": {
                                "name": request.name,
                                "arguments": _encode_arguments(request.arguments),
                            },
                        }
                        for request in message.action_requests
                    ],
                }
            )
        else:
            messages.append({"role": message.role.value, "content": message.content})
    return messages


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class OpenAIDecisionEngine:
    """
    Decision engine backed by any OpenAI-compatible endpoint.

    Example:
        engine = OpenAIDecisionEngine(
            client=OpenAI(base_url="https://api.groq.com/openai/v1", api_key=key),
            model="openai/gpt-oss-120b",
        )
        outcome = engine.decide(history, registry.list())
    """

    def __init__(
        self,
        client: OpenAI,
        model: str,
        temperature: float = 0.0,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._system_prompt = system_prompt

    @property
    def model(self) -> str:
        return self._model

    def decide(self, history: list[Message], actions: list[ActionDefinition]) -> DecisionOutcome:
        messages = to_chat_messages(history, self._system_prompt)
        request: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
        }
        if actions:
            request["tools"] = [_tool_spec(definition) for definition in actions]

        logger.debug("Calling {} with {} message(s)", self._model, len(messages))
        try:
            response = self._client.chat.completions.create(**request)
        except OpenAIError as exc:
            raise EngineFault(f"Reasoning service call failed: {exc}") from exc

        try:
            outcome = self._to_outcome(response)
        except (AttributeError, IndexError, TypeError, ValueError) as exc:
            raise MalformedResponseError(f"Reasoning service returned a malformed response: {exc}") from exc
        if isinstance(outcome, ActionsRequested):
            logger.debug("Model requested {}", ", ".join(r.name for r in outcome.requests))
        return outcome

    @staticmethod
    def _to_outcome(response: Any) -> DecisionOutcome:
        if not response.choices:
            raise MalformedResponseError("Reasoning service returned no choices.")

        reply = response.choices[0].message
        text = (reply.content or "").strip()
        tool_calls = reply.tool_calls or []

        if not tool_calls:
            return FinalAnswer(text=text)

        requests = [
            ActionRequest(
                id=call.id,
                name=call.function.name,
                arguments=_decode_arguments(call.function.arguments),
            )
            for call in tool_calls
        ]
        return ActionsRequested(requests=requests, text=text)
