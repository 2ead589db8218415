# models.py
# Data contracts for the conversation and the orchestration loop.
# No business logic lives here: pure schema and validation.

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    ACTION_RESULT = "action_result"


class ActionRequest(BaseModel):
    """A single action invocation requested by the decision engine."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Correlation id matching the eventual result.")
    name: str = Field(..., description="Action name; must exist in the registry.")
    arguments: Union[dict[str, Any], str] = Field(
        default_factory=dict,
        description="Argument bundle, or the raw text when the model sent malformed JSON.",
    )


class ActionResult(BaseModel):
    """Textual outcome of one executed (or rejected) action request."""

    model_config = ConfigDict(frozen=True)

    request_id: str
    action: str
    ok: bool
    content: str = Field(..., description="Observation fed back to the model. Never a traceback.")


class Message(BaseModel):
    """One entry in a session's append-only history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""
    action_requests: list[ActionRequest] = Field(default_factory=list)
    request_id: str | None = None
    action: str | None = None
    failed: bool = False

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.USER, content=text)

    @classmethod
    def assistant(cls, text: str, requests: list[ActionRequest] | None = None) -> "Message":
        return cls(role=Role.ASSISTANT, content=text, action_requests=list(requests or []))

    @classmethod
    def from_result(cls, result: ActionResult) -> "Message":
        return cls(
            role=Role.ACTION_RESULT,
            content=result.content,
            request_id=result.request_id,
            action=result.action,
            failed=not result.ok,
        )


class FinalAnswer(BaseModel):
    """The engine is done requesting actions for this turn."""

    kind: Literal["final_answer"] = "final_answer"
    text: str


class ActionsRequested(BaseModel):
    """The engine wants one or more actions executed before it continues."""

    kind: Literal["actions_requested"] = "actions_requested"
    requests: list[ActionRequest] = Field(..., min_length=1)
    text: str = Field(default="", description="Any prose the model sent alongside the calls.")


DecisionOutcome = Union[FinalAnswer, ActionsRequested]


class TurnOutcome(BaseModel):
    """What a completed turn hands back to the session loop."""

    text: str
    rounds: int = Field(..., description="Number of action rounds executed during the turn.")
    synthesized: bool = Field(default=False, description="True when the loop bound produced the answer.")
