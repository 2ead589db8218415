import pytest
from pydantic import BaseModel, ConfigDict, Field

from repo_assistant.executor import ActionExecutor
from repo_assistant.models import ActionRequest, ActionsRequested, FinalAnswer
from repo_assistant.orchestrator import Orchestrator
from repo_assistant.registry import ActionDefinition, ActionRegistry
from repo_assistant.store import InMemoryConversationStore


class EchoInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(..., min_length=1)


class EmptyInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _boom(params: EmptyInput) -> str:
    raise RuntimeError("remote exploded")


class ScriptedEngine:
    """Decision engine that replays a fixed script and records what it saw."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.histories = []

    def decide(self, history, actions):
        self.histories.append(list(history))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(history, actions)
        return outcome


def request(name, call_id="call_1", **arguments):
    return ActionRequest(id=call_id, name=name, arguments=arguments)


def asks(*requests_):
    return ActionsRequested(requests=list(requests_))


def answers(text):
    return FinalAnswer(text=text)


@pytest.fixture
def registry():
    reg = ActionRegistry()
    reg.register(ActionDefinition("echo", "Echo a message back.", EchoInput, lambda p: p.message))
    reg.register(ActionDefinition("boom", "Always fails.", EmptyInput, _boom))
    return reg.freeze()


@pytest.fixture
def executor(registry):
    ex = ActionExecutor(registry, timeout=5.0)
    yield ex
    ex.shutdown()


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def make_orchestrator(executor, registry, store):
    def _make(engine, max_rounds=8, **kwargs):
        return Orchestrator(engine, executor, registry, store, max_rounds=max_rounds, **kwargs)

    return _make
