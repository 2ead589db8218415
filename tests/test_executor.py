import threading

from pydantic import BaseModel

from repo_assistant.executor import ActionExecutor, render_observation
from repo_assistant.models import ActionRequest
from repo_assistant.registry import ActionDefinition, ActionRegistry

from conftest import EmptyInput, request

# ---------------------------------------------------------------------------
# Observation rendering
# ---------------------------------------------------------------------------


def test_render_observation_passes_strings_through():
    assert render_observation("done") == "done"


def test_render_observation_sorts_keys():
    assert render_observation({"b": 1, "a": [2, 3]}) == '{"a": [2, 3], "b": 1}'


def test_render_observation_uses_aliases_for_models():
    class Out(BaseModel):
        value: int

    assert render_observation(Out(value=3)) == '{"value": 3}'


# ---------------------------------------------------------------------------
# Single execution
# ---------------------------------------------------------------------------


def test_execute_success(executor):
    result = executor.execute(request("echo", message="hi"))
    assert result.ok is True
    assert result.content == "hi"
    assert result.request_id == "call_1"
    assert result.action == "echo"


def test_execute_unknown_action_is_a_failure_result(executor):
    result = executor.execute(request("teleport"))
    assert result.ok is False
    assert "teleport" in result.content
    assert "echo" in result.content


def test_execute_missing_field_never_runs_handler():
    calls = []
    registry = ActionRegistry()

    class Needs(BaseModel):
        repo: str

    registry.register(ActionDefinition("needs", "needs repo", Needs, lambda p: calls.append(p)))
    executor = ActionExecutor(registry)
    try:
        result = executor.execute(request("needs"))
    finally:
        executor.shutdown()

    assert result.ok is False
    assert "repo" in result.content
    assert "not executed" in result.content
    assert calls == []


def test_execute_extra_field_is_rejected(executor):
    result = executor.execute(request("echo", message="hi", shout=True))
    assert result.ok is False
    assert "shout" in result.content


def test_execute_raw_string_arguments_are_validated(executor):
    good = executor.execute(ActionRequest(id="1", name="echo", arguments='{"message": "raw"}'))
    bad = executor.execute(ActionRequest(id="2", name="echo", arguments="{not json"))

    assert good.ok is True and good.content == "raw"
    assert bad.ok is False
    assert "Invalid arguments for 'echo'" in bad.content


def test_handler_fault_never_escapes(executor):
    result = executor.execute(request("boom"))
    assert result.ok is False
    assert result.content == "Action 'boom' failed: remote exploded"
    assert "Traceback" not in result.content


def test_timeout_reports_failure_and_lets_action_finish():
    release = threading.Event()
    finished = threading.Event()

    def slow(params):
        release.wait(5)
        finished.set()
        return "late"

    registry = ActionRegistry()
    registry.register(ActionDefinition("slow", "slow action", EmptyInput, slow))
    executor = ActionExecutor(registry, timeout=0.05)

    result = executor.execute(request("slow"))
    release.set()
    executor.shutdown()

    assert result.ok is False
    assert "did not finish" in result.content
    assert finished.is_set()


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


def test_execute_all_preserves_request_order(executor):
    requests = [
        request("echo", call_id="a", message="first"),
        request("boom", call_id="b"),
        request("nope", call_id="c"),
        request("echo", call_id="d", message="last"),
    ]
    results = executor.execute_all(requests)

    assert [r.request_id for r in results] == ["a", "b", "c", "d"]
    assert [r.ok for r in results] == [True, False, False, True]


def test_execute_all_runs_requests_concurrently():
    barrier = threading.Barrier(2, timeout=2)

    def meet(params):
        barrier.wait()
        return "met"

    registry = ActionRegistry()
    registry.register(ActionDefinition("meet", "waits for a sibling", EmptyInput, meet))
    executor = ActionExecutor(registry, timeout=5)
    try:
        results = executor.execute_all([request("meet", call_id="1"), request("meet", call_id="2")])
    finally:
        executor.shutdown()

    # Both only succeed if they were running at the same time.
    assert [r.content for r in results] == ["met", "met"]


def test_queued_action_is_cancelled_on_timeout():
    release = threading.Event()
    ran = []

    def slow(params):
        release.wait(5)
        return "slow done"

    def mutate(params):
        ran.append("mutated")
        return "mutated"

    registry = ActionRegistry()
    registry.register(ActionDefinition("slow", "occupies the only worker", EmptyInput, slow))
    registry.register(ActionDefinition("mutate", "side effect", EmptyInput, mutate))
    executor = ActionExecutor(registry, timeout=0.1, max_workers=1)

    results = executor.execute_all([request("slow", call_id="a"), request("mutate", call_id="b")])
    release.set()
    executor.shutdown()

    assert "may still complete" in results[0].content
    assert results[1].ok is False
    assert "has been cancelled" in results[1].content
    assert ran == []
