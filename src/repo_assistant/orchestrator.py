# orchestrator.py
# The turn state machine. This class owns all control flow within a turn;
# the decision engine and the executor are passive collaborators.
#
# Transitions:
#   AWAITING_DECISION --FinalAnswer-->      DONE
#   AWAITING_DECISION --ActionsRequested--> EXECUTING_ACTIONS
#   EXECUTING_ACTIONS --all results in-->   AWAITING_DECISION
#   AWAITING_DECISION --round cap hit-->    DONE (synthesized answer)
#
# Invariant: an assistant message carrying N requests is always followed by
# exactly N action_result messages, in request order, before the engine is
# consulted again.

import threading
import time
from enum import Enum
from typing import Callable

from loguru import logger

from repo_assistant import display
from repo_assistant.engine import DecisionEngine
from repo_assistant.errors import LoopBoundExceeded, TurnCancelled
from repo_assistant.executor import ActionExecutor
from repo_assistant.models import ActionsRequested, FinalAnswer, Message, TurnOutcome
from repo_assistant.registry import ActionRegistry
from repo_assistant.store import ConversationStore


LOOP_BOUND_ANSWER = (
    "I could not complete this request: it still needed more actions after "
    "{rounds} round(s), which is the limit for a single turn. The results so "
    "far are in our conversation; tell me how you would like to continue."
)


class TurnState(str, Enum):
    AWAITING_DECISION = "awaiting_decision"
    EXECUTING_ACTIONS = "executing_actions"
    DONE = "done"


class Orchestrator:
    """
    Runs one user turn end to end against a session's history.

    Example:
        orchestrator = Orchestrator(engine, executor, registry, store, max_rounds=8)
        outcome = orchestrator.run_turn("1", "list the last 10 commits of demo")
        print(outcome.text)
    """

    def __init__(
        self,
        engine: DecisionEngine,
        executor: ActionExecutor,
        registry: ActionRegistry,
        store: ConversationStore,
        max_rounds: int = 8,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self._engine = engine
        self._executor = executor
        self._registry = registry
        self._store = store
        self._max_rounds = max_rounds
        self._clock = clock
        self._session_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def max_rounds(self) -> int:
        return self._max_rounds

    def history(self, session_id: str) -> list[Message]:
        return self._store.load(session_id)

    def _session_lock(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._session_locks.setdefault(session_id, threading.Lock())

    def _check_deadline(self, deadline: float | None) -> None:
        if deadline is not None and self._clock() >= deadline:
            raise TurnCancelled("The turn's deadline passed before it could finish.")

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run_turn(self, session_id: str, text: str, deadline: float | None = None) -> TurnOutcome:
        """
        Process one user utterance until the engine answers.

        Raises EngineFault if the reasoning service fails and TurnCancelled if
        `deadline` (in `clock` seconds) passes between suspension points. In
        both cases nothing from the interrupted step is appended.
        """
        with self._session_lock(session_id):
            self._store.append(session_id, Message.user(text))
            try:
                return self._run_rounds(session_id, deadline)
            except LoopBoundExceeded as exc:
                logger.warning("Session {}: {}", session_id, exc)
                answer = LOOP_BOUND_ANSWER.format(rounds=exc.max_rounds)
                self._store.append(session_id, Message.assistant(answer))
                display.loop_bound_reached(exc.max_rounds)
                return TurnOutcome(text=answer, rounds=exc.max_rounds, synthesized=True)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _run_rounds(self, session_id: str, deadline: float | None) -> TurnOutcome:
        actions = self._registry.list()
        rounds = 0
        state = TurnState.AWAITING_DECISION

        while state is not TurnState.DONE:
            if state is TurnState.AWAITING_DECISION:
                if rounds >= self._max_rounds:
                    raise LoopBoundExceeded(self._max_rounds)
                self._check_deadline(deadline)

                decision = self._engine.decide(self._store.load(session_id), actions)

                if isinstance(decision, FinalAnswer):
                    self._store.append(session_id, Message.assistant(decision.text))
                    answer = decision.text
                    state = TurnState.DONE
                elif isinstance(decision, ActionsRequested):
                    self._store.append(
                        session_id, Message.assistant(decision.text, decision.requests)
                    )
                    pending = decision.requests
                    state = TurnState.EXECUTING_ACTIONS
                else:
                    raise TypeError(f"Unexpected decision outcome: {decision!r}")

            elif state is TurnState.EXECUTING_ACTIONS:
                for request in pending:
                    display.action_requested(request)
                results = self._executor.execute_all(pending)
                for result in results:
                    self._store.append(session_id, Message.from_result(result))
                    display.action_observed(result)
                rounds += 1
                logger.debug("Session {}: round {} done ({} action(s))", session_id, rounds, len(results))
                state = TurnState.AWAITING_DECISION

        return TurnOutcome(text=answer, rounds=rounds)
