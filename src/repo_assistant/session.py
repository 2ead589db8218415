# session.py
# Read-evaluate-print loop over one fixed session.
#
# Turns run strictly one at a time: the next line is not read until the
# previous turn has produced an answer or a reported failure. No error from a
# turn ends the loop; only the sentinel, EOF, or Ctrl-C at the prompt do.

import time
from typing import Callable

from loguru import logger

from repo_assistant import display
from repo_assistant.errors import EngineFault, TurnCancelled
from repo_assistant.orchestrator import Orchestrator


class SessionLoop:
    def __init__(
        self,
        orchestrator: Orchestrator,
        session_id: str,
        sentinel: str = "bye",
        read: Callable[[], str] = display.read_utterance,
        turn_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._orchestrator = orchestrator
        self._session_id = session_id
        self._sentinel = sentinel
        self._read = read
        self._turn_timeout = turn_timeout
        self._clock = clock

    def _deadline(self) -> float | None:
        if self._turn_timeout is None:
            return None
        return self._clock() + self._turn_timeout

    def handle(self, utterance: str) -> bool:
        """Run one turn. Returns False when the turn failed."""
        try:
            outcome = self._orchestrator.run_turn(self._session_id, utterance, deadline=self._deadline())
        except (EngineFault, TurnCancelled) as exc:
            logger.warning("Turn failed in session {}: {}", self._session_id, exc)
            display.turn_failed(str(exc))
            return False
        except Exception as exc:
            logger.exception("Unexpected error in session {}", self._session_id)
            display.turn_failed(f"Unexpected error: {exc}")
            return False
        display.final_answer(outcome.text)
        return True

    def run(self) -> int:
        """Loop until the sentinel or end of input. Returns the number of turns run."""
        turns = 0
        while True:
            try:
                line = self._read()
            except (EOFError, KeyboardInterrupt):
                break

            utterance = line.strip()
            if utterance == self._sentinel:
                break
            if not utterance:
                continue

            self.handle(utterance)
            turns += 1

        display.goodbye()
        return turns
