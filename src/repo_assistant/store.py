# store.py
# Conversation state, keyed strictly by session id.
#
# Both backings are append-only. The orchestrator serialises turns per
# session; the locks here only protect the backing structures themselves.

import hashlib
import re
import threading
from pathlib import Path
from typing import Protocol

from loguru import logger

from repo_assistant.models import Message


class ConversationStore(Protocol):
    def append(self, session_id: str, message: Message) -> None:
        ...

    def load(self, session_id: str) -> list[Message]:
        ...


class InMemoryConversationStore:
    """Process-lifetime store. Sessions are created lazily on first append."""

    def __init__(self) -> None:
        self._sessions: dict[str, list[Message]] = {}
        self._lock = threading.Lock()

    def append(self, session_id: str, message: Message) -> None:
        with self._lock:
            self._sessions.setdefault(session_id, []).append(message)

    def load(self, session_id: str) -> list[Message]:
        with self._lock:
            return list(self._sessions.get(session_id, ()))


_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonlConversationStore:
    """
    Durable store: one `<session>.jsonl` file per session, one message per line.

    History survives process restarts. A partially written trailing line
    (e.g. after a crash mid-append) is skipped on load.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, session_id: str) -> Path:
        name = _UNSAFE.sub("_", session_id)
        if name != session_id or not name:
            # keep distinct ids distinct after sanitising
            digest = hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:12]
            name = f"{name}-{digest}"
        return self._directory / f"{name}.jsonl"

    def append(self, session_id: str, message: Message) -> None:
        line = message.model_dump_json() + "\n"
        path = self._path(session_id)
        with self._lock:
            if self._ends_torn(path):
                # start on a fresh line so the torn fragment stays isolated
                line = "\n" + line
            with open(path, "a", encoding="utf-8") as fh:
                fh.write(line)

    @staticmethod
    def _ends_torn(path: Path) -> bool:
        if not path.exists() or path.stat().st_size == 0:
            return False
        with open(path, "rb") as fh:
            fh.seek(-1, 2)
            return fh.read(1) != b"\n"

    def load(self, session_id: str) -> list[Message]:
        path = self._path(session_id)
        if not path.exists():
            return []
        messages: list[Message] = []
        with self._lock:
            with open(path, encoding="utf-8") as fh:
                for number, line in enumerate(fh, start=1):
                    if not line.strip():
                        continue
                    try:
                        messages.append(Message.model_validate_json(line))
                    except ValueError:
                        logger.warning("Skipping unreadable line {} in {}", number, path)
        return messages
