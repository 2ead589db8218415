# run.py
# Entry point. Config and wiring only. No logic lives here.

import sys

from openai import OpenAI

from repo_assistant import display
from repo_assistant.config import Settings
from repo_assistant.engine import OpenAIDecisionEngine
from repo_assistant.errors import ConfigurationError
from repo_assistant.executor import ActionExecutor
from repo_assistant.github import GitHubClient
from repo_assistant.logging_utils import configure_logging
from repo_assistant.orchestrator import Orchestrator
from repo_assistant.session import SessionLoop
from repo_assistant.store import ConversationStore, InMemoryConversationStore, JsonlConversationStore
from repo_assistant.tools import RepositoryActions, build_registry


def build_store(settings: Settings) -> ConversationStore:
    if settings.history_dir is not None:
        return JsonlConversationStore(settings.history_dir)
    return InMemoryConversationStore()


def main() -> None:
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        display.turn_failed(str(exc))
        sys.exit(1)

    configure_logging(settings.log_level)

    github = GitHubClient(token=settings.github_token)
    registry = build_registry(RepositoryActions(github, workspace=settings.workspace))
    executor = ActionExecutor(registry, timeout=settings.action_timeout)
    engine = OpenAIDecisionEngine(
        client=OpenAI(base_url=settings.base_url, api_key=settings.api_key),
        model=settings.model,
        temperature=settings.temperature,
    )
    orchestrator = Orchestrator(
        engine, executor, registry, build_store(settings), max_rounds=settings.max_rounds
    )

    display.banner(settings.model, settings.session_id, settings.sentinel)
    loop = SessionLoop(
        orchestrator,
        settings.session_id,
        sentinel=settings.sentinel,
        turn_timeout=settings.turn_timeout,
    )
    try:
        loop.run()
    finally:
        executor.shutdown()
        github.close()


if __name__ == "__main__":
    main()
