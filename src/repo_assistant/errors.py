# errors.py
# Exception taxonomy. Action-level errors are converted into observations by
# the executor; only engine and turn errors ever reach the session loop.


class RepoAssistantError(Exception):
    """Base exception for the assistant."""


class ConfigurationError(RepoAssistantError):
    """Raised when required settings are missing or malformed at startup."""


class DuplicateActionError(RepoAssistantError):
    """Raised when an action name is registered twice."""


class UnknownActionError(RepoAssistantError):
    """Raised when a requested action is absent from the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown action '{name}'.")
        self.name = name


class ValidationError(RepoAssistantError):
    """Raised when an argument bundle does not match the action's input contract."""

    def __init__(self, action: str, problems: list[str]) -> None:
        super().__init__(f"Invalid arguments for '{action}': " + "; ".join(problems))
        self.action = action
        self.problems = problems


class CollaboratorFault(RepoAssistantError):
    """Raised when the GitHub API or the local git binary fails for any reason."""


class EngineFault(RepoAssistantError):
    """Raised when the reasoning service call fails. Aborts the current turn."""


class LoopBoundExceeded(RepoAssistantError):
    """Raised inside the orchestrator when a turn exhausts its action rounds."""

    def __init__(self, max_rounds: int) -> None:
        super().__init__(f"Turn exceeded {max_rounds} action round(s).")
        self.max_rounds = max_rounds


class TurnCancelled(RepoAssistantError):
    """Raised when a turn's deadline passes between suspension points."""


class MalformedResponseError(EngineFault):
    """Raised when the reasoning service answers with a response that cannot be mapped to a decision."""
