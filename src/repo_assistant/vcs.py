# vcs.py
# Local git operations via the git binary. Each method is one git command;
# sequencing (e.g. the push workflow) lives with the action that needs it.

import subprocess
from pathlib import Path

from loguru import logger

from repo_assistant.errors import CollaboratorFault


class LocalGit:
    """
    Runs git in a working directory.

    `secrets` are redacted from any command line or output that ends up in
    an error message, so authenticated remote URLs never reach the model.
    """

    def __init__(self, path: str | Path, secrets: tuple[str, ...] = (), timeout: float = 300.0) -> None:
        self.path = Path(path)
        self._secrets = tuple(s for s in secrets if s)
        self._timeout = timeout

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    def run(self, *args: str, cwd: Path | None = None) -> str:
        command = ["git", *args]
        shown = self._redact(" ".join(command))
        logger.debug("Running {} in {}", shown, cwd or self.path)
        try:
            completed = subprocess.run(
                command,
                cwd=cwd or self.path,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise CollaboratorFault(f"git is not available: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise CollaboratorFault(f"'{shown}' timed out after {exc.timeout:g}s") from exc

        if completed.returncode != 0:
            output = (completed.stderr or completed.stdout or "").strip()
            raise CollaboratorFault(
                f"'{shown}' exited with {completed.returncode}: {self._redact(output)}"
            )
        return completed.stdout

    # ------------------------------------------------------------------
    # Repository setup
    # ------------------------------------------------------------------

    def init(self) -> None:
        self.run("init")

    def add_all(self) -> None:
        self.run("add", "--all")

    def commit(self, message: str) -> None:
        self.run("commit", "-m", message)

    def local_branches(self) -> list[str]:
        out = self.run("branch", "--list", "--format=%(refname:short)")
        return [line.strip() for line in out.splitlines() if line.strip()]

    def ensure_branch(self, name: str = "main") -> None:
        """Check out `name`, creating it from the current HEAD if absent."""
        if name in self.local_branches():
            self.run("checkout", name)
        else:
            self.run("checkout", "-b", name)

    def remotes(self) -> list[str]:
        return [line.strip() for line in self.run("remote").splitlines() if line.strip()]

    def set_remote(self, name: str, url: str) -> None:
        """Point `name` at `url`, replacing any existing remote of that name."""
        if name in self.remotes():
            self.run("remote", "remove", name)
        self.run("remote", "add", name, url)

    # ------------------------------------------------------------------
    # Network
    # ------------------------------------------------------------------

    def pull_rebase(self, remote: str = "origin", branch: str = "main") -> bool:
        """Pull with rebase. Returns False instead of raising; an empty remote has nothing to pull."""
        try:
            self.run("pull", "--rebase", remote, branch)
        except CollaboratorFault as exc:
            logger.warning("Pull failed (probably empty repo): {}", exc)
            return False
        return True

    def push_upstream(self, remote: str = "origin", branch: str = "main") -> None:
        self.run("push", "-u", remote, branch)

    def clone(self, url: str, destination: str | Path) -> Path:
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        self.run("clone", url, str(destination), cwd=destination.parent)
        return destination
