# github.py
# Thin client for the GitHub REST API. Direct pass-through: no retries, no
# pagination beyond what the caller asks for. Every failure surfaces as a
# CollaboratorFault carrying GitHub's own message.

import base64
import threading
from typing import Any

import httpx
from loguru import logger

from repo_assistant.errors import CollaboratorFault

GITHUB_API = "https://api.github.com"
API_VERSION = "2022-11-28"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("message") if isinstance(body, dict) else None
    reason = detail or response.reason_phrase or "request failed"
    return f"GitHub API returned {response.status_code}: {reason}"


class GitHubClient:
    """
    Repository operations scoped to the token's account.

    Example:
        github = GitHubClient(token=os.getenv("GITHUB_ACCESS_TOKEN"))
        repo = github.create_repository("demo", "test")
        print(repo["html_url"])
    """

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = token
        self._http = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
        )
        self._login: str | None = None
        self._login_lock = threading.Lock()

    @property
    def token(self) -> str:
        return self._token

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Low-level request
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("GitHub {} {}", method, path)
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise CollaboratorFault(f"Could not reach GitHub: {exc}") from exc
        if response.is_error:
            raise CollaboratorFault(_error_message(response))
        return response

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def whoami(self) -> str:
        """Login of the authenticated account. Resolved once and cached."""
        with self._login_lock:
            if self._login is None:
                self._login = self._request("GET", "/user").json()["login"]
            return self._login

    def _repo_path(self, name: str) -> str:
        return f"/repos/{self.whoami()}/{name}"

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def create_repository(self, name: str, description: str, private: bool = False) -> dict[str, Any]:
        payload = {
            "name": name,
            "description": description,
            "homepage": "https://github.com",
            "private": private,
            "auto_init": False,
        }
        return self._request("POST", "/user/repos", json=payload).json()

    def delete_repository(self, name: str) -> None:
        self._request("DELETE", self._repo_path(name))

    def get_repository(self, name: str) -> dict[str, Any]:
        return self._request("GET", self._repo_path(name)).json()

    def update_repository(
        self,
        name: str,
        description: str | None = None,
        visibility: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if description is not None:
            payload["description"] = description
        if visibility is not None:
            payload["visibility"] = visibility
            payload["private"] = visibility == "private"
        return self._request("PATCH", self._repo_path(name), json=payload).json()

    def list_commits(self, name: str, per_page: int = 10, page: int = 1) -> list[dict[str, Any]]:
        params = {"per_page": per_page, "page": page}
        return self._request("GET", f"{self._repo_path(name)}/commits", params=params).json()

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------

    def file_sha(self, name: str, path: str) -> str | None:
        """Blob sha of an existing file, or None when the path is new."""
        try:
            response = self._http.get(f"{self._repo_path(name)}/contents/{path.lstrip('/')}")
        except httpx.HTTPError as exc:
            raise CollaboratorFault(f"Could not reach GitHub: {exc}") from exc
        if response.status_code == 404:
            return None
        if response.is_error:
            raise CollaboratorFault(_error_message(response))
        body = response.json()
        return body.get("sha") if isinstance(body, dict) else None

    def put_file(self, name: str, path: str, content: str, message: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        sha = self.file_sha(name, path)
        if sha:
            payload["sha"] = sha
        return self._request(
            "PUT", f"{self._repo_path(name)}/contents/{path.lstrip('/')}", json=payload
        ).json()
