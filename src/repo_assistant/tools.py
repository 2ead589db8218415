# tools.py
# Action catalog: the repository operations the model may request.
# Each action pairs a typed input contract with a handler; the executor
# validates arguments against the contract before any handler runs.

from pathlib import Path
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

from repo_assistant.github import GitHubClient
from repo_assistant.registry import ActionDefinition, ActionRegistry
from repo_assistant.vcs import LocalGit


# ---------------------------------------------------------------------------
# Input contracts (wire names are camelCase; attributes are snake_case)
# ---------------------------------------------------------------------------


class ActionInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class CreateRepositoryInput(ActionInput):
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Name of the git repository to create")
    description: str = Field(..., description="Description of the git repository to create")
    visibility: Literal["public", "private"] = Field(
        default="public", description="Whether the new repository is public or private"
    )


class RepositoryNameInput(ActionInput):
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Name of the git repository")


class UpdateRepositoryInput(ActionInput):
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Existing repository name (cannot be renamed)")
    description: str | None = Field(default=None, description="New description of the repository")
    visibility: Literal["public", "private", "internal"] | None = Field(
        default=None, description="New visibility of the repository"
    )


class PushProjectInput(ActionInput):
    project_name: str = Field(
        ..., alias="projectName", min_length=1, description="Local project directory to push, relative to the workspace"
    )
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Repository to push the files to")
    commit_message: str = Field(..., alias="commitMessage", min_length=1, description="Commit message for the pushed files")


class CloneRepositoryInput(ActionInput):
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Repository to clone")
    destination: str = Field(
        ..., min_length=1, description="Local directory to clone into; relative paths resolve against the workspace"
    )


class ListCommitsInput(ActionInput):
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Repository to list commits for")
    per_page: int = Field(default=10, alias="perPage", ge=1, le=100, description="Commits per page (max 100)")
    page: int = Field(default=1, ge=1, description="Page number, starting at 1")


class WriteFileInput(ActionInput):
    repo_name: str = Field(..., alias="repoName", min_length=1, description="Repository to write the file in")
    path: str = Field(..., min_length=1, description="File path inside the repository, e.g. docs/hello.txt")
    content: str = Field(..., description="Full new content of the file")
    commit_message: str | None = Field(
        default=None, alias="commitMessage", description="Commit message; defaults to 'Update <path>'"
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class RepositoryActions:
    """Handlers bound to one GitHub account and one local workspace."""

    def __init__(
        self,
        github: GitHubClient,
        workspace: str | Path,
        git_factory: Callable[..., LocalGit] = LocalGit,
    ) -> None:
        self._github = github
        self._workspace = Path(workspace)
        self._git_factory = git_factory

    def _local(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        return candidate if candidate.is_absolute() else self._workspace / candidate

    def create_repository(self, params: CreateRepositoryInput) -> str:
        repo = self._github.create_repository(
            params.repo_name, params.description, private=params.visibility == "private"
        )
        return f"Repository created successfully: {repo['html_url']}"

    def delete_repository(self, params: RepositoryNameInput) -> str:
        self._github.delete_repository(params.repo_name)
        return f"Repository '{params.repo_name}' deleted successfully."

    def get_repository(self, params: RepositoryNameInput) -> dict[str, Any]:
        data = self._github.get_repository(params.repo_name)
        owner = data.get("owner") or {}
        return {
            "id": data.get("id"),
            "name": data.get("name"),
            "description": data.get("description"),
            "owner": owner.get("login"),
            "visibility": data.get("visibility") or ("private" if data.get("private") else "public"),
            "url": data.get("html_url"),
            "createdAt": data.get("created_at"),
            "avatarUrl": owner.get("avatar_url"),
            "ownerViewType": owner.get("user_view_type"),
        }

    def update_repository(self, params: UpdateRepositoryInput) -> str:
        if params.description is None and params.visibility is None:
            raise ValueError("nothing to update; provide a description or a visibility")
        self._github.update_repository(params.repo_name, params.description, params.visibility)
        return f"Repository '{params.repo_name}' updated successfully."

    def push_project(self, params: PushProjectInput) -> str:
        project = self._local(params.project_name)
        if not project.is_dir():
            raise FileNotFoundError(f"project directory {project} does not exist")

        repo = self._github.get_repository(params.repo_name)
        token = self._github.token
        authed_url = repo["html_url"].replace("https://", f"https://{token}@", 1)

        git = self._git_factory(project, secrets=(token,))
        git.init()
        git.add_all()
        git.commit(params.commit_message)
        git.ensure_branch("main")
        git.set_remote("origin", authed_url)
        git.pull_rebase("origin", "main")
        git.push_upstream("origin", "main")
        return f"Files from {project} pushed to {repo['html_url']} (branch main)."

    def clone_repository(self, params: CloneRepositoryInput) -> str:
        repo = self._github.get_repository(params.repo_name)
        destination = self._local(params.destination)
        if destination.exists() and any(destination.iterdir()):
            raise FileExistsError(f"destination {destination} already exists and is not empty")
        git = self._git_factory(self._workspace, secrets=(self._github.token,))
        git.clone(repo["clone_url"], destination)
        return f"Repository {repo['full_name']} cloned into {destination}"

    def list_commits(self, params: ListCommitsInput) -> list[dict[str, Any]]:
        commits = self._github.list_commits(params.repo_name, per_page=params.per_page, page=params.page)
        return [
            {
                "commitId": commit.get("node_id"),
                "sha": commit.get("sha"),
                "message": commit["commit"]["message"],
                "committerName": commit["commit"]["committer"]["name"],
                "date": commit["commit"]["committer"]["date"],
            }
            for commit in commits
        ]

    def write_file(self, params: WriteFileInput) -> dict[str, Any]:
        message = params.commit_message or f"Update {params.path}"
        response = self._github.put_file(params.repo_name, params.path, params.content, message)
        content = response.get("content") or {}
        return {"url": content.get("html_url") or content.get("url")}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def build_registry(actions: RepositoryActions) -> ActionRegistry:
    """Register the full catalog in declaration order and freeze it."""
    registry = ActionRegistry()
    catalog = [
        ("create_repository", "Create a new GitHub repository for the authenticated user.",
         CreateRepositoryInput, actions.create_repository),
        ("delete_repository", "Delete one of the user's GitHub repositories.",
         RepositoryNameInput, actions.delete_repository),
        ("get_repository", "Fetch details (id, owner, visibility, url, creation date) of a repository.",
         RepositoryNameInput, actions.get_repository),
        ("update_repository", "Update the description and/or visibility of an existing repository.",
         UpdateRepositoryInput, actions.update_repository),
        ("push_project", "Commit everything in a local project directory and push it to a repository's main branch.",
         PushProjectInput, actions.push_project),
        ("clone_repository", "Clone one of the user's repositories into a local directory.",
         CloneRepositoryInput, actions.clone_repository),
        ("list_commits", "List commits of a repository, newest first, one page at a time.",
         ListCommitsInput, actions.list_commits),
        ("write_file", "Create or update a single file in a repository with a commit.",
         WriteFileInput, actions.write_file),
    ]
    for name, description, schema, handler in catalog:
        registry.register(ActionDefinition(name=name, description=description, schema=schema, handler=handler))
    return registry.freeze()
