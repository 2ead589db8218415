# config.py
# Settings loaded from the environment (and a local .env file).

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from repo_assistant.errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "openai/gpt-oss-120b"

_PREFIX = "REPO_ASSISTANT_"


class Settings(BaseModel):
    """Runtime configuration. Build with Settings.from_env()."""

    github_token: str = Field(..., min_length=1, description="GitHub personal access token.")
    api_key: str = Field(..., min_length=1, description="Key for the reasoning service.")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="OpenAI-compatible endpoint.")
    model: str = Field(default=DEFAULT_MODEL)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_rounds: int = Field(default=8, ge=1, description="Action rounds allowed per turn.")
    action_timeout: float = Field(default=120.0, gt=0, description="Seconds to wait for a batch of actions.")
    turn_timeout: float | None = Field(default=None, gt=0, description="Optional per-turn deadline in seconds.")
    session_id: str = Field(default="1", min_length=1)
    sentinel: str = Field(default="bye", min_length=1)
    history_dir: Path | None = Field(default=None, description="Durable history directory; unset keeps history in memory.")
    workspace: Path = Field(default_factory=Path.cwd, description="Base directory for local projects and clones.")
    log_level: str = Field(default="WARNING")

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Settings":
        load_dotenv(env_file or find_dotenv(usecwd=True))

        def opt(name: str) -> str | None:
            value = os.getenv(_PREFIX + name)
            return value if value not in (None, "") else None

        raw = {
            "github_token": os.getenv("GITHUB_ACCESS_TOKEN", ""),
            "api_key": opt("API_KEY") or os.getenv("GROQ_API_KEY") or os.getenv("OPENAI_API_KEY") or "",
            "base_url": opt("BASE_URL"),
            "model": opt("MODEL"),
            "temperature": opt("TEMPERATURE"),
            "max_rounds": opt("MAX_ROUNDS"),
            "action_timeout": opt("ACTION_TIMEOUT"),
            "turn_timeout": opt("TURN_TIMEOUT"),
            "session_id": opt("SESSION_ID"),
            "sentinel": opt("SENTINEL"),
            "history_dir": opt("HISTORY_DIR"),
            "workspace": opt("WORKSPACE"),
            "log_level": opt("LOG_LEVEL"),
        }
        # unset optionals fall back to the field defaults
        values = {key: value for key, value in raw.items() if value is not None}
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigurationError(
                f"Invalid configuration ({problems}). Set GITHUB_ACCESS_TOKEN and "
                f"{_PREFIX}API_KEY (or GROQ_API_KEY / OPENAI_API_KEY)."
            ) from exc
