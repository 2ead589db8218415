from pathlib import Path

import pytest

from repo_assistant.config import DEFAULT_MODEL, Settings
from repo_assistant.errors import ConfigurationError

_VARS = [
    "GITHUB_ACCESS_TOKEN",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "REPO_ASSISTANT_API_KEY",
    "REPO_ASSISTANT_MAX_ROUNDS",
    "REPO_ASSISTANT_HISTORY_DIR",
    "REPO_ASSISTANT_MODEL",
    "REPO_ASSISTANT_SENTINEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults(monkeypatch):
    monkeypatch.setenv("GITHUB_ACCESS_TOKEN", "ghp")
    monkeypatch.setenv("GROQ_API_KEY", "gsk")

    settings = Settings.from_env()

    assert settings.api_key == "gsk"
    assert settings.model == DEFAULT_MODEL
    assert settings.max_rounds == 8
    assert settings.sentinel == "bye"
    assert settings.session_id == "1"
    assert settings.history_dir is None


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_ACCESS_TOKEN", "ghp")
    monkeypatch.setenv("OPENAI_API_KEY", "sk")
    monkeypatch.setenv("REPO_ASSISTANT_API_KEY", "explicit")
    monkeypatch.setenv("REPO_ASSISTANT_MAX_ROUNDS", "3")
    monkeypatch.setenv("REPO_ASSISTANT_HISTORY_DIR", str(tmp_path / "history"))

    settings = Settings.from_env()

    assert settings.api_key == "explicit"
    assert settings.max_rounds == 3
    assert settings.history_dir == Path(tmp_path / "history")


def test_missing_token_is_configuration_error(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk")

    with pytest.raises(ConfigurationError, match="GITHUB_ACCESS_TOKEN"):
        Settings.from_env()


def test_bad_number_is_configuration_error(monkeypatch):
    monkeypatch.setenv("GITHUB_ACCESS_TOKEN", "ghp")
    monkeypatch.setenv("GROQ_API_KEY", "gsk")
    monkeypatch.setenv("REPO_ASSISTANT_MAX_ROUNDS", "0")

    with pytest.raises(ConfigurationError, match="max_rounds"):
        Settings.from_env()
