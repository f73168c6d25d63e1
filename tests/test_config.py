"""Tests for configuration loading."""

import os
from pathlib import Path

import pytest

from personas import config as config_module
from personas.config import CONFIG_FILENAME, Config, find_config_file, load_config

ENV_VARS = [
    "PERSONA_LLM_BACKEND",
    "PERSONA_LLM_MODEL",
    "OLLAMA_BASE_URL",
    "PERSONA_LLM_TIMEOUT",
    "PERSONA_DIRS",
    "PERSONA_MIN_SCORE",
    "LOG_LEVEL",
]

CONFIG_TOML = """
[llm]
backend = "ollama"
model = "llama3"

[personas]
search_dirs = ["./personas", "~/team-personas"]
disabled = ["release-notes-writer"]

[routing]
min_score = 0.5

[run]
file_patterns = ["*.ex", "*.exs"]
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / CONFIG_FILENAME
    path.write_text(CONFIG_TOML, encoding="utf-8")
    return path


def test_defaults_when_file_missing(tmp_path):
    config = load_config(tmp_path / "missing.toml")

    assert config == Config()
    assert config.llm.backend == "auto"
    assert config.routing.min_score == 0.25
    assert config.run.max_file_bytes == 50 * 1024
    assert config.personas.include_builtin is True


def test_load_from_file(config_file):
    config = load_config(config_file)

    assert config.llm.backend == "ollama"
    assert config.llm.model == "llama3"
    assert config.llm.timeout == 600
    assert config.personas.disabled == ["release-notes-writer"]
    assert config.personas.search_paths()[1] == Path.home() / "team-personas"
    assert config.routing.min_score == 0.5
    assert config.routing.max_candidates == 3
    assert config.run.file_patterns == ["*.ex", "*.exs"]


def test_env_overrides(config_file, monkeypatch):
    monkeypatch.setenv("PERSONA_LLM_BACKEND", "anthropic")
    monkeypatch.setenv("PERSONA_MIN_SCORE", "0.4")
    monkeypatch.setenv("PERSONA_LLM_TIMEOUT", "30")
    monkeypatch.setenv("PERSONA_DIRS", os.pathsep.join(["/a", "/b"]))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = load_config(config_file)

    assert config.llm.backend == "anthropic"
    assert config.llm.model == "llama3"
    assert config.llm.timeout == 30
    assert config.routing.min_score == 0.4
    assert config.personas.search_dirs == ["/a", "/b"]
    assert config.run.log_level == "DEBUG"


def test_invalid_numeric_env_is_ignored(config_file, monkeypatch):
    monkeypatch.setenv("PERSONA_LLM_TIMEOUT", "soon")
    monkeypatch.setenv("PERSONA_MIN_SCORE", "high")

    config = load_config(config_file)
    assert config.llm.timeout == 600
    assert config.routing.min_score == 0.5


def test_backend_kwargs():
    config = Config().llm
    assert config.backend_kwargs("ollama") == {
        "timeout": 600,
        "base_url": "http://localhost:11434",
    }

    config.model = "gpt-4o"
    assert config.backend_kwargs("openai") == {"timeout": 600, "model": "gpt-4o"}


def test_find_config_file_in_parent(config_file, monkeypatch):
    nested = config_file.parent / "lib" / "deep"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert find_config_file() == config_file


def test_reload_config(config_file, monkeypatch):
    monkeypatch.chdir(config_file.parent)
    monkeypatch.setattr(config_module, "_config", None)

    assert config_module.get_config().routing.min_score == 0.5

    config_file.write_text("[routing]\nmin_score = 0.7\n", encoding="utf-8")
    assert config_module.get_config().routing.min_score == 0.5
    assert config_module.reload_config().routing.min_score == 0.7
