"""Tests for the persona-kit CLI."""

import json

import pytest
from typer.testing import CliRunner

import llm_backend
from cli.personakit import __version__
from cli.personakit import output
from cli.personakit.cli import app

runner = CliRunner()

SOURCE = "import os\n\ndef DoThing():\n    return 1\n"


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    for name in ["PERSONA_DIRS", "PERSONA_MIN_SCORE", "PERSONA_LLM_BACKEND", "LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(output.console, "width", 200)


@pytest.fixture
def config_path(tmp_path, write_persona, release_notes_text):
    personas_dir = write_persona("release-notes-writer.md", release_notes_text).parent
    path = tmp_path / "persona-kit.toml"
    path.write_text(
        f'[personas]\nsearch_dirs = ["{personas_dir.as_posix()}"]\n\n'
        '[llm]\nbackend = "ollama"\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    (root / "app.py").write_text(SOURCE, encoding="utf-8")
    return root


def invoke(config_path, *args):
    return runner.invoke(app, ["--config", str(config_path), *args])


def use_llm(monkeypatch, llm):
    monkeypatch.setattr(llm_backend, "backend_from_config", lambda config, kind=None, model=None: llm)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"persona-kit v{__version__}" in result.output


def test_list(config_path):
    result = invoke(config_path, "list")
    assert result.exit_code == 0
    assert "code-quality-enforcer" in result.output
    assert "release-notes-writer" in result.output


def test_show(config_path):
    result = invoke(config_path, "show", "code-quality-enforcer")
    assert result.exit_code == 0
    assert "Methodology" in result.output
    assert "Examples" in result.output


def test_show_unknown_persona(config_path):
    result = invoke(config_path, "show", "nobody")
    assert result.exit_code == 1


def test_validate_all(config_path):
    result = invoke(config_path, "validate")
    assert result.exit_code == 0
    assert "code-quality-enforcer: valid" in result.output
    assert "release-notes-writer: valid" in result.output


def test_validate_by_name(config_path):
    result = invoke(config_path, "validate", "code-quality-enforcer")
    assert result.exit_code == 0


def test_validate_broken_file(config_path, tmp_path):
    broken = tmp_path / "broken.md"
    broken.write_text("---\nname: broken\ndescription: x\n---\n", encoding="utf-8")

    result = invoke(config_path, "validate", str(broken))
    assert result.exit_code == 1


def test_route(config_path):
    result = invoke(config_path, "route", "fix the lint errors and unused imports")
    assert result.exit_code == 0
    assert "Routed to code-quality-enforcer" in result.output


def test_route_json(config_path):
    result = invoke(config_path, "route", "--json", "draft the changelog and release notes")
    assert result.exit_code == 0
    assert '"persona": "release-notes-writer"' in result.output


def test_route_no_match(config_path):
    result = invoke(config_path, "route", "what's the weather tomorrow?")
    assert result.exit_code == 0
    assert "No persona selected" in result.output


def test_config_command(config_path):
    result = invoke(config_path, "config")
    assert result.exit_code == 0
    assert "routing.min_score" in result.output
    assert "llm.backend" in result.output


def test_run_and_apply(config_path, project, monkeypatch, fake_llm, report_payload):
    llm = fake_llm(report_payload)
    use_llm(monkeypatch, llm)

    result = invoke(config_path, "run", "code-quality-enforcer", str(project), "--apply")

    assert result.exit_code == 0, result.output
    assert "issues_found" in result.output
    assert (project / "app.py").read_text(encoding="utf-8") == "def DoThing():\n    return 1\n"
    assert "### app.py" in llm.calls[0]["messages"][-1]["content"]


def test_run_without_apply_leaves_files(config_path, project, monkeypatch, fake_llm, report_payload):
    use_llm(monkeypatch, fake_llm(report_payload))

    result = invoke(config_path, "run", "code-quality-enforcer", str(project))

    assert result.exit_code == 0
    assert "--apply" in result.output
    assert (project / "app.py").read_text(encoding="utf-8") == SOURCE


def test_run_holds_back_flagged_files(config_path, project, monkeypatch, fake_llm, report_payload):
    report_payload["review_flags"] = [
        {"file_path": "app.py", "question": "DoThing is public. Rename it?"},
    ]
    use_llm(monkeypatch, fake_llm(report_payload))

    result = invoke(config_path, "run", "code-quality-enforcer", str(project), "--apply")

    assert result.exit_code == 0
    assert "needs_review" in result.output
    assert "Held back app.py" in result.output
    assert (project / "app.py").read_text(encoding="utf-8") == SOURCE


def test_run_json(config_path, project, monkeypatch, fake_llm, report_payload):
    use_llm(monkeypatch, fake_llm(report_payload))

    result = invoke(config_path, "run", "code-quality-enforcer", str(project), "--json")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["status"] == "issues_found"
    assert data["counts"]["total"] == 2
    assert "--apply" not in result.stdout


def test_run_with_failing_model(config_path, project, monkeypatch, fake_llm):
    use_llm(monkeypatch, fake_llm("Sorry, I can't help with that."))

    result = invoke(config_path, "run", "code-quality-enforcer", str(project))
    assert result.exit_code == 1


def test_run_missing_target(config_path, tmp_path):
    result = invoke(config_path, "run", "code-quality-enforcer", str(tmp_path / "missing"))
    assert result.exit_code == 1


def test_run_no_matching_files(config_path, project):
    result = invoke(config_path, "run", "code-quality-enforcer", str(project), "-p", "*.ex")
    assert result.exit_code == 1


def test_run_backend_error(config_path, project, monkeypatch):
    def broken(config, kind=None, model=None):
        raise ValueError("OpenAI API key not found")

    monkeypatch.setattr(llm_backend, "backend_from_config", broken)

    result = invoke(config_path, "run", "code-quality-enforcer", str(project), "-b", "openai")
    assert result.exit_code == 1


def test_run_holds_back_normalised_flag_paths(config_path, project, monkeypatch, fake_llm, report_payload):
    report_payload["review_flags"] = [
        {"file_path": "./app.py", "question": "DoThing is public. Rename it?"},
    ]
    use_llm(monkeypatch, fake_llm(report_payload))

    result = invoke(config_path, "run", "code-quality-enforcer", str(project), "--apply")

    assert result.exit_code == 0
    assert "Held back app.py" in result.output
    assert (project / "app.py").read_text(encoding="utf-8") == SOURCE


class StubBackend:
    def __init__(self, available=True, models=None):
        self.available = available
        self.models = models or []

    def is_available(self):
        return self.available

    def list_models(self):
        return self.models

    def __repr__(self):
        return "StubBackend(model='local')"


def test_backend_command(config_path, monkeypatch):
    use_llm(monkeypatch, StubBackend(models=["llama3", "qwen2.5-coder:7b"]))

    result = invoke(config_path, "backend")

    assert result.exit_code == 0
    assert "StubBackend(model='local')" in result.output
    assert "Backend is available" in result.output
    assert "qwen2.5-coder:7b" in result.output


def test_backend_command_unavailable(config_path, monkeypatch):
    use_llm(monkeypatch, StubBackend(available=False))

    result = invoke(config_path, "backend")
    assert result.exit_code == 1
