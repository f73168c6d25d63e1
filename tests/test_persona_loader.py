"""Tests for persona discovery."""

import pytest

from personas.loader import PersonaLoader, PersonaNotFoundError

OVERRIDE = """---
name: code-quality-enforcer
description: Team-specific formatting rules.
priority: 1
---
You enforce the team style.
"""


def test_builtin_is_loaded(tmp_path):
    loader = PersonaLoader(search_dirs=[tmp_path])
    assert loader.discover() == ["code-quality-enforcer"]
    assert loader.require("code-quality-enforcer").priority == 10


def test_missing_search_dir_is_skipped(tmp_path):
    loader = PersonaLoader(search_dirs=[tmp_path / "nope"])
    assert loader.discover() == ["code-quality-enforcer"]


def test_user_persona_overrides_builtin(tmp_path, write_persona):
    path = write_persona("code-quality-enforcer.md", OVERRIDE)

    loader = PersonaLoader(search_dirs=[path.parent])
    loader.discover()

    persona = loader.require("code-quality-enforcer")
    assert persona.source == path
    assert persona.description == "Team-specific formatting rules."
    assert len(loader.list()) == 1


def test_nested_documents_and_ordering(write_persona, release_notes_text):
    write_persona("team/release-notes-writer.md", release_notes_text)
    path = write_persona("README.md", "# Not a persona")

    loader = PersonaLoader(search_dirs=[path.parent])
    names = loader.discover()

    assert names == ["code-quality-enforcer", "release-notes-writer"]
    # priority 10 sorts before the default 50
    assert [p.name for p in loader.list()] == ["code-quality-enforcer", "release-notes-writer"]
    assert loader.failures == {}


def test_hidden_and_private_entries_are_ignored(write_persona, release_notes_text):
    write_persona(".draft.md", release_notes_text)
    path = write_persona("_drafts/release-notes-writer.md", release_notes_text)

    loader = PersonaLoader(search_dirs=[path.parent.parent], include_builtin=False)
    assert loader.discover() == []


def test_broken_document_is_recorded(write_persona, release_notes_text):
    broken = write_persona("broken.md", "no front matter")
    write_persona("release-notes-writer.md", release_notes_text)

    loader = PersonaLoader(search_dirs=[broken.parent], include_builtin=False)
    assert loader.discover() == ["release-notes-writer"]
    assert list(loader.failures) == [broken]
    assert "Missing YAML front-matter" in loader.failures[broken]


def test_disabled_and_enabled(write_persona, release_notes_text):
    path = write_persona("release-notes-writer.md", release_notes_text)

    loader = PersonaLoader(search_dirs=[path.parent], disabled=["code-quality-enforcer"])
    assert loader.discover() == ["release-notes-writer"]

    loader = PersonaLoader(search_dirs=[path.parent], enabled=["code-quality-enforcer"])
    assert loader.discover() == ["code-quality-enforcer"]


def test_require_unknown_persona(tmp_path):
    loader = PersonaLoader(search_dirs=[tmp_path])
    loader.discover()

    assert loader.get("nobody") is None
    with pytest.raises(PersonaNotFoundError, match="Available: code-quality-enforcer"):
        loader.require("nobody")


def test_reload_picks_up_new_files(write_persona, release_notes_text):
    path = write_persona("broken.md", "no front matter")

    loader = PersonaLoader(search_dirs=[path.parent], include_builtin=False)
    assert loader.discover() == []
    assert loader.failures

    path.write_text(release_notes_text, encoding="utf-8")
    assert loader.reload() == ["release-notes-writer"]
    assert loader.failures == {}


def test_persona_with_model_list_is_skipped(write_persona, release_notes_text):
    bad = write_persona(
        "multi-model.md",
        "---\nname: multi-model\ndescription: x\nmodel: [sonnet, opus]\n---\nBody\n",
    )
    write_persona("release-notes-writer.md", release_notes_text)

    loader = PersonaLoader(search_dirs=[bad.parent], include_builtin=False)
    assert loader.discover() == ["release-notes-writer"]
    assert "Expected a single value for 'model'" in loader.failures[bad]
