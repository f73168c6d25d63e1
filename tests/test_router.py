"""Tests for request routing."""

import pytest

from personas.config import RoutingConfig
from personas.document import PersonaDocument
from routing.router import PersonaRouter, terms


@pytest.fixture
def router(builtin_persona, release_notes_persona):
    return PersonaRouter([builtin_persona, release_notes_persona])


def test_terms_drop_stopwords_and_fold_plurals():
    assert terms("Please fix the unused imports in my modules") == {
        "fix", "unused", "import", "module",
    }
    assert terms("dependencies and class") == {"dependency", "class"}


def test_lint_request_routes_to_enforcer(router):
    decision = router.route("Please fix the lint errors and unused imports in parser.py")

    assert decision.routed
    assert decision.persona == "code-quality-enforcer"
    assert decision.score >= 0.6
    assert "lint" in decision.matched_keywords
    assert "unused import" in decision.matched_keywords
    assert "unused imports" not in decision.matched_keywords
    assert decision.candidates[0][0] == "code-quality-enforcer"
    assert "keywords:" in decision.reason


def test_changelog_request_routes_to_release_notes(router):
    decision = router.route("Draft the changelog and release notes for 2.0")
    assert decision.persona == "release-notes-writer"


def test_unrelated_request_is_not_routed(router):
    decision = router.route("What's the weather like in Paris tomorrow?")

    assert not decision.routed
    assert decision.score == 0.0
    assert decision.candidates == []
    assert decision.reason.startswith("No persona reached min_score=0.25")


def test_explicit_mention_wins(router):
    decision = router.route("@release-notes-writer can you look at the lint output too?")

    assert decision.persona == "release-notes-writer"
    assert decision.score == 1.0
    assert decision.reason == "Persona release-notes-writer was requested explicitly"


def test_spaced_name_counts_as_mention(router):
    decision = router.route("ask the code quality enforcer about this")
    assert decision.persona == "code-quality-enforcer"
    assert decision.score == 1.0


@pytest.mark.parametrize("request_text", ["", "   "])
def test_empty_request(router, request_text):
    decision = router.route(request_text)
    assert decision.persona is None
    assert decision.reason == "Empty request"


def test_no_personas():
    decision = PersonaRouter([]).route("fix the lint errors")
    assert decision.persona is None
    assert decision.reason == "No personas available"


def test_min_score_from_config(builtin_persona):
    router = PersonaRouter([builtin_persona], RoutingConfig(min_score=0.99))
    decision = router.route("Please fix the lint errors and unused imports in parser.py")

    assert not decision.routed
    assert decision.candidates[0][0] == "code-quality-enforcer"


def test_ties_break_on_priority_then_name():
    personas = [
        PersonaDocument(name=name, description="Formats code.", keywords=["format"], priority=priority)
        for name, priority in [("alpha", 50), ("beta", 5), ("aardvark", 5)]
    ]
    decision = PersonaRouter(personas).route("format my code")

    assert decision.persona == "aardvark"
    assert [name for name, _ in decision.candidates] == ["aardvark", "beta", "alpha"]


def test_max_candidates(builtin_persona, release_notes_persona):
    router = PersonaRouter(
        [builtin_persona, release_notes_persona],
        RoutingConfig(max_candidates=1),
    )
    decision = router.route("fix the lint in the changelog")
    assert len(decision.candidates) == 1


def test_explain_routing(router):
    explanation = router.explain_routing("fix the formatting and lint warnings")

    assert explanation["persona"] == "code-quality-enforcer"
    assert set(explanation["scores"]) == {"code-quality-enforcer", "release-notes-writer"}
    assert explanation["scores"]["code-quality-enforcer"] == explanation["score"]
    assert explanation["min_score"] == 0.25


def test_plural_keyword_variants_count_once(builtin_persona):
    router = PersonaRouter([builtin_persona])
    _, hits = router.score(router._profiles[0], "remove the unused imports")
    assert hits == ["unused import"]

    _, hits = router.score(router._profiles[0], "check our naming conventions")
    assert hits == ["naming convention"]
