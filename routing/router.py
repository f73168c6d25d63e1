"""Persona router for request-based persona selection.

Routes a user request to the persona best suited to handle it, based on:
1. Explicit mention of the persona (``@name`` or its name)
2. Routing keywords from the persona front-matter
3. Overlap with the user turns of the persona's example dialogues
4. Overlap with the persona description
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from personas.config import RoutingConfig
    from personas.document import PersonaDocument

logger = logging.getLogger(__name__)

# Signal weights (sum to 1.0)
KEYWORD_WEIGHT = 0.6
EXAMPLE_WEIGHT = 0.25
DESCRIPTION_WEIGHT = 0.15

# Keyword hits needed for a full keyword score
KEYWORD_SATURATION = 2

DEFAULT_MIN_SCORE = 0.25
DEFAULT_MAX_CANDIDATES = 3

STOPWORDS = {
    "a", "about", "after", "all", "also", "an", "and", "any", "are", "as", "at",
    "be", "before", "but", "by", "can", "could", "did", "do", "does", "for",
    "from", "get", "got", "had", "has", "have", "help", "how", "i", "i'm", "i've",
    "if", "in", "into", "is", "it", "its", "it's", "just", "let", "like", "me",
    "my", "need", "no", "not", "now", "of", "on", "or", "our", "please", "so",
    "some", "that", "the", "their", "them", "then", "there", "these", "this",
    "those", "to", "up", "use", "using", "want", "was", "we", "what", "when",
    "where", "which", "while", "who", "why", "will", "with", "would", "you",
    "your", "agent", "assistant", "user",
}

_WORD = re.compile(r"[a-z][a-z0-9_'-]*")


def _stem(word: str) -> str:
    """Very light plural folding so "imports" matches "import"."""
    if len(word) > 4 and word.endswith("ies"):
        return word[:-3] + "y"
    if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def terms(text: str) -> set[str]:
    """Content terms of a text: lowercased, stop-words removed, plurals folded."""
    return {
        _stem(w.strip("'-"))
        for w in _WORD.findall(text.lower())
        if len(w) > 2 and w not in STOPWORDS
    }


def _overlap(request_terms: set[str], other: set[str]) -> float:
    if not request_terms or not other:
        return 0.0
    return len(request_terms & other) / len(request_terms)


@dataclass
class PersonaProfile:
    """Routing view of a persona, precomputed once."""

    name: str
    priority: int
    keywords: list[str]
    example_terms: list[set[str]]
    description_terms: set[str]

    @classmethod
    def from_document(cls, doc: PersonaDocument) -> PersonaProfile:
        return cls(
            name=doc.name,
            priority=doc.priority,
            keywords=[k.lower().strip() for k in doc.keywords if k.strip()],
            example_terms=[
                terms(turn)
                for example in doc.examples
                for turn in example.user_turns
            ],
            description_terms=terms(doc.summary),
        )

    def is_mentioned(self, request_lower: str) -> bool:
        """Check for "@name" or the name as a standalone phrase."""
        if f"@{self.name}" in request_lower:
            return True
        spaced = self.name.replace("-", " ")
        for form in {self.name, spaced}:
            if re.search(rf"(?<![\w-]){re.escape(form)}(?![\w-])", request_lower):
                return True
        return False

    def keyword_hits(self, request_lower: str, request_terms: set[str]) -> list[str]:
        """Keywords found in the request.

        Single words match on word boundaries; phrases match as substrings.
        Keywords that differ only by plural ("unused import", "unused imports")
        count once.
        """
        hits = []
        seen: set[str] = set()
        for keyword in self.keywords:
            if " " in keyword:
                matched = keyword in request_lower
            else:
                matched = _stem(keyword) in request_terms or keyword in request_terms
            folded = " ".join(_stem(word) for word in keyword.split())
            if matched and folded not in seen:
                seen.add(folded)
                hits.append(keyword)
        return hits


@dataclass
class RoutingDecision:
    """Result of routing one request.

    Attributes:
        persona: Selected persona name, or None when nothing matched.
        score: Score of the selected persona (0.0 when none).
        matched_keywords: Keywords of the selected persona found in the request.
        candidates: Best (name, score) pairs, highest first.
        reason: Human-readable explanation.
    """

    persona: str | None
    score: float = 0.0
    matched_keywords: list[str] = field(default_factory=list)
    candidates: list[tuple[str, float]] = field(default_factory=list)
    reason: str = ""

    @property
    def routed(self) -> bool:
        return self.persona is not None


class PersonaRouter:
    """Routes requests to personas based on their metadata and examples.

    Example:
        loader = PersonaLoader()
        loader.discover()
        router = PersonaRouter(loader.list(), config.routing)
        decision = router.route("fix the lint warnings in parser.py")
        if decision.routed:
            persona = loader.require(decision.persona)
    """

    def __init__(
        self,
        personas: Iterable[PersonaDocument],
        config: RoutingConfig | None = None,
    ):
        """Initialize router.

        Args:
            personas: Personas available for routing.
            config: Routing thresholds (defaults when None).
        """
        self.min_score = config.min_score if config else DEFAULT_MIN_SCORE
        self.max_candidates = config.max_candidates if config else DEFAULT_MAX_CANDIDATES
        self._profiles = [PersonaProfile.from_document(doc) for doc in personas]

    @property
    def persona_names(self) -> list[str]:
        return [p.name for p in self._profiles]

    def score(self, profile: PersonaProfile, request: str) -> tuple[float, list[str]]:
        """Score one persona against a request.

        Returns:
            Tuple of (score in [0, 1], matched keywords).
        """
        request_lower = request.lower()
        request_terms = terms(request)

        if profile.is_mentioned(request_lower):
            return 1.0, []

        hits = profile.keyword_hits(request_lower, request_terms)
        keyword_score = min(1.0, len(hits) / KEYWORD_SATURATION)
        example_score = max(
            (_overlap(request_terms, t) for t in profile.example_terms),
            default=0.0,
        )
        description_score = _overlap(request_terms, profile.description_terms)

        total = (
            KEYWORD_WEIGHT * keyword_score
            + EXAMPLE_WEIGHT * example_score
            + DESCRIPTION_WEIGHT * description_score
        )
        return round(min(1.0, total), 3), hits

    def route(self, request: str) -> RoutingDecision:
        """Decide which persona, if any, should handle a request.

        Routing logic:
        1. Empty requests route to nothing
        2. Score every persona
        3. Rank by score, then priority, then name
        4. Accept the best one if it reaches min_score

        Args:
            request: The user's request text.

        Returns:
            RoutingDecision describing the choice.
        """
        if not request or not request.strip():
            return RoutingDecision(persona=None, reason="Empty request")

        if not self._profiles:
            return RoutingDecision(persona=None, reason="No personas available")

        scored = []
        for profile in self._profiles:
            value, hits = self.score(profile, request)
            scored.append((value, profile, hits))
            logger.debug("Route score %s=%.3f (keywords: %s)", profile.name, value, hits)

        scored.sort(key=lambda item: (-item[0], item[1].priority, item[1].name))
        candidates = [
            (profile.name, value)
            for value, profile, _ in scored[: self.max_candidates]
            if value > 0
        ]

        best_score, best, best_hits = scored[0]
        if best_score < self.min_score:
            return RoutingDecision(
                persona=None,
                score=0.0,
                candidates=candidates,
                reason=(
                    f"No persona reached min_score={self.min_score:.2f} "
                    f"(best: {best.name}={best_score:.2f})"
                ),
            )

        if best_score >= 1.0 and not best_hits:
            reason = f"Persona {best.name} was requested explicitly"
        else:
            reason = f"{best.name} scored {best_score:.2f}"
            if best_hits:
                reason += f" (keywords: {', '.join(best_hits)})"

        logger.info("Routed request to %s (score=%.3f)", best.name, best_score)
        return RoutingDecision(
            persona=best.name,
            score=best_score,
            matched_keywords=best_hits,
            candidates=candidates,
            reason=reason,
        )

    def explain_routing(self, request: str) -> dict:
        """Explain routing decision for debugging/CLI.

        Returns:
            Dict with per-persona scores and the decision.
        """
        decision = self.route(request)
        return {
            "request": request,
            "persona": decision.persona,
            "score": decision.score,
            "reason": decision.reason,
            "scores": {
                profile.name: self.score(profile, request)[0]
                for profile in self._profiles
            },
            "min_score": self.min_score,
        }
