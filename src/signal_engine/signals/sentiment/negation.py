"""Negation detection — "not bullish", "don't buy", "no longer bearish"."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from signal_engine.signals.sentiment.keywords import Direction, Keyword

NEGATION_PATTERNS: tuple[str, ...] = (
    "not", "n't", "never", "no", "none", "nothing", "neither", "nobody", "nowhere",
    "no longer", "not anymore", "stopped being", "ceased to be",
    "wouldn't", "couldn't", "shouldn't", "won't", "cannot", "can't",
    "don't think", "don't believe", "doubt", "unlikely", "questionable",
    "opposite of", "contrary to", "far from", "anything but",
)

# Words before a keyword that are searched for a negation
NEGATION_WINDOW = 4
NEGATED_WEIGHT_FACTOR = 0.8

_CLAUSE_BREAK = re.compile(r"[.,;:!?\n]")
_TOKEN_STRIP = "\"'()[]{}*_-"
_SINGLE_WORD = frozenset(p for p in NEGATION_PATTERNS if " " not in p and p != "n't")
_PHRASES = tuple(p for p in NEGATION_PATTERNS if " " in p)


@dataclass(frozen=True)
class KeywordMatch:
    keyword: str
    direction: Direction
    weight: float
    negated: bool
    position: int = -1


def flip(direction: Direction) -> Direction:
    return "bearish" if direction == "bullish" else "bullish"


def _window_tokens(text: str, position: int) -> list[str]:
    before = text[:position].lower()
    # Negation scope ends at the clause boundary
    breaks = list(_CLAUSE_BREAK.finditer(before))
    if breaks:
        before = before[breaks[-1].end():]
    tokens = [t.strip(_TOKEN_STRIP) for t in before.split()]
    return [t for t in tokens if t][-NEGATION_WINDOW:]


def is_negated(text: str, position: int) -> bool:
    """True if a negation pattern precedes *position* within the window."""
    tokens = _window_tokens(text, position)
    if not tokens:
        return False
    for token in tokens:
        if token in _SINGLE_WORD or token.endswith("n't"):
            return True
    window = " ".join(tokens)
    return any(re.search(rf"(?<!\w){re.escape(p)}(?!\w)", window) for p in _PHRASES)


@lru_cache(maxsize=None)
def _pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(word)}(?!\w)")


def find_matches(
    text: str,
    keywords: list[Keyword],
    negation_enabled: bool = True,
) -> list[KeywordMatch]:
    """Every whole-word occurrence of every keyword, with negation applied."""
    lower = text.lower()
    matches: list[KeywordMatch] = []
    for kw in keywords:
        for m in _pattern(kw.word).finditer(lower):
            negated = negation_enabled and is_negated(text, m.start())
            matches.append(KeywordMatch(
                keyword=kw.word,
                direction=flip(kw.direction) if negated else kw.direction,
                weight=kw.weight * NEGATED_WEIGHT_FACTOR if negated else kw.weight,
                negated=negated,
                position=m.start(),
            ))
    return matches


def negation_adjustment(matches: list[KeywordMatch]) -> float:
    """Signed effect of negation on the score.

    Positive means negations pushed the text bullish, negative bearish.
    """
    adjustment = 0.0
    for match in matches:
        if match.negated:
            sign = 1 if match.direction == "bullish" else -1
            adjustment += sign * match.weight * 2
    return adjustment
