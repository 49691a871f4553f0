"""Keyword and emoji tables for sentiment scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

Direction = Literal["bullish", "bearish"]

BULLISH_KEYWORDS: tuple[str, ...] = (
    # strong
    "moon", "mooning", "rocket", "bullish", "bull run", "pump", "pumping",
    "skyrocket", "explode", "explosion", "parabolic", "moonshot",
    # positioning
    "buy", "buying", "bought", "accumulate", "accumulating", "hodl",
    "holding", "long", "going long",
    # price action
    "breakout", "breaking out", "surge", "surging", "rally", "rallying",
    "soar", "soaring", "climb", "climbing", "rise", "rising", "green", "gains",
    # fundamentals
    "upgrade", "upgraded", "bullish signal", "strong", "strength", "growth",
    "growing", "adoption", "institutional", "mainstream", "undervalued",
    "cheap", "discount",
    # mood
    "optimistic", "confident", "excited", "bullish sentiment", "positive",
    "promising", "potential", "opportunity", "gem", "hidden gem",
    # records
    "ath", "all time high", "new high", "record", "breaking records", "historic",
)

BEARISH_KEYWORDS: tuple[str, ...] = (
    # strong
    "crash", "crashing", "dump", "dumping", "tank", "tanking", "plunge",
    "plunging", "collapse", "collapsing", "bearish", "bear market",
    # positioning
    "sell", "selling", "sold", "exit", "exiting", "short", "shorting",
    "liquidate", "liquidating", "panic", "panic sell",
    # price action
    "drop", "dropping", "fall", "falling", "decline", "declining", "dip",
    "dipping", "red", "losses", "bleeding", "bleed",
    # fundamentals
    "downgrade", "downgraded", "weak", "weakness", "overvalued", "expensive",
    "bubble", "scam", "rug pull", "rugpull", "fraud",
    # mood
    "fear", "fearful", "worried", "concern", "concerning", "bearish sentiment",
    "negative", "pessimistic", "doubt", "skeptical", "avoid", "stay away",
    # crisis
    "crisis", "dead", "dying", "rip", "failed", "failure", "bankrupt",
    "insolvency", "hack", "hacked", "exploit",
)

# emoji -> (direction, weight)
EMOJI_SENTIMENTS: dict[str, tuple[Direction, float]] = {
    "🚀": ("bullish", 1.5),
    "🌙": ("bullish", 1.3),
    "💎": ("bullish", 1.2),
    "🙌": ("bullish", 1.0),
    "💪": ("bullish", 1.0),
    "🔥": ("bullish", 1.2),
    "📈": ("bullish", 1.3),
    "💰": ("bullish", 1.0),
    "🤑": ("bullish", 1.1),
    "🎯": ("bullish", 0.8),
    "✅": ("bullish", 0.7),
    "🟢": ("bullish", 1.0),
    "⬆️": ("bullish", 0.8),
    "🐂": ("bullish", 1.5),
    "📉": ("bearish", 1.3),
    "💀": ("bearish", 1.2),
    "☠️": ("bearish", 1.2),
    "😱": ("bearish", 1.0),
    "😰": ("bearish", 0.8),
    "🔻": ("bearish", 1.0),
    "🟥": ("bearish", 1.0),
    "⬇️": ("bearish", 0.8),
    "🐻": ("bearish", 1.5),
    "⚠️": ("bearish", 0.7),
    "❌": ("bearish", 0.8),
    "🚨": ("bearish", 0.9),
    "💩": ("bearish", 1.0),
    "🤡": ("bearish", 0.9),
}


@dataclass(frozen=True)
class Keyword:
    word: str
    direction: Direction
    weight: float = 1.0


def build_keywords(
    extra_bullish: Iterable[str] = (),
    extra_bearish: Iterable[str] = (),
) -> list[Keyword]:
    """Default tables plus any configured extras, deduplicated per direction."""
    keywords: list[Keyword] = []
    for direction, base, extra in (
        ("bullish", BULLISH_KEYWORDS, extra_bullish),
        ("bearish", BEARISH_KEYWORDS, extra_bearish),
    ):
        seen: set[str] = set()
        for word in (*base, *extra):
            word = word.lower().strip()
            if word and word not in seen:
                seen.add(word)
                keywords.append(Keyword(word=word, direction=direction))
    return keywords
