"""Starlight blackjack: cards, scoring and the round engine."""

from starlight.cards import Card, CardSource, RandomCardSource, Rank, Suit
from starlight.hand import Hand, Outcome, compare, score
from starlight.rules import GameRules

__all__ = [
    "Card",
    "CardSource",
    "RandomCardSource",
    "Rank",
    "Suit",
    "Hand",
    "Outcome",
    "compare",
    "score",
    "GameRules",
]
