"""Pytest fixtures for Starlight blackjack tests."""

import os
from random import Random

import pytest
from hypothesis import strategies as st

from starlight.cards import Card, RandomCardSource, Rank, Suit
from starlight.hand import Hand
from starlight.rules import GameRules
from starlight.game import RoundEngine, Session

# The API suite makes far more than a minute's worth of requests from one client
os.environ.setdefault("RATE_LIMIT_RPM", "10000")


class ScriptedCardSource:
    """Card source that deals a fixed sequence, for deterministic rounds."""

    def __init__(self, *cards: str) -> None:
        self._cards = [Card.from_string(c) for c in cards]
        self.drawn = 0

    def extend(self, *cards: str) -> None:
        self._cards.extend(Card.from_string(c) for c in cards)

    def draw(self) -> Card:
        if self.drawn >= len(self._cards):
            raise AssertionError("scripted card source ran out of cards")
        card = self._cards[self.drawn]
        self.drawn += 1
        return card

    @property
    def remaining(self) -> int:
        return len(self._cards) - self.drawn


def make_hand(*cards: str) -> Hand:
    """Build a hand from card strings like 'AS', '10H'."""
    return Hand(cards=[Card.from_string(c) for c in cards])


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def card_source(rng):
    return RandomCardSource(rng=rng)


@pytest.fixture
def empty_hand():
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A two-card 21 (A-K)."""
    return make_hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def bust_hand():
    return make_hand("10S", "6H", "KC")


@pytest.fixture
def rules():
    """Default ruleset."""
    return GameRules()


@pytest.fixture
def game(card_source):
    """A new engine drawing random cards."""
    return RoundEngine(card_source=card_source)


@pytest.fixture
def scripted():
    """Build an engine whose cards come from a script.

    Deal order is player, player, dealer (hole), dealer (up), then
    any hits in the order they are requested.
    """

    def _make(*cards: str, bankroll: int = 1000, rules: GameRules | None = None):
        source = ScriptedCardSource(*cards)
        engine = RoundEngine(
            session=Session(bankroll=bankroll),
            card_source=source,
            rules=rules,
        )
        return engine, source

    return _make


@pytest.fixture
def recorded_events():
    """Attach to an engine and collect every event it emits."""

    def _attach(engine: RoundEngine) -> list:
        events: list = []
        engine.subscribe(events.append)
        return events

    return _attach


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw, ranks=tuple(Rank)):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(ranks)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def cards_strategy(draw, min_cards=0, max_cards=8, ranks=tuple(Rank)):
    """Generate a random list of cards."""
    return draw(st.lists(card_strategy(ranks=ranks), min_size=min_cards, max_size=max_cards))
