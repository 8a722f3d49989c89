"""Card model and the random card source."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Protocol


class Suit(Enum):
    """Suits, valued by their single-letter code."""

    CLUBS = "C"
    DIAMONDS = "D"
    HEARTS = "H"
    SPADES = "S"

    def __str__(self) -> str:
        return _SUIT_SYMBOLS[self]

    @property
    def is_red(self) -> bool:
        return self is Suit.HEARTS or self is Suit.DIAMONDS


_SUIT_SYMBOLS = {Suit.CLUBS: "♣", Suit.DIAMONDS: "♦", Suit.HEARTS: "♥", Suit.SPADES: "♠"}


class Rank(Enum):
    """Ranks, valued by the label printed on the card face."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"

    def __str__(self) -> str:
        return self.value

    @property
    def blackjack_value(self) -> int:
        """Pip value; pictures count 10 and an ace counts 11 until softened."""
        if self is Rank.ACE:
            return 11
        if self.value.isdigit():
            return int(self.value)
        return 10

    @property
    def is_ace(self) -> bool:
        return self is Rank.ACE


# Accepted spellings when parsing cards written as text, e.g. "TS" or "Q♥"
_RANK_ALIASES = {rank.value: rank for rank in Rank} | {"T": Rank.TEN}
_SUIT_ALIASES = {suit.value: suit for suit in Suit} | {
    symbol: suit for suit, symbol in _SUIT_SYMBOLS.items()
}


@dataclass(frozen=True, slots=True)
class Card:
    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return self.display

    def __repr__(self) -> str:
        return f"Card.from_string({self.rank.value + self.suit.value!r})"

    @property
    def value(self) -> int:
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def is_red(self) -> bool:
        return self.suit.is_red

    @property
    def color(self) -> str:
        return "red" if self.suit.is_red else "black"

    @property
    def display(self) -> str:
        """Face label and suit symbol, e.g. ``10♥``."""
        return f"{self.rank}{self.suit}"

    @classmethod
    def from_string(cls, text: str) -> "Card":
        """Parse ``"QH"``, ``"10d"``, ``"A♠"`` and the like.

        Raises:
            ValueError: if the rank or suit is not recognised
        """
        text = text.strip().upper()
        rank = _RANK_ALIASES.get(text[:-1])
        suit = _SUIT_ALIASES.get(text[-1:])
        if rank is None or suit is None:
            raise ValueError(f"Not a card: {text!r}")
        return cls(rank, suit)


class CardSource(Protocol):
    """Anything the engine can draw cards from."""

    def draw(self) -> Card:
        ...


class RandomCardSource:
    """
    Infinite card source drawing with replacement.

    Every draw picks a rank uniformly from the 13 ranks and a suit uniformly
    from the 4 suits, independent of earlier draws. There is no shoe to run
    out of and nothing to shuffle.
    """

    _RANKS = tuple(Rank)
    _SUITS = tuple(Suit)

    def __init__(self, rng: Random | None = None) -> None:
        """
        Initialize the card source.

        Args:
            rng: Random number generator, only injected by tests
        """
        self._rng = rng or Random()

    def draw(self) -> Card:
        """Draw a card. Always succeeds."""
        return Card(self._rng.choice(self._RANKS), self._rng.choice(self._SUITS))
