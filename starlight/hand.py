"""Hand scoring for blackjack."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Iterator

from starlight.cards import Card

BLACKJACK = 21


class Outcome(Enum):
    """Result of a finished round from the player's point of view."""

    WIN = auto()
    LOSS = auto()
    PUSH = auto()

    def __str__(self) -> str:
        return self.name.lower()


def score(cards: Iterable[Card]) -> int:
    """
    Calculate the best blackjack value of a group of cards.

    Aces start at 11 and are demoted to 1 one at a time while the total
    is over 21. An empty group scores 0.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value

    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


@dataclass
class Hand:
    """An ordered, append-only group of cards held by one participant."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()

    @property
    def value(self) -> int:
        return score(self.cards)

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).
        """
        if not any(card.is_ace for card in self.cards):
            return False

        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= BLACKJACK

    @property
    def is_busted(self) -> bool:
        return self.value > BLACKJACK

    @property
    def is_blackjack(self) -> bool:
        """Two-card 21. Paid like any other win."""
        return len(self.cards) == 2 and self.value == BLACKJACK

    @property
    def num_cards(self) -> int:
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        if self.is_busted:
            value_str = "(BUST)"
        elif self.is_soft:
            value_str = f"(soft {self.value})"
        else:
            value_str = f"({self.value})"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


def compare(player_hand: Hand, dealer_hand: Hand) -> Outcome:
    """
    Compare a finished player hand against a finished dealer hand.

    A busted player loses even if the dealer also busts.
    """
    if player_hand.is_busted:
        return Outcome.LOSS
    if dealer_hand.is_busted:
        return Outcome.WIN

    player_value = player_hand.value
    dealer_value = dealer_hand.value

    if player_value > dealer_value:
        return Outcome.WIN
    if player_value < dealer_value:
        return Outcome.LOSS
    return Outcome.PUSH
