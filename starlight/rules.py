"""Table rules for a blackjack session."""

from dataclasses import dataclass

DEFAULT_BANKROLL = 1000


@dataclass(frozen=True)
class GameRules:
    """
    Rules the round engine plays by.

    The dealer draws while below ``dealer_stands_on`` and stands on any
    total at or above it, soft or hard.
    """

    # Bankroll handed to a fresh session
    starting_bankroll: int = DEFAULT_BANKROLL

    # Dealer policy
    dealer_stands_on: int = 17

    # Double down
    allow_double: bool = True
    double_on_first_two_only: bool = True

    def __post_init__(self) -> None:
        """Validate rule values."""
        if self.starting_bankroll < 0:
            raise ValueError("starting_bankroll cannot be negative")
        if not 2 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 2 and 21")
