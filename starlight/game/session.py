"""Session record shared between the round engine and its presentation."""

from dataclasses import dataclass, field

from starlight.cards import Card
from starlight.hand import Hand, Outcome
from starlight.game.state import Action, Phase
from starlight.rules import DEFAULT_BANKROLL

WELCOME_MESSAGE = 'Welcome! Place your bet and click "Deal" to start.'


@dataclass
class Session:
    """
    Mutable state of one player's blackjack session.

    Created once with a starting bankroll and reset field by field between
    rounds. Bankroll and the win/loss/push counters survive every reset.
    """

    bankroll: int = DEFAULT_BANKROLL
    current_bet: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    player_score: int = 0
    dealer_score: int = 0
    phase: Phase = Phase.BETTING
    message: str = WELCOME_MESSAGE
    last_outcome: Outcome | None = None
    hole_card_hidden: bool = False

    def __post_init__(self) -> None:
        if self.bankroll < 0:
            raise ValueError("bankroll cannot be negative")
        if self.current_bet < 0:
            raise ValueError("current_bet cannot be negative")

    @property
    def rounds_decided(self) -> int:
        """Rounds that ended in a win or a loss."""
        return self.wins + self.losses

    def clear_round(self) -> None:
        """Drop the round-scoped fields, keeping bankroll and counters."""
        self.player_hand.clear()
        self.dealer_hand.clear()
        self.player_score = 0
        self.dealer_score = 0
        self.current_bet = 0
        self.hole_card_hidden = False


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of a session for rendering."""

    bankroll: int
    current_bet: int
    wins: int
    losses: int
    pushes: int
    player_cards: tuple[Card, ...]
    dealer_cards: tuple[Card, ...]
    player_score: int
    dealer_score: int
    phase: Phase
    message: str
    last_outcome: Outcome | None
    hole_card_hidden: bool
    available_actions: tuple[Action, ...] = ()

    @classmethod
    def from_session(
        cls,
        session: Session,
        available_actions: tuple[Action, ...] = (),
    ) -> "SessionSnapshot":
        return cls(
            bankroll=session.bankroll,
            current_bet=session.current_bet,
            wins=session.wins,
            losses=session.losses,
            pushes=session.pushes,
            player_cards=tuple(session.player_hand.cards),
            dealer_cards=tuple(session.dealer_hand.cards),
            player_score=session.player_score,
            dealer_score=session.dealer_score,
            phase=session.phase,
            message=session.message,
            last_outcome=session.last_outcome,
            hole_card_hidden=session.hole_card_hidden,
            available_actions=available_actions,
        )

    def can(self, action: Action) -> bool:
        return action in self.available_actions
