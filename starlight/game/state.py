"""Round phase enumeration."""

from enum import Enum, auto


class Phase(Enum):
    """
    Round state machine phases.

    Flow: BETTING → PLAYER_TURN → DEALER_TURN → ROUND_OVER → BETTING
    """

    # Waiting for chips and the deal
    BETTING = auto()

    # Player hits, stands or doubles
    PLAYER_TURN = auto()

    # Dealer reveals and draws to 17
    DEALER_TURN = auto()

    # Outcome settled, waiting for a new game
    ROUND_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


class Action(Enum):
    """User intents a presentation layer can forward to the engine."""

    BET = "bet"
    DEAL = "deal"
    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    NEW_GAME = "new_game"

    def __str__(self) -> str:
        return self.value


# Valid phase transitions. Every phase may also go back to BETTING
# when a round is abandoned.
VALID_TRANSITIONS: dict[Phase, list[Phase]] = {
    Phase.BETTING: [Phase.PLAYER_TURN, Phase.BETTING],
    Phase.PLAYER_TURN: [Phase.DEALER_TURN, Phase.ROUND_OVER, Phase.BETTING],
    Phase.DEALER_TURN: [Phase.ROUND_OVER, Phase.BETTING],
    Phase.ROUND_OVER: [Phase.BETTING],
}


def is_valid_transition(from_phase: Phase, to_phase: Phase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])
