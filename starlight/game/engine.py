"""Blackjack round engine with state machine."""

import logging
from typing import Any

from transitions import Machine

from starlight.cards import Card, CardSource, RandomCardSource
from starlight.hand import BLACKJACK, Hand, Outcome, compare, score
from starlight.rules import GameRules
from starlight.game.events import EventEmitter, EventHandler, EventType, GameEvent
from starlight.game.session import WELCOME_MESSAGE, Session, SessionSnapshot
from starlight.game.state import Action, Phase, is_valid_transition

logger = logging.getLogger(__name__)


class RoundEngine:
    """
    Single-player blackjack round engine.

    Owns one Session and drives it through
    BETTING → PLAYER_TURN → DEALER_TURN → ROUND_OVER → BETTING.
    Invalid actions never raise: they leave the session untouched apart
    from an advisory message, emit a rejection event and return False.
    """

    # State machine states
    STATES = [p.name.lower() for p in Phase]

    # Triggers and the phase each one enters; the legal sources come from
    # VALID_TRANSITIONS
    TRIGGERS = {
        "start_round": Phase.PLAYER_TURN,
        "player_done": Phase.DEALER_TURN,
        "settle": Phase.ROUND_OVER,
        "reset_round": Phase.BETTING,
    }

    TRANSITIONS = [
        {
            "trigger": trigger,
            "source": [p.name.lower() for p in Phase if is_valid_transition(p, dest)],
            "dest": dest.name.lower(),
        }
        for trigger, dest in TRIGGERS.items()
    ]

    def __init__(
        self,
        session: Session | None = None,
        card_source: CardSource | None = None,
        rules: GameRules | None = None,
    ) -> None:
        """
        Initialize a round engine.

        Args:
            session: Existing session to resume (a fresh one if not provided)
            card_source: Where cards come from (random with replacement by default)
            rules: Table rules (uses defaults if not provided)
        """
        self.rules = rules or GameRules()
        self.session = session or Session(bankroll=self.rules.starting_bankroll)
        self.cards = card_source or RandomCardSource()
        self.events = EventEmitter()
        self.last_rejection: GameEvent | None = None

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=self.session.phase.name.lower(),
            auto_transitions=False,
            after_state_change="_sync_phase",
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> Phase:
        """Get current phase as enum."""
        return Phase[self._machine_state.upper()]  # type: ignore[attr-defined]

    def _sync_phase(self) -> None:
        self.session.phase = self.phase

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        self.events.unsubscribe(handler, event_type)

    def get_session(self) -> SessionSnapshot:
        """Return a read-only snapshot of the session for rendering."""
        return SessionSnapshot.from_session(self.session, self.available_actions())

    # Betting

    def place_bet(self, amount: int) -> bool:
        """
        Move chips from the bankroll onto the table.

        Bets accumulate until the cards are dealt.

        Args:
            amount: Chips to add to the current bet

        Returns:
            True if the bet was accepted
        """
        s = self.session
        if self.phase != Phase.BETTING:
            return self._reject(
                EventType.INVALID_BET,
                "Bets are only accepted before the deal.",
                amount=amount,
                phase=self.phase.name,
            )
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return self._reject(
                EventType.INVALID_BET,
                "Bet must be a positive amount.",
                amount=amount,
            )
        if amount > s.bankroll:
            return self._reject(
                EventType.INVALID_BET,
                f"Not enough chips to bet ${amount}.",
                amount=amount,
                available=s.bankroll,
            )

        s.bankroll -= amount
        s.current_bet += amount
        s.message = f"Bet placed: ${amount}. Click Deal to start!"
        self.events.emit_new(
            EventType.BET_PLACED,
            amount=amount,
            current_bet=s.current_bet,
            bankroll=s.bankroll,
        )
        return self._changed()

    # Round flow

    def deal(self) -> bool:
        """Deal two cards to the player and two to the dealer."""
        s = self.session
        if self.phase != Phase.BETTING:
            return self._reject(
                EventType.OUT_OF_PHASE_ACTION,
                "A round is already in progress.",
                action=Action.DEAL.value,
                phase=self.phase.name,
            )
        if s.current_bet == 0:
            return self._reject(
                EventType.PREMATURE_DEAL,
                "Please place a bet first!",
            )

        s.player_hand.clear()
        s.dealer_hand.clear()
        s.last_outcome = None

        self._deal_card(s.player_hand)
        self._deal_card(s.player_hand)
        self._deal_card(s.dealer_hand, face_up=False)
        self._deal_card(s.dealer_hand)

        s.hole_card_hidden = True
        s.player_score = s.player_hand.value
        s.dealer_score = self._visible_dealer_score()

        self.start_round()
        s.message = f"Game started! Your score: {s.player_score}. Hit or Stand?"
        self.events.emit_new(
            EventType.ROUND_STARTED,
            bet=s.current_bet,
            player_score=s.player_score,
            dealer_showing=s.dealer_score,
        )
        logger.info(
            "Round dealt: bet=%d player=%s dealer_up=%s",
            s.current_bet,
            s.player_hand,
            s.dealer_hand.cards[1],
        )
        return self._changed()

    def hit(self) -> bool:
        """Player takes another card. Busting ends the round as a loss."""
        s = self.session
        if self.phase != Phase.PLAYER_TURN:
            return self._out_of_phase(Action.HIT)

        self._deal_card(s.player_hand)
        s.player_score = s.player_hand.value
        self.events.emit_new(EventType.PLAYER_HIT, player_score=s.player_score)

        if s.player_score > BLACKJACK:
            self.events.emit_new(EventType.PLAYER_BUSTS, player_score=s.player_score)
            self._resolve(Outcome.LOSS)
        else:
            s.message = f"Score: {s.player_score}. Hit again or Stand?"
        return self._changed()

    def stand(self, play_out: bool = True) -> bool:
        """
        Player keeps the current hand and the dealer plays.

        Args:
            play_out: Run the dealer's draws to completion. When False the
                engine stays in DEALER_TURN and the caller advances it with
                ``dealer_draw_one_card``.
        """
        s = self.session
        if self.phase != Phase.PLAYER_TURN:
            return self._out_of_phase(Action.STAND)

        self.events.emit_new(EventType.PLAYER_STAND, player_score=s.player_score)
        self._start_dealer_turn(play_out)
        return self._changed()

    def double(self, play_out: bool = True) -> bool:
        """
        Double the stake, take exactly one card, then stand.

        Args:
            play_out: Same as for ``stand``
        """
        s = self.session
        if self.phase != Phase.PLAYER_TURN:
            return self._out_of_phase(Action.DOUBLE)
        if not self.can_double:
            return self._reject(
                EventType.INVALID_BET,
                "Cannot double now.",
                current_bet=s.current_bet,
                bankroll=s.bankroll,
            )

        stake = s.current_bet
        s.bankroll -= stake
        s.current_bet += stake
        self.events.emit_new(
            EventType.BET_DOUBLED,
            amount=stake,
            current_bet=s.current_bet,
            bankroll=s.bankroll,
        )

        self._deal_card(s.player_hand)
        s.player_score = s.player_hand.value
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            player_score=s.player_score,
            new_bet=s.current_bet,
        )

        if s.player_score > BLACKJACK:
            self.events.emit_new(EventType.PLAYER_BUSTS, player_score=s.player_score)
            self._resolve(Outcome.LOSS)
        else:
            self._start_dealer_turn(play_out)
        return self._changed()

    def dealer_draw_one_card(self) -> bool:
        """
        Draw a single dealer card during an incremental dealer turn.

        The round settles as soon as the dealer reaches the standing total.
        """
        if self.phase != Phase.DEALER_TURN:
            return self._reject(
                EventType.OUT_OF_PHASE_ACTION,
                "The dealer is not playing.",
                action="dealer_draw",
                phase=self.phase.name,
            )
        self._dealer_step()
        return self._changed()

    def new_game(self) -> bool:
        """
        Clear the table and return to betting.

        Allowed in any phase. A stake still on the table is forfeited.
        Bankroll and the win/loss/push counters are kept.
        """
        s = self.session
        forfeited = s.current_bet
        if forfeited:
            logger.info("Round abandoned, forfeiting bet of %d", forfeited)

        s.clear_round()
        s.last_outcome = None
        self.reset_round()
        s.message = WELCOME_MESSAGE
        self.events.emit_new(
            EventType.GAME_RESET,
            forfeited=forfeited,
            bankroll=s.bankroll,
        )
        return self._changed()

    # Availability

    @property
    def can_bet(self) -> bool:
        return self.phase == Phase.BETTING and self.session.bankroll > 0

    @property
    def can_deal(self) -> bool:
        return self.phase == Phase.BETTING and self.session.current_bet > 0

    @property
    def can_hit(self) -> bool:
        return self.phase == Phase.PLAYER_TURN

    @property
    def can_stand(self) -> bool:
        return self.phase == Phase.PLAYER_TURN

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed."""
        s = self.session
        if self.phase != Phase.PLAYER_TURN or not self.rules.allow_double:
            return False
        if self.rules.double_on_first_two_only and s.player_hand.num_cards != 2:
            return False
        return s.bankroll >= s.current_bet

    @property
    def can_new_game(self) -> bool:
        return self.phase == Phase.ROUND_OVER

    def available_actions(self) -> list[Action]:
        """Actions a presentation layer should offer in the current phase."""
        checks = [
            (Action.BET, self.can_bet),
            (Action.DEAL, self.can_deal),
            (Action.HIT, self.can_hit),
            (Action.STAND, self.can_stand),
            (Action.DOUBLE, self.can_double),
            (Action.NEW_GAME, self.can_new_game),
        ]
        return [action for action, allowed in checks if allowed]

    # Internals

    def _deal_card(self, hand: Hand, face_up: bool = True) -> Card:
        """Deal a card to a hand."""
        card = self.cards.draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=card.display if face_up else "??",
            hand="dealer" if hand is self.session.dealer_hand else "player",
        )
        return card

    def _visible_dealer_score(self) -> int:
        s = self.session
        if s.hole_card_hidden:
            return score(s.dealer_hand.cards[1:])
        return s.dealer_hand.value

    def _reveal_hole_card(self) -> None:
        s = self.session
        if not s.hole_card_hidden:
            return
        s.hole_card_hidden = False
        s.dealer_score = s.dealer_hand.value
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=s.dealer_hand.cards[0].display,
            dealer_score=s.dealer_score,
        )

    def _dealer_should_hit(self) -> bool:
        return self.session.dealer_score < self.rules.dealer_stands_on

    def _start_dealer_turn(self, play_out: bool) -> None:
        self.player_done()
        self._reveal_hole_card()

        if not self._dealer_should_hit():
            self._finish_dealer_turn()
        elif play_out:
            while self.phase == Phase.DEALER_TURN:
                self._dealer_step()
        else:
            self.session.message = "Dealer's turn."

    def _dealer_step(self) -> None:
        s = self.session
        self._deal_card(s.dealer_hand)
        s.dealer_score = s.dealer_hand.value
        self.events.emit_new(EventType.DEALER_HITS, dealer_score=s.dealer_score)

        if not self._dealer_should_hit():
            self._finish_dealer_turn()

    def _finish_dealer_turn(self) -> None:
        s = self.session
        if s.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, dealer_score=s.dealer_score)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, dealer_score=s.dealer_score)
        self._resolve(compare(s.player_hand, s.dealer_hand))

    def _resolve(self, outcome: Outcome) -> None:
        """Pay out the stake and end the round."""
        s = self.session
        stake = s.current_bet

        if outcome == Outcome.WIN:
            payout = stake * 2
            s.bankroll += payout
            s.wins += 1
            s.message = f"You win ${payout}!"
            self.events.emit_new(EventType.PLAYER_WINS, amount=payout)
        elif outcome == Outcome.LOSS:
            s.losses += 1
            if s.player_hand.is_busted:
                s.message = "Bust! You went over 21."
            else:
                s.message = "Dealer wins!"
            self.events.emit_new(EventType.PLAYER_LOSES, amount=stake)
        else:
            s.bankroll += stake
            s.pushes += 1
            s.message = "Push! Your bet is returned."
            self.events.emit_new(EventType.PUSH, amount=stake)

        s.current_bet = 0
        s.last_outcome = outcome
        self._reveal_hole_card()
        self.settle()

        self.events.emit_new(
            EventType.ROUND_ENDED,
            outcome=str(outcome),
            player_score=s.player_score,
            dealer_score=s.dealer_score,
            bankroll=s.bankroll,
        )
        logger.info(
            "Round resolved: %s player=%d dealer=%d bankroll=%d",
            outcome,
            s.player_score,
            s.dealer_score,
            s.bankroll,
        )

    def _out_of_phase(self, action: Action) -> bool:
        return self._reject(
            EventType.OUT_OF_PHASE_ACTION,
            f"Cannot {action} during {self.phase}.",
            action=action.value,
            phase=self.phase.name,
        )

    def _reject(self, event_type: EventType, message: str, **data: Any) -> bool:
        """
        Absorb an invalid action.

        Bet and deal problems are surfaced in the session message;
        out-of-phase actions are only reported through the event.
        """
        if event_type != EventType.OUT_OF_PHASE_ACTION:
            self.session.message = message
        logger.debug("%s: %s %s", event_type.name, message, data)
        self.last_rejection = self.events.emit_new(event_type, message=message, **data)
        return False

    def _changed(self) -> bool:
        self.last_rejection = None
        self.events.emit_new(
            EventType.STATE_CHANGED,
            phase=self.phase.name,
            bankroll=self.session.bankroll,
        )
        return True
