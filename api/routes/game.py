"""Game API endpoints."""

import logging
import time
from typing import Annotated, Any, Callable

from fastapi import APIRouter, HTTPException, Header

from api.schemas import (
    ActionRequest,
    BetRequest,
    CardResponse,
    GameConfigResponse,
    HandResponse,
    NewSessionResponse,
    SessionResponse,
)
from api.session import create_session, extract_session_id, get_session_store
from config import config
from starlight.cards import Card, Rank, Suit
from starlight.game import Phase, RoundEngine, Session
from starlight.hand import Hand, Outcome
from starlight.rules import GameRules

logger = logging.getLogger(__name__)

router = APIRouter()

# Live engines keyed by session token, backed by the session store
_games: dict[str, RoundEngine] = {}
_last_seen: dict[str, float] = {}

# Session data keys
SESSION_KEY_GAME = "game"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def table_rules() -> GameRules:
    """Build engine rules from the application config."""
    return GameRules(
        starting_bankroll=config.game.starting_bankroll,
        dealer_stands_on=config.game.dealer_stands_on,
        allow_double=config.game.allow_double,
    )


def _serialize_card(card: Card) -> dict[str, str]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def _deserialize_card(data: dict[str, str]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def _serialize_hand(hand: Hand) -> list[dict[str, str]]:
    return [_serialize_card(c) for c in hand.cards]


def _deserialize_hand(data: list[dict[str, str]]) -> Hand:
    return Hand(cards=[_deserialize_card(c) for c in data])


def _serialize_game(engine: RoundEngine) -> dict[str, Any]:
    """Serialize engine state for session storage."""
    s = engine.session
    return {
        "phase": s.phase.name,
        "bankroll": s.bankroll,
        "current_bet": s.current_bet,
        "wins": s.wins,
        "losses": s.losses,
        "pushes": s.pushes,
        "player_hand": _serialize_hand(s.player_hand),
        "dealer_hand": _serialize_hand(s.dealer_hand),
        "player_score": s.player_score,
        "dealer_score": s.dealer_score,
        "message": s.message,
        "last_outcome": s.last_outcome.name if s.last_outcome else None,
        "hole_card_hidden": s.hole_card_hidden,
        "rules": {
            "starting_bankroll": engine.rules.starting_bankroll,
            "dealer_stands_on": engine.rules.dealer_stands_on,
            "allow_double": engine.rules.allow_double,
            "double_on_first_two_only": engine.rules.double_on_first_two_only,
        },
    }


def _deserialize_game(data: dict[str, Any]) -> RoundEngine:
    """Restore an engine from session data."""
    session = Session(
        bankroll=data["bankroll"],
        current_bet=data["current_bet"],
        wins=data["wins"],
        losses=data["losses"],
        pushes=data["pushes"],
        player_hand=_deserialize_hand(data["player_hand"]),
        dealer_hand=_deserialize_hand(data["dealer_hand"]),
        player_score=data["player_score"],
        dealer_score=data["dealer_score"],
        phase=Phase[data["phase"]],
        message=data["message"],
        last_outcome=Outcome[data["last_outcome"]] if data["last_outcome"] else None,
        hole_card_hidden=data["hole_card_hidden"],
    )
    return RoundEngine(session=session, rules=GameRules(**data["rules"]))


async def _save_game(session_id: str, engine: RoundEngine) -> None:
    """Save engine to session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_GAME] = _serialize_game(engine)
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await store.set(session_id, session_data)


def _require_valid(session_id: str) -> None:
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid session token")


def _cache(session_id: str, engine: RoundEngine) -> RoundEngine:
    _games[session_id] = engine
    _last_seen[session_id] = time.monotonic()
    return engine


def _evict_idle() -> None:
    """Drop cached engines idle for longer than the session TTL."""
    cutoff = time.monotonic() - config.session_ttl
    for session_id in [sid for sid in _games if _last_seen.get(sid, cutoff + 1) <= cutoff]:
        del _games[session_id]
        _last_seen.pop(session_id, None)


async def get_engine(session_id: str) -> RoundEngine:
    """
    Get the engine for a session, or a fresh table if it has expired.

    The store decides whether a table is still alive; the cache only saves
    rebuilding a live engine.
    """
    _evict_idle()
    store = await get_session_store()
    session_data = await store.get(session_id)

    if not session_data or SESSION_KEY_GAME not in session_data:
        if _games.pop(session_id, None) is not None:
            logger.info("Table for session %s expired, dealing a fresh one", session_id)
        _last_seen.pop(session_id, None)
        engine = _cache(session_id, RoundEngine(rules=table_rules()))
        await _save_game(session_id, engine)
        return engine

    engine = _games.get(session_id)
    if engine is None:
        engine = _deserialize_game(session_data[SESSION_KEY_GAME])
    return _cache(session_id, engine)


def _card_response(card: Card) -> CardResponse:
    return CardResponse(
        rank=str(card.rank),
        suit=str(card.suit),
        value=card.value,
        color=card.color,
    )


HIDDEN_CARD = CardResponse(rank="?", suit="?", value=0, hidden=True)


def session_response(engine: RoundEngine) -> SessionResponse:
    """Render the engine's session for the client."""
    snap = engine.get_session()

    dealer_cards = [_card_response(c) for c in snap.dealer_cards]
    if snap.hole_card_hidden and dealer_cards:
        dealer_cards[0] = HIDDEN_CARD

    return SessionResponse(
        phase=snap.phase.name,
        bankroll=snap.bankroll,
        current_bet=snap.current_bet,
        wins=snap.wins,
        losses=snap.losses,
        pushes=snap.pushes,
        player_hand=HandResponse(
            cards=[_card_response(c) for c in snap.player_cards],
            score=snap.player_score,
        ),
        dealer_hand=HandResponse(
            cards=dealer_cards,
            score=None if snap.hole_card_hidden else snap.dealer_score,
        ),
        message=snap.message,
        last_outcome=str(snap.last_outcome) if snap.last_outcome else None,
        available_actions=[a.value for a in snap.available_actions],
        chip_values=list(config.game.chip_values),
    )


async def _perform(
    session_id: str,
    operation: Callable[[RoundEngine], bool],
) -> SessionResponse:
    """Run an engine operation and persist the result."""
    _require_valid(session_id)
    engine = await get_engine(session_id)

    if not operation(engine):
        rejection = engine.last_rejection
        detail = rejection.data.get("message", "Action rejected") if rejection else "Action rejected"
        raise HTTPException(status_code=400, detail=detail)

    await _save_game(session_id, engine)
    return session_response(engine)


@router.post("/new")
async def new_session(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewSessionResponse:
    """Create a new game session with a fresh bankroll."""
    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()

    engine = _cache(session_id, RoundEngine(rules=table_rules()))
    await _save_game(session_id, engine)

    return NewSessionResponse(session_id=session_id)


@router.get("/config")
async def get_config() -> GameConfigResponse:
    """Table settings."""
    return GameConfigResponse(
        starting_bankroll=config.game.starting_bankroll,
        dealer_stands_on=config.game.dealer_stands_on,
        allow_double=config.game.allow_double,
        chip_values=list(config.game.chip_values),
    )


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SessionResponse:
    """Get current session state."""
    _require_valid(session_id)
    engine = await get_engine(session_id)
    return session_response(engine)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SessionResponse:
    """Add chips to the current bet."""
    return await _perform(session_id, lambda engine: engine.place_bet(request.amount))


@router.post("/deal")
async def deal(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SessionResponse:
    """Deal the opening cards."""
    return await _perform(session_id, RoundEngine.deal)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SessionResponse:
    """Execute a player action."""
    actions: dict[str, Callable[[RoundEngine], bool]] = {
        "hit": RoundEngine.hit,
        "stand": RoundEngine.stand,
        "double": RoundEngine.double,
    }
    return await _perform(session_id, actions[request.action])


@router.post("/new-round")
async def new_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SessionResponse:
    """Clear the table and go back to betting."""
    return await _perform(session_id, RoundEngine.new_game)
