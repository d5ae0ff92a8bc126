"""
Session Coordinator.

Owns the authoritative game of every connected player: validates moves through
python-chess, runs the per-session countdown, and relays the remote engine's
replies. Independent of the transport; each session carries its own ``send``.
"""

import asyncio
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from ..engine.client import EngineExhausted
from ..game.moves import MoveRequest
from .session import Send, Session, SessionRegistry


ENGINE_UNAVAILABLE_MESSAGE = "The engine is unavailable. Send retryEngine to ask again."


class SessionCoordinator:
    """
    Event handlers for the game channel.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        tick_seconds: float = 1.0,
        notify_on_failure: bool = True
    ):
        """
        Args:
            registry: Session store
            tick_seconds: Interval between clock ticks
            notify_on_failure: Tell the player when the engine gave no move
        """
        self.registry = registry
        self.tick_seconds = tick_seconds
        self.notify_on_failure = notify_on_failure

    async def on_connect(self, send: Send, depth: int) -> Session:
        """
        Create a session for a new connection and tell the player its side.

        Args:
            send: Event sender for the connection
            depth: Requested engine search depth

        Returns:
            The new session
        """
        session = self.registry.create(send, depth)
        await session.send("playerRole", 'w')
        await session.send("boardState", session.game.get_fen())
        await session.send("updatetimer", session.clock.snapshot())
        return session

    async def on_move_request(self, session: Session, payload: Any) -> bool:
        """
        Handle a move sent by the human.

        Args:
            session: Originating session
            payload: Raw move payload ({"from", "to", "promotion"})

        Returns:
            True if the move was accepted
        """
        try:
            request = MoveRequest.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Session {session.session_id}: malformed move {payload!r}: {e.error_count()} errors")
            await session.send("invalidMove", payload)
            return False

        if not session.game.is_human_turn():
            logger.info(f"Session {session.session_id}: move {request.uci()} refused, not the player's turn")
            await session.send("invalidMove", payload)
            return False

        result = session.game.apply_human_move(request)
        if result is None:
            logger.info(f"Session {session.session_id}: illegal move {request.uci()}")
            await session.send("invalidMove", payload)
            return False

        logger.info(f"Session {session.session_id}: player move {result['san']}")
        self.start_clock(session)
        if await self._announce_move(session, result):
            return True

        self.request_engine_move(session)
        return True

    async def _announce_move(self, session: Session, result: Dict) -> bool:
        """Push the move and position; announce the outcome if the game ended. Returns True if it did."""
        await session.send("move", result)
        await session.send("boardState", session.game.get_fen())

        if session.game.is_game_over():
            session.stop_clock()
            self._log_game_end(session)
            await session.send("gameover", session.game.outcome.message)
            return True
        return False

    def _log_game_end(self, session: Session):
        outcome = session.game.outcome
        moves = " ".join(entry["san"] for entry in session.game.get_move_history())
        logger.info(f"Session {session.session_id}: {outcome.message} ({outcome.result}) after "
                    f"{len(session.game.move_history)} plies: {moves or '-'}")
        logger.debug(f"Session {session.session_id}: engine averaged {session.engine.get_average_time():.2f}s per move")

    def request_engine_move(self, session: Session) -> Optional[asyncio.Task]:
        """Schedule the engine request in the background."""
        if not session.game.is_engine_turn():
            return None
        if session.engine_task is not None and not session.engine_task.done():
            return session.engine_task
        session.engine_task = asyncio.create_task(self.play_engine_move(session))
        return session.engine_task

    async def play_engine_move(self, session: Session):
        """Ask the engine for a move and apply it like a human move."""
        generation = session.generation
        outcome = await session.engine.get_move(session.game.board.copy())

        if session.closed or generation != session.generation or not session.game.is_engine_turn():
            logger.info(f"Session {session.session_id}: discarding stale engine reply {outcome}")
            return

        if isinstance(outcome, EngineExhausted):
            logger.error(f"Session {session.session_id}: engine gave up after {outcome.attempts} attempts "
                         f"({outcome.last_error})")
            if self.notify_on_failure:
                await session.send("engineUnavailable", ENGINE_UNAVAILABLE_MESSAGE)
            return

        try:
            request = MoveRequest.from_uci(outcome.uci)
        except (ValueError, ValidationError):
            logger.error(f"Session {session.session_id}: engine sent malformed move {outcome.uci!r}")
            return

        result = session.game.apply_engine_move(request)
        if result is None:
            logger.error(f"Session {session.session_id}: engine made an illegal move {outcome.uci}")
            return

        logger.info(f"Session {session.session_id}: engine move {result['san']}")
        self.start_clock(session)
        await self._announce_move(session, result)

    async def on_retry_engine(self, session: Session):
        """Ask the engine again after it gave no move."""
        if self.request_engine_move(session) is None:
            logger.info(f"Session {session.session_id}: retryEngine ignored, engine not to move")

    async def on_resign(self, session: Session):
        """The human resigned; the engine wins whatever the position."""
        session.stop_clock()
        outcome = session.game.resign(session.game.human_color)
        self._log_game_end(session)
        await session.send("gameover", outcome.message)

    async def on_reset(self, session: Session):
        """Start over from the initial position with full clocks."""
        self.registry.reset(session)
        logger.info(f"Session {session.session_id}: game reset")
        await session.send("resetBoard", None)
        await session.send("boardState", session.game.get_fen())
        await session.send("updatetimer", session.clock.snapshot())

    async def on_disconnect(self, session: Session):
        """Release the session; an in-flight engine reply is dropped when it lands."""
        self.registry.destroy(session)

    def start_clock(self, session: Session):
        """(Re)start the countdown for the side now to move."""
        session.stop_clock()
        session.timer_task = asyncio.create_task(self._run_clock(session))

    async def _run_clock(self, session: Session):
        while True:
            await asyncio.sleep(self.tick_seconds)
            if not await self.tick(session):
                return

    async def tick(self, session: Session) -> bool:
        """
        Take one second from the side to move and broadcast both clocks.

        Args:
            session: Session whose clock ticks

        Returns:
            False once the clock must stop (time ran out or game over)
        """
        if session.game.is_game_over():
            return False

        flagged = session.clock.tick(session.game.board.turn)
        await session.send("updatetimer", session.clock.snapshot())

        if flagged is not None:
            outcome = session.game.flag(flagged)
            self._log_game_end(session)
            session.timer_task = None
            await session.send("gameover", outcome.message)
            return False
        return True

    async def dispatch(self, session: Session, event: str, data: Any = None):
        """
        Route an incoming client event to its handler.

        Args:
            session: Originating session
            event: Event name
            data: Event payload
        """
        if event == "move":
            await self.on_move_request(session, data)
        elif event == "resignGame":
            await self.on_resign(session)
        elif event == "resetGame":
            await self.on_reset(session)
        elif event == "retryEngine":
            await self.on_retry_engine(session)
        else:
            logger.warning(f"Session {session.session_id}: unknown event {event!r}")
