import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional

from loguru import logger

from ..game.clock import ChessClock
from ..game.game_manager import GameManager
from ..game.player import EnginePlayer, HumanPlayer


Send = Callable[[str, Any], Awaitable[None]]


@dataclass
class Session:
    """
    Everything the server knows about one connected player.

    Attributes:
        session_id: Connection identifier
        send: Coroutine delivering an event to this player's socket
        game: Authoritative game state
        clock: Per-side countdown
        engine: Engine opponent, carrying the search depth
        timer_task: Running countdown task, if any
        engine_task: Pending engine request, if any
        generation: Bumped on every reset so stale engine replies can be spotted
        closed: Set once the player disconnected
    """
    session_id: str
    send: Send
    game: GameManager
    clock: ChessClock
    engine: EnginePlayer
    timer_task: Optional[asyncio.Task] = None
    engine_task: Optional[asyncio.Task] = None
    generation: int = 0
    closed: bool = False

    def stop_clock(self):
        """Cancel the countdown task if it is running."""
        if self.timer_task is not None and not self.timer_task.done():
            self.timer_task.cancel()
        self.timer_task = None


class SessionRegistry:
    """
    Sessions keyed by connection id, with create / reset / destroy lifecycle.
    """

    def __init__(self, engine_client, initial_seconds: int = 600):
        """
        Args:
            engine_client: Client shared by every engine player
            initial_seconds: Starting clock time per side
        """
        self.engine_client = engine_client
        self.initial_seconds = initial_seconds
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def create(self, send: Send, depth: int) -> Session:
        """
        Register a fresh session with the human playing white.

        Args:
            send: Event sender for the new connection
            depth: Engine search depth for this game

        Returns:
            The new session
        """
        human = HumanPlayer("You")
        engine = EnginePlayer(self.engine_client, depth)
        game = GameManager(human, engine)
        game.start_game()

        session = Session(
            session_id=uuid.uuid4().hex,
            send=send,
            game=game,
            clock=ChessClock(self.initial_seconds),
            engine=engine
        )
        self._sessions[session.session_id] = session
        logger.info(f"Session {session.session_id} created (depth {engine.depth})")
        return session

    def reset(self, session: Session):
        """Restore starting position and clocks, invalidating pending engine replies."""
        session.stop_clock()
        if session.engine_task is not None and not session.engine_task.done():
            session.engine_task.cancel()
        session.engine_task = None
        session.game.reset()
        session.clock.reset()
        session.generation += 1

    def destroy(self, session: Session):
        """Stop the clock and forget the session."""
        session.stop_clock()
        session.closed = True
        self._sessions.pop(session.session_id, None)
        logger.info(f"Session {session.session_id} destroyed")
