"""
Client for the remote stockfish.online move API.

The API is queried with a FEN and a search depth and answers with JSON such as
``{"success": true, "bestmove": "bestmove e7e5 ponder g1f3", ...}``.
Every failure mode (transport error, HTTP error, ``success: false``, a body
without a move) counts as one attempt; the caller gets a typed outcome.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional, Union

import chess
import requests
from loguru import logger


STOCKFISH_ONLINE_URL = "https://stockfish.online/api/s/v2.php"
MIN_DEPTH = 1
MAX_DEPTH = 15


class EngineError(Exception):
    """A single failed attempt to get a move from the engine API."""


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff."""
    max_attempts: int = 3
    backoff_seconds: float = 0.5
    backoff_factor: float = 2.0

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.backoff_seconds * (self.backoff_factor ** (attempt - 1))


@dataclass(frozen=True)
class EngineMove:
    """The engine suggested a move."""
    uci: str


@dataclass(frozen=True)
class EngineExhausted:
    """Every attempt failed."""
    attempts: int
    last_error: str


EngineOutcome = Union[EngineMove, EngineExhausted]


def clamp_depth(depth: int, min_depth: int = MIN_DEPTH, max_depth: int = MAX_DEPTH) -> int:
    return max(min_depth, min(int(depth), max_depth))


def parse_best_move(payload) -> str:
    """
    Extract the move from an API response body.

    Args:
        payload: Decoded JSON body

    Returns:
        Move in UCI notation

    Raises:
        EngineError: If the body does not carry a usable move
    """
    if not isinstance(payload, dict):
        raise EngineError(f"Unexpected response body: {payload!r}")
    if not payload.get("success"):
        raise EngineError(f"API did not return a successful response: {payload.get('data', payload)}")

    parts = str(payload.get("bestmove", "")).split()
    if len(parts) < 2 or parts[1] == "(none)":
        raise EngineError(f"No move in response: {payload.get('bestmove')!r}")

    move = parts[1]
    try:
        chess.Move.from_uci(move)
    except ValueError as e:
        raise EngineError(f"Malformed move {move!r}: {e}")
    return move


class StockfishClient:
    """
    Fetches best moves from the remote engine.
    """

    def __init__(
        self,
        url: str = STOCKFISH_ONLINE_URL,
        timeout: float = 10.0,
        retry: Optional[RetryPolicy] = None,
        session: Optional[requests.Session] = None,
        sleep=time.sleep
    ):
        """
        Initialize the client.

        Args:
            url: Endpoint of the move API
            timeout: Per-request timeout in seconds
            retry: Retry policy, defaults to three attempts
            session: HTTP session to use (one is created if omitted)
            sleep: Function used to wait between attempts
        """
        self.url = url
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.session = session or requests.Session()
        self.sleep = sleep

    def _request(self, fen: str, depth: int) -> str:
        try:
            resp = self.session.get(self.url, params={"fen": fen, "depth": depth}, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise EngineError(f"Request failed: {e}")
        except ValueError as e:
            raise EngineError(f"Invalid JSON in response: {e}")
        return parse_best_move(payload)

    def best_move_sync(self, fen: str, depth: int) -> EngineOutcome:
        """
        Ask the engine for a move, retrying on failure.

        Args:
            fen: Position to search
            depth: Requested search depth (clamped to the API range)

        Returns:
            EngineMove on success, EngineExhausted once all attempts failed
        """
        depth = clamp_depth(depth)
        last_error = ""

        for attempt in range(1, self.retry.max_attempts + 1):
            try:
                move = self._request(fen, depth)
                logger.debug(f"Engine suggested {move} at depth {depth} (attempt {attempt})")
                return EngineMove(move)
            except EngineError as e:
                last_error = str(e)
                logger.warning(f"Engine attempt {attempt}/{self.retry.max_attempts} failed: {e}")

            if attempt < self.retry.max_attempts:
                self.sleep(self.retry.delay(attempt))

        logger.error(f"Engine gave no move after {self.retry.max_attempts} attempts")
        return EngineExhausted(self.retry.max_attempts, last_error)

    async def best_move(self, fen: str, depth: int) -> EngineOutcome:
        """Non-blocking variant of best_move_sync, run in a worker thread."""
        return await asyncio.to_thread(self.best_move_sync, fen, depth)
