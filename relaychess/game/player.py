import chess
import time

from ..engine.client import StockfishClient, EngineOutcome, clamp_depth


class Player:
    """Base class for a chess player."""

    is_human = False

    def __init__(self, name: str, color: chess.Color):
        """
        Initialize a player.

        Args:
            name: Player name
            color: Player color (chess.WHITE or chess.BLACK)
        """
        self.name = name
        self.color = color
        self.time_taken = []

    def get_average_time(self) -> float:
        """Get average time per move."""
        if not self.time_taken:
            return 0.0
        return sum(self.time_taken) / len(self.time_taken)


class HumanPlayer(Player):
    """
    Human player whose moves arrive over the event channel.
    """

    is_human = True

    def __init__(self, name: str = "You", color: chess.Color = chess.WHITE):
        super().__init__(name, color)


class EnginePlayer(Player):
    """
    Player backed by the remote engine API.
    """

    def __init__(
        self,
        client: StockfishClient,
        depth: int,
        name: str = "Stockfish",
        color: chess.Color = chess.BLACK
    ):
        """
        Initialize engine player.

        Args:
            client: Engine API client
            depth: Search depth requested for every move
            name: Player name
            color: Player color
        """
        super().__init__(name, color)
        self.client = client
        self.depth = clamp_depth(depth)

    async def get_move(self, board: chess.Board) -> EngineOutcome:
        """
        Ask the engine for a move in the given position.

        Args:
            board: Current board state

        Returns:
            EngineMove or EngineExhausted
        """
        start_time = time.time()

        outcome = await self.client.best_move(board.fen(), self.depth)

        elapsed = time.time() - start_time
        self.time_taken.append(elapsed)

        return outcome
