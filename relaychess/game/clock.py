import chess
from typing import Optional, Dict


DEFAULT_INITIAL_SECONDS = 600


class ChessClock:
    """
    Per-side countdown clock.

    Only the side to move loses time; the clock never goes below zero.
    """

    def __init__(self, initial_seconds: int = DEFAULT_INITIAL_SECONDS):
        """
        Initialize the clock.

        Args:
            initial_seconds: Starting time for each side in seconds
        """
        if initial_seconds <= 0:
            raise ValueError(f"initial_seconds must be positive, got {initial_seconds}")
        self.initial_seconds = initial_seconds
        self.white_time = initial_seconds
        self.black_time = initial_seconds

    def reset(self):
        """Restore both sides to the starting time."""
        self.white_time = self.initial_seconds
        self.black_time = self.initial_seconds

    def remaining(self, color: chess.Color) -> int:
        return self.white_time if color == chess.WHITE else self.black_time

    def tick(self, color: chess.Color) -> Optional[chess.Color]:
        """
        Take one second from the given side.

        Args:
            color: Side currently to move

        Returns:
            The color whose time ran out on this tick, or None
        """
        if color == chess.WHITE:
            self.white_time = max(0, self.white_time - 1)
        else:
            self.black_time = max(0, self.black_time - 1)

        if self.remaining(color) == 0:
            return color
        return None

    def snapshot(self) -> Dict[str, int]:
        return {'white_time': self.white_time, 'black_time': self.black_time}
