import chess
from enum import Enum
from typing import Optional, List, Dict
from dataclasses import dataclass

from .moves import MoveRequest, describe_move


class GameState(Enum):
    """Enumeration of possible game states."""
    AWAITING_HUMAN_MOVE = "awaiting_human_move"
    AWAITING_ENGINE_MOVE = "awaiting_engine_move"
    GAME_OVER = "game_over"


class Termination(Enum):
    """Reason a game ended."""
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    THREEFOLD_REPETITION = "threefold_repetition"
    FIFTY_MOVES = "fifty_moves"
    RESIGNED = "resigned"
    TIMEOUT = "timeout"


def color_name(color: chess.Color) -> str:
    return "White" if color == chess.WHITE else "Black"


@dataclass
class Outcome:
    """How a finished game ended."""
    termination: Termination
    winner: Optional[chess.Color]
    message: str

    @property
    def result(self) -> str:
        if self.winner is None:
            return "1/2-1/2"
        return "1-0" if self.winner == chess.WHITE else "0-1"


class GameManager:
    """
    Manages a chess game between a human and an engine.

    The board itself is delegated to python-chess; this class only tracks
    whose turn it is in session terms and how the game ended.
    """

    def __init__(self, player_white=None, player_black=None):
        """
        Initialize a new game.

        Args:
            player_white: White player instance
            player_black: Black player instance
        """
        self.board = chess.Board()
        self.player_white = player_white
        self.player_black = player_black
        self.human_color: chess.Color = chess.WHITE
        if player_black is not None and getattr(player_black, 'is_human', False):
            self.human_color = chess.BLACK
        self.state = GameState.AWAITING_HUMAN_MOVE
        self.move_history: List[chess.Move] = []
        self.outcome: Optional[Outcome] = None

    def start_game(self):
        """Start the game from the current position."""
        self.outcome = None
        self.state = self._turn_state()

    def reset(self):
        """Return to the starting position and clear the history."""
        self.board.reset()
        self.move_history = []
        self.start_game()

    def _turn_state(self) -> GameState:
        if self.board.turn == self.human_color:
            return GameState.AWAITING_HUMAN_MOVE
        return GameState.AWAITING_ENGINE_MOVE

    def is_human_turn(self) -> bool:
        return self.state == GameState.AWAITING_HUMAN_MOVE

    def is_engine_turn(self) -> bool:
        return self.state == GameState.AWAITING_ENGINE_MOVE

    def is_game_over(self) -> bool:
        """Check if the game is over."""
        return self.state == GameState.GAME_OVER

    def apply_human_move(self, request: MoveRequest) -> Optional[Dict]:
        """
        Play a move for the human side.

        Args:
            request: The requested move

        Returns:
            Move payload if accepted, None if it is not the human's turn or the move is illegal
        """
        return self._apply(request, GameState.AWAITING_HUMAN_MOVE)

    def apply_engine_move(self, request: MoveRequest) -> Optional[Dict]:
        """
        Play a move for the engine side.

        Args:
            request: The decoded engine move

        Returns:
            Move payload if accepted, None otherwise
        """
        return self._apply(request, GameState.AWAITING_ENGINE_MOVE)

    def _apply(self, request: MoveRequest, expected: GameState) -> Optional[Dict]:
        if self.state != expected:
            return None

        move = request.to_move()
        if move not in self.board.legal_moves:
            return None

        result = describe_move(self.board, move)
        self.board.push(move)
        self.move_history.append(move)

        self._update_game_state()
        return result

    def make_move_uci(self, uci_move: str) -> bool:
        """
        Make a move for whichever side is to move, using UCI notation.

        Args:
            uci_move: Move in UCI format (e.g., "e2e4")

        Returns:
            True if move was successful, False otherwise
        """
        if self.is_game_over():
            return False
        try:
            request = MoveRequest.from_uci(uci_move)
        except ValueError:
            return False
        return self._apply(request, self.state) is not None

    def _update_game_state(self):
        """Update the game state based on the current position."""
        if self.board.is_checkmate():
            winner = not self.board.turn
            self._finish(Termination.CHECKMATE, winner, f"Checkmate! {color_name(winner)} wins the game")
        elif self.board.is_stalemate():
            self._finish(Termination.STALEMATE, None, "Draw! The game is a draw")
        elif self.board.is_insufficient_material():
            self._finish(Termination.INSUFFICIENT_MATERIAL, None, "Draw! The game is a draw")
        elif self.board.can_claim_threefold_repetition():
            self._finish(Termination.THREEFOLD_REPETITION, None, "Draw! The game is a draw")
        elif self.board.can_claim_fifty_moves():
            self._finish(Termination.FIFTY_MOVES, None, "Draw! The game is a draw")
        else:
            self.state = self._turn_state()

    def _finish(self, termination: Termination, winner: Optional[chess.Color], message: str):
        self.state = GameState.GAME_OVER
        self.outcome = Outcome(termination, winner, message)

    def resign(self, color: chess.Color) -> Outcome:
        """
        Resign the game.

        Args:
            color: Color of the player resigning

        Returns:
            The resulting outcome
        """
        if color == self.human_color:
            message = "You resigned. The AI wins."
        else:
            message = "The AI resigned. You win."
        self._finish(Termination.RESIGNED, not color, message)
        return self.outcome

    def flag(self, color: chess.Color) -> Outcome:
        """
        End the game because a side ran out of time.

        Args:
            color: Color whose clock reached zero

        Returns:
            The resulting outcome, naming the other side as winner
        """
        winner = not color
        self._finish(Termination.TIMEOUT, winner, f"Time is up! {color_name(winner)} wins by timeout")
        return self.outcome

    def get_fen(self) -> str:
        """Get the current FEN string."""
        return self.board.fen()

    def get_move_history(self) -> List[Dict]:
        """
        Get the move history with details.

        Returns:
            List of move dictionaries
        """
        history = []
        board = self.board.root()

        for i, move in enumerate(self.move_history):
            move_dict = {
                'number': (i // 2) + 1,
                'color': 'white' if i % 2 == 0 else 'black',
                'uci': move.uci(),
                'san': board.san(move)
            }
            history.append(move_dict)
            board.push(move)

        return history
