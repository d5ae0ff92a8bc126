"""
Board Interaction Surface.

Keeps an advisory copy of the board built from positions pushed by the server,
turns clicks, drags and typed moves into move requests, and tells a Presenter
what to show. Knows nothing about sockets or the DOM: outgoing events go
through a ``send(event, data)`` callable.
"""

import chess
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..game.moves import MoveRequest, PROMOTION_PIECES


class Cue(Enum):
    """Sound cues."""
    ILLEGAL = "illegal"
    PROMOTE = "promote"
    MOVE_SELF = "move-self"
    MOVE_OPPONENT = "move-opponent"
    CHECK = "move-check"
    CAPTURE = "capture"
    CASTLE = "castle"
    GAME_START = "game-start"
    GAME_END = "game-end"


def square_name(row: int, col: int) -> str:
    """Row 0 is rank 8, column 0 is file a."""
    if not (0 <= row < 8 and 0 <= col < 8):
        raise ValueError(f"Square out of range: row={row}, col={col}")
    return f"{chr(97 + col)}{8 - row}"


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def is_pawn_promotion(board: chess.Board, from_square: str, to_square: str) -> bool:
    """
    Check whether moving the piece on from_square to to_square promotes a pawn.

    Args:
        board: Advisory board
        from_square: Origin in algebraic notation
        to_square: Destination in algebraic notation

    Returns:
        True if a pawn would reach its last rank
    """
    piece = board.piece_at(chess.parse_square(from_square))
    if piece is None or piece.piece_type != chess.PAWN:
        return False
    last_rank = '8' if piece.color == chess.WHITE else '1'
    return to_square[1] == last_rank


def move_cues(move: Dict, board_after: chess.Board, own: bool) -> List[Cue]:
    """
    Pick the sounds for a move pushed by the server.

    Args:
        move: Move payload (needs "flags")
        board_after: Position after the move
        own: Whether the local player made the move

    Returns:
        Cues to play, in order
    """
    flags = move.get('flags', '')
    if 'c' in flags or 'e' in flags:
        cues = [Cue.CAPTURE]
    elif 'k' in flags or 'q' in flags:
        cues = [Cue.CASTLE]
    else:
        cues = [Cue.MOVE_SELF if own else Cue.MOVE_OPPONENT]
    if board_after.is_check():
        cues.append(Cue.CHECK)
    return cues


class MoveLog:
    """Move list in standard algebraic notation, white and black side by side."""

    def __init__(self):
        self.moves: List[str] = []

    def append(self, san: str) -> str:
        """
        Record a move.

        Returns:
            The text fragment to add to the visible log
        """
        ply = len(self.moves)
        self.moves.append(san)
        if ply % 2 == 0:
            return f"{ply // 2 + 1}. {san:<8}"
        return f"{san}\n"

    def clear(self):
        self.moves = []

    @property
    def text(self) -> str:
        fragments = []
        for i, san in enumerate(self.moves):
            fragments.append(f"{i // 2 + 1}. {san:<8}" if i % 2 == 0 else f"{san}\n")
        return "".join(fragments)


class Presenter(ABC):
    """What the surface needs from a view."""

    @abstractmethod
    def render_position(self, board: chess.Board, highlights: List[str]):
        pass

    @abstractmethod
    def append_history(self, text: str):
        pass

    @abstractmethod
    def clear_history(self):
        pass

    @abstractmethod
    def play_cue(self, cue: Cue):
        pass

    @abstractmethod
    def show_promotion_choice(self, square: str, color: chess.Color):
        pass

    @abstractmethod
    def show_timers(self, white: str, black: str):
        pass

    @abstractmethod
    def show_message(self, message: str, final: bool = False):
        pass


class BoardSurface:
    """
    Client-side board state and input handling.
    """

    def __init__(self, presenter: Presenter, send: Callable[[str, Any], None]):
        """
        Args:
            presenter: View to drive
            send: Delivers an outgoing event to the server
        """
        self.presenter = presenter
        self.send = send
        self.board = chess.Board()
        self.player_color: chess.Color = chess.WHITE
        self.log = MoveLog()
        self.selected: Optional[str] = None
        self.drag_from: Optional[str] = None
        self.pending_promotion: Optional[Tuple[str, str]] = None
        self.game_over = False

    def start(self):
        """Show the initial position."""
        self.presenter.play_cue(Cue.GAME_START)
        self._render()

    # --- server events ---

    def handle(self, event: str, data: Any = None):
        """Apply an event received from the server."""
        handlers = {
            'playerRole': self.on_player_role,
            'boardState': self.on_board_state,
            'move': self.on_move,
            'updatetimer': self.on_timer,
            'gameover': self.on_gameover,
            'invalidMove': self.on_invalid_move,
            'resetBoard': lambda _data: self.on_reset(),
            'engineUnavailable': self.on_engine_unavailable,
        }
        handler = handlers.get(event)
        if handler is not None:
            handler(data)

    def on_player_role(self, side: str):
        self.player_color = chess.WHITE if side == 'w' else chess.BLACK

    def on_board_state(self, fen: str):
        if not fen:
            return
        self.board = chess.Board(fen)
        self._render()

    def on_move(self, move: Dict):
        own = move.get('color') == ('w' if self.player_color == chess.WHITE else 'b')
        try:
            self.board.push_uci(move['uci'])
        except (KeyError, ValueError):
            # the boardState that follows resynchronises the board
            pass
        self.presenter.append_history(self.log.append(move.get('san', '?')))
        for cue in move_cues(move, self.board, own):
            self.presenter.play_cue(cue)
        self._render()

    def on_timer(self, data: Dict):
        self.presenter.show_timers(format_time(data['white_time']), format_time(data['black_time']))

    def on_gameover(self, message: str):
        self.game_over = True
        self._clear_selection()
        self.presenter.play_cue(Cue.GAME_END)
        self.presenter.show_message(message, final=True)

    def on_invalid_move(self, move: Any):
        self.presenter.play_cue(Cue.ILLEGAL)
        self.presenter.show_message(f"Invalid move: {move}")

    def on_engine_unavailable(self, message: str):
        self.presenter.show_message(message)

    def on_reset(self):
        self.board.reset()
        self.log.clear()
        self._clear_selection()
        self.game_over = False
        self.presenter.clear_history()
        self._render()

    # --- user input ---

    def click(self, row: int, col: int) -> Optional[Dict]:
        """
        Click-to-select, then click-to-target.

        Returns:
            The submitted move payload, if this click completed a move
        """
        square = square_name(row, col)
        if self._is_own_piece(square):
            self.selected = square
            self._render()
            return None
        if self.selected is None:
            return None
        from_square, self.selected = self.selected, None
        return self._attempt(from_square, square)

    def begin_drag(self, row: int, col: int) -> bool:
        square = square_name(row, col)
        if not self._is_own_piece(square):
            return False
        self.drag_from = square
        self.selected = None
        return True

    def drop(self, row: int, col: int) -> Optional[Dict]:
        if self.drag_from is None:
            return None
        from_square, self.drag_from = self.drag_from, None
        target = square_name(row, col)
        if target == from_square:
            self._render()
            return None
        return self._attempt(from_square, target)

    def cancel_drag(self):
        self.drag_from = None
        self._render()

    def submit_uci(self, text: str) -> Optional[Dict]:
        """Typed move such as "e2e4" or "e7e8q"."""
        try:
            request = MoveRequest.from_uci(text)
        except ValueError:
            self.presenter.play_cue(Cue.ILLEGAL)
            return None
        if request.promotion:
            return self._submit(request)
        return self._attempt(request.from_square, request.to_square)

    def choose_promotion(self, piece: str) -> Optional[Dict]:
        """Complete a deferred promotion with the chosen piece."""
        if self.pending_promotion is None or piece not in PROMOTION_PIECES:
            return None
        from_square, to_square = self.pending_promotion
        self.pending_promotion = None
        self.presenter.play_cue(Cue.PROMOTE)
        return self._submit(MoveRequest(from_square=from_square, to_square=to_square, promotion=piece))

    def legal_targets(self, square: str) -> List[str]:
        origin = chess.parse_square(square)
        return sorted({chess.square_name(m.to_square) for m in self.board.legal_moves if m.from_square == origin})

    def _attempt(self, from_square: str, to_square: str) -> Optional[Dict]:
        if self.game_over:
            return None
        if is_pawn_promotion(self.board, from_square, to_square):
            self.pending_promotion = (from_square, to_square)
            self.presenter.show_promotion_choice(to_square, self.player_color)
            return None
        return self._submit(MoveRequest(from_square=from_square, to_square=to_square))

    def _submit(self, request: MoveRequest) -> Optional[Dict]:
        if self.game_over:
            return None
        if request.to_move() not in self.board.legal_moves:
            self.presenter.play_cue(Cue.ILLEGAL)
            self._render()
            return None
        payload = request.to_payload()
        self.send("move", payload)
        self._render()
        return payload

    def _is_own_piece(self, square: str) -> bool:
        piece = self.board.piece_at(chess.parse_square(square))
        return piece is not None and piece.color == self.player_color

    def _clear_selection(self):
        self.selected = None
        self.drag_from = None
        self.pending_promotion = None

    def _render(self):
        highlights = self.legal_targets(self.selected) if self.selected else []
        self.presenter.render_position(self.board, highlights)
