import chess
from typing import Optional, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator


PROMOTION_PIECES = ('q', 'r', 'b', 'n')


class MoveRequest(BaseModel):
    """
    A move as requested by a client or decoded from an engine reply.

    Squares use algebraic notation ("e2"), promotion is one of q, r, b, n.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    promotion: Optional[str] = None

    @field_validator("from_square", "to_square")
    @classmethod
    def check_square(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in chess.SQUARE_NAMES:
            raise ValueError(f"Unknown square: {v}")
        return v

    @field_validator("promotion", mode="before")
    @classmethod
    def check_promotion(cls, v):
        if v is None or v == "":
            return None
        v = str(v).strip().lower()
        if v not in PROMOTION_PIECES:
            raise ValueError(f"Invalid promotion piece: {v}")
        return v

    @classmethod
    def from_uci(cls, uci: str) -> 'MoveRequest':
        """
        Build a request from compact square-pair notation.

        Args:
            uci: Move such as "e2e4" or "e7e8q"

        Returns:
            The decoded move request
        """
        uci = uci.strip()
        if len(uci) not in (4, 5):
            raise ValueError(f"Malformed move string: {uci!r}")
        return cls(
            from_square=uci[0:2],
            to_square=uci[2:4],
            promotion=uci[4] if len(uci) == 5 else None
        )

    def to_move(self) -> chess.Move:
        """Convert to a python-chess move."""
        promotion = chess.Piece.from_symbol(self.promotion).piece_type if self.promotion else None
        return chess.Move(
            chess.parse_square(self.from_square),
            chess.parse_square(self.to_square),
            promotion=promotion
        )

    def uci(self) -> str:
        return self.from_square + self.to_square + (self.promotion or "")

    def to_payload(self) -> Dict:
        return {"from": self.from_square, "to": self.to_square, "promotion": self.promotion}


def move_flags(board: chess.Board, move: chess.Move) -> str:
    """
    Describe the character of a move before it is pushed.

    Flags:
        n: quiet move
        b: pawn double push
        e: en passant capture
        c: capture
        p: promotion
        k: king-side castle
        q: queen-side castle

    Args:
        board: Position the move is played from
        move: Legal move in that position

    Returns:
        Flag letters, e.g. "cp" for a capturing promotion
    """
    flags = ""
    if board.is_en_passant(move):
        flags += "e"
    elif board.is_capture(move):
        flags += "c"
    if move.promotion:
        flags += "p"
    if board.is_kingside_castling(move):
        flags += "k"
    elif board.is_queenside_castling(move):
        flags += "q"
    piece = board.piece_at(move.from_square)
    if piece and piece.piece_type == chess.PAWN and abs(move.to_square - move.from_square) == 16:
        flags += "b"
    return flags or "n"


def describe_move(board: chess.Board, move: chess.Move) -> Dict:
    """
    Build the wire payload for a legal move. Must be called before the move is pushed.

    Args:
        board: Position the move is played from
        move: Legal move in that position

    Returns:
        Dictionary with color, from, to, piece, san, flags, captured, promotion and uci
    """
    piece = board.piece_at(move.from_square)
    if board.is_en_passant(move):
        captured = 'p'
    else:
        target = board.piece_at(move.to_square)
        captured = target.symbol().lower() if target and board.is_capture(move) else None

    return {
        'color': 'w' if board.turn == chess.WHITE else 'b',
        'from': chess.square_name(move.from_square),
        'to': chess.square_name(move.to_square),
        'piece': piece.symbol().lower() if piece else None,
        'san': board.san(move),
        'flags': move_flags(board, move),
        'captured': captured,
        'promotion': chess.piece_symbol(move.promotion) if move.promotion else None,
        'uci': move.uci()
    }
