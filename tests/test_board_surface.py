import chess
import pytest

from relaychess.client.board_surface import (
    BoardSurface,
    Presenter,
    Cue,
    MoveLog,
    square_name,
    format_time,
    is_pawn_promotion,
    move_cues,
)
from relaychess.game.moves import describe_move
from relaychess.web.app import STATIC_DIR


class RecordingPresenter(Presenter):
    def __init__(self):
        self.renders = []
        self.history = ""
        self.cues = []
        self.promotions = []
        self.timers = []
        self.messages = []

    def render_position(self, board, highlights):
        self.renders.append((board.fen(), list(highlights)))

    def append_history(self, text):
        self.history += text

    def clear_history(self):
        self.history = ""

    def play_cue(self, cue):
        self.cues.append(cue)

    def show_promotion_choice(self, square, color):
        self.promotions.append((square, color))

    def show_timers(self, white, black):
        self.timers.append((white, black))

    def show_message(self, message, final=False):
        self.messages.append((message, final))


def make_surface(fen=None):
    presenter = RecordingPresenter()
    sent = []
    surface = BoardSurface(presenter, lambda event, data: sent.append((event, data)))
    surface.handle("playerRole", "w")
    if fen:
        surface.handle("boardState", fen)
    return surface, presenter, sent


def server_move(fen, uci):
    board = chess.Board(fen)
    return describe_move(board, chess.Move.from_uci(uci))


class TestSquares:
    """Tests for grid to square mapping."""

    def test_corners(self):
        """Test that row 0 is rank 8 and column 0 is file a."""
        assert square_name(0, 0) == "a8"
        assert square_name(7, 7) == "h1"
        assert square_name(6, 4) == "e2"

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            square_name(8, 0)

    def test_format_time(self):
        """Test clock formatting."""
        assert format_time(600) == "10:00"
        assert format_time(65) == "1:05"
        assert format_time(0) == "0:00"


class TestMoveLog:
    """Tests for the textual move list."""

    def test_alternating_columns(self):
        """Test white and black moves share a numbered line."""
        log = MoveLog()
        assert log.append("e4") == "1. e4      "
        assert log.append("e5") == "e5\n"
        assert log.append("Nf3").startswith("2. Nf3")
        assert log.text == "1. e4      e5\n2. Nf3     "

    def test_clear(self):
        log = MoveLog()
        log.append("e4")
        log.clear()
        assert log.text == ""
        assert log.append("d4").startswith("1. d4")


class TestPromotionDetection:
    """Tests for local promotion detection."""

    def test_white_pawn_last_rank(self):
        board = chess.Board("8/P7/8/8/8/8/8/k6K w - - 0 1")
        assert is_pawn_promotion(board, "a7", "a8")

    def test_black_pawn_last_rank(self):
        board = chess.Board("K6k/8/8/8/8/8/p7/8 b - - 0 1")
        assert is_pawn_promotion(board, "a2", "a1")

    def test_not_a_pawn(self):
        board = chess.Board()
        assert not is_pawn_promotion(board, "g1", "f3")


class TestCues:
    """Tests for sound cue selection."""

    def test_quiet_moves(self):
        board = chess.Board()
        move = server_move(chess.STARTING_FEN, "e2e4")
        assert move_cues(move, board, own=True) == [Cue.MOVE_SELF]
        assert move_cues(move, board, own=False) == [Cue.MOVE_OPPONENT]

    def test_capture_and_castle(self):
        board = chess.Board()
        assert move_cues({'flags': 'c'}, board, own=True) == [Cue.CAPTURE]
        assert move_cues({'flags': 'e'}, board, own=True) == [Cue.CAPTURE]
        assert move_cues({'flags': 'k'}, board, own=False) == [Cue.CASTLE]

    def test_check_added(self):
        board = chess.Board("4k3/8/8/8/8/8/8/4RK2 b - - 0 1")
        assert move_cues({'flags': 'n'}, board, own=True) == [Cue.MOVE_SELF, Cue.CHECK]

    def test_names_match_browser_client(self):
        """Test that every cue is one the browser client knows how to play."""
        script = (STATIC_DIR / "js" / "chessgame.js").read_text()
        assert [cue.value for cue in Cue] == [
            "illegal", "promote", "move-self", "move-opponent", "move-check",
            "capture", "castle", "game-start", "game-end",
        ]
        for cue in Cue:
            assert f"'{cue.value}'" in script


class TestClickInput:
    """Tests for click-to-select then click-to-target."""

    def test_select_then_target_sends_move(self):
        """Test that two clicks produce a move request."""
        surface, presenter, sent = make_surface()
        assert surface.click(6, 4) is None
        assert surface.selected == "e2"
        assert presenter.renders[-1][1] == ["e3", "e4"]

        payload = surface.click(4, 4)
        assert payload == {"from": "e2", "to": "e4", "promotion": None}
        assert sent == [("move", payload)]
        assert surface.selected is None

    def test_local_board_waits_for_server(self):
        """Test that submitting does not move the advisory board."""
        surface, _, _ = make_surface()
        surface.click(6, 4)
        surface.click(4, 4)
        assert surface.board.fen() == chess.STARTING_FEN

    def test_click_without_selection(self):
        """Test that clicking an empty square with nothing selected does nothing."""
        surface, _, sent = make_surface()
        assert surface.click(4, 4) is None
        assert sent == []

    def test_opponent_piece_not_selectable(self):
        surface, _, _ = make_surface()
        surface.click(1, 4)
        assert surface.selected is None

    def test_reselect_own_piece(self):
        """Test that clicking another own piece moves the selection."""
        surface, _, _ = make_surface()
        surface.click(6, 4)
        surface.click(6, 3)
        assert surface.selected == "d2"

    def test_locally_illegal_move(self):
        """Test that an illegal target plays the illegal cue and sends nothing."""
        surface, presenter, sent = make_surface()
        surface.click(6, 4)
        assert surface.click(3, 4) is None
        assert Cue.ILLEGAL in presenter.cues
        assert sent == []


class TestDragInput:
    """Tests for drag and touch gestures."""

    def test_drag_and_drop(self):
        surface, _, sent = make_surface()
        assert surface.begin_drag(7, 6)
        payload = surface.drop(5, 5)
        assert payload == {"from": "g1", "to": "f3", "promotion": None}
        assert sent == [("move", payload)]
        assert surface.drag_from is None

    def test_drag_opponent_piece(self):
        surface, _, _ = make_surface()
        assert not surface.begin_drag(0, 1)
        assert surface.drop(2, 2) is None

    def test_drop_on_origin(self):
        surface, _, sent = make_surface()
        surface.begin_drag(6, 4)
        assert surface.drop(6, 4) is None
        assert sent == []

    def test_cancel_drag(self):
        surface, _, _ = make_surface()
        surface.begin_drag(6, 4)
        surface.cancel_drag()
        assert surface.drop(4, 4) is None


class TestPromotion:
    """Tests for deferred promotion."""

    def test_promotion_waits_for_choice(self):
        """Test that a promoting move is sent only after a piece is chosen."""
        surface, presenter, sent = make_surface("8/P7/8/8/8/8/8/k6K w - - 0 1")
        surface.click(1, 0)
        assert surface.click(0, 0) is None
        assert presenter.promotions == [("a8", chess.WHITE)]
        assert sent == []

        payload = surface.choose_promotion("n")
        assert payload == {"from": "a7", "to": "a8", "promotion": "n"}
        assert sent == [("move", payload)]
        assert Cue.PROMOTE in presenter.cues
        assert surface.pending_promotion is None

    def test_invalid_choice(self):
        surface, _, sent = make_surface("8/P7/8/8/8/8/8/k6K w - - 0 1")
        surface.begin_drag(1, 0)
        surface.drop(0, 0)
        assert surface.choose_promotion("k") is None
        assert sent == []

    def test_typed_promotion(self):
        surface, _, sent = make_surface("8/P7/8/8/8/8/8/k6K w - - 0 1")
        assert surface.submit_uci("a7a8q") == {"from": "a7", "to": "a8", "promotion": "q"}


class TestServerEvents:
    """Tests for events pushed by the server."""

    def test_board_state_replaces_board(self):
        surface, presenter, _ = make_surface()
        fen = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        surface.handle("boardState", fen)
        assert surface.board.fen() == fen
        assert presenter.renders[-1][0] == fen

    def test_moves_append_history(self):
        """Test that pushed moves fill the log and play cues."""
        surface, presenter, _ = make_surface()
        surface.handle("move", server_move(chess.STARTING_FEN, "e2e4"))
        after_e4 = surface.board.fen()
        surface.handle("move", server_move(after_e4, "e7e5"))

        assert presenter.history == "1. e4      e5\n"
        assert presenter.cues == [Cue.MOVE_SELF, Cue.MOVE_OPPONENT]

    def test_timer(self):
        surface, presenter, _ = make_surface()
        surface.handle("updatetimer", {"white_time": 600, "black_time": 340})
        assert presenter.timers == [("10:00", "5:40")]

    def test_gameover_blocks_input(self):
        """Test that after the game ends no moves are sent."""
        surface, presenter, sent = make_surface()
        surface.handle("gameover", "You resigned. The AI wins.")
        assert presenter.messages[-1] == ("You resigned. The AI wins.", True)
        assert Cue.GAME_END in presenter.cues
        surface.click(6, 4)
        assert surface.click(4, 4) is None
        assert sent == []

    def test_reset(self):
        """Test that resetBoard clears history and board."""
        surface, presenter, _ = make_surface()
        surface.handle("move", server_move(chess.STARTING_FEN, "e2e4"))
        surface.handle("gameover", "Checkmate!")
        surface.handle("resetBoard")

        assert presenter.history == ""
        assert surface.log.moves == []
        assert surface.board.fen() == chess.STARTING_FEN
        assert not surface.game_over

    def test_invalid_move_notice(self):
        surface, presenter, _ = make_surface()
        surface.handle("invalidMove", {"from": "e2", "to": "e5"})
        assert presenter.cues[-1] == Cue.ILLEGAL

    def test_unknown_event_ignored(self):
        surface, presenter, _ = make_surface()
        renders = len(presenter.renders)
        surface.handle("somethingElse", 1)
        assert len(presenter.renders) == renders


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
