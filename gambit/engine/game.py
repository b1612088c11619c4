from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .board import Board
from .errors import IllegalMoveError, NoHistoryError
from .move import Move
from .movegen import has_legal_moves, legal_moves, make_move
from .piece import BISHOP, KING, KNIGHT


class GameStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


@dataclass
class Game:
    """Game wrapper around the current board with history and undo.

    Responsibility: own the authoritative board of one game, accept only
    legal moves, and answer terminal-state queries. A Game is not
    thread-safe; callers serialize ``apply_move``/``undo_move`` per game.
    """

    board: Board
    move_stack: List[Move] = field(default_factory=list)
    # Board snapshots preceding each applied move, for undo
    snapshots: List[Board] = field(default_factory=list, repr=False)
    repetition: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(board=Board.from_fen(fen))

    def to_fen(self) -> str:
        return self.board.to_fen()

    def __post_init__(self) -> None:
        # Seed repetition with current position
        if not self.repetition:
            key = self.board.position_key()
            self.repetition[key] = 1

    def copy(self) -> "Game":
        """Return an independent game sharing the (immutable) boards."""
        return Game(
            board=self.board,
            move_stack=list(self.move_stack),
            snapshots=list(self.snapshots),
            repetition=dict(self.repetition),
        )

    def legal_moves(self) -> List[Move]:
        return legal_moves(self.board)

    def apply_move(self, move: Move) -> Board:
        """Validate and play ``move``, returning the new current board.

        Raises:
            IllegalMoveError: If ``move`` is not legal here. The game is left
                untouched.
        """
        legal = self.legal_moves()
        try:
            # Use the generated move so history carries castle/en-passant flags
            resolved = legal[legal.index(move)]
        except ValueError:
            raise IllegalMoveError(f"illegal move: {move.to_uci()}") from None
        self.snapshots.append(self.board)
        self.board = make_move(self.board, resolved)
        self.move_stack.append(resolved)
        key = self.board.position_key()
        self.repetition[key] = self.repetition.get(key, 0) + 1
        return self.board

    def undo_move(self) -> Board:
        """Restore the board preceding the last applied move.

        Raises:
            NoHistoryError: If no move has been applied.
        """
        if not self.move_stack:
            raise NoHistoryError("no moves to undo")
        curr = self.board.position_key()
        if curr in self.repetition:
            self.repetition[curr] -= 1
            if self.repetition[curr] <= 0:
                del self.repetition[curr]
        self.move_stack.pop()
        self.board = self.snapshots.pop()
        return self.board

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return self.board.in_check()

    def checkmate(self) -> bool:
        return self.board.in_check() and not has_legal_moves(self.board)

    def stalemate(self) -> bool:
        return not self.board.in_check() and not has_legal_moves(self.board)

    def is_threefold_repetition(self) -> bool:
        return self.repetition.get(self.board.position_key(), 0) >= 3

    def is_fifty_moves(self) -> bool:
        return self.board.halfmove_clock >= 100

    def is_insufficient_material(self) -> bool:
        # K v K, or K + single minor v K
        others = [p for _, p in self.board.pieces() if p.kind != KING]
        if not others:
            return True
        return len(others) == 1 and others[0].kind in (KNIGHT, BISHOP)

    def is_draw(self) -> bool:
        """Draw by stalemate, 50-move rule, threefold repetition, or bare kings."""
        if self.is_fifty_moves() or self.is_threefold_repetition():
            return True
        if self.is_insufficient_material():
            return True
        return self.stalemate()

    def is_game_over(self) -> bool:
        return self.status() in (GameStatus.CHECKMATE, GameStatus.STALEMATE, GameStatus.DRAW)

    def status(self) -> GameStatus:
        in_check = self.board.in_check()
        if not has_legal_moves(self.board):
            return GameStatus.CHECKMATE if in_check else GameStatus.STALEMATE
        if self.is_fifty_moves() or self.is_threefold_repetition():
            return GameStatus.DRAW
        if self.is_insufficient_material():
            return GameStatus.DRAW
        return GameStatus.CHECK if in_check else GameStatus.IN_PROGRESS

    @property
    def last_move(self) -> Optional[Move]:
        return self.move_stack[-1] if self.move_stack else None

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_stack]
