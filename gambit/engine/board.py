from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .errors import MalformedFENError
from .move import square_to_str, str_to_square
from .piece import BLACK, KING, KNIGHT, PAWN, WHITE, Piece, opposite


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

CASTLING_ORDER = "KQkq"

KNIGHT_OFFSETS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))
KING_OFFSETS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))
DIAGONAL_DIRS = ((-1, -1), (1, -1), (-1, 1), (1, 1))
ORTHOGONAL_DIRS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def _offset_targets(sq: int, offsets: Tuple[Tuple[int, int], ...]) -> Tuple[int, ...]:
    f, r = sq % 8, sq // 8
    out = []
    for df, dr in offsets:
        tf, tr = f + df, r + dr
        if 0 <= tf < 8 and 0 <= tr < 8:
            out.append(tr * 8 + tf)
    return tuple(out)


def _ray(sq: int, df: int, dr: int) -> Tuple[int, ...]:
    f, r = sq % 8, sq // 8
    out = []
    while True:
        f += df
        r += dr
        if not (0 <= f < 8 and 0 <= r < 8):
            break
        out.append(r * 8 + f)
    return tuple(out)


# Precomputed geometry per square, shared by attack detection and generation
KNIGHT_TARGETS = tuple(_offset_targets(sq, KNIGHT_OFFSETS) for sq in range(64))
KING_TARGETS = tuple(_offset_targets(sq, KING_OFFSETS) for sq in range(64))
DIAGONAL_RAYS = tuple(tuple(_ray(sq, df, dr) for df, dr in DIAGONAL_DIRS) for sq in range(64))
ORTHOGONAL_RAYS = tuple(
    tuple(_ray(sq, df, dr) for df, dr in ORTHOGONAL_DIRS) for sq in range(64)
)


@dataclass(frozen=True)
class Board:
    """Immutable chess position with FEN I/O and attack queries.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - Boards are value snapshots: move application builds a new instance
      (see ``gambit.engine.movegen.make_move``), so a Board can be shared
      freely between threads.
    """

    squares: Tuple[Optional[Piece], ...]
    side_to_move: str  # 'w' or 'b'
    castling: str  # subset of 'KQkq' or ''
    ep_square: Optional[int]  # square index or None
    halfmove_clock: int
    fullmove_number: int

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board instance initialized with state encoded in ``fen``.

        Raises:
            MalformedFENError: If ``fen`` is empty, has the wrong number of
                fields, or contains invalid piece placement, kings, castling
                rights, en passant square, or move counters.

        Notes:
            The parser normalizes castling rights ordering. Positions that
            cannot occur in play (missing or extra kings, pawns on the back
            ranks, the side not to move standing in check) are rejected rather
            than corrected.
        """
        if not fen or not isinstance(fen, str):
            raise MalformedFENError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise MalformedFENError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        # Parse piece placement
        ranks = placement.split("/")
        if len(ranks) != 8:
            raise MalformedFENError("FEN board must have 8 ranks")
        squares: List[Optional[Piece]] = [None] * 64
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise MalformedFENError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    try:
                        piece = Piece.from_symbol(ch)
                    except KeyError:
                        raise MalformedFENError(f"invalid piece in FEN: {ch!r}") from None
                    if file_idx >= 8:
                        raise MalformedFENError("too many squares in FEN rank")
                    if piece.kind == PAWN and rank_idx in (0, 7):
                        raise MalformedFENError("pawn on first or last rank")
                    squares[rank_idx * 8 + file_idx] = piece
                    file_idx += 1
            if file_idx != 8:
                raise MalformedFENError("rank does not sum to 8 squares in FEN")

        for color in (WHITE, BLACK):
            kings = sum(1 for p in squares if p is not None and p.kind == KING and p.color == color)
            if kings != 1:
                raise MalformedFENError(f"expected exactly one {color!r} king, found {kings}")

        if stm not in (WHITE, BLACK):
            raise MalformedFENError("side to move must be 'w' or 'b'")

        if castling != "-":
            for ch in castling:
                if ch not in CASTLING_ORDER:
                    raise MalformedFENError("invalid castling rights")
            castling = "".join(c for c in CASTLING_ORDER if c in castling)
        else:
            castling = ""

        ep_square: Optional[int]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise MalformedFENError("invalid en passant square") from e
            # Target sits behind a pawn of the side that just moved
            expected_rank = 5 if stm == WHITE else 2
            if ep_square // 8 != expected_rank:
                raise MalformedFENError("invalid en passant square rank")
            # Pushed pawn stands in front of the target; target and origin are empty
            behind = 8 if stm == WHITE else -8
            pushed = squares[ep_square - behind]
            if (
                squares[ep_square] is not None
                or squares[ep_square + behind] is not None
                or pushed is None
                or pushed.kind != PAWN
                or pushed.color == stm
            ):
                raise MalformedFENError("en passant square inconsistent with placement")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise MalformedFENError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise MalformedFENError("invalid move counters in FEN")

        board = cls(
            squares=tuple(squares),
            side_to_move=stm,
            castling=castling,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )
        if board.in_check(opposite(stm)):
            raise MalformedFENError("side not to move is in check")
        return board

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        return f"{self.position_key()} {self.halfmove_clock} {self.fullmove_number}"

    def position_key(self) -> str:
        """Return the repetition signature of the position.

        Covers placement, side to move, castling rights, and the en-passant
        target (the first four FEN fields). Move counters are excluded, so two
        positions reached by different move orders compare equal.
        """
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):  # 7..0 maps to ranks 8..1
            run = 0
            row = []
            for file_idx in range(8):
                piece = self.squares[rank_idx * 8 + file_idx]
                if piece is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(piece.symbol)
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)
        castling = self.castling if self.castling else "-"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return f"{placement} {self.side_to_move} {castling} {ep}"

    # --- Queries ---
    def piece_at(self, sq: int) -> Optional[Piece]:
        return self.squares[sq]

    def pieces(self, color: Optional[str] = None) -> Iterator[Tuple[int, Piece]]:
        """Yield ``(square, piece)`` pairs in square order, optionally by color."""
        for sq, piece in enumerate(self.squares):
            if piece is not None and (color is None or piece.color == color):
                yield sq, piece

    def king_square(self, color: str) -> int:
        """Return the square of ``color``'s king.

        Raises:
            ValueError: If the king is missing, which only happens for boards
                built outside ``from_fen``/``make_move``.
        """
        for sq, piece in enumerate(self.squares):
            if piece is not None and piece.kind == KING and piece.color == color:
                return sq
        raise ValueError(f"no {color!r} king on board")

    def is_square_attacked(self, sq: int, by_color: str) -> bool:
        """Return True if square ``sq`` is attacked by ``by_color``.

        Covers: pawns (direction depends on color), knights, king adjacency,
        and slider rays for bishops/rooks/queens until the first blocker.
        """
        squares = self.squares

        # Pawn attacks: look one rank back from the attacker's point of view
        f = sq % 8
        if by_color == WHITE:
            candidates = (sq - 9 if f > 0 else -1, sq - 7 if f < 7 else -1)
        else:
            candidates = (sq + 7 if f > 0 else -1, sq + 9 if f < 7 else -1)
        for o in candidates:
            if 0 <= o < 64:
                p = squares[o]
                if p is not None and p.kind == PAWN and p.color == by_color:
                    return True

        for o in KNIGHT_TARGETS[sq]:
            p = squares[o]
            if p is not None and p.kind == KNIGHT and p.color == by_color:
                return True

        for o in KING_TARGETS[sq]:
            p = squares[o]
            if p is not None and p.kind == KING and p.color == by_color:
                return True

        for ray in DIAGONAL_RAYS[sq]:
            for o in ray:
                p = squares[o]
                if p is not None:
                    if p.color == by_color and p.kind in ("b", "q"):
                        return True
                    break

        for ray in ORTHOGONAL_RAYS[sq]:
            for o in ray:
                p = squares[o]
                if p is not None:
                    if p.color == by_color and p.kind in ("r", "q"):
                        return True
                    break

        return False

    def in_check(self, side: Optional[str] = None) -> bool:
        """Return True if ``side`` (default: current side to move) is in check."""
        s = self.side_to_move if side is None else side
        if s not in (WHITE, BLACK):
            raise ValueError("side must be 'w' or 'b'")
        return self.is_square_attacked(self.king_square(s), opposite(s))

    def render(self) -> str:
        """Return an ASCII diagram with rank 8 at the top."""
        lines = []
        for rank_idx in range(7, -1, -1):
            row = []
            for file_idx in range(8):
                piece = self.squares[rank_idx * 8 + file_idx]
                row.append(piece.symbol if piece is not None else ".")
            lines.append(f"{rank_idx + 1} " + " ".join(row))
        lines.append("  a b c d e f g h")
        return "\n".join(lines)
