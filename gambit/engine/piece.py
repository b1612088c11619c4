from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


WHITE = "w"
BLACK = "b"

PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = "p", "n", "b", "r", "q", "k"
PIECE_KINDS = (PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING)


def opposite(color: str) -> str:
    return BLACK if color == WHITE else WHITE


@dataclass(frozen=True)
class Piece:
    """A colored chess piece.

    Attributes:
        color (str): ``"w"`` or ``"b"``.
        kind (str): Lowercase kind letter, one of ``"pnbrqk"``.
    """

    color: str
    kind: str

    @property
    def symbol(self) -> str:
        """FEN letter for the piece (uppercase for White)."""
        return self.kind.upper() if self.color == WHITE else self.kind

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """Return the interned piece for a FEN letter.

        Raises:
            KeyError: If ``ch`` is not a piece letter.
        """
        return _BY_SYMBOL[ch]


_BY_SYMBOL: Dict[str, Piece] = {}
for _color in (WHITE, BLACK):
    for _kind in PIECE_KINDS:
        _p = Piece(_color, _kind)
        _BY_SYMBOL[_p.symbol] = _p
