from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# Generation order for promotion choices
PROMOTION_PIECES = ("n", "b", "r", "q")


@dataclass(frozen=True)
class Move:
    """Engine move representation.

    A Move built by a caller is only a request; it becomes authoritative once
    matched against the legal moves of a board. ``is_castle`` and
    ``is_en_passant`` are filled in by the generator and take no part in
    equality, so ``Move(12, 28)`` equals the generated ``e2e4``.

    Attributes:
        from_sq (int): Origin square index (0-based, a1=0).
        to_sq (int): Destination square index.
        promotion (Optional[str]): Lowercase promotion piece, if any.
        is_castle (bool): King move of two files with rook relocation.
        is_en_passant (bool): Pawn capture onto the en-passant target.
    """

    from_sq: int
    to_sq: int
    promotion: Optional[str] = None
    is_castle: bool = field(default=False, compare=False)
    is_en_passant: bool = field(default=False, compare=False)

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + (self.promotion or "")

    def sort_key(self) -> tuple[int, int, int]:
        promo = PROMOTION_PIECES.index(self.promotion) + 1 if self.promotion else 0
        return (self.from_sq, self.to_sq, promo)


def parse_uci(uci: str) -> Move:
    """Parse a coordinate move string.

    Accepts ``"e2e4"``, ``"e7e8q"`` and the dashed form ``"e2-e4"``.

    Args:
        uci (str): Move in long algebraic notation.

    Returns:
        Move: Parsed move request.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    text = uci.strip().replace("-", "")
    if len(text) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(text[0:2])
    to_sq = str_to_square(text[2:4])
    promo: Optional[str] = None
    if len(text) == 5:
        promo = parse_promotion(text[4])
    return Move(from_sq, to_sq, promo)


def parse_promotion(value: Optional[str]) -> Optional[str]:
    """Normalize a promotion piece given as a letter or a piece name.

    Raises:
        ValueError: If ``value`` does not name a knight, bishop, rook or queen.
    """
    if value is None or value == "":
        return None
    names = {"knight": "n", "bishop": "b", "rook": "r", "queen": "q"}
    promo = names.get(value.lower(), value.lower())
    if promo not in PROMOTION_PIECES:
        raise ValueError(f"invalid promotion piece: {value!r}")
    return promo


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    file = idx % 8
    rank = idx // 8
    return chr(ord("a") + file) + str(rank + 1)
