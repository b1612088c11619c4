from __future__ import annotations


class ChessError(ValueError):
    """Base class for recoverable rule-engine failures.

    ``code`` is a stable machine-readable identifier used by the protocol
    layers.
    """

    code = "chess_error"


class IllegalMoveError(ChessError):
    """Requested move is not among the legal moves of the current position."""

    code = "illegal_move"


class NoLegalMovesError(ChessError):
    """Search was invoked on a position without legal moves."""

    code = "no_legal_moves"


class NoHistoryError(ChessError):
    """Undo was requested but no move has been applied."""

    code = "no_history"


class MalformedFENError(ChessError):
    """FEN string violates the structural rules of a chess position."""

    code = "malformed_fen"
