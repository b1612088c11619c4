from __future__ import annotations

import argparse
import sys
import time
from typing import Callable, List, Optional

import uvicorn

from ..config import Settings, configure_logging
from ..engine.board import STARTPOS_FEN, Board
from ..engine.errors import ChessError
from ..engine.game import Game
from ..engine.move import parse_uci
from ..engine.perft import divide, perft
from ..engine.piece import BLACK, WHITE
from ..protocol.uci.loop import UCIEngine, run_uci
from ..search.service import SearchService


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gambit", description="Chess rules engine and search")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    sub.add_parser("uci", help="Speak UCI on stdin/stdout")

    play = sub.add_parser("play", help="Play against the engine in the terminal")
    play.add_argument("--depth", type=int, default=settings.default_depth)
    play.add_argument("--color", choices=("white", "black"), default="white", help="Your color")

    pf = sub.add_parser("perft", help="Count leaf nodes of the legal move tree")
    pf.add_argument("--fen", default=STARTPOS_FEN, help="FEN string (default: startpos)")
    pf.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    pf.add_argument("--divide", action="store_true", help="Print per-move counts")

    bm = sub.add_parser("bestmove", help="Print the engine's move for a position")
    bm.add_argument("--fen", default=STARTPOS_FEN)
    bm.add_argument("--depth", type=int, default=settings.default_depth)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "serve":
            uvicorn.run(
                "gambit.protocol.http.app:create_app",
                factory=True,
                host=args.host,
                port=args.port,
                reload=args.reload,
                log_level=args.log_level.lower(),
            )
        elif args.command == "uci":
            run_uci(UCIEngine(default_depth=settings.default_depth))
        elif args.command == "play":
            play(args.depth, args.color)
        elif args.command == "perft":
            run_perft(args.fen, args.depth, args.divide)
        elif args.command == "bestmove":
            res = SearchService().best_move(Game.from_fen(args.fen), args.depth)
            print(f"bestmove {res.best_move.to_uci()} score {res.score} nodes {res.nodes}")
    except ChessError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def run_perft(fen: str, depth: int, show_divide: bool = False) -> int:
    board = Board.from_fen(fen)
    start = time.perf_counter()
    if show_divide:
        counts = divide(board, depth)
        for uci, n in counts.items():
            print(f"{uci}: {n}")
        nodes = sum(counts.values())
    else:
        nodes = perft(board, depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")
    return nodes


def play(
    depth: int,
    color: str = "white",
    read: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> Game:
    """Interactive game against the engine.

    Moves are typed as ``e2e4`` or ``e2-e4``; ``undo`` takes back the last
    full move and ``quit`` leaves. Returns the final game.
    """
    game = Game.new()
    human = WHITE if color == "white" else BLACK
    engine = SearchService()
    while not game.is_game_over():
        out(game.board.render())
        if game.board.side_to_move != human:
            res = engine.best_move(game, depth)
            game.apply_move(res.best_move)
            out(f"engine plays {res.best_move.to_uci()} (eval {res.score})")
            continue
        try:
            text = read("your move: ").strip()
        except EOFError:
            return game
        if text == "quit":
            return game
        try:
            if text == "undo":
                game.undo_move()
                if game.board.side_to_move != human and game.move_stack:
                    game.undo_move()
            else:
                game.apply_move(parse_uci(text))
        except ValueError as e:
            out(f"error: {e}")
    out(game.board.render())
    out(f"game over: {game.status().value}")
    return game


if __name__ == "__main__":
    sys.exit(main())
