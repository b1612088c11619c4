from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from ...engine.errors import NoLegalMovesError
from ...engine.game import Game
from ...engine.move import parse_uci
from ...search.service import SearchResult, SearchService


logger = logging.getLogger(__name__)

Writer = Callable[[str], None]

# Depth used when `go` names no depth (movetime and nodes only cap the search)
DEFAULT_GO_DEPTH = 3


@dataclass
class GoParams:
    depth: Optional[int] = None
    movetime_ms: Optional[int] = None
    nodes: Optional[int] = None


class UCIEngine:
    """UCI protocol adapter around the core engine.

    Notes:
    - Core remains pure; I/O and timers are isolated here.
    - Command set: uci, isready, ucinewgame, position, go (depth|movetime|nodes),
      stop, d, quit.
    - Each `go` runs on a worker thread with its own stop event. `movetime` is
      enforced by a timer that sets that event.
    """

    def __init__(self, default_depth: int = DEFAULT_GO_DEPTH) -> None:
        self.game: Game = Game.new()
        self.search = SearchService()
        self.default_depth = default_depth
        self._search_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._timer: Optional[threading.Timer] = None
        self._gen = 0  # generation id to invalidate stale workers

    # ---- Command handlers ----
    def cmd_uci(self, write: Writer) -> None:
        write("id name gambit")
        write("id author gambit developers")
        write("uciok")

    def cmd_isready(self, write: Writer) -> None:
        write("readyok")

    def cmd_ucinewgame(self) -> None:
        self._cancel_running_search()
        self.game = Game.new()

    def cmd_position(self, args: List[str]) -> None:
        # position [startpos | fen <FEN> ] [moves m1 m2 ...]
        if not args:
            return
        self._cancel_running_search()
        idx = 0
        if args[idx] == "startpos":
            game = Game.new()
            idx += 1
        elif args[idx] == "fen":
            idx += 1
            fen_tokens: List[str] = []
            while idx < len(args) and args[idx] != "moves":
                fen_tokens.append(args[idx])
                idx += 1
            try:
                game = Game.from_fen(" ".join(fen_tokens))
            except ValueError as e:
                logger.warning("ignoring position: %s", e)
                return
        else:
            return
        if idx < len(args) and args[idx] == "moves":
            for token in args[idx + 1 :]:
                try:
                    game.apply_move(parse_uci(token))
                except ValueError as e:
                    # Keep the position reached before the bad move
                    logger.warning("stopping at move %s: %s", token, e)
                    break
        self.game = game

    def cmd_go(self, args: List[str], write: Writer) -> None:
        params = self._parse_go_args(args)
        depth = params.depth or self.default_depth
        self._cancel_running_search()
        self._gen += 1
        gen = self._gen
        stop_event = threading.Event()
        self._stop_event = stop_event
        game = self.game.copy()

        if params.movetime_ms is not None:
            self._timer = threading.Timer(max(1, params.movetime_ms) / 1000, stop_event.set)
            self._timer.daemon = True
            self._timer.start()

        def worker() -> None:
            try:
                res = self.search.best_move(
                    game, depth, stop_event=stop_event, max_nodes=params.nodes
                )
            except NoLegalMovesError:
                if gen == self._gen:
                    write("bestmove 0000")
                return
            if gen != self._gen:
                return
            self._emit_info(res, write)
            write(f"bestmove {res.best_move.to_uci()}")

        self._search_thread = threading.Thread(target=worker, name="uci-search", daemon=True)
        self._search_thread.start()

    def cmd_stop(self) -> None:
        # The worker sees the event at its next node and reports its best move
        self._stop_event.set()
        self._join_search()

    def cmd_d(self, write: Writer) -> None:
        for line in self.game.board.render().splitlines():
            write(line)
        write(f"Fen: {self.game.to_fen()}")

    def handle(self, line: str, write: Writer) -> bool:
        """Dispatch one command line. Returns False once `quit` is received."""
        parts = line.split()
        if not parts:
            return True
        cmd, args = parts[0], parts[1:]
        if cmd == "uci":
            self.cmd_uci(write)
        elif cmd == "isready":
            self.cmd_isready(write)
        elif cmd == "ucinewgame":
            self.cmd_ucinewgame()
        elif cmd == "position":
            self.cmd_position(args)
        elif cmd == "go":
            self.cmd_go(args, write)
        elif cmd == "stop":
            self.cmd_stop()
        elif cmd == "d":
            self.cmd_d(write)
        elif cmd == "quit":
            self._cancel_running_search()
            return False
        else:
            # Ignore unknown commands per UCI convention
            logger.debug("unknown command: %s", cmd)
        return True

    # ---- Utilities ----
    def _parse_go_args(self, args: List[str]) -> GoParams:
        gp = GoParams()
        i = 0
        while i < len(args):
            tok = args[i]
            if tok in ("depth", "movetime", "nodes") and i + 1 < len(args):
                try:
                    value = int(args[i + 1])
                except ValueError:
                    value = None
                if value is not None and value > 0:
                    if tok == "depth":
                        gp.depth = value
                    elif tok == "movetime":
                        gp.movetime_ms = value
                    else:
                        gp.nodes = value
                i += 2
                continue
            # Clock-based controls are not supported; depth governs
            i += 1
        return gp

    def _emit_info(self, res: SearchResult, write: Writer) -> None:
        time_ms = max(0, res.time_ms)
        nps = int(res.nodes * 1000 / max(1, time_ms))
        if res.mate_in is not None:
            score = f"mate {res.mate_in}"
        else:
            score = f"cp {res.score}"
        pv = " ".join(m.to_uci() for m in res.pv)
        write(
            f"info depth {res.depth} score {score} nodes {res.nodes} "
            f"nps {nps} time {time_ms} pv {pv}"
        )

    def _join_search(self) -> None:
        thread = self._search_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._search_thread = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_running_search(self) -> None:
        # Silence the current worker, then let it unwind
        self._gen += 1
        self._stop_event.set()
        self._join_search()


def _default_writer(line: str) -> None:
    # Ensure newline termination and immediate flush
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def run_uci(engine: Optional[UCIEngine] = None, write: Writer = _default_writer) -> None:
    eng = engine or UCIEngine()
    for raw in sys.stdin:
        if not eng.handle(raw.strip(), write):
            break
