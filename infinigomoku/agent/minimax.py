"""Minimax engine: negamax with alpha-beta pruning and iterative deepening."""

from __future__ import annotations

import logging
import math
import time
from typing import Optional

from infinigomoku.agent.base import Move, Strategy
from infinigomoku.agent.evaluation import evaluate, line_score
from infinigomoku.agent.threats import classify_move, tactical_move
from infinigomoku.game.board import (
    Board,
    GameSnapshot,
    format_point,
    has_five_through,
    neighbor_cells,
    scan_line,
    search_window,
)
from infinigomoku.game.types import DIRECTIONS, ORIGIN, Mark, Point

logger = logging.getLogger(__name__)

INF = math.inf

# Max candidates to evaluate at the root and below it
MAX_CANDIDATES_ROOT = 12
MAX_CANDIDATES_INNER = 6

# Candidates are empty cells within this Chebyshev distance of a stone
CANDIDATE_RADIUS = 2


# ---------------------------------------------------------------------------
# Candidate generation
# ---------------------------------------------------------------------------

def generate_candidates(board: Board) -> list[Point]:
    """Empty window cells near existing stones. On an empty board, the origin."""
    if not len(board):
        return [ORIGIN]
    window = search_window(board)
    return [p for p in neighbor_cells(board, CANDIDATE_RADIUS) if window.contains(p)]


# ---------------------------------------------------------------------------
# Move ordering
# ---------------------------------------------------------------------------

def _move_heuristic(board: Board, move: Point, to_move: Mark) -> float:
    """Fast heuristic for a candidate move: offensive line score + 0.5 * defensive."""
    score = 0.0
    for d in DIRECTIONS:
        for mark, weight in ((to_move, 1.0), (to_move.other, 0.5)):
            scan = scan_line(board, move, d, mark)
            score += weight * line_score(scan.count, scan.open_ends)
    return score


def order_moves(board: Board, candidates: list[Point], to_move: Mark) -> list[Point]:
    """Sort candidates by heuristic score (descending), row-major among equals."""
    return sorted(candidates, key=lambda m: (-_move_heuristic(board, m, to_move), m))


# ---------------------------------------------------------------------------
# Negamax with alpha-beta
# ---------------------------------------------------------------------------

def negamax(
    board: Board,
    depth: int,
    alpha: float,
    beta: float,
    to_move: Mark,
    last_move: Optional[Point],
    max_candidates: int = MAX_CANDIDATES_INNER,
) -> float:
    """Score of the position for `to_move`, searched `depth` plies deep.

    `board` is mutated and restored; pass a private copy. A five made by
    `last_move` ends the line.
    """
    terminal = last_move is not None and has_five_through(board, last_move)
    if terminal or depth == 0:
        return evaluate(board, to_move, to_move.other)

    candidates = order_moves(board, generate_candidates(board), to_move)
    if not candidates:
        return evaluate(board, to_move, to_move.other)

    # Cap candidates to limit branching factor
    candidates = candidates[:max_candidates]

    best = -INF
    for move in candidates:
        board.place(move, to_move)
        try:
            score = -negamax(
                board, depth - 1, -beta, -alpha, to_move.other, move, max_candidates
            )
        finally:
            board.remove(move)

        best = max(best, score)
        alpha = max(alpha, score)
        if alpha >= beta:
            break

    return best


# ---------------------------------------------------------------------------
# MinimaxEngine
# ---------------------------------------------------------------------------

class MinimaxEngine(Strategy):
    """Depth-bounded alpha-beta search with forced-move short-circuits.

    `time_limit` is a soft budget: every iteration up to `depth` runs to
    completion, and an overrun is only logged.
    """

    def __init__(
        self,
        depth: int = 3,
        time_limit: Optional[float] = None,
        block_threats: bool = True,
        max_candidates: int = MAX_CANDIDATES_ROOT,
        max_inner_candidates: int = MAX_CANDIDATES_INNER,
    ) -> None:
        assert depth >= 1, "search depth must be at least 1"
        self.depth = depth
        self.time_limit = time_limit
        self.block_threats = block_threats
        self.max_candidates = max_candidates
        self.max_inner_candidates = max_inner_candidates
        # Deepest iteration completed by the last search
        self.last_depth = 0

    @property
    def name(self) -> str:
        return f"MinimaxEngine(d={self.depth})"

    def best_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        forced = tactical_move(
            snapshot.board, snapshot.to_move, snapshot.opponent, block_threats=self.block_threats
        )
        if forced is not None:
            return forced
        moves = self.scored_moves(snapshot)
        return moves[0] if moves else None

    def select_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        return self.best_move(snapshot)

    def score_moves(self, snapshot: GameSnapshot) -> list[Move]:
        return self.scored_moves(snapshot)

    def scored_moves(self, snapshot: GameSnapshot) -> list[Move]:
        """Every root candidate with its search score, best first.

        Runs iterative deepening from depth 1 to `self.depth`; the last
        iteration provides the scores.
        """
        board = snapshot.board.copy()
        to_move = snapshot.to_move
        candidates = order_moves(board, generate_candidates(board), to_move)
        candidates = candidates[: self.max_candidates]
        if not candidates:
            return []

        start = time.monotonic()
        scores: dict[Point, float] = {}
        self.last_depth = 0

        for depth in range(1, self.depth + 1):
            scores = self._search_root(board, candidates, depth, to_move)
            self.last_depth = depth
            # Search the previous best first so pruning bites sooner
            candidates = sorted(candidates, key=lambda m: (-scores[m], m))

        elapsed = time.monotonic() - start
        moves = [
            Move(p, s, classify_move(snapshot.board, p, to_move, snapshot.opponent))
            for p, s in scores.items()
        ]
        moves.sort(key=lambda m: (-m.score, m.position))
        logger.debug(
            "minimax depth %d/%d in %.2fs, best %s",
            self.last_depth, self.depth, elapsed, format_point(moves[0].position),
        )
        if self.time_limit is not None and elapsed > self.time_limit:
            logger.debug("minimax over budget: %.2fs > %.2fs", elapsed, self.time_limit)
        return moves

    def _search_root(
        self,
        board: Board,
        candidates: list[Point],
        depth: int,
        to_move: Mark,
    ) -> dict[Point, float]:
        scores: dict[Point, float] = {}
        best_score = -INF
        for move in candidates:
            board.place(move, to_move)
            try:
                score = -negamax(
                    board, depth - 1, -INF, -best_score, to_move.other, move,
                    self.max_inner_candidates,
                )
            finally:
                board.remove(move)
            scores[move] = score
            best_score = max(best_score, score)
        return scores
