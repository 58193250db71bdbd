"""Static position evaluation from one side's point of view."""

from __future__ import annotations

import math

from infinigomoku.game.board import WIN_LENGTH, Board, neighbor_cells, scan_line
from infinigomoku.game.types import DIRECTIONS, Mark, Point

# ---------------------------------------------------------------------------
# Line scoring table: run length -> base score
# ---------------------------------------------------------------------------

LINE_SCORES: dict[int, float] = {
    1: 10.0,
    2: 100.0,
    3: 1_000.0,
    4: 10_000.0,
}
FIVE_SCORE = 100_000.0
MAX_OPEN_END_FACTOR = 2.0

TERRITORY_RADIUS = 2
TERRITORY_WEIGHT = 0.1

# A lone stone with both ends open scores 4 * 10 * 2; anything above that
# joins an existing run
MOBILITY_THRESHOLD = 4 * LINE_SCORES[1] * MAX_OPEN_END_FACTOR
MOBILITY_WEIGHT = 0.05

CONNECTIVITY_WEIGHT = 0.1

# Raw score that maps to tanh(1) in the normalized evaluation
NORMALIZATION_SCALE = 10_000.0


def line_score(length: int, open_ends: int) -> float:
    base = FIVE_SCORE if length >= WIN_LENGTH else LINE_SCORES.get(length, 0.0)
    return base * min(MAX_OPEN_END_FACTOR, 1.0 + 0.5 * open_ends)


def line_total(board: Board, mark: Mark) -> float:
    """Sum of line scores over every stone of `mark` and every direction."""
    total = 0.0
    for point in board.stones(mark):
        for d in DIRECTIONS:
            scan = scan_line(board, point, d, mark)
            total += line_score(scan.count, scan.open_ends)
    return total


def placement_value(board: Board, point: Point, mark: Mark) -> float:
    """Line score that a stone of `mark` at empty `point` would have."""
    total = 0.0
    for d in DIRECTIONS:
        scan = scan_line(board, point, d, mark)
        total += line_score(scan.count, scan.open_ends)
    return total


def territory(board: Board, mark: Mark) -> float:
    """Influence of `mark` over empty cells, decaying as 1/(d+1)."""
    total = 0.0
    for point in board.stones(mark):
        for dr in range(-TERRITORY_RADIUS, TERRITORY_RADIUS + 1):
            for dc in range(-TERRITORY_RADIUS, TERRITORY_RADIUS + 1):
                if board.is_empty((point.row + dr, point.col + dc)):
                    total += 1.0 / (max(abs(dr), abs(dc)) + 1)
    return total


def mobility(board: Board, mark: Mark) -> int:
    """Number of empty cells where `mark` would extend a run."""
    return sum(
        1 for p in neighbor_cells(board) if placement_value(board, p, mark) > MOBILITY_THRESHOLD
    )


def connectivity(board: Board, mark: Mark) -> float:
    stones = board.stones(mark)
    if not stones:
        return 0.0
    total = 0.0
    for i, a in enumerate(stones):
        for b in stones[i + 1:]:
            d = a.chebyshev(b)
            if d == 1:
                total += 1.0
            elif d == 2:
                total += 0.5
    return total / len(stones)


def evaluation_breakdown(board: Board, for_mark: Mark, against_mark: Mark) -> dict[str, float]:
    """Each weighted component of `evaluate` and their total."""
    lines = line_total(board, for_mark) - line_total(board, against_mark)
    terr = TERRITORY_WEIGHT * (territory(board, for_mark) - territory(board, against_mark))
    mob = MOBILITY_WEIGHT * (mobility(board, for_mark) - mobility(board, against_mark))
    conn = CONNECTIVITY_WEIGHT * (connectivity(board, for_mark) - connectivity(board, against_mark))
    return {
        "lines": lines,
        "territory": terr,
        "mobility": mob,
        "connectivity": conn,
        "total": lines + terr + mob + conn,
    }


def evaluate(board: Board, for_mark: Mark, against_mark: Mark) -> float:
    """Positive when `for_mark` stands better than `against_mark`."""
    return evaluation_breakdown(board, for_mark, against_mark)["total"]


def normalized_evaluation(board: Board, for_mark: Mark, against_mark: Mark) -> float:
    """`evaluate` squashed into [0, 1]; 0.5 is an even position."""
    return 0.5 + 0.5 * math.tanh(evaluate(board, for_mark, against_mark) / NORMALIZATION_SCALE)
