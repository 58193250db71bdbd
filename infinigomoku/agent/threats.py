"""Threat analysis: immediate wins, critical threats and how to block them.

Every cell is judged by simulating a placement there and measuring the run
it would join in each of the four directions. A run's strength depends on
its length and on the free cells around it, which decides whether it can
still grow into five.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from infinigomoku.agent.base import (
    BLOCK_IMMEDIATE_SCORE,
    BLOCK_SCORE_CAP,
    BLOCK_STRONG_SCORE,
    DUAL_PURPOSE_BONUS,
    MAX_SCORE,
    Move,
)
from infinigomoku.game.board import (
    WIN_LENGTH,
    Board,
    SearchWindow,
    neighbor_cells,
    scan_line,
)
from infinigomoku.game.types import DIRECTIONS, Direction, Mark, MoveType, Point, ThreatLevel

IMMEDIATE_WIN_PRIORITY = 1000.0

# Priorities of blocking moves, by the level of the threat they stop
BLOCK_IMMEDIATE_PRIORITY = 950.0
BLOCK_STRONG_PRIORITY = 850.0
OPEN_BLOCK_BONUS = 20.0

# Cells stopping several threats at once never outrank a win
MULTI_BLOCK_CAP = 980.0

# Run length that makes a placement a threat of its own
SIGNIFICANT_LENGTH = 3


@dataclass(frozen=True)
class ThreatRecord:
    position: Point
    mark: Mark
    direction: Direction
    consecutive_count: int  # run length after the simulated placement
    open_ends: int          # 0-2
    free_cells: int         # 0-4, empty cells within reach beyond the run
    level: ThreatLevel
    priority: float

    @property
    def is_critical(self) -> bool:
        return self.level >= ThreatLevel.STRONG


@dataclass(frozen=True)
class BlockingMove:
    position: Point
    priority: float
    level: ThreatLevel
    is_dual_purpose: bool
    threats_blocked: int = 1


@dataclass(frozen=True)
class MultiThreatBlock:
    position: Point
    threats_blocked: int
    total_priority: float


def classify_threat(length: int, free_cells: int) -> tuple[ThreatLevel, float]:
    """Map a simulated run to its threat level and priority."""
    if length >= WIN_LENGTH:
        return ThreatLevel.IMMEDIATE_WIN, IMMEDIATE_WIN_PRIORITY
    if length == 4 and free_cells > 0:
        return ThreatLevel.STRONG, 100.0 + 10.0 * free_cells
    if length == 3 and free_cells >= 2:
        return ThreatLevel.MODERATE, 10.0 + 2.0 * free_cells
    if length == 2 and free_cells >= 3:
        return ThreatLevel.WEAK, 1.0 + 0.5 * free_cells
    return ThreatLevel.NONE, 0.0


def _free_cells(board: Board, point: Point, direction: Direction, mark: Mark) -> int:
    """Count up to two empty cells per side beyond the run through `point`.

    The second cell may sit past more stones of `mark`; an opponent stone
    closes the side.
    """
    dr, dc = direction
    free = 0
    for sign in (1, -1):
        sr, sc = sign * dr, sign * dc
        r, c = point[0] + sr, point[1] + sc
        while board.get((r, c)) is mark:
            r, c = r + sr, c + sc
        if not board.is_empty((r, c)):
            continue
        free += 1
        r, c = r + sr, c + sc
        while board.get((r, c)) is mark:
            r, c = r + sr, c + sc
        if board.is_empty((r, c)):
            free += 1
    return free


def _is_forward(board: Board, point: Point, direction: Direction, mark: Mark) -> bool:
    """False when `point` only extends a run that lies ahead of it."""
    dr, dc = direction
    behind = board.get((point[0] - dr, point[1] - dc)) is mark
    ahead = board.get((point[0] + dr, point[1] + dc)) is mark
    return behind or not ahead


def _threat_order(board: Board, record: ThreatRecord) -> tuple:
    """Tie-break among equal priorities.

    The cell continuing a run in its positive direction comes first, then
    the one closest to the origin, then row-major order.
    """
    forward = _is_forward(board, record.position, record.direction, record.mark)
    return (not forward, record.position.manhattan(), record.position)


# ---------------------------------------------------------------------------
# Per-cell analysis
# ---------------------------------------------------------------------------

def analyze_direction(board: Board, point: Point, mark: Mark, direction: Direction) -> ThreatRecord:
    scan = scan_line(board, point, direction, mark)
    free = _free_cells(board, point, direction, mark)
    level, priority = classify_threat(scan.count, free)
    return ThreatRecord(
        position=Point(*point),
        mark=mark,
        direction=direction,
        consecutive_count=scan.count,
        open_ends=scan.open_ends,
        free_cells=free,
        level=level,
        priority=priority,
    )


def threats_at(board: Board, point: Point, mark: Mark) -> list[ThreatRecord]:
    """One record per direction in which placing `mark` at `point` makes a threat."""
    records = [analyze_direction(board, point, mark, d) for d in DIRECTIONS]
    return [r for r in records if r.level > ThreatLevel.NONE]


def analyze_threat(board: Board, point: Point, mark: Mark) -> ThreatRecord:
    """The strongest direction at `point`: level first, then priority."""
    best: Optional[ThreatRecord] = None
    for d in DIRECTIONS:
        record = analyze_direction(board, point, mark, d)
        if best is None or (record.level, record.priority) > (best.level, best.priority):
            best = record
    assert best is not None
    return best


def _candidate_cells(board: Board, window: Optional[SearchWindow]) -> list[Point]:
    # A threat always joins a stone, so only cells next to one can hold it
    cells = neighbor_cells(board)
    if window is not None:
        cells = [p for p in cells if window.contains(p)]
    return cells


# ---------------------------------------------------------------------------
# Board-wide queries
# ---------------------------------------------------------------------------

def find_immediate_wins(board: Board, mark: Mark, window: Optional[SearchWindow] = None) -> list[Point]:
    """Every empty cell where placing `mark` completes five, row-major."""
    wins = []
    for point in _candidate_cells(board, window):
        if any(scan_line(board, point, d, mark).count >= WIN_LENGTH for d in DIRECTIONS):
            wins.append(point)
    return wins


def best_immediate_win(board: Board, mark: Mark) -> Optional[Point]:
    """Pick one winning cell deterministically.

    A cell continuing a five forward beats one that only extends a run
    backward; otherwise the cell closest to the origin wins.
    """
    wins = find_immediate_wins(board, mark)
    if not wins:
        return None

    def order(point: Point) -> tuple:
        forward = any(
            _is_forward(board, point, d, mark)
            for d in DIRECTIONS
            if scan_line(board, point, d, mark).count >= WIN_LENGTH
        )
        return (not forward, point.manhattan(), point)

    return min(wins, key=order)


def find_critical_threats(board: Board, mark: Mark, window: Optional[SearchWindow] = None) -> list[ThreatRecord]:
    """Cells where `mark` would make four or five, highest priority first."""
    threats = []
    for point in _candidate_cells(board, window):
        record = analyze_threat(board, point, mark)
        if record.is_critical:
            threats.append(record)
    threats.sort(key=lambda t: (-t.priority, *_threat_order(board, t)))
    return threats


def analyze_all_threats(
    board: Board, to_move: Mark, opponent: Mark, window: Optional[SearchWindow] = None
) -> tuple[list[ThreatRecord], list[ThreatRecord]]:
    """Every threatening cell for both sides as (own, opponent), highest priority first."""
    own: list[ThreatRecord] = []
    theirs: list[ThreatRecord] = []
    for point in _candidate_cells(board, window):
        for mark, bucket in ((to_move, own), (opponent, theirs)):
            record = analyze_threat(board, point, mark)
            if record.level > ThreatLevel.NONE:
                bucket.append(record)
    for bucket in (own, theirs):
        bucket.sort(key=lambda t: (-t.priority, *_threat_order(board, t)))
    return own, theirs


# ---------------------------------------------------------------------------
# Blocking
# ---------------------------------------------------------------------------

def _blocking_priority(record: ThreatRecord) -> float:
    if record.level is ThreatLevel.IMMEDIATE_WIN:
        return BLOCK_IMMEDIATE_PRIORITY
    priority = BLOCK_STRONG_PRIORITY + 10.0 * record.open_ends
    if record.open_ends >= 2:
        priority += OPEN_BLOCK_BONUS
    return priority


def would_create_significant_threat(board: Board, point: Point, mark: Mark) -> bool:
    """True if placing `mark` at `point` forms three or more in a line."""
    return any(scan_line(board, point, d, mark).count >= SIGNIFICANT_LENGTH for d in DIRECTIONS)


def would_block_critical_threat(board: Board, point: Point, opponent: Mark) -> bool:
    """True if `point` is a cell where `opponent` would make four or five."""
    return board.is_empty(point) and analyze_threat(board, point, opponent).is_critical


def get_best_critical_blocking_move(board: Board, opponent: Mark, own: Mark) -> Optional[BlockingMove]:
    """The cell that stops the most urgent threat of `opponent`.

    Among equal priorities a cell that also builds three for `own` wins,
    then a cell that stops more than one critical line.
    """
    threats = find_critical_threats(board, opponent)
    if not threats:
        return None

    candidates = []
    for record in threats:
        blocked = sum(1 for r in threats_at(board, record.position, opponent) if r.is_critical)
        move = BlockingMove(
            position=record.position,
            priority=_blocking_priority(record),
            level=record.level,
            is_dual_purpose=would_create_significant_threat(board, record.position, own),
            threats_blocked=blocked,
        )
        candidates.append((move, record))

    top = max(move.priority for move, _ in candidates)
    best, _ = min(
        ((m, r) for m, r in candidates if m.priority == top),
        key=lambda mr: (not mr[0].is_dual_purpose, -mr[0].threats_blocked, *_threat_order(board, mr[1])),
    )
    return best


def find_multi_threat_blocking_moves(
    board: Board, opponent: Mark, window: Optional[SearchWindow] = None
) -> list[MultiThreatBlock]:
    """Cells where `opponent` would make two or more threats of moderate level or above."""
    blocks = []
    for point in _candidate_cells(board, window):
        records = [r for r in threats_at(board, point, opponent) if r.level >= ThreatLevel.MODERATE]
        if len(records) >= 2:
            total = min(sum(r.priority for r in records), MULTI_BLOCK_CAP)
            blocks.append(MultiThreatBlock(point, len(records), total))
    blocks.sort(key=lambda b: (-b.total_priority, -b.threats_blocked, b.position.manhattan(), b.position))
    return blocks


# ---------------------------------------------------------------------------
# Forced moves and classification
# ---------------------------------------------------------------------------

def blocking_move(board: Board, own: Mark, opponent: Mark) -> Optional[Move]:
    """Best block against a critical or multiple threat, as a scored Move."""
    block = get_best_critical_blocking_move(board, opponent, own)
    if block is not None:
        if block.level is ThreatLevel.IMMEDIATE_WIN:
            score = BLOCK_IMMEDIATE_SCORE
        else:
            score = BLOCK_STRONG_SCORE
        if block.is_dual_purpose:
            score += DUAL_PURPOSE_BONUS
        return Move(block.position, min(score, BLOCK_SCORE_CAP), MoveType.BLOCKING, confidence=0.9)

    multi = find_multi_threat_blocking_moves(board, opponent)
    if multi:
        return Move(multi[0].position, multi[0].total_priority, MoveType.BLOCKING, confidence=0.8)
    return None


def tactical_move(board: Board, own: Mark, opponent: Mark, block_threats: bool = True) -> Optional[Move]:
    """A forced move: take a win, else (optionally) stop the opponent."""
    win = best_immediate_win(board, own)
    if win is not None:
        return Move(win, MAX_SCORE, MoveType.WINNING, confidence=1.0)
    if not block_threats:
        return None
    return blocking_move(board, own, opponent)


def classify_move(board: Board, point: Point, own: Mark, opponent: Mark) -> MoveType:
    if any(scan_line(board, point, d, own).count >= WIN_LENGTH for d in DIRECTIONS):
        return MoveType.WINNING
    if would_block_critical_threat(board, point, opponent):
        return MoveType.BLOCKING
    if analyze_threat(board, point, own).level >= ThreatLevel.MODERATE:
        return MoveType.THREATENING
    return MoveType.POSITIONAL
