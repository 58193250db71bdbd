from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, NamedTuple, Optional

from .types import DIRECTIONS, Direction, GamePhase, Mark, Point

WIN_LENGTH = 5

# Margin added around the occupied bounding box when searching for moves
WINDOW_BUFFER = 3

# Fewer stones than this on the board means the game is still in its opening
OPENING_STONES = 6


def format_point(point: Point) -> str:
    """Format a Point as '(row, col)'."""
    return f"({point.row}, {point.col})"


@dataclass
class Placement:
    point: Point
    mark: Mark

    def __str__(self) -> str:
        return f"{self.mark}: {format_point(self.point)}"


class LineScan(NamedTuple):
    count: int      # run length including the scanned cell
    open_ends: int  # 0-2, ends of the run that touch an empty cell


class Board:
    """Unbounded five-in-a-row board. Only occupied cells are stored."""

    def __init__(self, stones: Optional[Mapping[tuple[int, int], Mark]] = None) -> None:
        self._grid: dict[Point, Mark] = {}
        if stones:
            for point, mark in stones.items():
                self.place(Point(*point), mark)

    def place(self, point: Point, mark: Mark) -> None:
        assert self.is_empty(point), f"{format_point(Point(*point))} is occupied"
        self._grid[Point(*point)] = mark

    def remove(self, point: Point) -> None:
        """Undo a placement. Search code calls this on its own copies only."""
        del self._grid[point]

    def get(self, point: tuple[int, int]) -> Optional[Mark]:
        return self._grid.get(point)

    def is_empty(self, point: tuple[int, int]) -> bool:
        return point not in self._grid

    def copy(self) -> Board:
        clone = Board()
        clone._grid = dict(self._grid)
        return clone

    def stones(self, mark: Optional[Mark] = None) -> list[Point]:
        """Occupied points, optionally filtered to one mark, in row-major order."""
        return sorted(p for p, m in self._grid.items() if mark is None or m is mark)

    def items(self) -> Iterator[tuple[Point, Mark]]:
        return iter(self._grid.items())

    @property
    def occupied_count(self) -> int:
        return len(self._grid)

    def __len__(self) -> int:
        return len(self._grid)

    def __contains__(self, point: object) -> bool:
        return point in self._grid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._grid == other._grid

    def __repr__(self) -> str:
        stones = ", ".join(str(Placement(p, m)) for p, m in sorted(self._grid.items()))
        return f"Board({stones})"


# ---------------------------------------------------------------------------
# Line scanning
# ---------------------------------------------------------------------------

def scan_line(board: Board, point: Point, direction: Direction, mark: Mark) -> LineScan:
    """Measure the run of `mark` through `point` along one axis.

    `point` itself counts as `mark` whether or not it is occupied, so the
    same scan answers both "what does this stone belong to" and "what would
    placing here make".
    """
    dr, dc = direction
    grid = board._grid
    count = 1
    open_ends = 0
    for sign in (1, -1):
        r, c = point[0] + sign * dr, point[1] + sign * dc
        while grid.get((r, c)) is mark:
            count += 1
            r += sign * dr
            c += sign * dc
        if (r, c) not in grid:
            open_ends += 1
    return LineScan(count, open_ends)


def is_winning_placement(board: Board, point: Point, mark: Mark) -> bool:
    """True if `point` is empty and placing `mark` there makes five or more."""
    if not board.is_empty(point):
        return False
    return any(scan_line(board, point, d, mark).count >= WIN_LENGTH for d in DIRECTIONS)


def has_five_through(board: Board, point: Point) -> bool:
    """True if the stone at `point` is part of a run of five or more."""
    mark = board.get(point)
    if mark is None:
        return False
    return any(scan_line(board, point, d, mark).count >= WIN_LENGTH for d in DIRECTIONS)


def find_winner(board: Board) -> Optional[Mark]:
    for point, mark in board.items():
        if has_five_through(board, point):
            return mark
    return None


def longest_run(board: Board, mark: Optional[Mark] = None) -> int:
    """Length of the longest run on the board, optionally for one mark only."""
    best = 0
    for point, owner in board.items():
        if mark is not None and owner is not mark:
            continue
        for d in DIRECTIONS:
            best = max(best, scan_line(board, point, d, owner).count)
    return best


# ---------------------------------------------------------------------------
# Search window
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchWindow:
    min_row: int
    max_row: int
    min_col: int
    max_col: int

    def contains(self, point: tuple[int, int]) -> bool:
        return (
            self.min_row <= point[0] <= self.max_row
            and self.min_col <= point[1] <= self.max_col
        )

    def cells(self) -> Iterator[Point]:
        """Every cell of the window, row-major."""
        for r in range(self.min_row, self.max_row + 1):
            for c in range(self.min_col, self.max_col + 1):
                yield Point(r, c)

    @property
    def size(self) -> int:
        return (self.max_row - self.min_row + 1) * (self.max_col - self.min_col + 1)


def search_window(board: Board) -> SearchWindow:
    """Bounding box of the occupied cells expanded by WINDOW_BUFFER."""
    if not len(board):
        return SearchWindow(-WINDOW_BUFFER, WINDOW_BUFFER, -WINDOW_BUFFER, WINDOW_BUFFER)
    rows = [p.row for p, _ in board.items()]
    cols = [p.col for p, _ in board.items()]
    return SearchWindow(
        min(rows) - WINDOW_BUFFER,
        max(rows) + WINDOW_BUFFER,
        min(cols) - WINDOW_BUFFER,
        max(cols) + WINDOW_BUFFER,
    )


def empty_cells(board: Board, window: Optional[SearchWindow] = None) -> list[Point]:
    if window is None:
        window = search_window(board)
    return [p for p in window.cells() if board.is_empty(p)]


def neighbor_cells(board: Board, radius: int = 1) -> list[Point]:
    """Empty cells within Chebyshev `radius` of any stone, row-major.

    For radius <= WINDOW_BUFFER these all lie inside the search window.
    """
    grid = board._grid
    cells: set[tuple[int, int]] = set()
    for r, c in grid:
        for dr in range(-radius, radius + 1):
            for dc in range(-radius, radius + 1):
                p = (r + dr, c + dc)
                if p not in grid:
                    cells.add(p)
    return [Point(*p) for p in sorted(cells)]


# ---------------------------------------------------------------------------
# Snapshot handed to strategies
# ---------------------------------------------------------------------------

def game_phase(board: Board, move_count: int) -> GamePhase:
    if move_count < OPENING_STONES:
        return GamePhase.OPENING
    if longest_run(board) >= WIN_LENGTH - 1:
        return GamePhase.ENDGAME
    return GamePhase.MIDGAME


@dataclass(frozen=True)
class GameSnapshot:
    board: Board
    to_move: Mark
    opponent: Mark
    move_count: int
    phase: GamePhase

    @classmethod
    def create(
        cls,
        board: Board,
        to_move: Mark,
        opponent: Optional[Mark] = None,
        move_count: Optional[int] = None,
    ) -> GameSnapshot:
        if opponent is None:
            opponent = to_move.other
        assert opponent is not to_move, "to_move and opponent must differ"
        if move_count is None:
            move_count = len(board)
        return cls(board, to_move, opponent, move_count, game_phase(board, move_count))


# ---------------------------------------------------------------------------
# Game driver
# ---------------------------------------------------------------------------

class GomokuGameState:
    """A game in progress on an unbounded board. X moves first."""

    def __init__(self) -> None:
        self.board = Board()
        self.current_player = Mark.X
        self.moves: list[Placement] = []
        self._winner: Optional[Mark] = None

    @property
    def is_over(self) -> bool:
        return self._winner is not None

    @property
    def winner(self) -> Optional[Mark]:
        return self._winner

    def apply_move(self, point: Point) -> None:
        """Place a stone for the current player and advance the turn."""
        assert not self.is_over, "Game is already over"
        assert self.board.is_empty(point), f"Point {format_point(point)} is occupied"

        mark = self.current_player
        self.board.place(point, mark)
        self.moves.append(Placement(point=Point(*point), mark=mark))

        if has_five_through(self.board, point):
            self._winner = mark

        self.current_player = self.current_player.other

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot.create(
            self.board.copy(), self.current_player, move_count=len(self.moves)
        )
