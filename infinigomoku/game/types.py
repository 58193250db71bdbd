from __future__ import annotations

import enum
from typing import NamedTuple


class Mark(enum.Enum):
    X = 1  # moves first
    O = 2

    @property
    def other(self) -> Mark:
        return Mark.O if self is Mark.X else Mark.X

    def __str__(self) -> str:
        return self.name


class Point(NamedTuple):
    row: int  # unbounded, never wrapped
    col: int  # unbounded, never wrapped

    def manhattan(self) -> int:
        """Manhattan distance to the origin."""
        return abs(self.row) + abs(self.col)

    def chebyshev(self, other: Point) -> int:
        return max(abs(self.row - other.row), abs(self.col - other.col))


ORIGIN = Point(0, 0)

Direction = tuple[int, int]

# Horizontal, vertical, diagonal, anti-diagonal. Only the positive half of
# each axis pair; scanners walk both signs.
DIRECTIONS: tuple[Direction, ...] = ((0, 1), (1, 0), (1, 1), (1, -1))

# Chebyshev-1 neighbourhood
NEIGHBOR_OFFSETS: tuple[Direction, ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)


class ThreatLevel(enum.IntEnum):
    NONE = 0
    WEAK = 1           # 2 in line with room
    MODERATE = 2       # 3 in line with room
    STRONG = 3         # 4 in line with an open end
    IMMEDIATE_WIN = 4  # completes 5 in line


class MoveType(enum.Enum):
    WINNING = "winning"
    BLOCKING = "blocking"
    THREATENING = "threatening"
    POSITIONAL = "positional"
    RANDOM = "random"


class GamePhase(enum.Enum):
    OPENING = "opening"
    MIDGAME = "midgame"
    ENDGAME = "endgame"


class Tier(enum.Enum):
    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    MASTER = "master"
    ADAPTIVE = "adaptive"

    def __str__(self) -> str:
        return self.value.capitalize()


class Personality(enum.Enum):
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    UNPREDICTABLE = "unpredictable"

    def __str__(self) -> str:
        return self.value.capitalize()
