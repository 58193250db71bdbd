from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Optional

from infinigomoku.game.board import GameSnapshot, format_point
from infinigomoku.game.types import MoveType, Point

# Score scale shared by the tactical layer and the policy
MAX_SCORE = 1000.0
BLOCK_IMMEDIATE_SCORE = 950.0
BLOCK_STRONG_SCORE = 900.0
DUAL_PURPOSE_BONUS = 50.0
# Blocks stay strictly below a win
BLOCK_SCORE_CAP = 990.0


@dataclass
class Move:
    position: Point
    score: float
    classification: MoveType
    confidence: float = 0.5

    def __str__(self) -> str:
        return f"{format_point(self.position)} {self.classification.value} ({self.score:.1f})"


class Strategy(abc.ABC):
    @abc.abstractmethod
    def score_moves(self, snapshot: GameSnapshot) -> list[Move]:
        """Return scored candidate moves, best first."""

    def select_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        moves = self.score_moves(snapshot)
        return moves[0] if moves else None

    @property
    def name(self) -> str:
        return self.__class__.__name__
