from __future__ import annotations

import random
from typing import Optional

from infinigomoku.game.board import GameSnapshot, empty_cells
from infinigomoku.game.types import MoveType

from .base import Move, Strategy


class RandomStrategy(Strategy):
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def score_moves(self, snapshot: GameSnapshot) -> list[Move]:
        cells = empty_cells(snapshot.board)
        self.rng.shuffle(cells)
        return [Move(p, 0.0, MoveType.RANDOM, confidence=0.1) for p in cells]
