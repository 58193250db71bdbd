"""One-ply heuristics: opening replies, move scoring and the novice player."""

from __future__ import annotations

import random
from typing import Optional

from infinigomoku.agent.base import MAX_SCORE, Move, Strategy
from infinigomoku.agent.threats import (
    analyze_threat,
    best_immediate_win,
    blocking_move,
    classify_move,
    find_immediate_wins,
)
from infinigomoku.game.board import Board, GameSnapshot, empty_cells
from infinigomoku.game.types import ORIGIN, Mark, MoveType, Point, ThreatLevel

# Fixed order in which the cells around a lone stone are tried
OPENING_OFFSETS = ((1, 1), (-1, -1), (1, -1), (-1, 1), (0, 1), (1, 0), (0, -1), (-1, 0))

# Threat level -> value of making it (attack) or denying it (defense)
ATTACK_VALUES = {
    ThreatLevel.IMMEDIATE_WIN: 1000.0,
    ThreatLevel.STRONG: 200.0,
    ThreatLevel.MODERATE: 50.0,
    ThreatLevel.WEAK: 10.0,
    ThreatLevel.NONE: 0.0,
}
DEFENSE_VALUES = {
    ThreatLevel.IMMEDIATE_WIN: 900.0,
    ThreatLevel.STRONG: 400.0,
    ThreatLevel.MODERATE: 100.0,
    ThreatLevel.WEAK: 20.0,
    ThreatLevel.NONE: 0.0,
}
OPEN_END_VALUE = 25.0
PROXIMITY_VALUE = 2.0

# A move scoring above this does more than sit near the action
STRATEGIC_THRESHOLD = 10.0

NOVICE_BLOCK_PROBABILITY = 0.75
NOVICE_RANDOM_RATE = 0.6


def opening_move(board: Board) -> Optional[Point]:
    """Hardcoded replies for the first two plies.

    Empty board -> the origin. One stone -> the first empty cell around it,
    diagonals first.
    """
    if len(board) == 0:
        return ORIGIN
    if len(board) == 1:
        (stone, _), = board.items()
        for dr, dc in OPENING_OFFSETS:
            p = Point(stone.row + dr, stone.col + dc)
            if board.is_empty(p):
                return p
    return None


def evaluate_move(board: Board, point: Point, own: Mark, opponent: Mark) -> float:
    """One-ply value of playing `point`: the threats it makes plus the ones it denies."""
    attack = analyze_threat(board, point, own)
    defense = analyze_threat(board, point, opponent)
    score = ATTACK_VALUES[attack.level] + DEFENSE_VALUES[defense.level]
    if attack.level > ThreatLevel.NONE:
        score += OPEN_END_VALUE * attack.open_ends
    neighbors = sum(
        1
        for dr in (-1, 0, 1)
        for dc in (-1, 0, 1)
        if (dr or dc) and not board.is_empty((point.row + dr, point.col + dc))
    )
    return score + PROXIMITY_VALUE * neighbors


class HeuristicStrategy(Strategy):
    """Scores every empty window cell with `evaluate_move`."""

    def score_moves(self, snapshot: GameSnapshot) -> list[Move]:
        board = snapshot.board
        moves = [
            Move(
                p,
                evaluate_move(board, p, snapshot.to_move, snapshot.opponent),
                classify_move(board, p, snapshot.to_move, snapshot.opponent),
            )
            for p in empty_cells(board)
        ]
        moves.sort(key=lambda m: (-m.score, m.position))
        return moves


class NoviceStrategy(HeuristicStrategy):
    """A beatable player that still never misses a win or a one-move loss.

    Lesser critical threats are only blocked some of the time, and most
    other moves are random.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        block_probability: float = NOVICE_BLOCK_PROBABILITY,
        random_rate: float = NOVICE_RANDOM_RATE,
    ) -> None:
        self.rng = rng or random.Random()
        self.block_probability = block_probability
        self.random_rate = random_rate

    def select_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        board, own, opponent = snapshot.board, snapshot.to_move, snapshot.opponent

        win = best_immediate_win(board, own)
        if win is not None:
            return Move(win, MAX_SCORE, MoveType.WINNING, confidence=1.0)

        block = blocking_move(board, own, opponent)
        if block is not None:
            must_block = bool(find_immediate_wins(board, opponent))
            if must_block or self.rng.random() < self.block_probability:
                return block

        cells = empty_cells(board)
        if not cells:
            return None
        if self.rng.random() < self.random_rate:
            return Move(self.rng.choice(cells), 0.0, MoveType.RANDOM, confidence=0.1)

        scored = [m for m in self.score_moves(snapshot) if m.score > STRATEGIC_THRESHOLD]
        if scored:
            choice = self.rng.choice(scored)
            return Move(choice.position, choice.score, choice.classification, confidence=0.3)
        return Move(self.rng.choice(cells), 0.0, MoveType.RANDOM, confidence=0.1)
