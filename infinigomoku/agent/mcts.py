"""Monte-Carlo Tree Search with UCB1 selection and guided rollouts."""

from __future__ import annotations

import logging
import math
import random
import time
from typing import Optional

from infinigomoku.agent.base import Move, Strategy
from infinigomoku.agent.evaluation import normalized_evaluation
from infinigomoku.agent.heuristic import opening_move
from infinigomoku.agent.threats import classify_move, tactical_move
from infinigomoku.game.board import (
    WIN_LENGTH,
    Board,
    GameSnapshot,
    format_point,
    has_five_through,
    neighbor_cells,
    scan_line,
)
from infinigomoku.game.types import DIRECTIONS, NEIGHBOR_OFFSETS, Mark, MoveType, Point

logger = logging.getLogger(__name__)

EXPLORATION = math.sqrt(2)
ROLLOUT_LIMIT = 25

# Chance that a rollout ply ignores the weights and plays anywhere nearby
PURE_RANDOM_RATE = 0.1

# Untried moves kept per node; the rest are too far from the action to matter
MAX_BRANCHING = 20


class MCTSNode:
    def __init__(
        self,
        board: Board,
        to_move: Mark,
        parent: Optional[MCTSNode] = None,
        move: Optional[Point] = None,
    ) -> None:
        self.board = board
        self.to_move = to_move
        self.parent = parent
        self.move = move
        self.children: list[MCTSNode] = []
        self.wins = 0.0
        self.visits = 0
        self.is_terminal = move is not None and has_five_through(board, move)
        # Sorted so expansion draws depend only on the seed
        self.untried_moves: list[Point] = [] if self.is_terminal else sorted(_node_moves(board, to_move))

    @property
    def just_moved(self) -> Mark:
        """The mark whose stone led to this node."""
        return self.to_move.other

    @property
    def is_fully_expanded(self) -> bool:
        return not self.untried_moves

    @property
    def win_rate(self) -> float:
        return self.wins / self.visits if self.visits else 0.0

    def ucb1(self, exploration: float = EXPLORATION) -> float:
        if self.visits == 0:
            return math.inf
        assert self.parent is not None
        return self.wins / self.visits + exploration * math.sqrt(
            math.log(self.parent.visits) / self.visits
        )

    def best_child(self) -> MCTSNode:
        # Ties go to the smaller (row, col) so the result ignores child order
        return max(self.children, key=lambda c: (c.ucb1(), -c.move.row, -c.move.col))

    def __repr__(self) -> str:
        where = format_point(self.move) if self.move is not None else "root"
        return f"MCTSNode({where}, {self.wins:.1f}/{self.visits})"


def _line_extension(board: Board, point: Point, mark: Mark) -> int:
    return max(scan_line(board, point, d, mark).count for d in DIRECTIONS) - 1


def _node_moves(board: Board, to_move: Mark) -> list[Point]:
    """Empty cells next to a stone, canonically sorted.

    When there are too many, the ones extending the longest lines are kept.
    """
    moves = neighbor_cells(board)
    if len(moves) > MAX_BRANCHING:
        def promise(p: Point) -> tuple:
            value = _line_extension(board, p, to_move) + _line_extension(board, p, to_move.other)
            return (-value, p)

        moves = sorted(sorted(moves, key=promise)[:MAX_BRANCHING])
    return moves


class MCTSEngine(Strategy):
    """UCB1 tree search. Each iteration selects, expands, rolls out and backpropagates."""

    def __init__(
        self,
        iterations: int = 500,
        time_limit: Optional[float] = None,
        rollout_limit: int = ROLLOUT_LIMIT,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        assert iterations >= 1, "iterations must be positive"
        self.iterations = iterations
        self.time_limit = time_limit
        self.rollout_limit = rollout_limit
        self.rng = rng or random.Random(seed)

    @property
    def name(self) -> str:
        return f"MCTSEngine(n={self.iterations})"

    # -- public API ---------------------------------------------------------

    def best_move(
        self,
        board: Board,
        to_move: Mark,
        opponent: Optional[Mark] = None,
        iterations: Optional[int] = None,
    ) -> Optional[Point]:
        """Most visited root move after the search, or an opening reply."""
        opening = opening_move(board)
        if opening is not None:
            return opening
        root = self.search(board, to_move, iterations)
        if not root.children:
            return None
        return self._final_choice(root).move

    def search(self, board: Board, to_move: Mark, iterations: Optional[int] = None) -> MCTSNode:
        """Grow a tree from a private copy of `board` and return its root."""
        budget = iterations if iterations is not None else self.iterations
        root = MCTSNode(board.copy(), to_move)
        start = time.monotonic()
        deadline = start + self.time_limit if self.time_limit is not None else None

        run = 0
        for run in range(1, budget + 1):
            node = self._select(root)
            node = self._expand(node)
            result = self._simulate(node, to_move)
            self._backpropagate(node, result, to_move)
            if deadline is not None and time.monotonic() > deadline:
                break

        logger.debug(
            "mcts ran %d/%d iterations in %.2fs over %d root moves",
            run, budget, time.monotonic() - start, len(root.children),
        )
        return root

    def select_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        forced = tactical_move(snapshot.board, snapshot.to_move, snapshot.opponent)
        if forced is not None:
            return forced
        opening = opening_move(snapshot.board)
        if opening is not None:
            return Move(opening, 0.0, MoveType.POSITIONAL)
        moves = self.score_moves(snapshot)
        return moves[0] if moves else None

    def score_moves(self, snapshot: GameSnapshot) -> list[Move]:
        return self.scored_moves(snapshot.board, snapshot.to_move, snapshot.opponent)

    def scored_moves(self, board: Board, to_move: Mark, opponent: Optional[Mark] = None) -> list[Move]:
        """Root children as moves scored by visit count, best first."""
        opponent = opponent or to_move.other
        root = self.search(board, to_move)
        ranked = sorted(root.children, key=self._rank, reverse=True)
        return [
            Move(
                child.move,
                float(child.visits),
                classify_move(board, child.move, to_move, opponent),
                confidence=child.win_rate,
            )
            for child in ranked
        ]

    # -- the four phases ----------------------------------------------------

    def _select(self, node: MCTSNode) -> MCTSNode:
        while not node.is_terminal and node.is_fully_expanded and node.children:
            node = node.best_child()
        return node

    def _expand(self, node: MCTSNode) -> MCTSNode:
        if node.is_terminal or not node.untried_moves:
            return node
        move = node.untried_moves.pop(self.rng.randrange(len(node.untried_moves)))
        board = node.board.copy()
        board.place(move, node.to_move)
        child = MCTSNode(board, node.to_move.other, parent=node, move=move)
        node.children.append(child)
        return child

    def _simulate(self, node: MCTSNode, perspective: Mark) -> float:
        """Play out from `node`; 1.0 is a win for `perspective`, 0.0 a loss."""
        if node.is_terminal:
            return 1.0 if node.just_moved is perspective else 0.0

        board = node.board.copy()
        current = node.to_move
        frontier = set(neighbor_cells(board))
        for _ in range(self.rollout_limit):
            if not frontier:
                break
            move = self._rollout_move(board, sorted(frontier), current)
            board.place(move, current)
            if has_five_through(board, move):
                return 1.0 if current is perspective else 0.0
            frontier.discard(move)
            for dr, dc in NEIGHBOR_OFFSETS:
                p = Point(move.row + dr, move.col + dc)
                if board.is_empty(p):
                    frontier.add(p)
            current = current.other
        return normalized_evaluation(board, perspective, perspective.other)

    def _rollout_move(self, board: Board, moves: list[Point], mark: Mark) -> Point:
        for target in (mark, mark.other):
            for p in moves:
                if any(scan_line(board, p, d, target).count >= WIN_LENGTH for d in DIRECTIONS):
                    return p

        if self.rng.random() < PURE_RANDOM_RATE:
            return self.rng.choice(moves)

        weights = []
        for p in moves:
            adjacent = sum(
                1 for dr, dc in NEIGHBOR_OFFSETS if not board.is_empty((p.row + dr, p.col + dc))
            )
            weights.append(1.0 + adjacent + 2.0 * _line_extension(board, p, mark))
        return self.rng.choices(moves, weights=weights)[0]

    def _backpropagate(self, node: Optional[MCTSNode], result: float, perspective: Mark) -> None:
        # Each node is credited from the side that moved into it
        while node is not None:
            node.visits += 1
            node.wins += result if node.just_moved is perspective else 1.0 - result
            node = node.parent

    # -- final choice -------------------------------------------------------

    @staticmethod
    def _rank(node: MCTSNode) -> tuple:
        return (node.visits, node.win_rate, -node.move.row, -node.move.col)

    def _final_choice(self, root: MCTSNode) -> MCTSNode:
        return max(root.children, key=self._rank)
