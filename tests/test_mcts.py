"""Tests for the Monte-Carlo tree search engine."""

import math
import random

import pytest

from infinigomoku.agent import mcts
from infinigomoku.agent.mcts import MCTSEngine, MCTSNode
from infinigomoku.game.board import Board, GameSnapshot, search_window
from infinigomoku.game.types import Mark, MoveType, Point


def make_board(x=(), o=()):
    b = Board()
    for p in x:
        b.place(Point(*p), Mark.X)
    for p in o:
        b.place(Point(*p), Mark.O)
    return b


class TestMCTSNode:
    def test_unvisited_child_is_infinite(self):
        root = MCTSNode(make_board(x=[(0, 0)]), Mark.O)
        child = MCTSNode(make_board(x=[(0, 0)], o=[(1, 1)]), Mark.X, parent=root, move=Point(1, 1))
        assert child.ucb1() == math.inf

    def test_ucb1_formula(self):
        root = MCTSNode(make_board(x=[(0, 0)]), Mark.O)
        root.visits = 10
        child = MCTSNode(make_board(x=[(0, 0)], o=[(1, 1)]), Mark.X, parent=root, move=Point(1, 1))
        child.visits = 4
        child.wins = 3.0
        assert child.ucb1() == pytest.approx(0.75 + math.sqrt(2 * math.log(10) / 4))

    def test_untried_moves_sorted(self):
        node = MCTSNode(make_board(x=[(0, 0)], o=[(0, 1)]), Mark.X)
        assert node.untried_moves == sorted(node.untried_moves)
        assert len(node.untried_moves) == 10

    def test_terminal_node(self):
        b = make_board(x=[(0, c) for c in range(5)])
        node = MCTSNode(b, Mark.O, move=Point(0, 4))
        assert node.is_terminal
        assert node.untried_moves == []
        assert node.just_moved is Mark.X


class TestMCTSEngine:
    def test_opening_empty_board(self):
        assert MCTSEngine(iterations=10, seed=1).best_move(Board(), Mark.X, Mark.O) == Point(0, 0)

    def test_opening_one_stone(self):
        b = make_board(x=[(0, 0)])
        move = MCTSEngine(iterations=10, seed=1).best_move(b, Mark.O, Mark.X)
        assert move is not None
        assert max(abs(move.row), abs(move.col)) == 1

    def test_move_inside_window(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1), (5, 5)])
        move = MCTSEngine(iterations=40, rollout_limit=8, seed=7).best_move(b, Mark.X, Mark.O)
        assert search_window(b).contains(move)
        assert b.is_empty(move)

    def test_iteration_budget_respected(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1)])
        root = MCTSEngine(iterations=30, rollout_limit=5, seed=3).search(b, Mark.O)
        assert root.visits == 30
        assert sum(c.visits for c in root.children) == 30

    def test_seed_makes_search_repeatable(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1), (2, 2)])
        first = MCTSEngine(iterations=30, rollout_limit=6, seed=11).best_move(b, Mark.X, Mark.O)
        second = MCTSEngine(iterations=30, rollout_limit=6, seed=11).best_move(b, Mark.X, Mark.O)
        assert first == second

    def test_result_independent_of_candidate_order(self, monkeypatch):
        b = make_board(x=[(0, 0), (1, 1), (2, 1)], o=[(0, 1), (1, 2), (3, 0)])
        first = MCTSEngine(iterations=60, rollout_limit=8, seed=5).best_move(b, Mark.X, Mark.O)

        original = mcts._node_moves
        monkeypatch.setattr(mcts, "_node_moves", lambda board, to_move: original(board, to_move)[::-1])
        second = MCTSEngine(iterations=60, rollout_limit=8, seed=5).best_move(b, Mark.X, Mark.O)
        assert first == second

    def test_finds_immediate_win(self):
        b = make_board(x=[(0, 0), (0, 1), (0, 2), (0, 3)], o=[(0, 4), (1, 0), (1, 1), (5, 5)])
        move = MCTSEngine(iterations=200, rollout_limit=10, seed=5).best_move(b, Mark.X, Mark.O)
        assert move == Point(0, -1)

    def test_does_not_mutate_board(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1)])
        before = b.copy()
        MCTSEngine(iterations=20, rollout_limit=5, seed=2).best_move(b, Mark.O, Mark.X)
        assert b == before

    def test_time_limit_stops_early(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1), (2, 2)])
        root = MCTSEngine(iterations=100_000, time_limit=0.05, rollout_limit=5, seed=2).search(b, Mark.X)
        assert 0 < root.visits < 100_000

    def test_select_move_takes_forced_win(self):
        b = make_board(x=[(0, 0), (0, 1), (0, 2), (0, 3)], o=[(1, 0), (1, 1), (1, 2)])
        move = MCTSEngine(iterations=10, seed=1).select_move(GameSnapshot.create(b, Mark.X))
        assert move.position == Point(0, 4)
        assert move.classification is MoveType.WINNING

    def test_scored_moves_ranked_by_visits(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1), (2, 2)])
        engine = MCTSEngine(iterations=40, rollout_limit=5, rng=random.Random(9))
        moves = engine.scored_moves(b, Mark.X, Mark.O)
        visits = [m.score for m in moves]
        assert visits == sorted(visits, reverse=True)
        assert sum(visits) == 40
        assert all(0.0 <= m.confidence <= 1.0 for m in moves)
