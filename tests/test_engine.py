"""End-to-end tests through the public entry points."""

import random

import pytest

from infinigomoku.agent.policy import InvalidProfileError, StrengthProfile
from infinigomoku.agent.random_agent import RandomStrategy
from infinigomoku.engine import Engine, EngineConfig, request_move
from infinigomoku.game.board import Board, GomokuGameState
from infinigomoku.game.types import Mark, MoveType, Point, Tier


def make_board(x=(), o=()):
    b = Board()
    for p in x:
        b.place(Point(*p), Mark.X)
    for p in o:
        b.place(Point(*p), Mark.O)
    return b


def fast_profile(tier=Tier.INTERMEDIATE):
    profile = StrengthProfile.for_tier(tier)
    profile.search_depth = 2
    profile.mcts_iterations = 30
    profile.time_limit = 0.5
    return profile


class TestScenarios:
    def test_win_horizontal(self):
        b = make_board(x=[(0, 0), (0, 1), (0, 2), (0, 3)], o=[(1, 0), (1, 1), (1, 2)])
        move = request_move(b, Mark.X, Mark.O, 7, fast_profile(), seed=1)
        assert move.position == Point(0, 4)
        assert move.classification is MoveType.WINNING
        assert move.score == 1000.0

    def test_block_horizontal(self):
        b = make_board(x=[(1, 0), (1, 1), (2, 5)], o=[(0, 0), (0, 1), (0, 2), (0, 3)])
        move = request_move(b, Mark.X, Mark.O, 7, fast_profile(), seed=1)
        assert move.position == Point(0, 4)
        assert move.classification is MoveType.BLOCKING
        assert move.score >= 950

    def test_empty_board_opening(self):
        move = request_move(Board(), Mark.X, Mark.O, 0, fast_profile(Tier.MASTER), seed=1)
        assert move.position == Point(0, 0)

    def test_diagonal_block(self):
        b = make_board(x=[(0, 3), (3, 0), (5, 5)], o=[(0, 0), (1, 1), (2, 2), (3, 3)])
        move = request_move(b, Mark.X, Mark.O, 7, fast_profile(), seed=1)
        assert move.position in (Point(4, 4), Point(-1, -1))
        assert move.classification is MoveType.BLOCKING

    def test_multi_threat_block(self):
        b = make_board(
            x=[(5, 0), (6, 1), (7, 2), (-3, 8), (8, 8), (0, -4)],
            o=[(1, 1), (1, 2), (1, 3), (2, 4), (3, 4), (4, 4)],
        )
        move = request_move(b, Mark.X, Mark.O, 12, fast_profile(), seed=1)
        assert move.position == Point(1, 4)


class TestRequestMove:
    def test_caller_board_untouched(self):
        b = make_board(x=[(0, 0), (1, 1)], o=[(0, 1)])
        before = b.copy()
        request_move(b, Mark.O, Mark.X, 3, fast_profile(), seed=3)
        assert b == before

    def test_accepts_plain_mapping(self):
        stones = {(0, 0): Mark.X, (0, 1): Mark.X, (0, 2): Mark.X, (0, 3): Mark.X, (5, 5): Mark.O}
        move = request_move(stones, Mark.X, Mark.O, 5, fast_profile(), seed=1)
        assert move.position == Point(0, 4)

    def test_defaults(self):
        move = request_move(make_board(x=[(0, 0)]), Mark.O, seed=1)
        assert move.position == Point(1, 1)

    def test_invalid_profile(self):
        profile = StrengthProfile(tier="impossible")
        with pytest.raises(InvalidProfileError):
            request_move(Board(), Mark.X, Mark.O, 0, profile)

    def test_far_from_origin(self):
        b = make_board(
            x=[(1000, 1000), (1000, 1001), (1000, 1002), (1000, 1003)],
            o=[(999, 1000), (999, 1001), (999, 1002)],
        )
        move = request_move(b, Mark.X, Mark.O, 7, fast_profile(), seed=1)
        assert move.position == Point(1000, 1004)


class TestEngine:
    def test_submit_move_returns_future(self):
        engine = Engine(EngineConfig(seed=4))
        try:
            b = make_board(x=[(0, 0), (0, 1), (0, 2), (0, 3)], o=[(1, 1)])
            future = engine.submit_move(b, Mark.X, Mark.O, 5, fast_profile())
            assert future.result(timeout=30).position == Point(0, 4)
        finally:
            engine.shutdown()

    def test_record_game_result_changes_tier(self):
        engine = Engine(EngineConfig(seed=0))
        assert engine.effective_tier is Tier.INTERMEDIATE
        changes = [engine.record_game_result(True, 15) for _ in range(3)]
        assert changes[:2] == [None, None]
        assert changes[2].tier is Tier.ADVANCED
        assert engine.effective_tier is Tier.ADVANCED

    def test_adaptive_profile_uses_effective_tier(self):
        engine = Engine(EngineConfig(seed=0))
        for _ in range(3):
            engine.record_game_result(True, 15)
        b = make_board(x=[(0, 0), (0, 1), (0, 2), (0, 3)], o=[(1, 1)])
        move = engine.request_move(b, Mark.X, Mark.O, 5, StrengthProfile.for_tier(Tier.ADAPTIVE))
        assert move.classification is MoveType.WINNING

    def test_save_and_load(self, tmp_path):
        engine = Engine(EngineConfig(seed=0))
        for _ in range(3):
            engine.record_game_result(True, 15)
        path = tmp_path / "profile.json"
        engine.save(path)
        restored = Engine.load(path)
        assert restored.effective_tier is Tier.ADVANCED
        assert restored.controller.record == engine.controller.record

    def test_load_rejects_fixed_tier(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text(
            '{"tier": "novice", "record": {"total_games": 0, "wins": 0, "losses": 0,'
            ' "current_win_streak": 0, "current_loss_streak": 0, "longest_win_streak": 0,'
            ' "average_turns_to_win": 0.0}}'
        )
        with pytest.raises(ValueError):
            Engine.load(path)


class TestAgainstRandom:
    def test_intermediate_beats_random(self):
        engine = Engine(EngineConfig(seed=5))
        opponent = RandomStrategy(random.Random(5))
        profile = fast_profile()
        wins = 0
        for game_index in range(2):
            game = GomokuGameState()
            engine_mark = Mark.X if game_index % 2 == 0 else Mark.O
            while not game.is_over and len(game.moves) < 80:
                if game.current_player is engine_mark:
                    move = engine.request_move(
                        game.board, engine_mark, engine_mark.other, len(game.moves), profile
                    )
                else:
                    move = opponent.select_move(game.snapshot())
                game.apply_move(move.position)
            if game.winner is engine_mark:
                wins += 1
        assert wins == 2
