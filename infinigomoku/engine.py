"""Entry points: ask for a move, report a finished game."""

from __future__ import annotations

import logging
import random
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from infinigomoku.agent.adaptive import TIER_ORDER, AdaptiveController, TierChange
from infinigomoku.agent.base import Move
from infinigomoku.agent.heuristic import NOVICE_BLOCK_PROBABILITY
from infinigomoku.agent.mcts import ROLLOUT_LIMIT
from infinigomoku.agent.minimax import MAX_CANDIDATES_ROOT
from infinigomoku.agent.policy import StrengthProfile, choose_move, validate_profile
from infinigomoku.game.board import Board, GameSnapshot
from infinigomoku.game.record import load_profile, save_profile
from infinigomoku.game.types import Mark, Tier

logger = logging.getLogger(__name__)

BoardLike = Union[Board, Mapping[tuple[int, int], Mark]]


@dataclass
class EngineConfig:
    seed: Optional[int] = None
    novice_block_probability: float = NOVICE_BLOCK_PROBABILITY
    rollout_limit: int = ROLLOUT_LIMIT
    max_candidates: int = MAX_CANDIDATES_ROOT
    max_workers: int = 1


class Engine:
    """Move selection plus the adaptive state that outlives a single request."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        controller: Optional[AdaptiveController] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.rng = random.Random(self.config.seed)
        self.controller = controller or AdaptiveController(rng=self.rng)
        self._executor: Optional[ThreadPoolExecutor] = None

    def request_move(
        self,
        board: BoardLike,
        to_move: Mark,
        opponent: Optional[Mark] = None,
        move_count: Optional[int] = None,
        profile: Optional[StrengthProfile] = None,
    ) -> Optional[Move]:
        """One move for `to_move`, or None if no empty cell is left in the window.

        The caller's board is copied, never mutated.
        """
        if profile is None:
            profile = StrengthProfile.for_tier(Tier.INTERMEDIATE)
        validate_profile(profile)
        if profile.tier is Tier.ADAPTIVE:
            profile = self.controller.apply_to(profile)

        private = board.copy() if isinstance(board, Board) else Board(board)
        snapshot = GameSnapshot.create(private, to_move, opponent, move_count)
        move = choose_move(
            snapshot,
            profile,
            self.rng,
            novice_block_probability=self.config.novice_block_probability,
            rollout_limit=self.config.rollout_limit,
            max_candidates=self.config.max_candidates,
        )
        logger.debug("%s (%s) plays %s", to_move, profile.active_tier, move)
        return move

    def submit_move(self, *args, **kwargs) -> Future:
        """Run `request_move` on a worker thread. Discard the future to cancel."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.config.max_workers)
        return self._executor.submit(self.request_move, *args, **kwargs)

    def record_game_result(self, player_won: bool, turns_played: int) -> Optional[TierChange]:
        return self.controller.record_game_result(player_won, turns_played)

    @property
    def effective_tier(self) -> Tier:
        return self.controller.effective_tier

    def save(self, path: Union[str, Path]) -> None:
        save_profile(path, self.controller.record, self.controller.effective_tier)

    @classmethod
    def load(cls, path: Union[str, Path], config: Optional[EngineConfig] = None) -> Engine:
        record, tier = load_profile(path)
        if tier not in TIER_ORDER:
            raise ValueError(f"profile tier {tier.value!r} is not an adaptive tier")
        config = config or EngineConfig()
        controller = AdaptiveController(record, tier, rng=random.Random(config.seed))
        return cls(config, controller)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


def request_move(
    board: BoardLike,
    to_move: Mark,
    opponent: Optional[Mark] = None,
    move_count: Optional[int] = None,
    profile: Optional[StrengthProfile] = None,
    seed: Optional[int] = None,
) -> Optional[Move]:
    """Stateless shortcut for a single move with a fresh Engine."""
    return Engine(EngineConfig(seed=seed)).request_move(board, to_move, opponent, move_count, profile)
