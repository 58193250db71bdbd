"""Adaptive difficulty: move the effective tier with the player's results."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from infinigomoku.agent.policy import ADAPTIVE_ITERATIONS, ADAPTIVE_START, TIER_BUDGETS, StrengthProfile
from infinigomoku.game.record import MatchRecord
from infinigomoku.game.types import Tier

logger = logging.getLogger(__name__)

TIER_ORDER = (Tier.INTERMEDIATE, Tier.ADVANCED, Tier.MASTER)

# No adjustment before this many games
MIN_GAMES = 3

RAISE_WIN_RATE = 0.75
LOWER_WIN_RATE = 0.25
STREAK_LENGTH = 3
QUICK_WIN_TURNS = 10
QUICK_WIN_MIN_WINS = 2

ITERATION_VARIANCE = 50
MIN_ITERATIONS = 100
MAX_ITERATIONS = 1500


@dataclass(frozen=True)
class TierChange:
    tier: Tier
    reason: str


class AdaptiveController:
    """Owns the match record and the effective tier of one adaptive opponent."""

    def __init__(
        self,
        record: Optional[MatchRecord] = None,
        effective_tier: Tier = ADAPTIVE_START,
        rng: Optional[random.Random] = None,
    ) -> None:
        assert effective_tier in TIER_ORDER, f"{effective_tier} is not an adaptive tier"
        self.record = record or MatchRecord()
        self.effective_tier = effective_tier
        self.iterations = ADAPTIVE_ITERATIONS
        self.last_reason: Optional[str] = None
        self.rng = rng or random.Random()

    def record_game_result(self, player_won: bool, turns_played: int) -> Optional[TierChange]:
        """Fold one finished game into the record and adjust the tier."""
        self.record.record_game(player_won, turns_played)
        change = self.evaluate()
        if change is None:
            return None
        logger.info("adaptive tier %s -> %s: %s", self.effective_tier, change.tier, change.reason)
        self.effective_tier = change.tier
        self.last_reason = change.reason
        self.iterations = self._vary_iterations(change.tier)
        return change

    def evaluate(self) -> Optional[TierChange]:
        """The change the current record calls for, without applying it."""
        r = self.record
        if r.total_games < MIN_GAMES:
            return None

        if r.win_rate > RAISE_WIN_RATE or r.current_win_streak >= STREAK_LENGTH:
            reason = "On a winning streak!" if r.current_win_streak >= STREAK_LENGTH else "Increasing challenge"
            return self._step(+1, reason)
        if r.win_rate < LOWER_WIN_RATE or r.current_loss_streak >= STREAK_LENGTH:
            return self._step(-1, "Making it easier")
        if r.wins >= QUICK_WIN_MIN_WINS and r.average_turns_to_win < QUICK_WIN_TURNS:
            return self._step(+1, "Quick wins detected")
        return None

    def _step(self, delta: int, reason: str) -> Optional[TierChange]:
        index = TIER_ORDER.index(self.effective_tier) + delta
        if not 0 <= index < len(TIER_ORDER):
            return None
        return TierChange(TIER_ORDER[index], reason)

    def _vary_iterations(self, tier: Tier) -> int:
        varied = TIER_BUDGETS[tier].mcts_iterations + self.rng.randint(-ITERATION_VARIANCE, ITERATION_VARIANCE)
        return max(MIN_ITERATIONS, min(MAX_ITERATIONS, varied))

    def apply_to(self, profile: StrengthProfile) -> StrengthProfile:
        """A copy of an adaptive `profile` running at the current effective tier."""
        return profile.with_effective_tier(self.effective_tier, self.iterations, self.last_reason)
