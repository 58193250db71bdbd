"""Difficulty tiers, personalities and the pipeline each tier runs."""

from __future__ import annotations

import dataclasses
import enum
import logging
import random
from dataclasses import dataclass
from typing import Optional, TypeVar, Union

from infinigomoku.agent.base import Move, Strategy
from infinigomoku.agent.heuristic import NOVICE_BLOCK_PROBABILITY, NoviceStrategy, opening_move
from infinigomoku.agent.mcts import ROLLOUT_LIMIT, MCTSEngine
from infinigomoku.agent.minimax import MAX_CANDIDATES_ROOT, MinimaxEngine
from infinigomoku.agent.random_agent import RandomStrategy
from infinigomoku.agent.threats import tactical_move
from infinigomoku.game.board import GameSnapshot, format_point
from infinigomoku.game.types import MoveType, Personality, Tier

logger = logging.getLogger(__name__)

PERSONALITY_BOOST = 1.2
UNPREDICTABLE_RANGE = (0.8, 1.2)

E = TypeVar("E", bound=enum.Enum)


class InvalidProfileError(ValueError):
    """A tier or personality outside the supported set."""


@dataclass(frozen=True)
class TierBudget:
    search_depth: int
    mcts_iterations: int
    time_limit: float


TIER_BUDGETS: dict[Tier, TierBudget] = {
    Tier.NOVICE: TierBudget(search_depth=1, mcts_iterations=0, time_limit=0.5),
    Tier.INTERMEDIATE: TierBudget(search_depth=3, mcts_iterations=250, time_limit=1.0),
    Tier.ADVANCED: TierBudget(search_depth=5, mcts_iterations=500, time_limit=2.0),
    Tier.MASTER: TierBudget(search_depth=7, mcts_iterations=800, time_limit=3.0),
}
# The adaptive tier starts here and borrows the budget of its effective tier
ADAPTIVE_START = Tier.INTERMEDIATE
ADAPTIVE_ITERATIONS = 400


def _coerce(enum_cls: type[E], value: Union[E, str], what: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidProfileError(f"unknown {what}: {value!r}") from None


@dataclass
class StrengthProfile:
    tier: Tier
    personality: Personality = Personality.BALANCED
    search_depth: int = 3
    mcts_iterations: int = 250
    time_limit: float = 1.0
    # Only meaningful for the adaptive tier
    effective_tier: Optional[Tier] = None
    change_reason: Optional[str] = None

    @classmethod
    def for_tier(
        cls,
        tier: Union[Tier, str],
        personality: Union[Personality, str] = Personality.BALANCED,
    ) -> StrengthProfile:
        tier = _coerce(Tier, tier, "tier")
        personality = _coerce(Personality, personality, "personality")
        if tier is Tier.ADAPTIVE:
            budget = TIER_BUDGETS[ADAPTIVE_START]
            return cls(
                tier, personality, budget.search_depth, ADAPTIVE_ITERATIONS,
                budget.time_limit, effective_tier=ADAPTIVE_START,
            )
        budget = TIER_BUDGETS[tier]
        return cls(tier, personality, budget.search_depth, budget.mcts_iterations, budget.time_limit)

    @property
    def active_tier(self) -> Tier:
        """The tier whose pipeline runs; the adaptive tier resolves to its effective tier."""
        if self.tier is Tier.ADAPTIVE:
            return self.effective_tier or ADAPTIVE_START
        return self.tier

    def with_effective_tier(self, tier: Tier, iterations: int, reason: Optional[str] = None) -> StrengthProfile:
        budget = TIER_BUDGETS[tier]
        return dataclasses.replace(
            self,
            search_depth=budget.search_depth,
            mcts_iterations=iterations,
            time_limit=budget.time_limit,
            effective_tier=tier,
            change_reason=reason,
        )


def validate_profile(profile: StrengthProfile) -> None:
    """Raise InvalidProfileError before any search starts."""
    if not isinstance(profile.tier, Tier):
        raise InvalidProfileError(f"unknown tier: {profile.tier!r}")
    if not isinstance(profile.personality, Personality):
        raise InvalidProfileError(f"unknown personality: {profile.personality!r}")
    if profile.effective_tier is not None and profile.effective_tier not in TIER_BUDGETS:
        raise InvalidProfileError(f"invalid effective tier: {profile.effective_tier!r}")
    if profile.search_depth < 1 or profile.mcts_iterations < 0 or profile.time_limit <= 0:
        raise InvalidProfileError(f"budgets must be positive: {profile!r}")


# ---------------------------------------------------------------------------
# Personality
# ---------------------------------------------------------------------------

def _scaled(score: float, factor: float) -> float:
    # Scale the magnitude so a negative score also moves up when boosted
    return score + abs(score) * (factor - 1.0)


def apply_personality(
    moves: list[Move], personality: Personality, rng: Optional[random.Random] = None
) -> list[Move]:
    """Re-score `moves` with the personality bias and sort them best first."""
    if personality is Personality.BALANCED:
        return sorted(moves, key=lambda m: (-m.score, m.position))
    rng = rng or random.Random()
    biased = []
    for move in moves:
        factor = 1.0
        if personality is Personality.AGGRESSIVE and move.classification is MoveType.THREATENING:
            factor = PERSONALITY_BOOST
        elif personality is Personality.DEFENSIVE and move.classification is MoveType.BLOCKING:
            factor = PERSONALITY_BOOST
        elif personality is Personality.UNPREDICTABLE:
            factor = rng.uniform(*UNPREDICTABLE_RANGE)
        biased.append(dataclasses.replace(move, score=_scaled(move.score, factor)))
    biased.sort(key=lambda m: (-m.score, m.position))
    return biased


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------

def build_pipeline(
    profile: StrengthProfile,
    rng: Optional[random.Random] = None,
    novice_block_probability: float = NOVICE_BLOCK_PROBABILITY,
    rollout_limit: int = ROLLOUT_LIMIT,
    max_candidates: int = MAX_CANDIDATES_ROOT,
) -> list[Strategy]:
    """Strategies to try in order for the profile's active tier.

    The first one that produces a move decides; a random strategy closes
    every pipeline.
    """
    rng = rng or random.Random()
    tier = profile.active_tier
    minimax = MinimaxEngine(profile.search_depth, profile.time_limit, max_candidates=max_candidates)
    mcts = MCTSEngine(
        max(1, profile.mcts_iterations), profile.time_limit,
        rollout_limit=rollout_limit, rng=rng,
    )
    if tier is Tier.NOVICE:
        pipeline: list[Strategy] = [NoviceStrategy(rng, block_probability=novice_block_probability)]
    elif tier is Tier.INTERMEDIATE:
        pipeline = [minimax]
    elif tier is Tier.ADVANCED:
        pipeline = [minimax, mcts]
    else:
        pipeline = [mcts, minimax]
    pipeline.append(RandomStrategy(rng))
    return pipeline


def choose_move(
    snapshot: GameSnapshot,
    profile: StrengthProfile,
    rng: Optional[random.Random] = None,
    **pipeline_options,
) -> Optional[Move]:
    """Pick one move for `snapshot` under `profile`."""
    validate_profile(profile)
    rng = rng or random.Random()
    board = snapshot.board

    opening = opening_move(board)
    if opening is not None:
        return Move(opening, 0.0, MoveType.POSITIONAL, confidence=0.5)

    pipeline = build_pipeline(profile, rng, **pipeline_options)

    if profile.active_tier is Tier.NOVICE:
        # The novice decides on its own how often to block
        for strategy in pipeline:
            move = strategy.select_move(snapshot)
            if move is not None:
                return move
        return None

    forced = tactical_move(board, snapshot.to_move, snapshot.opponent)
    if forced is not None:
        logger.debug("forced %s", forced)
        return forced

    for strategy in pipeline:
        moves = strategy.score_moves(snapshot)
        if moves:
            best = apply_personality(moves, profile.personality, rng)[0]
            logger.debug("%s chose %s via %s", profile.active_tier, format_point(best.position), strategy.name)
            return best
    return None
