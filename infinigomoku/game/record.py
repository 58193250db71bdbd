"""Per-player match history and its JSON persistence."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Union

from .types import Tier


@dataclass
class MatchRecord:
    """Running counters over every completed game against one player."""

    total_games: int = 0
    wins: int = 0
    losses: int = 0
    current_win_streak: int = 0
    current_loss_streak: int = 0
    longest_win_streak: int = 0
    average_turns_to_win: float = 0.0

    @property
    def win_rate(self) -> float:
        if self.total_games == 0:
            return 0.0
        return self.wins / self.total_games

    def record_game(self, player_won: bool, turns_played: int) -> None:
        """Fold one finished game into the counters."""
        self.total_games += 1
        if player_won:
            self.wins += 1
            self.current_win_streak += 1
            self.current_loss_streak = 0
            self.longest_win_streak = max(self.longest_win_streak, self.current_win_streak)
            # Incremental mean over won games only
            self.average_turns_to_win += (turns_played - self.average_turns_to_win) / self.wins
        else:
            self.losses += 1
            self.current_loss_streak += 1
            self.current_win_streak = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> MatchRecord:
        """Build a record from parsed JSON, rejecting missing or mistyped counters."""
        values = {}
        for f in fields(cls):
            if f.name not in data:
                raise ValueError(f"profile is missing field {f.name!r}")
            value = data[f.name]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"profile field {f.name!r} must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"profile field {f.name!r} must not be negative")
            values[f.name] = float(value) if f.name == "average_turns_to_win" else int(value)
        record = cls(**values)
        if record.wins + record.losses != record.total_games:
            raise ValueError("profile field 'total_games' does not match wins + losses")
        return record


def save_profile(path: Union[str, Path], record: MatchRecord, tier: Tier) -> None:
    """Write the match record and the current adaptive tier as JSON."""
    data = {"tier": tier.value, "record": record.to_dict()}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_profile(path: Union[str, Path]) -> tuple[MatchRecord, Tier]:
    """Read back what save_profile wrote. Raises ValueError on corrupt data."""
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"profile is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("profile must be a JSON object")
    try:
        tier = Tier(data.get("tier"))
    except ValueError as e:
        raise ValueError(f"profile field 'tier' is invalid: {data.get('tier')!r}") from e
    record_data = data.get("record")
    if not isinstance(record_data, dict):
        raise ValueError("profile field 'record' must be an object")
    return MatchRecord.from_dict(record_data), tier
