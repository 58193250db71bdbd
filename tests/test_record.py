"""Tests for match records and profile persistence."""

import json

import pytest

from infinigomoku.game.record import MatchRecord, load_profile, save_profile
from infinigomoku.game.types import Tier


@pytest.fixture
def sample_record():
    record = MatchRecord()
    record.record_game(True, 12)
    record.record_game(True, 18)
    record.record_game(False, 40)
    return record


class TestMatchRecord:
    def test_counters(self, sample_record):
        assert sample_record.total_games == 3
        assert sample_record.wins == 2
        assert sample_record.losses == 1
        assert sample_record.current_win_streak == 0
        assert sample_record.current_loss_streak == 1
        assert sample_record.longest_win_streak == 2

    def test_average_turns_counts_wins_only(self, sample_record):
        assert sample_record.average_turns_to_win == pytest.approx(15.0)

    def test_win_rate(self, sample_record):
        assert sample_record.win_rate == pytest.approx(2 / 3)
        assert MatchRecord().win_rate == 0.0


class TestProfilePersistence:
    def test_round_trip(self, tmp_path, sample_record):
        path = tmp_path / "profile.json"
        save_profile(path, sample_record, Tier.ADVANCED)
        record, tier = load_profile(path)
        assert record == sample_record
        assert tier is Tier.ADVANCED

    def test_file_is_json(self, tmp_path, sample_record):
        path = tmp_path / "profile.json"
        save_profile(path, sample_record, Tier.MASTER)
        data = json.loads(path.read_text())
        assert data["tier"] == "master"
        assert data["record"]["wins"] == 2

    def test_not_json(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_profile(path)

    def test_unknown_tier(self, tmp_path, sample_record):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"tier": "legendary", "record": sample_record.to_dict()}))
        with pytest.raises(ValueError, match="tier"):
            load_profile(path)

    def test_missing_field(self, tmp_path, sample_record):
        data = sample_record.to_dict()
        del data["wins"]
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"tier": "advanced", "record": data}))
        with pytest.raises(ValueError, match="wins"):
            load_profile(path)

    def test_negative_counter(self, tmp_path, sample_record):
        data = sample_record.to_dict()
        data["losses"] = -1
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"tier": "advanced", "record": data}))
        with pytest.raises(ValueError, match="losses"):
            load_profile(path)

    def test_inconsistent_totals(self, tmp_path, sample_record):
        data = sample_record.to_dict()
        data["total_games"] = 10
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"tier": "advanced", "record": data}))
        with pytest.raises(ValueError, match="total_games"):
            load_profile(path)
