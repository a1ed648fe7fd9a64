"""
Tests for configuration and the command line entry point.

The Config singleton is redirected to a temporary directory so tests
never touch ~/.ringstat.
"""

import json

import pytest

from ringstat.main import main
from ringstat.utils.config import Config

EXPORT = {
    "shooters": {
        "Muster|Max": [
            {"session_id": 1, "session_date": "2024-01-05 18:00:00",
             "discipline": "LG 10m", "shots_count": 2, "total_score": 200,
             "total_score_decimal": 209, "best_teiler_raw": 1751},
            {"session_id": 2, "session_date": "2024-02-01 18:00:00",
             "discipline": "LG 10m", "shots_count": 10, "total_score": 900,
             "total_score_decimal": 950, "best_teiler_raw": 493},
        ],
        "Probe|Paula": [
            {"session_id": 3, "session_date": "2024-01-10 18:00:00",
             "discipline": "KK 50m", "shots_count": 10, "total_score": 800,
             "total_score_decimal": 850, "best_teiler_raw": None},
        ],
    },
    "shots": {
        "1": [
            {"shot_number": 1, "x": 0, "y": 0, "ring": 100, "ring01": 105},
            {"shot_number": 2, "x": 100, "y": 100, "ring": 100, "ring01": 104},
        ],
    },
}


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "_instance", None)
    monkeypatch.setattr(Config, "_APP_DIR", tmp_path / ".ringstat")
    monkeypatch.setattr(Config, "_CONFIG_FILE", tmp_path / ".ringstat" / "config.json")
    monkeypatch.delenv("RINGSTAT_DATA_FILE", raising=False)
    return tmp_path


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(EXPORT))
    return path


def run(capsys, *argv):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


class TestConfig:

    def test_defaults(self, isolated_config):
        config = Config()
        assert config.get("trend_limit") == 12
        assert config.get("trend_period") == "monthly"
        assert config.get("score_trend_limit") == 20
        assert Config.get_data_file() is None

    def test_set_persists(self, isolated_config):
        Config().set("trend_limit", 6)
        saved = json.loads((isolated_config / ".ringstat" / "config.json").read_text())
        assert saved["trend_limit"] == 6

    def test_saved_values_override_defaults(self, isolated_config):
        config_dir = isolated_config / ".ringstat"
        config_dir.mkdir()
        (config_dir / "config.json").write_text(json.dumps({"leaderboard_limit": 5}))
        config = Config()
        assert config.get("leaderboard_limit") == 5
        assert config.get("trend_limit") == 12

    def test_env_overrides_data_file(self, isolated_config, monkeypatch):
        Config().set("data_file", "/from/config.json")
        monkeypatch.setenv("RINGSTAT_DATA_FILE", "/from/env.json")
        assert str(Config.get_data_file()) == "/from/env.json"


class TestCli:

    def test_analyze(self, isolated_config, export_file, capsys):
        result = run(capsys, "--data", str(export_file), "analyze", "1",
                     "--discipline", "KK 50m")
        assert result["shots"] == 2
        assert result["analysis"]["teiler"]["best"] == pytest.approx(2 ** 0.5)
        assert result["best_teiler"]["from_shot"] == 1
        assert result["distribution"] == [{"name": "10", "value": 2}]
        assert result["target"]["target_type"] == "KK"

    def test_stats(self, isolated_config, export_file, capsys):
        stats = run(capsys, "--data", str(export_file), "stats", "Muster|Max")["stats"]
        assert stats["total_sessions"] == 2
        assert stats["total_shots"] == 12
        # (20.9 + 95.0) / 12
        assert stats["average_score"] == "9.7"
        assert stats["best_teiler"] == "49.3"

    def test_trend(self, isolated_config, export_file, capsys):
        result = run(capsys, "--data", str(export_file), "trend", "Muster|Max",
                     "--metric", "bestScore", "--period", "monthly")
        assert [p["key"] for p in result["data"]] == ["2024-01", "2024-02"]
        assert result["data"][1]["value"] == 95.0
        assert result["score_trend"][0]["date"] == "2024-01-05"

    def test_trend_score_series_limit_from_config(self, isolated_config,
                                                  export_file, capsys):
        Config().set("score_trend_limit", 1)
        result = run(capsys, "--data", str(export_file), "trend", "Muster|Max")
        assert result["score_trend"] == [{"date": "2024-02-01", "score": 95.0}]

    def test_sessions(self, isolated_config, export_file, capsys):
        result = run(capsys, "--data", str(export_file), "sessions", "Muster|Max")
        assert result["pagination"]["total_sessions"] == 2
        assert result["sessions"][0]["session_id"] == "2"

    def test_leaderboard(self, isolated_config, export_file, capsys):
        result = run(capsys, "--data", str(export_file), "leaderboard",
                     "--sort-by", "bestTeiler")
        names = [e["username"] for e in result["leaderboard"]]
        assert names == ["Muster|Max", "Probe|Paula"]
        assert result["leaderboard"][1]["best_teiler"] is None

    def test_data_file_from_env(self, isolated_config, export_file, capsys,
                                monkeypatch):
        monkeypatch.setenv("RINGSTAT_DATA_FILE", str(export_file))
        result = run(capsys, "stats", "Probe|Paula")
        assert result["stats"]["average_score"] == "8.5"

    def test_missing_export_exits(self, isolated_config, tmp_path):
        with pytest.raises(SystemExit):
            main(["--data", str(tmp_path / "missing.json"), "stats", "X|Y"])

    def test_no_data_file(self, isolated_config):
        with pytest.raises(SystemExit):
            main(["stats", "X|Y"])
