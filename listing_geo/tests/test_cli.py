"""
Tests for the command-line entrypoint. Output is JSON on stdout.
"""

from __future__ import annotations

import json
import logging

import pytest

from listing_geo.__main__ import main
from listing_geo.config import GazetteerConfig, Settings


def _run(capsys, argv):
    code = main(argv)
    return code, json.loads(capsys.readouterr().out)


@pytest.fixture
def production_logging(monkeypatch):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.setattr(
        "listing_geo.logging_config.get_settings", lambda: Settings(env="production", log_level="INFO")
    )
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestCli:
    def test_extract(self, capsys):
        code, out = _run(capsys, ["extract", "Stunning 2BR apartment located at Five Palm Jumeirah"])
        assert code == 0
        assert out == {"building": "FIVE PALM JUMEIRAH, Palm Jumeirah", "confidence": "high"}

    def test_validate(self, capsys):
        code, out = _run(capsys, [
            "validate", "--lat", "25.104334288891593", "--lng", "55.14869174441605",
            "--building", "FIVE PALM JUMEIRAH, Palm Jumeirah",
        ])
        assert code == 0
        assert out["status"] == "validated"
        assert out["area"] == "PALM_JUMEIRAH"

    def test_nearest(self, capsys):
        code, out = _run(capsys, ["nearest", "--lat", "25.1045", "--lng", "55.1487"])
        assert code == 0
        assert out["building"] == "FIVE PALM JUMEIRAH, Palm Jumeirah"

    def test_identify(self, capsys):
        code, out = _run(capsys, [
            "identify", "--title", "Cozy studio",
            "--description", "Enjoy views of Atlantis The Palm from this cozy studio in Shoreline Apartments",
        ])
        assert code == 0
        assert out["status"] == "text_only"
        assert out["building"] == "SHORELINE APARTMENTS, Palm Jumeirah"

    def test_check(self, capsys):
        code, out = _run(capsys, ["check"])
        assert code == 0
        assert out["ok"] is True
        assert out["errors"] == []
        assert out["buildings"] > 0

    def test_areas(self, capsys):
        code, out = _run(capsys, ["areas"])
        assert code == 0
        keys = [a["key"] for a in out["areas"]]
        assert keys == ["PALM_JUMEIRAH"]
        assert out["areas"][0]["display_name"] == "Palm Jumeirah"

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            main([])

    def test_distances_in_whole_meters(self, capsys):
        code, out = _run(capsys, ["nearest", "--lat", "25.1045", "--lng", "55.1487"])
        assert code == 0
        assert isinstance(out["distance_meters"], int)

    def test_identify_distance_in_whole_meters(self, capsys):
        code, out = _run(capsys, [
            "identify", "--title", "Cozy retreat with sea breeze and modern decor",
            "--lat", "25.1045", "--lng", "55.1487",
        ])
        assert code == 0
        assert out["confidence"] == "coord_only"
        assert isinstance(out["distance_meters"], int)

    def test_check_unreadable_gazetteer(self, capsys, monkeypatch, tmp_path):
        missing = tmp_path / "missing.json"
        monkeypatch.setattr(
            "listing_geo.config.get_settings",
            lambda: Settings(gazetteer=GazetteerConfig(path=str(missing), strict=True)),
        )
        code, out = _run(capsys, ["check"])
        assert code == 1
        assert out["ok"] is False
        assert "missing.json" in out["errors"][0]


class TestProductionLogging:
    def test_json_logs_stay_off_stdout(self, capsys, production_logging):
        code = main(["check"])
        captured = capsys.readouterr()
        assert code == 0
        assert json.loads(captured.out)["ok"] is True
        assert "Gazetteer validation passed" in captured.err
