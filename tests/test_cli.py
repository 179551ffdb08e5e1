"""Console commands that do not start a server or a window."""

import json

from typer.testing import CliRunner

from frame_annote import __version__
from frame_annote.cli import SAMPLE_VIDEO, app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_seed_registers_sample_video(tmp_path):
    result = runner.invoke(app, ["seed", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0, result.output

    with open(tmp_path / "db.json", encoding="utf-8") as f:
        db = json.load(f)
    assert [v["id"] for v in db["videos"]] == ["sample-video-1"]
    assert db["videos"][0]["duration_ms"] == SAMPLE_VIDEO.duration_ms == 596458
    assert db["annotations"] == []


def test_seed_twice_keeps_one_entry(tmp_path):
    for _ in range(2):
        assert runner.invoke(app, ["seed", "--data-dir", str(tmp_path)]).exit_code == 0
    with open(tmp_path / "db.json", encoding="utf-8") as f:
        assert len(json.load(f)["videos"]) == 1
