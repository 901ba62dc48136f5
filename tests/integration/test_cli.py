"""End-to-end tests of the command line interface against a scratch database."""

import json

import pytest

from reelpost.cli import main

pytestmark = pytest.mark.integration


@pytest.fixture
def workspace(tmp_dir, monkeypatch):
    monkeypatch.chdir(tmp_dir)
    monkeypatch.setenv("REELPOST_DATABASE_URL", f"sqlite:///{tmp_dir / 'data' / 'cli.db'}")
    monkeypatch.setenv("REELPOST_WORK_DIR", str(tmp_dir / "work"))
    monkeypatch.setenv("REELPOST_OUTPUT_DIR", str(tmp_dir / "outputs"))
    monkeypatch.setenv("REELPOST_KILL_SWITCH_PATH", str(tmp_dir / "KILL_SWITCH"))
    return tmp_dir


def test_setup_ingest_and_run(workspace, clip_file, capsys):
    assert main(["setup"]) == 0
    assert main(["ingest", str(clip_file)]) == 0
    assert main(["run"]) == 0
    tick = json.loads(capsys.readouterr().out.split("\n", 2)[-1])
    assert tick["status"] == "ran"
    assert tick["run"]["state"] == "done"

    assert main(["status", "--json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["jobs_by_state"]["done"] == 1
    assert summary["posted_today"] == 1
    assert summary["clips_available"] == 0


def test_run_without_work_is_idle(workspace, capsys):
    assert main(["run"]) == 0
    assert json.loads(capsys.readouterr().out)["status"] == "idle"


def test_retry_unknown_job(workspace, capsys):
    assert main(["retry", "job-missing"]) == 2
    assert "job-missing not found" in capsys.readouterr().err


def test_kill_switch_blocks_run(workspace, clip_file, capsys):
    assert main(["ingest", "--create-job", str(clip_file)]) == 0
    (workspace / "KILL_SWITCH").touch()
    capsys.readouterr()
    assert main(["run"]) == 1
    tick = json.loads(capsys.readouterr().out)
    assert tick["status"] == "error"
    assert "Kill switch" in tick["error"]


def test_ingest_missing_file(workspace, capsys):
    assert main(["ingest", str(workspace / "missing.mp4")]) == 2
    assert "Clip not found" in capsys.readouterr().err


def test_config_roundtrip(workspace, capsys):
    assert main(["config", "tts.voice", "nova"]) == 0
    out = capsys.readouterr().out
    assert "tts.voice = nova" in out
    assert "REELPOST_TTS_VOICE" in out

    assert main(["config", "bogus.key"]) == 2


def test_providers_marks_active(workspace, capsys):
    assert main(["providers"]) == 0
    out = capsys.readouterr().out
    assert "*mock" in out
    assert "instagram" in out
