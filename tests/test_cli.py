from __future__ import annotations

import json

import pytest

from tools.cli import puzzlectl
from tools.reports import generation_report

from conftest import TODAY, make_payload


@pytest.fixture
def cli_env(reload_config, tmp_path, monkeypatch):
    monkeypatch.setenv("PUZZLE_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    reload_config.reload()
    return tmp_path


def _run(capsys, *argv: str):
    code = puzzlectl.main(list(argv))
    out = capsys.readouterr().out
    return code, (json.loads(out) if out.strip() else None)


def test_create_publish_list_and_stats(cli_env, capsys) -> None:
    body = cli_env / "payload.json"
    body.write_text(make_payload().dumps(), encoding="utf-8")

    code, created = _run(capsys, "create", TODAY, f"@{body}", "--title", "CLI", "--difficulty", "2")
    assert code == 0
    assert created["status"] == "draft"
    assert created["difficulty"] == 2
    assert created["title"] == "CLI"

    code, published = _run(capsys, "publish", TODAY)
    assert published["status"] == "published"

    code, listing = _run(capsys, "list", "--status", "published")
    assert [item["date_utc"] for item in listing] == [TODAY]

    code, stats = _run(capsys, "stats", TODAY)
    assert stats["views"] == 0


def test_service_errors_exit_non_zero(cli_env, capsys) -> None:
    assert puzzlectl.main(["publish", "2030-01-01"]) == 1
    assert "error:" in capsys.readouterr().err


def test_report_aggregates_generation_events(tmp_path) -> None:
    log = tmp_path / "20240101" / "generation_00.jsonl"
    log.parent.mkdir()
    events = [
        {"event": "generation", "flow": "random", "variants": ["king", "thermo"], "clue_count": 30,
         "clue_target": 30, "trials": 60, "elapsed_ms": 100},
        {"event": "generation", "flow": "custom", "variants": ["thermo"], "clue_count": 34,
         "clue_target": 30, "trials": 81, "elapsed_ms": 300},
        {"event": "other"},
    ]
    log.write_text("\n".join(json.dumps(e) for e in events) + "\n", encoding="utf-8")

    summary = generation_report.aggregate([log], top=1)
    assert summary["total_events"] == 2
    assert summary["flows"] == {"random": 1, "custom": 1}
    assert summary["top_variants"] == [("thermo", 2)]
    assert summary["mean_clue_count"] == 32.0
    assert summary["above_clue_target"] == 1
