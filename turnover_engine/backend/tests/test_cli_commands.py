# backend/tests/test_cli_commands.py
from __future__ import annotations

import json

import pytest

from turnover.cli.__main__ import main


def test_vacancy_report_command_prints_json(capsys):
    code = main(
        [
            "vacancy-report",
            "--vacancy-start",
            "2025-09-24",
            "--target-move-in",
            "2025-10-08",
            "--today",
            "2025-09-28",
            "--list-tasks",
        ]
    )
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["insights"]["readiness_level"] == "at_risk"
    assert len(out["tasks"]) == 10


def test_vacancy_report_command_reports_bad_window(capsys):
    code = main(["vacancy-report", "--vacancy-start", "2025-10-08", "--target-move-in", "2025-09-24"])
    assert code == 2
    assert "before vacancy_start" in capsys.readouterr().err


def test_missing_apollo_file_is_reported(tmp_path, capsys):
    code = main(
        [
            "vacancy-report",
            "--vacancy-start",
            "2025-09-24",
            "--target-move-in",
            "2025-10-08",
            "--apollo-csv",
            str(tmp_path / "missing.csv"),
        ]
    )
    assert code == 2
    assert json.loads(capsys.readouterr().err)["ok"] is False


def test_evaluate_application_command(tmp_path, capsys, application_payload):
    p = tmp_path / "app.json"
    p.write_text(json.dumps(application_payload), encoding="utf-8")

    assert main(["evaluate-application", str(p)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["decision"] == "approved"
    assert out["total_score"] == 65


@pytest.mark.parametrize(
    "content,message",
    [
        ("{not json", "is not valid JSON"),
        ("[1, 2, 3]", "must hold a JSON object"),
        ('{"criminal_history": [{"description": "no classification"}]}', "is not a valid application"),
    ],
)
def test_evaluate_application_rejects_unusable_payloads(tmp_path, capsys, content, message):
    p = tmp_path / "bad.json"
    p.write_text(content, encoding="utf-8")

    assert main(["evaluate-application", str(p)]) == 2
    captured = capsys.readouterr()
    err = json.loads(captured.err.strip().splitlines()[-1])
    assert err["ok"] is False
    assert message in err["error"]
    assert captured.out == ""
