import json
from datetime import datetime, timedelta, timezone

import pytest

import migrate_v2
from leaderboard.logs import LogContext, search_logs
from leaderboard.models import Activity, Contributor, SlackEodMessage
from leaderboard.services.activity_svc import get_activity, list_activities_for, upsert_activities
from leaderboard.services.contributor_svc import get_contributor, list_contributors, upsert_contributors
from leaderboard.services.eod_svc import add_slack_eod_messages, count_slack_eod_messages


def test_contributor_and_activity_services():
    log = LogContext("TEST_UPSERT")
    assert upsert_contributors([Contributor(username="alice", name="Alice")], log) == 1
    assert log.entity_type == "CONTRIBUTOR" and log.entity_id == "alice"
    assert log.result_obj == {"submitted": 1, "written": 1}

    upsert_activities([Activity(slug="x", contributor="alice", points=3)])
    assert get_contributor("alice")["name"] == "Alice"
    assert get_contributor("nobody") is None
    assert [c["username"] for c in list_contributors()] == ["alice"]
    assert get_activity("x")["points"] == 3
    assert [a["slug"] for a in list_activities_for("alice")] == ["x"]


def test_eod_service_uses_configured_batch_size(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("eod_batch_size: 4\n", encoding="utf-8")
    monkeypatch.setenv("LEADERBOARD_CONFIG", str(cfg))
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    msgs = [SlackEodMessage(id=i, user_id="U1", timestamp=t0 + timedelta(hours=i), text="x") for i in range(10)]

    log = LogContext("TEST_EOD")
    results = add_slack_eod_messages(msgs, log)
    assert [r.submitted for r in results] == [4, 4, 2]
    assert log.result_obj["affected"] == 10
    assert count_slack_eod_messages() == 10
    assert count_slack_eod_messages("U2") == 0

    # explicit batch size wins over config
    assert [r.affected for r in add_slack_eod_messages(msgs, batch_size=10)] == [0]


def test_log_context_writes_operation_log():
    log = LogContext("IMPORT_X")
    log.set_payload({"file": "x.json"})
    log.write("ERROR", "boom")
    LogContext("IMPORT_Y").write()
    LogContext("IMPORT_Z", enabled=False).write()

    total, rows = search_logs(None, None, None, None, 1, 10)
    assert total == 2
    assert {r["action"] for r in rows} == {"IMPORT_X", "IMPORT_Y"}

    total, rows = search_logs("x.json", "IMPORT_X", None, None, 1, 10)
    assert total == 1
    assert rows[0]["result"] == "ERROR"
    assert rows[0]["err_msg"] == "boom"


def test_cli_import_flow(tmp_path, capsys):
    people = tmp_path / "contributors.json"
    people.write_text(json.dumps([{"username": "alice"}, {"username": "bob", "name": "Bob"}]), encoding="utf-8")
    acts = tmp_path / "activities.json"
    acts.write_text(json.dumps([
        {"slug": "a1", "contributor": "alice", "points": 5, "title": "it's merged"},
        {"slug": "b1", "contributor": "bob", "points": 8},
    ]), encoding="utf-8")
    eod = tmp_path / "eod.json"
    eod.write_text(json.dumps([
        {"id": i, "user_id": "U1", "timestamp": "2024-01-01T10:00:00Z", "text": "done"} for i in range(5)
    ]), encoding="utf-8")

    assert migrate_v2.main(["init"]) == 0
    assert migrate_v2.main(["import-contributors", str(people)]) == 0
    assert migrate_v2.main(["import-activities", str(acts)]) == 0
    assert migrate_v2.main(["import-eod", str(eod), "--batch-size", "2"]) == 0
    assert migrate_v2.main(["import-eod", str(eod)]) == 0
    out = capsys.readouterr().out
    assert "Upserted 2/2 contributors" in out
    assert "Added 5/5 Slack EOD messages in 3 batch(es)" in out
    assert "Added 0/5 Slack EOD messages in 1 batch(es)" in out

    assert migrate_v2.main(["stats", "--top", "1"]) == 0
    out = capsys.readouterr().out
    assert "slack_eod_update: 5" in out
    assert "bob" in out and "alice" not in out.split("slack_eod_update: 5")[1]

    total, _ = search_logs(None, None, None, None, 1, 50)
    assert total == 4

    assert migrate_v2.main(["logs", "--action", "IMPORT_SLACK_EOD"]) == 0
    assert "2 log entries" in capsys.readouterr().out


def test_cli_failure_is_logged_and_returns_1(tmp_path, capsys):
    acts = tmp_path / "activities.json"
    acts.write_text(json.dumps([{"slug": "a1", "contributor": "ghost"}]), encoding="utf-8")
    assert migrate_v2.main(["import-activities", str(acts)]) == 1
    assert "FOREIGN KEY" in capsys.readouterr().err

    total, rows = search_logs(None, "IMPORT_ACTIVITIES", None, None, 1, 10)
    assert total == 1
    assert rows[0]["result"] == "ERROR"


def test_cli_missing_data_path(monkeypatch, capsys):
    monkeypatch.delenv("DB_DATA_PATH", raising=False)
    assert migrate_v2.main(["stats"]) == 1
    assert "DB_DATA_PATH" in capsys.readouterr().err


def test_cli_dump_sql(tmp_path):
    src = tmp_path / "contributors.json"
    src.write_text(json.dumps([{"username": "o'neil"}]), encoding="utf-8")
    out = tmp_path / "out.sql"
    assert migrate_v2.main(["dump-sql", "contributor", str(src), "--out", str(out)]) == 0
    assert "'o''neil'" in out.read_text(encoding="utf-8")


def test_eod_zero_batch_size_is_rejected(capsys, tmp_path):
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    msgs = [SlackEodMessage(id=1, user_id="U1", timestamp=t0, text="x")]
    with pytest.raises(ValueError):
        add_slack_eod_messages(msgs, batch_size=0)
    assert count_slack_eod_messages() == 0

    eod = tmp_path / "eod.json"
    eod.write_text(json.dumps([{"id": 1, "user_id": "U1", "timestamp": "2024-01-01T10:00:00Z", "text": "x"}]),
                   encoding="utf-8")
    assert migrate_v2.main(["import-eod", str(eod), "--batch-size", "0"]) == 1
    assert "batch size" in capsys.readouterr().err
