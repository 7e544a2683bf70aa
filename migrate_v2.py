#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Leaderboard v2 migration (SQLite)

Commands:
  init                  Create tables (contributor, activity, slack_eod_update, operation_log)
  import-contributors   Upsert contributors from a JSON array or CSV file
  import-activities     Upsert activities from a JSON array
  import-eod            Insert Slack EOD updates from a JSON array (duplicates ignored)
  dump-sql              Render records as a standalone SQL script instead of writing them
  stats                 Print row counts and points per contributor
  logs                  Show recent operation_log entries

Notes:
- DB_DATA_PATH must point at the data directory (or pass --data-path).
- Optional config.yaml (or LEADERBOARD_CONFIG) tunes batch sizes and log level.
"""

import argparse
import logging
import os
import sqlite3
import sys

from leaderboard.db import ConfigError, ensure_schema, get_conn
from leaderboard.logs import LogContext, search_logs
from leaderboard.repository import activity_repo, contributor_repo, eod_repo
from leaderboard.services.activity_svc import upsert_activities
from leaderboard.services.config_svc import get_config
from leaderboard.services.contributor_svc import upsert_contributors
from leaderboard.services.eod_svc import add_slack_eod_messages
from leaderboard.services.export_svc import TABLES, write_sql_script
from leaderboard.services.import_svc import (
    load_activities_json,
    load_contributors,
    load_eod_messages_json,
)

logger = logging.getLogger("migrate_v2")

_LOADERS = {
    contributor_repo.TABLE: load_contributors,
    activity_repo.TABLE: load_activities_json,
    eod_repo.TABLE: load_eod_messages_json,
}


def _log_ctx(args, action: str) -> LogContext:
    return LogContext(action, data_path=args.data_path, enabled=args.cfg["operation_log"])


def _run_logged(log: LogContext, fn):
    try:
        res = fn()
        log.write("OK")
        return res
    except Exception as e:
        log.write("ERROR", str(e))
        raise


def cmd_init(args):
    ensure_schema(args.data_path)
    print("schema ready")


def cmd_import_contributors(args):
    contributors = load_contributors(args.file)
    log = _log_ctx(args, "IMPORT_CONTRIBUTORS")
    log.set_payload({"file": args.file, "count": len(contributors)})
    n = _run_logged(log, lambda: upsert_contributors(contributors, log, data_path=args.data_path))
    print(f"Upserted {n}/{len(contributors)} contributors")


def cmd_import_activities(args):
    activities = load_activities_json(args.file)
    log = _log_ctx(args, "IMPORT_ACTIVITIES")
    log.set_payload({"file": args.file, "count": len(activities)})
    n = _run_logged(log, lambda: upsert_activities(activities, log, data_path=args.data_path))
    print(f"Upserted {n}/{len(activities)} activities")


def cmd_import_eod(args):
    messages = load_eod_messages_json(args.file)
    log = _log_ctx(args, "IMPORT_SLACK_EOD")
    log.set_payload({"file": args.file, "count": len(messages)})
    results = _run_logged(
        log,
        lambda: add_slack_eod_messages(messages, log, batch_size=args.batch_size, data_path=args.data_path),
    )
    added = sum(r.affected for r in results)
    print(f"Added {added}/{len(messages)} Slack EOD messages in {len(results)} batch(es)")


def cmd_dump_sql(args):
    records = _LOADERS[args.table](args.file)
    n = write_sql_script(args.out, args.table, records, batch_size=args.cfg["upsert_batch_size"])
    print(f"Wrote {n} {args.table} record(s) to {args.out}")


def cmd_stats(args):
    with get_conn(args.data_path) as conn:
        print(f"contributor: {contributor_repo.count_all(conn)}")
        print(f"activity: {activity_repo.count_all(conn)}")
        print(f"slack_eod_update: {eod_repo.count_all(conn)}")
        points = activity_repo.points_by_contributor(conn)
    for username, total in sorted(points.items(), key=lambda kv: (-kv[1], kv[0]))[: args.top]:
        print(f"  {username:<24} {total:g}")


def cmd_logs(args):
    total, rows = search_logs(args.q, args.action, None, None, 1, args.limit, data_path=args.data_path)
    print(f"{total} log entries")
    for r in rows:
        err = f" {r['err_msg']}" if r["err_msg"] else ""
        print(f"{r['ts']} {r['action']:<20} {r['result']:<5} {r['latency_ms']}ms {r['result_json'] or ''}{err}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Leaderboard v2 migration (SQLite)")
    parser.add_argument("--config", default=None, help="config.yaml path (default: ./config.yaml)")
    parser.add_argument("--data-path", default=None, help="database data directory (default: $DB_DATA_PATH)")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create tables")
    p_init.set_defaults(func=cmd_init)

    p_c = sub.add_parser("import-contributors", help="upsert contributors from JSON or CSV")
    p_c.add_argument("file")
    p_c.set_defaults(func=cmd_import_contributors)

    p_a = sub.add_parser("import-activities", help="upsert activities from JSON")
    p_a.add_argument("file")
    p_a.set_defaults(func=cmd_import_activities)

    p_e = sub.add_parser("import-eod", help="insert Slack EOD updates from JSON")
    p_e.add_argument("file")
    p_e.add_argument("--batch-size", type=int, default=None, help="rows per INSERT (default from config, 1000)")
    p_e.set_defaults(func=cmd_import_eod)

    p_d = sub.add_parser("dump-sql", help="render records as a SQL script")
    p_d.add_argument("table", choices=sorted(TABLES))
    p_d.add_argument("file")
    p_d.add_argument("--out", required=True)
    p_d.set_defaults(func=cmd_dump_sql)

    p_s = sub.add_parser("stats", help="row counts and points leaderboard")
    p_s.add_argument("--top", type=int, default=10)
    p_s.set_defaults(func=cmd_stats)

    p_l = sub.add_parser("logs", help="recent operation log entries")
    p_l.add_argument("--action", default=None)
    p_l.add_argument("--q", default=None)
    p_l.add_argument("--limit", type=int, default=20)
    p_l.set_defaults(func=cmd_logs)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    if args.config:
        os.environ["LEADERBOARD_CONFIG"] = args.config
    try:
        args.cfg = get_config()
        logging.basicConfig(level=args.cfg["log_level"], format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        args.func(args)
    except (ConfigError, ValueError, OSError, sqlite3.Error) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
