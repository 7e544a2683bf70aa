from __future__ import annotations

# leaderboard/services/utils.py
import json
import math
from datetime import date, datetime, timezone
from typing import Any, Sequence, TypeVar

T = TypeVar("T")

NULL = "NULL"


# ===== 时间格式 =====

def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_date_str(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = to_utc(value).date()
    return value.isoformat()  # YYYY-MM-DD


def to_timestamp_str(value: datetime) -> str:
    # 2024-01-31T09:30:00.000Z
    return to_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_json_str(value: dict) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


# ===== SQL 字面量转义（只用于渲染 SQL 脚本，写库一律走参数绑定） =====

def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def sql_string(value: str | None) -> str:
    if value is None:
        return NULL
    return _quote(str(value))


def sql_json(value: dict | None) -> str:
    if value is None:
        return NULL
    return _quote(to_json_str(value))


def sql_date(value: date | datetime | None) -> str:
    if value is None:
        return NULL
    return _quote(to_date_str(value))


def sql_timestamp(value: datetime | None) -> str:
    if value is None:
        return NULL
    return _quote(to_timestamp_str(value))


def sql_literal(value: Any) -> str:
    """Render one typed value as SQL literal text.

    Only single quotes are neutralised (doubled); the output is meant for
    SQL scripts, not for executing untrusted input.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"cannot render non-finite number: {value!r}")
        return repr(value)
    if isinstance(value, str):
        return sql_string(value)
    if isinstance(value, dict):
        return sql_json(value)
    # datetime 是 date 的子类，必须先判断
    if isinstance(value, datetime):
        return sql_timestamp(value)
    if isinstance(value, date):
        return sql_date(value)
    raise TypeError(f"unsupported SQL literal type: {type(value).__name__}")


def bind_value(value: Any) -> Any:
    """Convert a typed value into something sqlite3 binds natively."""
    if isinstance(value, dict):
        return to_json_str(value)
    if isinstance(value, datetime):
        return to_timestamp_str(value)
    if isinstance(value, date):
        return to_date_str(value)
    return value


# ===== 分批 & 占位符 =====

def batch_list(items: Sequence[T], size: int) -> list[list[T]]:
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def positional_placeholders(rows: int, cols: int, marker: str = "?") -> str:
    """(?1, ?2, ?3), (?4, ?5, ?6), ... numbered row-major, starting at 1."""
    if rows < 0:
        raise ValueError(f"rows must be >= 0, got {rows}")
    if cols < 1:
        raise ValueError(f"cols must be >= 1, got {cols}")
    params = [f"{marker}{i + 1}" for i in range(rows * cols)]
    return ", ".join("(" + ", ".join(group) + ")" for group in batch_list(params, cols))


def flatten_rows(rows: Sequence[Sequence[Any]], cols: int) -> list[Any]:
    out: list[Any] = []
    for i, row in enumerate(rows):
        if len(row) != cols:
            raise ValueError(f"row {i} has {len(row)} values, expected {cols}")
        out.extend(bind_value(v) for v in row)
    return out


def conflict_clause(columns: Sequence[str], conflict_key: str | None) -> str:
    """conflict_key=None -> DO NOTHING; otherwise overwrite every non-key column."""
    if conflict_key is None:
        return "ON CONFLICT DO NOTHING"
    sets = ", ".join(f"{c} = excluded.{c}" for c in columns if c != conflict_key)
    return f"ON CONFLICT ({conflict_key}) DO UPDATE SET {sets}"


def build_insert_sql(
    table: str,
    columns: Sequence[str],
    rows: int,
    conflict_key: str | None = None,
    marker: str = "?",
) -> str:
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES {positional_placeholders(rows, len(columns), marker)} "
        f"{conflict_clause(columns, conflict_key)}"
    )


def render_insert_sql(
    table: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    conflict_key: str | None = None,
) -> str:
    """Same statement as build_insert_sql, with values inlined as escaped literals."""
    values = []
    for i, row in enumerate(rows):
        if len(row) != len(columns):
            raise ValueError(f"row {i} has {len(row)} values, expected {len(columns)}")
        values.append("(" + ", ".join(sql_literal(v) for v in row) + ")")
    return (
        f"INSERT INTO {table} ({', '.join(columns)})\n"
        f"VALUES\n  " + ",\n  ".join(values) + "\n"
        f"{conflict_clause(columns, conflict_key)};\n"
    )
