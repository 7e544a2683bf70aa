# leaderboard/services/import_svc.py
"""Load exported leaderboard data files into validated records."""
import json
from typing import Any, Type, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from ..models import Activity, Contributor, SlackEodMessage

M = TypeVar("M", bound=BaseModel)

# CSV 里以 JSON 文本保存的列
_CSV_JSON_COLUMNS = ("social_profiles", "meta")


def parse_records(model: Type[M], items: list[Any], source: str = "<input>") -> list[M]:
    out: list[M] = []
    for i, raw in enumerate(items):
        try:
            out.append(model.model_validate(raw))
        except ValidationError as e:
            raise ValueError(f"{source}: record {i} is not a valid {model.__name__}: {e}") from e
    return out


def read_json_list(path: str) -> list[Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of records, got {type(data).__name__}")
    return data


def load_contributors_json(path: str) -> list[Contributor]:
    return parse_records(Contributor, read_json_list(path), path)


def load_activities_json(path: str) -> list[Activity]:
    return parse_records(Activity, read_json_list(path), path)


def load_eod_messages_json(path: str) -> list[SlackEodMessage]:
    return parse_records(SlackEodMessage, read_json_list(path), path)


def load_contributors_csv(path: str) -> list[Contributor]:
    """CSV 需含 username 列；social_profiles / meta 列为 JSON 文本，空单元格视为 NULL。"""
    df = pd.read_csv(path, dtype=str)
    if "username" not in df.columns:
        raise ValueError(f"{path}: missing required column 'username'")

    items: list[dict] = []
    for i, (_, r) in enumerate(df.iterrows()):
        rec = {k: (None if pd.isna(v) else str(v).strip()) for k, v in r.items()}
        for col in _CSV_JSON_COLUMNS:
            if rec.get(col):
                try:
                    rec[col] = json.loads(rec[col])
                except json.JSONDecodeError as e:
                    raise ValueError(f"{path}: record {i} column {col} is not valid JSON: {e}") from e
        items.append(rec)
    return parse_records(Contributor, items, path)


def load_contributors(path: str) -> list[Contributor]:
    if path.lower().endswith(".csv"):
        return load_contributors_csv(path)
    return load_contributors_json(path)
