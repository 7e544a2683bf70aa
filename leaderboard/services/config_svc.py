# leaderboard/services/config_svc.py
import logging

from ..db import ConfigError, read_config_yaml

DEFAULTS = {
    "eod_batch_size": 1000,
    "upsert_batch_size": 500,
    "log_level": "INFO",
    "operation_log": True,
}


def _positive_int(cfg: dict, key: str) -> int:
    raw = cfg.get(key, DEFAULTS[key])
    try:
        v = int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
    if v < 1:
        raise ConfigError(f"{key} must be >= 1, got {v}")
    return v


def _bool(cfg: dict, key: str) -> bool:
    raw = cfg.get(key, DEFAULTS[key])
    # 只接受 YAML 布尔值；带引号的 "false" 是字符串
    if not isinstance(raw, bool):
        raise ConfigError(f"{key} must be true or false, got {raw!r}")
    return raw


def get_config() -> dict:
    """config.yaml 覆盖默认值；缺失的键走 DEFAULTS。"""
    cfg = read_config_yaml()

    level = str(cfg.get("log_level", DEFAULTS["log_level"])).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"unknown log_level: {level}")

    return {
        "eod_batch_size": _positive_int(cfg, "eod_batch_size"),
        "upsert_batch_size": _positive_int(cfg, "upsert_batch_size"),
        "log_level": level,
        "operation_log": _bool(cfg, "operation_log"),
    }
