import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_data_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("data")
    # Point the data layer at this temp directory; never read a developer config.yaml
    os.environ["DB_DATA_PATH"] = str(path)
    os.environ["LEADERBOARD_CONFIG"] = str(path / "missing-config.yaml")
    from leaderboard.db import ensure_schema
    ensure_schema(str(path))
    return str(path)


@pytest.fixture()
def db_file(tmp_data_path):
    from leaderboard.db import DB_FILENAME
    return os.path.join(tmp_data_path, DB_FILENAME)


@pytest.fixture(autouse=True)
def _clean_db(tmp_data_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("DB_DATA_PATH") == tmp_data_path, "Refusing to clean non-temp DB"
    from leaderboard.db import DB_FILENAME
    tables = [
        "activity",
        "contributor",
        "slack_eod_update",
        "operation_log",
    ]
    conn = sqlite3.connect(os.path.join(tmp_data_path, DB_FILENAME))
    try:
        for t in tables:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
