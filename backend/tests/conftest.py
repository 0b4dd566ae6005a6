from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.storage.database import Database
from app.utils.config_utils import get_config, load_config


@pytest.fixture()
def db_path(tmp_path: Path, monkeypatch):
    """Point the application at a fresh SQLite file for one test."""
    path = tmp_path / "okr.db"
    monkeypatch.setenv("CRUD_API__DATABASE__PATH", str(path))
    monkeypatch.setenv("CRUD_API_CONFIG_FILE", str(tmp_path / "absent.toml"))
    get_config.cache_clear()
    yield path
    get_config.cache_clear()


@pytest.fixture()
def client(db_path):
    from app.main import app, database

    database.metadata_cache.clear()
    with TestClient(app) as c:
        yield c
    database.metadata_cache.clear()


@pytest_asyncio.fixture()
async def database(tmp_path: Path):
    """A Database set up on its own file, without going through the app."""
    config = load_config(
        config_file=tmp_path / "absent.toml",
        environ={"CRUD_API__DATABASE__PATH": str(tmp_path / "store.db")},
    )
    db = Database()
    await db.setup(config)
    yield db
    await db.aclose()


@pytest.fixture()
def okr_payload():
    return {
        "objective": "Grow revenue",
        "keyreesulttext": "Increase sales",
        "keyresultmetric": 10,
        "unit": "percent",
        "targetdate": "2025-12-31",
    }
