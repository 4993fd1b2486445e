from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the scholarmind package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scholarmind.core import config as core_config  # noqa: E402
from scholarmind.db import session as db_session  # noqa: E402


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point DATABASE_URL at a temporary SQLite file and reset settings/engine caches."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("STORAGE_BACKEND", "sql")
    core_config.get_settings.cache_clear()
    db_session.reset_engine()
    db_session.create_all()

    yield db_file

    db_session.reset_engine()
    core_config.get_settings.cache_clear()
