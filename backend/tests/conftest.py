"""Shared fixtures: in-memory SQLite with savepoints and default column config."""
import io
import os

# Must be set before tradeintel.db.database builds its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pandas as pd
import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tradeintel.config.mapping_loader import load_mapping_config
from tradeintel.db.database import Base, build_engine
from tradeintel import models  # noqa: F401


@pytest.fixture(autouse=True)
def default_column_config(monkeypatch, tmp_path):
    """Run every test against the built-in aliases unless it writes its own config."""
    monkeypatch.setenv("COLUMN_MAPPINGS_PATH", str(tmp_path / "missing.yaml"))
    load_mapping_config.cache_clear()
    yield
    load_mapping_config.cache_clear()


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def xlsx_bytes():
    """Build an .xlsx file in memory from a list of row dicts."""
    def _build(rows, columns=None):
        buffer = io.BytesIO()
        pd.DataFrame(rows, columns=columns).to_excel(buffer, index=False, engine="openpyxl")
        return buffer.getvalue()

    return _build
