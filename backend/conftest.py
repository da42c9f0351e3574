from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ASSETDB_RECONCILE_ON_STARTUP"] = "0"

from assetdb.database import Base  # noqa: E402
from assetdb.apps.inventory import models as inventory_models  # noqa: E402
from assetdb.apps.waybills import models as waybill_models  # noqa: E402


@pytest.fixture()
def db_session():
    # StaticPool keeps one connection so TestClient threads see the same in-memory DB.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(
        bind=engine,
        tables=[
            inventory_models.Asset.__table__,
            inventory_models.SiteTransaction.__table__,
            waybill_models.Waybill.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
