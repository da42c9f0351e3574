# backend/assetdb/database.py
"""
Database configuration for the asset ledger.

Key goals:
- One embedded SQLite file by default; any SQLAlchemy URL can be configured.
- Every ledger operation receives its Session explicitly (see `get_db`).
- Short aliases `engine`, `SessionLocal` and `get_db` for callers and tests.
"""

import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# -------------------------------------------------------------------
# CONFIG FROM ENV
# -------------------------------------------------------------------
#
# DATABASE_WRITE_URL  (preferred)
# DATABASE_URL        (fallback)
#
# When neither is set the ledger uses a local SQLite file:
#   ASSETDB_DATA_DIR     directory holding the file (default: cwd)
#   ASSETDB_DB_FILENAME  file name (default: assetdb.sqlite)
#
# Example value:
#   sqlite+pysqlite:////srv/assetdb/assetdb.sqlite
# -------------------------------------------------------------------

DB_FILENAME = os.getenv("ASSETDB_DB_FILENAME", "assetdb.sqlite")
DATA_DIR = os.getenv("ASSETDB_DATA_DIR", ".")


def _default_sqlite_url() -> str:
    path = Path(DATA_DIR).expanduser().resolve() / DB_FILENAME
    return f"sqlite+pysqlite:///{path}"


WRITE_DB_URL = os.getenv("DATABASE_WRITE_URL") or os.getenv("DATABASE_URL") or _default_sqlite_url()

# Pool tuning only applies to server databases; SQLite keeps its default pool.
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))          # seconds
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE_SEC", "1800"))    # 30 minutes


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool; the Session is never shared
        # between concurrent requests.
        return {
            "connect_args": {"check_same_thread": False},
            "future": True,
        }
    return {
        "pool_pre_ping": True,                # detect dead connections
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
        "pool_recycle": POOL_RECYCLE,
        "future": True,
    }


# -------------------------------------------------------------------
# ENGINE
# -------------------------------------------------------------------

write_engine = create_engine(WRITE_DB_URL, **_engine_kwargs(WRITE_DB_URL))

# -------------------------------------------------------------------
# SESSIONS
# -------------------------------------------------------------------

WriteSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=write_engine,
    future=True,
)

# Declarative base for all models
Base = declarative_base()

# -------------------------------------------------------------------
# DEPENDENCIES (for FastAPI)
# -------------------------------------------------------------------

def get_write_db():
    """
    Dependency handing one Session to a request.

    Ledger operations commit or roll back on the Session they are given;
    the dependency only closes it.
    """
    db = WriteSessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# ALIASES
# -------------------------------------------------------------------

engine = write_engine
SessionLocal = WriteSessionLocal
get_db = get_write_db
