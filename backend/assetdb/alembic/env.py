# backend/assetdb/alembic/env.py
"""Alembic environment for the asset ledger schema.

Run from `backend/`:  alembic upgrade head
The target database comes from DATABASE_WRITE_URL / DATABASE_URL, or the
default SQLite file, unless alembic.ini names a real URL.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from alembic import context

# env.py lives in backend/assetdb/alembic; `assetdb` must import from backend/.
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from assetdb.database import Base, WRITE_DB_URL, write_engine  # noqa: E402
from assetdb.apps.inventory import models as inventory_models  # noqa: F401, E402
from assetdb.apps.waybills import models as waybills_models  # noqa: F401, E402

target_metadata = Base.metadata


def _ini_url() -> str:
    url = (config.get_main_option("sqlalchemy.url") or "").strip()
    # alembic.ini ships the `driver://` placeholder.
    if not url or url.startswith("driver://"):
        return ""
    return url


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Render SQL to stdout without a database connection."""
    url = _ini_url() or WRITE_DB_URL
    config.set_main_option("sqlalchemy.url", url)
    _configure(url=url, literal_binds=True, render_as_batch=url.startswith("sqlite"))


def run_migrations_online() -> None:
    url = _ini_url()
    if url:
        from sqlalchemy import create_engine

        connectable = create_engine(url)
    else:
        connectable = write_engine

    with connectable.connect() as connection:
        # SQLite cannot ALTER most constraints in place.
        _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
