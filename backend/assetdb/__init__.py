# backend/assetdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- The package exposes a clear surface.

The actual model classes are kept in assetdb/apps/*/models.py.
"""

from .apps.inventory import models as inventory_models        # assets + site movement log
from .apps.waybills import models as waybills_models          # waybills + return waybills

__all__ = [
    "inventory_models",
    "waybills_models",
]
