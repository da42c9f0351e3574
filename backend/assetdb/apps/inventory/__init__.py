"""
Inventory module.

Holds asset quantity records, the site movement log and the reconciliation pass.
"""

from .router import router  # noqa: F401
from . import models  # noqa: F401
