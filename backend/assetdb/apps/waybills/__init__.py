"""
Waybills module.

Loan and return documents and the atomic operations that move asset
quantities between the office and job sites.
"""

from .router import router  # noqa: F401
from . import models  # noqa: F401
