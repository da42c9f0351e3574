"""Asset reconciliation job.

Run on demand or from cron/Task Scheduler to recompute every asset's
available quantity from its counters and persist any drift.
"""

from __future__ import annotations

from assetdb.database import WriteSessionLocal
from assetdb.apps.inventory.reconciliation import reconcile_available_quantities


def run() -> dict:
    """Execute the reconciliation pass and return its summary dict."""
    db = WriteSessionLocal()
    try:
        return reconcile_available_quantities(db)
    finally:
        db.close()


if __name__ == "__main__":
    result = run()
    print("Asset reconciliation completed:", result)
