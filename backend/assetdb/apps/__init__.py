"""Feature apps: inventory, waybills and the status workflow."""
