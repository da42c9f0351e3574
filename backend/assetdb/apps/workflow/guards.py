from __future__ import annotations

from typing import Any, Dict, Iterable, List

GuardResult = List[Dict[str, str]]


def _get_value(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _items(obj: Any) -> Iterable[Any]:
    return _get_value(obj, "items") or []


def guard_all_items_returned(
    *,
    before_obj: Any,
    after_obj: Any,
    from_state: str,
    to_state: str,
) -> GuardResult:
    missing = []
    for item in _items(after_obj):
        returned = _get_value(item, "returned_quantity") or 0
        quantity = _get_value(item, "quantity") or 0
        if returned < quantity:
            missing.append(
                {
                    "field": f"items[{_get_value(item, 'asset_id')}]",
                    "reason": f"{quantity - returned} unit(s) not yet returned",
                }
            )
    return missing


def guard_items_outstanding(
    *,
    before_obj: Any,
    after_obj: Any,
    from_state: str,
    to_state: str,
) -> GuardResult:
    if not list(_items(after_obj)):
        return [{"field": "items", "reason": "waybill has no line items"}]
    return []
