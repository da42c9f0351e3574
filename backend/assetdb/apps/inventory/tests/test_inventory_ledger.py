from __future__ import annotations

import pytest

from assetdb.apps.inventory import models as inventory_models
from assetdb.apps.inventory import movements as inventory_movements
from assetdb.apps.inventory import quantities
from assetdb.apps.inventory import reconciliation
from assetdb.apps.inventory import schemas as inventory_schemas
from assetdb.apps.inventory import services as inventory_services
from assetdb.errors import AssetNotFound


def _create_asset(db, *, name: str = "Scaffold Pipe", quantity: int = 100) -> inventory_models.Asset:
    asset = inventory_services.create_asset(
        db,
        payload=inventory_schemas.AssetCreate(name=name, quantity=quantity, unit="pcs", category="scaffolding"),
    )
    db.commit()
    return asset


def test_create_asset_starts_fully_available(db_session):
    asset = _create_asset(db_session, quantity=40)

    assert asset.id is not None
    assert asset.reserved_quantity == 0
    assert asset.damaged_count == 0
    assert asset.missing_count == 0
    assert asset.site_quantities == {}
    assert asset.available_quantity == 40


def test_recompute_available_ignores_site_quantities(db_session):
    asset = _create_asset(db_session)
    quantities.apply_counters(
        asset,
        reserved=20,
        damaged=3,
        missing=1,
        site_quantities={"S1": 20},
    )

    assert asset.available_quantity == 76
    assert quantities.recompute_available(asset) == 76
    assert quantities.recompute_available(asset, reserved=0) == 96


def test_site_quantity_helpers_drop_emptied_keys():
    start = {"S1": 5, "S2": 2}

    grown = quantities.add_to_site(start, "S3", 4)
    assert grown == {"S1": 5, "S2": 2, "S3": 4}
    assert start == {"S1": 5, "S2": 2}

    assert quantities.remove_from_site(grown, "S2", 2) == {"S1": 5, "S3": 4}
    # Removing more than is present floors at zero.
    assert quantities.remove_from_site(grown, "S1", 9) == {"S2": 2, "S3": 4}
    assert quantities.add_to_site({}, 7, 3) == {"7": 3}


def test_get_asset_or_raise_reports_missing_asset(db_session):
    with pytest.raises(AssetNotFound) as excinfo:
        inventory_services.get_asset_or_raise(db_session, 999)

    assert excinfo.value.code == "asset_not_found"
    assert "999" in excinfo.value.message
    assert inventory_services.get_asset(db_session, "not-a-number") is None


def test_site_inventory_lists_only_assets_present(db_session):
    pipes = _create_asset(db_session, name="Scaffold Pipe")
    clamps = _create_asset(db_session, name="Coupler Clamp")
    _create_asset(db_session, name="Ladder")
    quantities.apply_counters(pipes, reserved=10, site_quantities={"S1": 10})
    quantities.apply_counters(clamps, reserved=4, site_quantities={"S1": 4, "S2": 6})
    db_session.commit()

    stock = inventory_services.site_inventory(db_session, site_id="S1")

    assert [(item.asset_name, item.quantity) for item in stock] == [("Scaffold Pipe", 10), ("Coupler Clamp", 4)]
    assert [item.asset_name for item in inventory_services.site_inventory(db_session, site_id="S2")] == ["Coupler Clamp"]
    assert inventory_services.site_inventory(db_session, site_id="S9") == []


def test_movements_are_listed_and_removed_by_reference(db_session):
    asset = _create_asset(db_session)
    for reference_id in ("WB001", "WB001", "WB002"):
        inventory_movements.record_movement(
            db_session,
            site_id="S1",
            asset=asset,
            quantity=5,
            direction=inventory_models.MovementDirectionEnum.IN,
            kind=inventory_models.MovementKindEnum.WAYBILL,
            reference_id=reference_id,
            reference_type="waybill",
        )
    db_session.commit()

    assert len(inventory_movements.list_movements(db_session, site_id="S1")) == 3
    assert len(inventory_movements.list_movements(db_session, reference_id="WB001")) == 2

    removed = inventory_movements.delete_for_reference(db_session, reference_id="WB001", reference_type="waybill")
    db_session.commit()

    assert removed == 2
    remaining = inventory_movements.list_movements(db_session, asset_id=asset.id)
    assert [entry.reference_id for entry in remaining] == ["WB002"]
    assert remaining[0].asset_name == "Scaffold Pipe"
    assert remaining[0].direction == inventory_models.MovementDirectionEnum.IN


def test_reconciliation_fixes_drift_and_is_idempotent(db_session):
    healthy = _create_asset(db_session, name="Healthy", quantity=50)
    drifted = _create_asset(db_session, name="Drifted", quantity=100)
    drifted.reserved_quantity = 20
    drifted.damaged_count = 3
    drifted.missing_count = 1
    drifted.site_quantities = {"S1": 20}
    # Stale value from a formula that also subtracted site stock.
    drifted.available_quantity = 56
    db_session.commit()

    first = reconciliation.reconcile_available_quantities(db_session)

    assert first == {"checked": 2, "fixed": 1, "fixed_asset_ids": [drifted.id]}
    db_session.refresh(drifted)
    assert drifted.available_quantity == 76
    assert healthy.available_quantity == 50

    second = reconciliation.reconcile_available_quantities(db_session)
    assert second["fixed"] == 0
    assert second["fixed_asset_ids"] == []
