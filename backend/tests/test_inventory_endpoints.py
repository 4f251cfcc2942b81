"""Tests for supplier, storage location and component CRUD endpoints."""
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock, MagicMock, patch

from app.main import app
from app.core.deps import get_current_user
from app.db.session import get_session
from app.models.storage_location import StorageLocation
from app.models.supplier import Supplier
from app.services.components import DuplicateSkuError, OwnerNotFoundError

TEAM_ID = uuid.UUID("0b6a8f57-3c1e-4a55-9f5e-0c7b1f7d2a10")
SUPPLIER_ID = uuid.UUID("5d3c1f0e-7a2b-4c8d-9e6f-1a2b3c4d5e6f")
NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


# ─── Fixtures ─────────────────────────────────────────────────────────────────

class FakeUser:
    def __init__(self, role: str = "ADMIN"):
        self.id = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")
        self.team_id = TEAM_ID
        self.email = "admin@example.com"
        self.name = "Admin User"
        self.role = role
        self.is_active = True


def _result(*, scalar_one=None, first=None, one_or_none=None, items=()):
    result = MagicMock()
    result.scalar_one.return_value = scalar_one
    result.scalar_one_or_none.return_value = one_or_none
    result.scalars.return_value.first.return_value = first
    result.scalars.return_value.all.return_value = list(items)
    return result


async def _fill_server_defaults(obj):
    """Stand-in for refresh(): populate what the database would generate."""
    if getattr(obj, "id", None) is None:
        obj.id = uuid.uuid4()
    obj.created_at = NOW
    obj.updated_at = NOW


def make_mock_session(*results):
    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(side_effect=list(results))
    mock_session.add = MagicMock()
    mock_session.refresh = AsyncMock(side_effect=_fill_server_defaults)
    return mock_session


def install_overrides(mock_session, role: str = "ADMIN"):
    async def _session():
        yield mock_session

    async def _user():
        return FakeUser(role=role)

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_current_user] = _user


def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def supplier_row(name="Acme Components"):
    return SimpleNamespace(
        id=uuid.uuid4(), name=name, contact_person=None, email=None, phone=None,
        address=None, notes=None, is_active=True, created_at=NOW, updated_at=NOW,
    )


def component_row(**overrides):
    values = dict(
        id=uuid.uuid4(), name="Resistor 10k", sku="R-10K", description=None, category="Passive",
        owner_type="supplier", supplier_id=SUPPLIER_ID, storage_location_id=None,
        quantity=100, unit="pcs", unit_cost="0.05", reorder_level=10, is_active=True,
        created_at=NOW, updated_at=NOW,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


# ─── Suppliers ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_suppliers_paginated():
    mock_session = make_mock_session(
        _result(scalar_one=2),
        _result(items=[supplier_row("Acme Components"), supplier_row("Beta Parts")]),
    )
    install_overrides(mock_session, role="VIEWER")
    try:
        async with client() as c:
            response = await c.get("/api/v1/inventory/suppliers", params={"page": 1, "page_size": 10})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["page_size"] == 10
    assert [s["name"] for s in body["items"]] == ["Acme Components", "Beta Parts"]


@pytest.mark.asyncio
async def test_get_supplier_not_found():
    install_overrides(make_mock_session(_result(one_or_none=None)))
    try:
        async with client() as c:
            response = await c.get(f"/api/v1/inventory/suppliers/{uuid.uuid4()}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_supplier():
    mock_session = make_mock_session(_result(first=None))
    install_overrides(mock_session, role="INVENTORY_MANAGER")
    try:
        async with client() as c:
            response = await c.post(
                "/api/v1/inventory/suppliers",
                json={"name": "  Acme Components ", "email": "sales@acme.example.com"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Acme Components"
    assert body["email"] == "sales@acme.example.com"
    added = [c.args[0] for c in mock_session.add.call_args_list]
    supplier = next(a for a in added if isinstance(a, Supplier))
    assert supplier.team_id == TEAM_ID
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_supplier_duplicate_name_conflict():
    mock_session = make_mock_session(_result(first=SUPPLIER_ID))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.post("/api/v1/inventory/suppliers", json={"name": "Acme Components"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_supplier_rejects_invalid_email():
    install_overrides(make_mock_session())
    try:
        async with client() as c:
            response = await c.post("/api/v1/inventory/suppliers", json={"name": "Acme", "email": "not-an-email"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 422


# ─── Storage locations ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_location():
    mock_session = make_mock_session(_result(first=None))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.post(
                "/api/v1/inventory/locations",
                json={"location_code": "WH-A-02", "name": "Warehouse A, shelf 2"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 201
    assert response.json()["location_code"] == "WH-A-02"
    added = [c.args[0] for c in mock_session.add.call_args_list]
    assert any(isinstance(a, StorageLocation) for a in added)


@pytest.mark.asyncio
async def test_create_location_duplicate_code_conflict():
    install_overrides(make_mock_session(_result(first=uuid.uuid4())))
    try:
        async with client() as c:
            response = await c.post(
                "/api/v1/inventory/locations",
                json={"location_code": "WH-A-01", "name": "Warehouse A"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_location_unknown_parent():
    install_overrides(make_mock_session(_result(first=None), _result(first=None)))
    try:
        async with client() as c:
            response = await c.post(
                "/api/v1/inventory/locations",
                json={"location_code": "WH-A-03", "name": "Bin 3", "parent_location_id": str(uuid.uuid4())},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 404
    assert response.json()["detail"] == "Parent location not found."


# ─── Components ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_components_low_stock_filter():
    mock_session = make_mock_session(_result(scalar_one=1), _result(items=[component_row(quantity=5)]))
    install_overrides(mock_session, role="VIEWER")
    try:
        async with client() as c:
            response = await c.get("/api/v1/inventory/components", params={"low_stock": "true", "search": "resistor"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["quantity"] == 5
    count_stmt = str(mock_session.execute.await_args_list[0].args[0])
    assert "reorder_level" in count_stmt


@pytest.mark.asyncio
async def test_get_component_not_found():
    install_overrides(make_mock_session(_result(one_or_none=None)))
    try:
        async with client() as c:
            response = await c.get(f"/api/v1/inventory/components/{uuid.uuid4()}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_component_returns_201():
    mock_session = make_mock_session()
    install_overrides(mock_session, role="INVENTORY_MANAGER")
    created = component_row()
    try:
        with patch("app.services.components.create_component", AsyncMock(return_value=created)) as create:
            async with client() as c:
                response = await c.post(
                    "/api/v1/inventory/components",
                    json={
                        "name": "Resistor 10k",
                        "sku": "R-10K",
                        "owner_type": "supplier",
                        "supplier_id": str(SUPPLIER_ID),
                        "quantity": 100,
                        "unit_cost": "0.05",
                    },
                )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 201
    assert response.json()["sku"] == "R-10K"
    data = create.await_args.args[1]
    assert data.supplier_id == SUPPLIER_ID
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_component_requires_matching_owner_id():
    install_overrides(make_mock_session())
    try:
        async with client() as c:
            response = await c.post(
                "/api/v1/inventory/components",
                json={"name": "Fuse", "owner_type": "storage_location", "supplier_id": str(SUPPLIER_ID)},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_component_duplicate_sku_conflict():
    mock_session = make_mock_session()
    install_overrides(mock_session)
    try:
        with patch(
            "app.services.components.create_component",
            AsyncMock(side_effect=DuplicateSkuError("Component with SKU 'R-10K' already exists")),
        ):
            async with client() as c:
                response = await c.post(
                    "/api/v1/inventory/components",
                    json={"name": "Resistor", "sku": "R-10K", "owner_type": "supplier", "supplier_id": str(SUPPLIER_ID)},
                )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_component_unknown_owner_is_422():
    install_overrides(make_mock_session())
    try:
        with patch(
            "app.services.components.create_component",
            AsyncMock(side_effect=OwnerNotFoundError(f"Supplier {SUPPLIER_ID} not found")),
        ):
            async with client() as c:
                response = await c.post(
                    "/api/v1/inventory/components",
                    json={"name": "Resistor", "owner_type": "supplier", "supplier_id": str(SUPPLIER_ID)},
                )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 422
    assert "not found" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_component_forbidden_for_viewer():
    install_overrides(make_mock_session(), role="VIEWER")
    try:
        async with client() as c:
            response = await c.post(
                "/api/v1/inventory/components",
                json={"name": "Resistor", "owner_type": "supplier", "supplier_id": str(SUPPLIER_ID)},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 403


# ─── Updates and soft deletes ─────────────────────────────────────────────────

def location_row(location_id=None, code="WH-A-01"):
    return SimpleNamespace(
        id=location_id or uuid.uuid4(), location_code=code, name="Warehouse A", description=None,
        parent_location_id=None, is_active=True, created_at=NOW, updated_at=NOW,
    )


def audit_actions(mock_session):
    return [c.args[0].action for c in mock_session.add.call_args_list if hasattr(c.args[0], "action")]


@pytest.mark.asyncio
async def test_update_supplier_renames_and_audits():
    supplier = supplier_row("Acme Components")
    mock_session = make_mock_session(_result(one_or_none=supplier), _result(first=None))
    install_overrides(mock_session, role="INVENTORY_MANAGER")
    try:
        async with client() as c:
            response = await c.patch(
                f"/api/v1/inventory/suppliers/{supplier.id}",
                json={"name": " Acme Industrial ", "phone": "+1 555 0100"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["name"] == "Acme Industrial"
    assert supplier.phone == "+1 555 0100"
    assert audit_actions(mock_session) == ["supplier.updated"]
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_supplier_duplicate_name_conflict():
    supplier = supplier_row("Acme Components")
    mock_session = make_mock_session(_result(one_or_none=supplier), _result(first=uuid.uuid4()))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/suppliers/{supplier.id}", json={"name": "Beta Parts"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    assert supplier.name == "Acme Components"
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_supplier_empty_body_rejected():
    supplier = supplier_row()
    install_overrides(make_mock_session(_result(one_or_none=supplier)))
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/suppliers/{supplier.id}", json={})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_supplier_of_other_team_not_found():
    mock_session = make_mock_session(_result(one_or_none=None))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/suppliers/{uuid.uuid4()}", json={"notes": "x"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 404
    where = str(mock_session.execute.await_args_list[0].args[0])
    assert "team_id" in where


@pytest.mark.asyncio
async def test_delete_supplier_soft_deletes():
    supplier = supplier_row()
    mock_session = make_mock_session(_result(one_or_none=supplier))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.delete(f"/api/v1/inventory/suppliers/{supplier.id}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 204
    assert supplier.is_active is False
    assert audit_actions(mock_session) == ["supplier.deleted"]
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_supplier_forbidden_for_viewer():
    install_overrides(make_mock_session(), role="VIEWER")
    try:
        async with client() as c:
            response = await c.delete(f"/api/v1/inventory/suppliers/{uuid.uuid4()}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_location_rejects_cycle():
    location = location_row()
    child_id = uuid.uuid4()
    mock_session = make_mock_session(
        _result(one_or_none=location),
        _result(first=child_id),      # parent exists
        _result(first=location.id),   # child's parent is the location itself
    )
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.patch(
                f"/api/v1/inventory/locations/{location.id}",
                json={"parent_location_id": str(child_id)},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400
    assert "Circular" in response.json()["detail"]
    assert location.parent_location_id is None


@pytest.mark.asyncio
async def test_update_location_rejects_self_parent():
    location = location_row()
    install_overrides(make_mock_session(_result(one_or_none=location), _result(first=location.id)))
    try:
        async with client() as c:
            response = await c.patch(
                f"/api/v1/inventory/locations/{location.id}",
                json={"parent_location_id": str(location.id)},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_location_moves_under_parent():
    location = location_row()
    parent_id = uuid.uuid4()
    mock_session = make_mock_session(
        _result(one_or_none=location),
        _result(first=parent_id),
        _result(first=None),   # parent is a root
    )
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.patch(
                f"/api/v1/inventory/locations/{location.id}",
                json={"parent_location_id": str(parent_id), "name": "Bin 4 "},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["parent_location_id"] == str(parent_id)
    assert location.name == "Bin 4"
    assert audit_actions(mock_session) == ["storage_location.updated"]


@pytest.mark.asyncio
async def test_update_location_duplicate_code_conflict():
    location = location_row()
    install_overrides(make_mock_session(_result(one_or_none=location), _result(first=uuid.uuid4())))
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/locations/{location.id}", json={"location_code": "WH-B-01"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_location_with_active_children_conflict():
    location = location_row()
    mock_session = make_mock_session(_result(one_or_none=location), _result(scalar_one=2))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.delete(f"/api/v1/inventory/locations/{location.id}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    assert location.is_active is True
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_location_soft_deletes():
    location = location_row()
    mock_session = make_mock_session(_result(one_or_none=location), _result(scalar_one=0))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.delete(f"/api/v1/inventory/locations/{location.id}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 204
    assert location.is_active is False
    assert audit_actions(mock_session) == ["storage_location.deleted"]


@pytest.mark.asyncio
async def test_update_component_quantity():
    component = component_row()
    mock_session = make_mock_session(_result(one_or_none=component))
    install_overrides(mock_session, role="INVENTORY_MANAGER")
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/components/{component.id}", json={"quantity": 7})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["quantity"] == 7
    assert audit_actions(mock_session) == ["component.updated"]
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_component_duplicate_sku_conflict():
    component = component_row()
    mock_session = make_mock_session(_result(one_or_none=component), _result(first=uuid.uuid4()))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/components/{component.id}", json={"sku": "C-1"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    assert component.sku == "R-10K"


@pytest.mark.asyncio
async def test_update_component_switch_owner_without_id_is_422():
    component = component_row()
    install_overrides(make_mock_session(_result(one_or_none=component)))
    try:
        async with client() as c:
            response = await c.patch(
                f"/api/v1/inventory/components/{component.id}",
                json={"owner_type": "storage_location"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_component_null_quantity_is_422():
    component = component_row()
    install_overrides(make_mock_session(_result(one_or_none=component)))
    try:
        async with client() as c:
            response = await c.patch(f"/api/v1/inventory/components/{component.id}", json={"quantity": None})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_component_soft_deletes():
    component = component_row()
    mock_session = make_mock_session(_result(one_or_none=component))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.delete(f"/api/v1/inventory/components/{component.id}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 204
    assert component.is_active is False
    assert audit_actions(mock_session) == ["component.deleted"]


@pytest.mark.asyncio
async def test_delete_component_of_other_team_not_found():
    mock_session = make_mock_session(_result(one_or_none=None))
    install_overrides(mock_session)
    try:
        async with client() as c:
            response = await c.delete(f"/api/v1/inventory/components/{uuid.uuid4()}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 404
    mock_session.commit.assert_not_awaited()
