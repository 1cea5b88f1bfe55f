"""
Tests for the invoice endpoints.

Tests cover:
- Creation by org staff, links to org/client/creator, duplicate ids
- Creation refused for clients and non-members
- Read/update/delete gated by link and role
- Super-admin override
- Body validation
"""

from __future__ import annotations

import pytest

from app.models import Invoice, OrgInvoice, UserInvoice

from illustrious_shared.schemas.common import Role


@pytest.fixture
async def billing_org(make_user, make_org):
    """Org with an owner, an employee and a client."""
    owner = await make_user("owner@acme.dev")
    employee = await make_user("employee@acme.dev")
    client = await make_user("client@acme.dev")
    org = await make_org({owner.id: Role.OWNER, employee.id: Role.EMPLOYEE, client.id: Role.CLIENT})
    return org, owner, employee, client


class TestCreateInvoice:

    @pytest.mark.asyncio
    async def test_owner_creates_invoice_then_duplicate_conflicts(self, client, billing_org, invoice_body, row_exists):
        org, owner, _, billed = billing_org
        payload = {"client": billed.id, "org": org.id, "invoice": invoice_body("inv-a")}

        resp = await client.post("/invoice", json=payload, headers=owner.headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Invoice created successfully!"
        assert body["data"]["id"] == "inv-a"
        assert body["data"]["paid"] is False
        assert body["data"]["price"] == "250.00"

        assert await row_exists(OrgInvoice, org.id, "inv-a")
        assert await row_exists(UserInvoice, billed.id, "inv-a")
        assert await row_exists(UserInvoice, owner.id, "inv-a")

        resp = await client.post("/invoice", json=payload, headers=owner.headers)
        assert resp.status_code == 409
        assert resp.json()["message"] == "The invoice already exists."

    @pytest.mark.asyncio
    async def test_creator_billing_themselves_is_linked_once(self, client, billing_org, invoice_body, row_exists):
        org, _, employee, _ = billing_org
        payload = {"client": employee.id, "org": org.id, "invoice": invoice_body("inv-self")}
        resp = await client.post("/invoice", json=payload, headers=employee.headers)
        assert resp.status_code == 200
        assert await row_exists(UserInvoice, employee.id, "inv-self")

    @pytest.mark.asyncio
    async def test_client_cannot_create(self, client, billing_org, invoice_body, row_exists):
        org, _, _, billed = billing_org
        payload = {"client": billed.id, "org": org.id, "invoice": invoice_body("inv-c")}
        resp = await client.post("/invoice", json=payload, headers=billed.headers)
        assert resp.status_code == 401
        assert not await row_exists(Invoice, "inv-c")

    @pytest.mark.asyncio
    async def test_non_member_cannot_create(self, client, billing_org, make_user, invoice_body):
        org, _, _, billed = billing_org
        outsider = await make_user()
        payload = {"client": billed.id, "org": org.id, "invoice": invoice_body("inv-x")}
        resp = await client.post("/invoice", json=payload, headers=outsider.headers)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_client(self, client, billing_org, invoice_body):
        org, owner, _, _ = billing_org
        payload = {"client": "nobody", "org": org.id, "invoice": invoice_body("inv-n")}
        resp = await client.post("/invoice", json=payload, headers=owner.headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Client was not found."

    @pytest.mark.asyncio
    async def test_missing_invoice_id(self, client, billing_org, invoice_body):
        org, owner, _, billed = billing_org
        invoice = invoice_body()
        del invoice["id"]
        payload = {"client": billed.id, "org": org.id, "invoice": invoice}
        resp = await client.post("/invoice", json=payload, headers=owner.headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Required details for look up are missing."

    @pytest.mark.asyncio
    async def test_period_end_before_start(self, client, billing_org, invoice_body):
        org, owner, _, billed = billing_org
        invoice = invoice_body("inv-bad", start="2026-09-30T00:00:00Z", end="2026-09-01T00:00:00Z")
        payload = {"client": billed.id, "org": org.id, "invoice": invoice}
        resp = await client.post("/invoice", json=payload, headers=owner.headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Bad Request!"

    @pytest.mark.asyncio
    async def test_missing_token(self, client, invoice_body):
        resp = await client.post("/invoice", json={"client": "c", "org": "o", "invoice": invoice_body()})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Access token is missing."


class TestReadInvoice:

    @pytest.mark.asyncio
    async def test_linked_client_reads(self, client, billing_org, make_invoice):
        org, _, _, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id])
        resp = await client.get(f"/invoice/{invoice.id}", headers=billed.headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == invoice.id
        assert resp.json()["message"] == "Invoice fetched successfully!"

    @pytest.mark.asyncio
    async def test_unlinked_owner_is_refused(self, client, billing_org, make_invoice):
        org, owner, _, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id])
        resp = await client.get(f"/invoice/{invoice.id}", headers=owner.headers)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_invoice(self, client, billing_org):
        _, owner, _, _ = billing_org
        resp = await client.get("/invoice/does-not-exist", headers=owner.headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Not Found!"

    @pytest.mark.asyncio
    async def test_super_admin_reads_any_invoice(self, client, billing_org, make_invoice, make_user):
        org, _, _, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id])
        admin = await make_user(super_admin=True)
        resp = await client.get(f"/invoice/{invoice.id}", headers=admin.headers)
        assert resp.status_code == 200


class TestUpdateInvoice:

    @pytest.mark.asyncio
    async def test_unlinked_client_cannot_update(self, client, billing_org, make_invoice):
        org, owner, _, member = billing_org
        invoice = await make_invoice(org.id, [owner.id])
        resp = await client.put(f"/invoice/{invoice.id}", json={"paid": True}, headers=member.headers)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_linked_client_cannot_update(self, client, billing_org, make_invoice):
        org, _, _, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id])
        resp = await client.put(f"/invoice/{invoice.id}", json={"paid": True}, headers=billed.headers)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_linked_employee_updates(self, client, billing_org, make_invoice):
        org, _, employee, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id, employee.id])
        resp = await client.put(
            f"/invoice/{invoice.id}",
            json={"paid": True, "price": "120.50"},
            headers=employee.headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["paid"] is True
        assert data["price"] == "120.50"
        assert resp.json()["message"] == "Invoice updated successfully!"

    @pytest.mark.asyncio
    async def test_inverted_period_rejected(self, client, billing_org, make_invoice):
        org, owner, _, _ = billing_org
        invoice = await make_invoice(org.id, [owner.id])
        resp = await client.put(
            f"/invoice/{invoice.id}",
            json={"start": "2030-01-01T00:00:00Z", "end": "2020-01-01T00:00:00Z"},
            headers=owner.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Billing period end must not precede its start."

    @pytest.mark.asyncio
    async def test_end_before_stored_start_rejected(self, client, billing_org, make_invoice, session_factory):
        org, owner, _, _ = billing_org
        invoice = await make_invoice(org.id, [owner.id])
        resp = await client.put(
            f"/invoice/{invoice.id}", json={"end": "2000-01-01T00:00:00Z"}, headers=owner.headers
        )
        assert resp.status_code == 400

        async with session_factory() as session:
            stored = await session.get(Invoice, invoice.id)
        assert stored.end.year != 2000

    @pytest.mark.asyncio
    async def test_partial_period_update(self, client, billing_org, make_invoice):
        org, owner, _, _ = billing_org
        invoice = await make_invoice(org.id, [owner.id])
        resp = await client.put(
            f"/invoice/{invoice.id}", json={"end": "2099-12-31T00:00:00Z"}, headers=owner.headers
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["end"].startswith("2099-12-31")


class TestDeleteInvoice:

    @pytest.mark.asyncio
    async def test_linked_employee_cannot_delete(self, client, billing_org, make_invoice, row_exists):
        org, _, employee, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id, employee.id])
        resp = await client.delete(f"/invoice/{invoice.id}", headers=employee.headers)
        assert resp.status_code == 401
        assert await row_exists(Invoice, invoice.id)

    @pytest.mark.asyncio
    async def test_linked_owner_deletes_with_links(self, client, billing_org, make_invoice, row_exists):
        org, owner, _, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id, owner.id])
        resp = await client.delete(f"/invoice/{invoice.id}", headers=owner.headers)
        assert resp.status_code == 200
        assert resp.json() == {"message": "Invoice deleted successfully!", "data": None}
        assert not await row_exists(Invoice, invoice.id)
        assert not await row_exists(OrgInvoice, org.id, invoice.id)
        assert not await row_exists(UserInvoice, billed.id, invoice.id)

    @pytest.mark.asyncio
    async def test_super_admin_deletes(self, client, billing_org, make_invoice, make_user, row_exists):
        org, _, _, billed = billing_org
        invoice = await make_invoice(org.id, [billed.id])
        admin = await make_user(super_admin=True)
        resp = await client.delete(f"/invoice/{invoice.id}", headers=admin.headers)
        assert resp.status_code == 200
        assert not await row_exists(Invoice, invoice.id)
