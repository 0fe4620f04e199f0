"""
JunkHub Backend — Order Tests
===============================

What we test:
    ✅ Placement: totals, price snapshots, stock decrement, one notification
       per distinct owner
    ✅ Rejected placement (stock, missing product) writes nothing
    ✅ Customer cancellation only while pending, without restocking
    ✅ Owner status updates: any supplying owner, "completed" refused
    ✅ Confirmation: delivered only, receipt format, already-confirmed
"""

import re
import uuid

import pytest
from sqlalchemy import func, select

from app.models import Notification, Order
from app.services.order_service import generate_receipt_number

RECEIPT_RE = re.compile(r"^RCP-\d{8}-[0-9A-Z]{8}$")


def _order_body(lines):
    return {
        "items": [{"productId": str(product.id), "quantity": quantity} for product, quantity in lines],
        "shippingAddress": "1 Mabini St",
        "shippingCity": "Manila",
        "shippingZip": "1000",
    }


async def _titles(db, owner_id):
    rows = await db.execute(select(Notification.title).where(Notification.owner_id == owner_id))
    return list(rows.scalars().all())


@pytest.fixture
async def market(make_user, make_owner, make_shop, make_product):
    """Two owners; owner A has two shops, owner B one."""
    user = await make_user()
    owner_a, owner_b, bystander = await make_owner(), await make_owner(), await make_owner()
    shop_a1, shop_a2 = await make_shop(owner_a), await make_shop(owner_a)
    shop_b = await make_shop(owner_b)
    return {
        "user": user,
        "owner_a": owner_a,
        "owner_b": owner_b,
        "bystander": bystander,
        "p1": await make_product(shop_a1, price=100.0, stock=10),
        "p2": await make_product(shop_a2, price=25.5, stock=4),
        "p3": await make_product(shop_b, price=10.0, stock=5),
    }


class TestPlacement:

    @pytest.mark.asyncio
    async def test_places_order(self, client, db, market, auth_headers):
        m = market
        response = await client.post(
            "/api/orders",
            json=_order_body([(m["p1"], 2), (m["p2"], 1), (m["p3"], 3)]),
            headers=auth_headers(m["user"]),
        )

        assert response.status_code == 201
        order = response.json()["order"]
        assert order["status"] == "pending"
        assert order["total"] == 2 * 100.0 + 25.5 + 3 * 10.0
        assert order["receiptNumber"] is None
        assert len(order["items"]) == 3
        assert order["user"]["id"] == str(m["user"].id)

        for product, left in ((m["p1"], 8), (m["p2"], 3), (m["p3"], 2)):
            await db.refresh(product)
            assert product.stock == left

    @pytest.mark.asyncio
    async def test_each_owner_notified_once(self, client, db, market, auth_headers):
        m = market
        await client.post(
            "/api/orders",
            json=_order_body([(m["p1"], 1), (m["p2"], 1), (m["p3"], 1)]),
            headers=auth_headers(m["user"]),
        )

        assert await _titles(db, m["owner_a"].id) == ["New Order Received"]
        assert await _titles(db, m["owner_b"].id) == ["New Order Received"]
        assert await _titles(db, m["bystander"].id) == []

    @pytest.mark.asyncio
    async def test_price_is_snapshotted(self, client, db, market, auth_headers):
        m = market
        placed = await client.post(
            "/api/orders", json=_order_body([(m["p1"], 1)]), headers=auth_headers(m["user"])
        )
        m["p1"].price = 999.0
        await db.commit()

        fetched = await client.get(f"/api/orders/{placed.json()['order']['id']}", headers=auth_headers(m["user"]))

        assert fetched.json()["order"]["items"][0]["price"] == 100.0
        assert fetched.json()["order"]["total"] == 100.0

    @pytest.mark.asyncio
    async def test_repeated_lines_are_aggregated_against_stock(self, client, db, market, auth_headers):
        m = market
        response = await client.post(
            "/api/orders",
            json=_order_body([(m["p3"], 3), (m["p3"], 3)]),
            headers=auth_headers(m["user"]),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_STOCK"
        assert response.json()["error"] == f"Insufficient stock for {m['p3'].name}"
        await db.refresh(m["p3"])
        assert m["p3"].stock == 5

    @pytest.mark.asyncio
    async def test_rejected_order_leaves_everything_untouched(self, client, db, market, auth_headers):
        m = market
        response = await client.post(
            "/api/orders",
            json=_order_body([(m["p1"], 1), (m["p2"], 99)]),
            headers=auth_headers(m["user"]),
        )

        assert response.status_code == 400
        await db.refresh(m["p1"])
        assert m["p1"].stock == 10
        assert (await db.execute(select(func.count()).select_from(Order))).scalar_one() == 0
        assert await _titles(db, m["owner_a"].id) == []

    @pytest.mark.asyncio
    async def test_unknown_product_is_not_found(self, client, db, market, auth_headers):
        m = market
        body = _order_body([(m["p1"], 1)])
        body["items"].append({"productId": str(uuid.uuid4()), "quantity": 1})

        response = await client.post("/api/orders", json=body, headers=auth_headers(m["user"]))

        assert response.status_code == 404
        await db.refresh(m["p1"])
        assert m["p1"].stock == 10

    @pytest.mark.asyncio
    async def test_empty_and_non_positive_lines_rejected(self, client, market, auth_headers):
        m = market
        empty = await client.post("/api/orders", json=_order_body([]), headers=auth_headers(m["user"]))
        zero = await client.post(
            "/api/orders", json=_order_body([(m["p1"], 0)]), headers=auth_headers(m["user"])
        )
        assert empty.status_code == 400
        assert zero.status_code == 400

    @pytest.mark.asyncio
    async def test_owners_cannot_place_orders(self, client, market, auth_headers):
        m = market
        response = await client.post(
            "/api/orders", json=_order_body([(m["p1"], 1)]), headers=auth_headers(m["owner_a"])
        )
        assert response.status_code == 403


class TestReading:

    @pytest.mark.asyncio
    async def test_other_customers_order_forbidden(self, client, market, make_user, auth_headers):
        m = market
        placed = await client.post(
            "/api/orders", json=_order_body([(m["p1"], 1)]), headers=auth_headers(m["user"])
        )
        stranger = await make_user()

        response = await client.get(f"/api/orders/{placed.json()['order']['id']}", headers=auth_headers(stranger))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_order_not_found(self, client, market, auth_headers):
        response = await client.get(f"/api/orders/{uuid.uuid4()}", headers=auth_headers(market["user"]))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_lists(self, client, market, auth_headers):
        m = market
        await client.post("/api/orders", json=_order_body([(m["p1"], 1)]), headers=auth_headers(m["user"]))
        await client.post("/api/orders", json=_order_body([(m["p3"], 1)]), headers=auth_headers(m["user"]))

        mine = await client.get("/api/orders", headers=auth_headers(m["user"]))
        history = await client.get("/api/users/orders", headers=auth_headers(m["user"]))
        owner_a = await client.get("/api/owner/orders", headers=auth_headers(m["owner_a"]))
        filtered = await client.get("/api/owner/orders?status=shipped", headers=auth_headers(m["owner_a"]))

        assert len(mine.json()["orders"]) == 2
        assert len(history.json()["orders"]) == 2
        assert len(owner_a.json()["orders"]) == 1
        assert filtered.json()["orders"] == []


class TestTransitions:

    async def _place(self, client, m, auth_headers, lines=None):
        response = await client.post(
            "/api/orders",
            json=_order_body(lines or [(m["p1"], 2), (m["p3"], 1)]),
            headers=auth_headers(m["user"]),
        )
        return response.json()["order"]["id"]

    @pytest.mark.asyncio
    async def test_cancel_pending_order_keeps_stock(self, client, db, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)

        cancelled = await client.put(f"/api/orders/{order_id}/cancel", headers=auth_headers(m["user"]))
        again = await client.put(f"/api/orders/{order_id}/cancel", headers=auth_headers(m["user"]))

        assert cancelled.json()["order"]["status"] == "cancelled"
        assert again.status_code == 400
        assert again.json()["error"] == "Only pending orders can be cancelled"
        await db.refresh(m["p1"])
        assert m["p1"].stock == 8

    @pytest.mark.asyncio
    async def test_any_supplying_owner_updates_status(self, client, db, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)

        by_a = await client.put(
            f"/api/orders/{order_id}/status", json={"status": "processing"}, headers=auth_headers(m["owner_a"])
        )
        by_b = await client.put(
            f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=auth_headers(m["owner_b"])
        )

        assert by_a.status_code == 200
        assert by_b.json()["order"]["status"] == "shipped"
        titles = (
            await db.execute(select(Notification.title).where(Notification.user_id == m["user"].id))
        ).scalars().all()
        assert sorted(titles) == ["Order Processing", "Order Shipped"]

    @pytest.mark.asyncio
    async def test_unrelated_owner_forbidden(self, client, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)
        response = await client.put(
            f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=auth_headers(m["bystander"])
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_cannot_complete(self, client, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)
        response = await client.put(
            f"/api/orders/{order_id}/status", json={"status": "completed"}, headers=auth_headers(m["owner_a"])
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, client, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)
        response = await client.put(
            f"/api/orders/{order_id}/status", json={"status": "lost"}, headers=auth_headers(m["owner_a"])
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_confirm_requires_delivery(self, client, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)

        response = await client.put(f"/api/orders/{order_id}/confirm", headers=auth_headers(m["user"]))

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATE"
        assert response.json()["error"] == "Can only confirm delivered orders"

    @pytest.mark.asyncio
    async def test_confirm_delivered_order(self, client, db, market, auth_headers):
        m = market
        order_id = await self._place(client, m, auth_headers)
        await client.put(
            f"/api/orders/{order_id}/status", json={"status": "delivered"}, headers=auth_headers(m["owner_a"])
        )

        confirmed = await client.put(f"/api/orders/{order_id}/confirm", headers=auth_headers(m["user"]))

        assert confirmed.status_code == 200
        body = confirmed.json()
        assert body["message"] == "Order confirmed successfully"
        assert RECEIPT_RE.match(body["receiptNumber"])
        assert body["order"]["status"] == "completed"
        assert body["order"]["receiptNumber"] == body["receiptNumber"]
        assert body["order"]["completedAt"] is not None
        assert (await _titles(db, m["owner_a"].id)).count("Order Completed") == 1
        assert (await _titles(db, m["owner_b"].id)).count("Order Completed") == 1

        again = await client.put(f"/api/orders/{order_id}/confirm", headers=auth_headers(m["user"]))
        assert again.status_code == 400
        assert again.json()["code"] == "ALREADY_CONFIRMED"
        assert again.json()["receiptNumber"] == body["receiptNumber"]


class TestReceiptNumber:

    def test_format(self):
        from datetime import datetime, timezone

        receipt = generate_receipt_number(datetime(2025, 3, 9, tzinfo=timezone.utc))
        assert receipt.startswith("RCP-20250309-")
        assert RECEIPT_RE.match(receipt)
