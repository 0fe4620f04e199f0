"""
JunkHub Backend — Owner Dashboard Tests
=========================================

What we test:
    ✅ Stats count only the owner's order lines, inside the period
    ✅ Unknown periods are rejected at the edge, the service falls back to 7d
    ✅ Activity merges orders and offers, newest first
    ✅ Product list covers every status; order list filters by status
    ✅ Profile updates, with the password guarded by the current one
"""

from datetime import timedelta

import pytest

from app.auth.credentials import verify_password
from app.database import utcnow
from app.models import Offer, Order, OrderItem
from app.models.enums import OfferStatus, ProductStatus, ProductType
from app.services.owner_dashboard_service import owner_dashboard_service


async def _order(db, user, lines, age=timedelta(0), status="pending"):
    order = Order(
        user_id=user.id,
        total=sum(price * qty for _, price, qty in lines),
        status=status,
        shipping_address="1 Mabini St",
        shipping_city="Manila",
        shipping_zip="1000",
        created_at=utcnow() - age,
    )
    order.items = [OrderItem(product_id=p.id, quantity=qty, price=price) for p, price, qty in lines]
    db.add(order)
    await db.commit()
    return order


@pytest.fixture
async def yard(make_user, make_owner, make_shop, make_product):
    owner = await make_owner()
    shop = await make_shop(owner)
    rival_shop = await make_shop(await make_owner())
    return {
        "owner": owner,
        "user": await make_user(first_name="Ana", last_name="Reyes"),
        "mine": await make_product(shop, name="Copper Wire"),
        "wanted": await make_product(shop, name="Old Batteries", type=ProductType.BUYING.value),
        "draft": await make_product(shop, name="Tin Sheets", status=ProductStatus.PENDING.value),
        "theirs": await make_product(rival_shop),
    }


class TestStats:

    @pytest.mark.asyncio
    async def test_counts_only_own_lines_in_period(self, client, db, yard, auth_headers):
        y = yard
        await _order(db, y["user"], [(y["mine"], 100.0, 2), (y["theirs"], 999.0, 1)])
        await _order(db, y["user"], [(y["mine"], 50.0, 1)], age=timedelta(days=3))
        await _order(db, y["user"], [(y["mine"], 70.0, 1)], age=timedelta(days=20))
        await _order(db, y["user"], [(y["theirs"], 10.0, 1)])
        db.add(Offer(user_id=y["user"].id, product_id=y["wanted"].id, quantity=5,
                     contact_number="09171234567", images=[], status=OfferStatus.PENDING.value))
        db.add(Offer(user_id=y["user"].id, product_id=y["wanted"].id, quantity=1,
                     contact_number="09171234567", images=[], status=OfferStatus.ACCEPTED.value))
        await db.commit()
        headers = auth_headers(y["owner"])

        week = (await client.get("/api/owner/stats", headers=headers)).json()["stats"]
        month = (await client.get("/api/owner/stats", params={"period": "30d"}, headers=headers)).json()["stats"]

        assert week == {
            "period": "7d",
            "totalSales": 250.0,
            "totalOrders": 2,
            "pendingOffers": 1,
            "activeProducts": 3,
        }
        assert month["period"] == "30d"
        assert month["totalSales"] == 320.0
        assert month["totalOrders"] == 3

    @pytest.mark.asyncio
    async def test_unknown_period_rejected_by_route(self, client, yard, auth_headers):
        response = await client.get("/api/owner/stats", params={"period": "5y"}, headers=auth_headers(yard["owner"]))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_service_falls_back_to_week(self, db, yard):
        stats = await owner_dashboard_service.stats(db, yard["owner"].id, "forever")
        assert stats.period == "7d"
        assert stats.total_sales == 0.0


class TestActivity:

    @pytest.mark.asyncio
    async def test_merged_newest_first(self, client, db, yard, auth_headers):
        y = yard
        old_order = await _order(db, y["user"], [(y["mine"], 100.0, 1)], age=timedelta(hours=2))
        offer = Offer(user_id=y["user"].id, product_id=y["wanted"].id, quantity=4,
                      contact_number="09171234567", images=[], status=OfferStatus.PENDING.value,
                      created_at=utcnow() - timedelta(hours=1))
        db.add(offer)
        await db.commit()
        new_order = await _order(db, y["user"], [(y["mine"], 100.0, 1)])
        await _order(db, y["user"], [(y["theirs"], 100.0, 1)])

        response = await client.get("/api/owner/activity", headers=auth_headers(y["owner"]))

        feed = response.json()["activity"]
        assert [item["id"] for item in feed] == [str(new_order.id), str(offer.id), str(old_order.id)]
        assert [item["type"] for item in feed] == ["order", "offer", "order"]
        assert feed[0]["message"].endswith("from Ana Reyes")
        assert feed[1]["message"] == 'Sell offer for "Old Batteries" from Ana Reyes'
        assert feed[1]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_limit(self, client, db, yard, auth_headers):
        for _ in range(3):
            await _order(db, yard["user"], [(yard["mine"], 10.0, 1)])
        response = await client.get("/api/owner/activity", params={"limit": 2}, headers=auth_headers(yard["owner"]))
        assert len(response.json()["activity"]) == 2


class TestOwnerLists:

    @pytest.mark.asyncio
    async def test_products_in_every_status(self, client, yard, auth_headers):
        response = await client.get("/api/owner/products", headers=auth_headers(yard["owner"]))

        names = sorted(p["name"] for p in response.json()["products"])
        assert names == ["Copper Wire", "Old Batteries", "Tin Sheets"]
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_products_filtered(self, client, yard, auth_headers):
        response = await client.get(
            "/api/owner/products", params={"type": "Buying"}, headers=auth_headers(yard["owner"])
        )
        assert [p["name"] for p in response.json()["products"]] == ["Old Batteries"]

    @pytest.mark.asyncio
    async def test_orders_filtered_by_status(self, client, db, yard, auth_headers):
        y = yard
        shipped = await _order(db, y["user"], [(y["mine"], 10.0, 1)], status="shipped")
        await _order(db, y["user"], [(y["mine"], 10.0, 1)])
        headers = auth_headers(y["owner"])

        every = await client.get("/api/owner/orders", headers=headers)
        only_shipped = await client.get("/api/owner/orders", params={"status": "shipped"}, headers=headers)

        assert len(every.json()["orders"]) == 2
        assert [o["id"] for o in only_shipped.json()["orders"]] == [str(shipped.id)]


class TestOwnerProfile:

    @pytest.mark.asyncio
    async def test_update_fields(self, client, yard, auth_headers):
        headers = auth_headers(yard["owner"])
        response = await client.put(
            "/api/owner/profile", json={"businessName": "Tondo Metals", "phone": "09998887777"}, headers=headers
        )

        assert response.json()["owner"]["businessName"] == "Tondo Metals"
        fetched = await client.get("/api/owner/profile", headers=headers)
        assert fetched.json()["owner"]["phone"] == "09998887777"

    @pytest.mark.asyncio
    async def test_required_fields_cannot_be_cleared(self, client, yard, auth_headers):
        response = await client.put(
            "/api/owner/profile",
            json={"businessName": None, "phone": None, "profilePic": None},
            headers=auth_headers(yard["owner"]),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"
        assert {d["field"] for d in response.json()["details"]} == {"businessName", "phone"}

    @pytest.mark.asyncio
    async def test_new_password_needs_current(self, client, yard, auth_headers):
        response = await client.put(
            "/api/owner/profile", json={"newPassword": "another-pass"}, headers=auth_headers(yard["owner"])
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Current password is required to set a new password"

    @pytest.mark.asyncio
    async def test_password_change(self, client, db, yard, auth_headers):
        owner = yard["owner"]
        wrong = await client.put(
            "/api/owner/profile",
            json={"currentPassword": "nope", "newPassword": "another-pass"},
            headers=auth_headers(owner),
        )
        right = await client.put(
            "/api/owner/profile",
            json={"currentPassword": "secret123", "newPassword": "another-pass"},
            headers=auth_headers(owner),
        )

        assert wrong.status_code == 400
        assert right.status_code == 200
        await db.refresh(owner)
        assert await verify_password("another-pass", owner.password_hash)
