"""
JunkHub Backend — Sell Offer Tests
====================================

What we test:
    ✅ Offers are accepted only for "Buying" listings
    ✅ The shop owner is notified of a new offer
    ✅ Customer and owner listings are scoped to their own offers
    ✅ Status changes are permissive, owner-only and notify the customer
"""

import uuid

import pytest
from sqlalchemy import select

from app.models import Notification
from app.models.enums import ProductType

PNG = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
async def wanted(make_owner, make_shop, make_product):
    owner = await make_owner()
    shop = await make_shop(owner)
    return {
        "owner": owner,
        "buying": await make_product(shop, name="Old Batteries", type=ProductType.BUYING.value),
        "selling": await make_product(shop, name="Copper Wire"),
    }


def _offer(product, **overrides):
    body = {"productId": str(product.id), "quantity": 12, "contactNumber": "09171234567"}
    body.update(overrides)
    return body


class TestCreateOffer:

    @pytest.mark.asyncio
    async def test_offer_on_buying_listing(self, client, db, wanted, make_user, auth_headers):
        user = await make_user()

        response = await client.post(
            "/api/offers",
            json=_offer(wanted["buying"], description="Car batteries", images=[PNG]),
            headers=auth_headers(user),
        )

        assert response.status_code == 201
        offer = response.json()["offer"]
        assert offer["status"] == "pending"
        assert offer["quantity"] == 12
        assert offer["images"] == [PNG]
        assert offer["product"]["name"] == "Old Batteries"
        assert offer["userId"] == str(user.id)

        note = (
            await db.execute(select(Notification).where(Notification.owner_id == wanted["owner"].id))
        ).scalar_one()
        assert note.title == "New Sell Offer"
        assert note.message == 'New offer received for 12 units of "Old Batteries"'

    @pytest.mark.asyncio
    async def test_selling_listing_refused(self, client, wanted, make_user, auth_headers):
        response = await client.post(
            "/api/offers", json=_offer(wanted["selling"]), headers=auth_headers(await make_user())
        )

        assert response.status_code == 400
        assert response.json()["error"] == "This product is not available for selling offers"

    @pytest.mark.asyncio
    async def test_unknown_product(self, client, make_user, auth_headers):
        response = await client.post(
            "/api/offers",
            json={"productId": str(uuid.uuid4()), "quantity": 1, "contactNumber": "09171234567"},
            headers=auth_headers(await make_user()),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_fields(self, client, wanted, make_user, auth_headers):
        headers = auth_headers(await make_user())
        zero = await client.post("/api/offers", json=_offer(wanted["buying"], quantity=0), headers=headers)
        short = await client.post("/api/offers", json=_offer(wanted["buying"], contactNumber="123"), headers=headers)
        bad_image = await client.post(
            "/api/offers", json=_offer(wanted["buying"], images=["http://x/y.png"]), headers=headers
        )
        assert zero.status_code == 400
        assert short.status_code == 400
        assert bad_image.status_code == 400


class TestListOffers:

    @pytest.mark.asyncio
    async def test_scoped_listings(self, client, wanted, make_user, make_owner, make_shop, make_product, auth_headers):
        alice, bob = await make_user(), await make_user()
        rival = await make_owner()
        rival_wanted = await make_product(await make_shop(rival), type=ProductType.BUYING.value)

        await client.post("/api/offers", json=_offer(wanted["buying"]), headers=auth_headers(alice))
        await client.post("/api/offers", json=_offer(rival_wanted), headers=auth_headers(alice))
        await client.post("/api/offers", json=_offer(wanted["buying"], quantity=3), headers=auth_headers(bob))

        alice_offers = await client.get("/api/offers", headers=auth_headers(alice))
        owner_offers = await client.get("/api/offers/shop", headers=auth_headers(wanted["owner"]))
        rival_offers = await client.get("/api/offers/shop", headers=auth_headers(rival))

        assert len(alice_offers.json()["offers"]) == 2
        assert sorted(o["quantity"] for o in owner_offers.json()["offers"]) == [3, 12]
        assert all(o["user"]["email"] for o in owner_offers.json()["offers"])
        assert len(rival_offers.json()["offers"]) == 1


class TestOfferStatus:

    async def _create(self, client, wanted, user, auth_headers) -> str:
        response = await client.post("/api/offers", json=_offer(wanted["buying"]), headers=auth_headers(user))
        return response.json()["offer"]["id"]

    @pytest.mark.asyncio
    async def test_owner_moves_status_freely(self, client, db, wanted, make_user, auth_headers):
        user = await make_user()
        offer_id = await self._create(client, wanted, user, auth_headers)
        headers = auth_headers(wanted["owner"])

        statuses = []
        for status in ("accepted", "rejected", "pending"):
            response = await client.put(f"/api/offers/{offer_id}/status", json={"status": status}, headers=headers)
            statuses.append(response.json()["offer"]["status"])

        assert statuses == ["accepted", "rejected", "pending"]
        titles = (
            await db.execute(select(Notification.title).where(Notification.user_id == user.id))
        ).scalars().all()
        assert sorted(titles) == ["Offer Accepted", "Offer Pending", "Offer Rejected"]

    @pytest.mark.asyncio
    async def test_other_owner_forbidden(self, client, db, wanted, make_user, make_owner, auth_headers):
        user = await make_user()
        offer_id = await self._create(client, wanted, user, auth_headers)

        response = await client.put(
            f"/api/offers/{offer_id}/status",
            json={"status": "accepted"},
            headers=auth_headers(await make_owner()),
        )

        assert response.status_code == 403
        titles = (
            await db.execute(select(Notification.title).where(Notification.user_id == user.id))
        ).scalars().all()
        assert titles == []

    @pytest.mark.asyncio
    async def test_unknown_status_and_offer(self, client, wanted, make_user, auth_headers):
        offer_id = await self._create(client, wanted, await make_user(), auth_headers)
        headers = auth_headers(wanted["owner"])

        bad_status = await client.put(f"/api/offers/{offer_id}/status", json={"status": "maybe"}, headers=headers)
        missing = await client.put(
            f"/api/offers/{uuid.uuid4()}/status", json={"status": "accepted"}, headers=headers
        )

        assert bad_status.status_code == 400
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_customers_cannot_set_status(self, client, wanted, make_user, auth_headers):
        user = await make_user()
        offer_id = await self._create(client, wanted, user, auth_headers)

        response = await client.put(
            f"/api/offers/{offer_id}/status", json={"status": "accepted"}, headers=auth_headers(user)
        )
        assert response.status_code == 403
