"""
JunkHub Backend — Catalog Tests (products & shops)
====================================================

What we test:
    ✅ Public browsing shows approved products only, with every filter
    ✅ Product detail: reviews and average rating; unapproved → 404
    ✅ Owner product management: pending on create, admins notified,
       ownership enforced
    ✅ Moderation makes products visible and notifies the owner
    ✅ Bestsellers and category counts
    ✅ Shop CRUD, product counts and the auto-created first shop
"""

import uuid

import pytest
from sqlalchemy import select

from app.models import Notification, Order, OrderItem, Product, Review, Shop
from app.models.enums import ProductStatus, ProductType


@pytest.fixture
async def catalog(make_owner, make_shop, make_product):
    owner = await make_owner()
    shop = await make_shop(owner, name="Tondo Scrap")
    other_shop = await make_shop(await make_owner(), name="Pasig Plastics")
    return {
        "owner": owner,
        "shop": shop,
        "other_shop": other_shop,
        "copper": await make_product(shop, name="Copper Wire", price=350.0, category="Metals"),
        "bottles": await make_product(
            other_shop, name="PET Bottles", description="Clear bottles", price=15.0, category="Plastics"
        ),
        "wanted": await make_product(
            other_shop, name="Old Batteries", price=40.0, category="Metals", type=ProductType.BUYING.value
        ),
        "pending": await make_product(shop, name="Aluminum Cans", status=ProductStatus.PENDING.value),
        "rejected": await make_product(shop, name="Broken Glass", status=ProductStatus.REJECTED.value),
    }


def _names(response):
    return sorted(p["name"] for p in response.json()["products"])


class TestBrowse:

    @pytest.mark.asyncio
    async def test_only_approved_products_are_listed(self, client, catalog):
        response = await client.get("/api/products")

        assert response.status_code == 200
        assert _names(response) == ["Copper Wire", "Old Batteries", "PET Bottles"]
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_filters(self, client, catalog):
        by_search = await client.get("/api/products", params={"search": "clear"})
        by_category = await client.get("/api/products", params={"category": "Metals"})
        by_type = await client.get("/api/products", params={"type": "Buying"})
        by_price = await client.get("/api/products", params={"minPrice": 20, "maxPrice": 100})
        by_shop = await client.get("/api/products", params={"shopId": str(catalog["shop"].id)})

        assert _names(by_search) == ["PET Bottles"]
        assert _names(by_category) == ["Copper Wire", "Old Batteries"]
        assert _names(by_type) == ["Old Batteries"]
        assert _names(by_price) == ["Old Batteries"]
        assert _names(by_shop) == ["Copper Wire"]

    @pytest.mark.asyncio
    async def test_pagination_keeps_total(self, client, catalog):
        response = await client.get("/api/products", params={"limit": 1, "offset": 1})

        assert len(response.json()["products"]) == 1
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_invalid_type_rejected(self, client, catalog):
        response = await client.get("/api/products", params={"type": "Renting"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_detail_with_reviews(self, client, db, catalog, make_user):
        product = catalog["copper"]
        for rating in (5, 4):
            db.add(Review(user_id=(await make_user()).id, product_id=product.id, rating=rating))
        await db.commit()

        response = await client.get(f"/api/products/{product.id}")

        body = response.json()["product"]
        assert body["name"] == "Copper Wire"
        assert body["shop"]["name"] == "Tondo Scrap"
        assert len(body["reviews"]) == 2
        assert body["reviews"][0]["user"]["firstName"] == "Juan"
        assert body["averageRating"] == 4.5

    @pytest.mark.asyncio
    async def test_detail_without_reviews(self, client, catalog):
        response = await client.get(f"/api/products/{catalog['bottles'].id}")
        assert response.json()["product"]["averageRating"] is None
        assert response.json()["product"]["reviews"] == []

    @pytest.mark.asyncio
    async def test_unapproved_product_is_hidden(self, client, catalog):
        pending = await client.get(f"/api/products/{catalog['pending'].id}")
        rejected = await client.get(f"/api/products/{catalog['rejected'].id}")
        missing = await client.get(f"/api/products/{uuid.uuid4()}")

        assert pending.status_code == 404
        assert rejected.status_code == 404
        assert missing.status_code == 404


class TestHomeSections:

    @pytest.mark.asyncio
    async def test_bestsellers_rank_by_quantity(self, client, db, catalog, make_user):
        user = await make_user()
        order = Order(
            user_id=user.id,
            total=0,
            status="pending",
            shipping_address="1 Mabini St",
            shipping_city="Manila",
            shipping_zip="1000",
        )
        order.items = [
            OrderItem(product_id=catalog["copper"].id, quantity=2, price=350.0),
            OrderItem(product_id=catalog["bottles"].id, quantity=5, price=15.0),
            OrderItem(product_id=catalog["copper"].id, quantity=1, price=350.0),
            OrderItem(product_id=catalog["pending"].id, quantity=9, price=100.0),
        ]
        db.add(order)
        await db.commit()

        response = await client.get("/api/products/home/bestsellers")

        ranked = [(p["name"], p["totalSold"]) for p in response.json()["products"]]
        assert ranked == [("PET Bottles", 5), ("Copper Wire", 3)]

    @pytest.mark.asyncio
    async def test_categories_count_approved_products(self, client, catalog):
        response = await client.get("/api/products/home/categories")

        assert response.json()["categories"] == [
            {"name": "Metals", "count": 2},
            {"name": "Plastics", "count": 1},
        ]


class TestOwnerProducts:

    def _body(self, shop, **overrides):
        body = {
            "shopId": str(shop.id),
            "name": "Steel Rebar",
            "description": "10mm offcuts",
            "price": 55.0,
            "category": "Metals",
            "stock": 30,
            "type": "Selling",
        }
        body.update(overrides)
        return body

    @pytest.mark.asyncio
    async def test_create_starts_pending_and_notifies_admins(
        self, client, db, catalog, make_admin, auth_headers
    ):
        admins = [await make_admin(), await make_admin()]

        response = await client.post(
            "/api/products", json=self._body(catalog["shop"]), headers=auth_headers(catalog["owner"])
        )

        assert response.status_code == 201
        product = response.json()["product"]
        assert product["status"] == "pending"
        assert product["shopId"] == str(catalog["shop"].id)
        for admin in admins:
            titles = (
                await db.execute(select(Notification.title).where(Notification.admin_id == admin.id))
            ).scalars().all()
            assert titles == ["New Product Pending Approval"]

        public = await client.get(f"/api/products/{product['id']}")
        assert public.status_code == 404

    @pytest.mark.asyncio
    async def test_create_in_foreign_shop_forbidden(self, client, catalog, auth_headers):
        response = await client.post(
            "/api/products", json=self._body(catalog["other_shop"]), headers=auth_headers(catalog["owner"])
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_validates_fields(self, client, catalog, auth_headers):
        headers = auth_headers(catalog["owner"])
        negative = await client.post("/api/products", json=self._body(catalog["shop"], price=-1), headers=headers)
        bad_type = await client.post("/api/products", json=self._body(catalog["shop"], type="Lending"), headers=headers)
        bad_image = await client.post(
            "/api/products", json=self._body(catalog["shop"], images=["not-an-image"]), headers=headers
        )
        assert negative.status_code == 400
        assert bad_type.status_code == 400
        assert bad_image.status_code == 400

    @pytest.mark.asyncio
    async def test_update_and_delete_own_product(self, client, db, catalog, auth_headers):
        headers = auth_headers(catalog["owner"])
        product_id = catalog["copper"].id

        updated = await client.put(f"/api/products/{product_id}", json={"price": 400, "stock": 3}, headers=headers)
        assert updated.json()["product"]["price"] == 400.0
        assert updated.json()["product"]["stock"] == 3
        assert updated.json()["product"]["name"] == "Copper Wire"

        deleted = await client.delete(f"/api/products/{product_id}", headers=headers)
        assert deleted.json()["message"] == "Product deleted successfully"
        assert await db.get(Product, product_id, populate_existing=True) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, field",
        [({"name": None}, "name"), ({"category": None}, "category"), ({"price": None}, "price")],
    )
    async def test_update_cannot_clear_required_fields(self, client, db, catalog, auth_headers, body, field):
        product_id = catalog["copper"].id

        response = await client.put(f"/api/products/{product_id}", json=body, headers=auth_headers(catalog["owner"]))

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"
        assert [d["field"] for d in response.json()["details"]] == [field]
        product = await db.get(Product, product_id, populate_existing=True)
        assert product.name == "Copper Wire"
        assert product.category == "Metals"

    @pytest.mark.asyncio
    async def test_foreign_product_forbidden(self, client, catalog, auth_headers):
        headers = auth_headers(catalog["owner"])
        product_id = catalog["bottles"].id

        update = await client.put(f"/api/products/{product_id}", json={"price": 1}, headers=headers)
        delete = await client.delete(f"/api/products/{product_id}", headers=headers)

        assert update.status_code == 403
        assert delete.status_code == 403

    @pytest.mark.asyncio
    async def test_customers_cannot_manage_products(self, client, catalog, make_user, auth_headers):
        response = await client.post(
            "/api/products", json=self._body(catalog["shop"]), headers=auth_headers(await make_user())
        )
        assert response.status_code == 403


class TestModeration:

    @pytest.mark.asyncio
    async def test_approval_publishes_and_notifies(self, client, db, catalog, make_admin, auth_headers):
        pending = catalog["pending"]

        response = await client.put(
            f"/api/admin/products/{pending.id}/approve", headers=auth_headers(await make_admin())
        )

        assert response.json()["message"] == "Product approved successfully"
        assert response.json()["product"]["status"] == "approved"
        assert (await client.get(f"/api/products/{pending.id}")).status_code == 200
        notes = (
            await db.execute(select(Notification).where(Notification.owner_id == catalog["owner"].id))
        ).scalars().all()
        assert [n.title for n in notes] == ["Product Approved"]

    @pytest.mark.asyncio
    async def test_rejection_carries_reason(self, client, db, catalog, make_admin, auth_headers):
        response = await client.put(
            f"/api/admin/products/{catalog['copper'].id}/reject",
            json={"reason": "Blurry photos"},
            headers=auth_headers(await make_admin()),
        )

        assert response.json()["message"] == "Product rejected successfully"
        assert (await client.get(f"/api/products/{catalog['copper'].id}")).status_code == 404
        note = (
            await db.execute(select(Notification).where(Notification.owner_id == catalog["owner"].id))
        ).scalar_one()
        assert note.title == "Product Rejected"
        assert note.message.endswith("Reason: Blurry photos")

    @pytest.mark.asyncio
    async def test_rejection_without_body(self, client, catalog, make_admin, auth_headers):
        response = await client.put(
            f"/api/admin/products/{catalog['pending'].id}/reject", headers=auth_headers(await make_admin())
        )
        assert response.status_code == 200
        assert response.json()["product"]["status"] == "rejected"


class TestShops:

    @pytest.mark.asyncio
    async def test_list_counts_approved_products(self, client, catalog):
        response = await client.get("/api/shops")

        counts = {s["name"]: s["productCount"] for s in response.json()["shops"]}
        assert counts == {"Tondo Scrap": 1, "Pasig Plastics": 2}
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_search(self, client, catalog):
        response = await client.get("/api/shops", params={"search": "plastic"})
        assert [s["name"] for s in response.json()["shops"]] == ["Pasig Plastics"]

    @pytest.mark.asyncio
    async def test_search_matches_description(self, client, catalog, make_owner, make_shop):
        await make_shop(await make_owner(), name="Navotas Depot", description="We buy old car batteries")

        response = await client.get("/api/shops", params={"search": "batteries"})

        assert [s["name"] for s in response.json()["shops"]] == ["Navotas Depot"]

    @pytest.mark.asyncio
    async def test_detail_lists_approved_products(self, client, catalog):
        response = await client.get(f"/api/shops/{catalog['shop'].id}")

        shop = response.json()["shop"]
        assert shop["owner"]["businessName"] == catalog["owner"].business_name
        assert [p["name"] for p in shop["products"]] == ["Copper Wire"]

    @pytest.mark.asyncio
    async def test_missing_shop(self, client):
        assert (await client.get(f"/api/shops/{uuid.uuid4()}")).status_code == 404

    @pytest.mark.asyncio
    async def test_my_shops_counts_every_status(self, client, catalog, auth_headers):
        response = await client.get("/api/shops/owner/my-shops", headers=auth_headers(catalog["owner"]))

        assert response.json()["total"] == 1
        assert response.json()["shops"][0]["productCount"] == 3

    @pytest.mark.asyncio
    async def test_first_shop_is_created_from_business_profile(self, client, db, make_owner, auth_headers):
        owner = await make_owner(business_name="Malabon Metals")

        first = await client.get("/api/shops/owner/my-shops", headers=auth_headers(owner))
        second = await client.get("/api/shops/owner/my-shops", headers=auth_headers(owner))

        assert [s["name"] for s in first.json()["shops"]] == ["Malabon Metals"]
        assert second.json()["shops"][0]["id"] == first.json()["shops"][0]["id"]
        shops = (await db.execute(select(Shop).where(Shop.owner_id == owner.id))).scalars().all()
        assert len(shops) == 1

    @pytest.mark.asyncio
    async def test_create_update_delete(self, client, db, make_owner, make_product, auth_headers):
        owner = await make_owner()
        headers = auth_headers(owner)

        created = await client.post(
            "/api/shops",
            json={"name": "Caloocan Cartons", "businessAddress": "5 Bonifacio Ave"},
            headers=headers,
        )
        assert created.status_code == 201
        shop_id = created.json()["shop"]["id"]
        assert created.json()["shop"]["ownerId"] == str(owner.id)

        renamed = await client.put(f"/api/shops/{shop_id}", json={"description": "Boxes"}, headers=headers)
        assert renamed.json()["shop"]["description"] == "Boxes"
        assert renamed.json()["shop"]["name"] == "Caloocan Cartons"

        shop = await db.get(Shop, uuid.UUID(shop_id))
        product = await make_product(shop)
        deleted = await client.delete(f"/api/shops/{shop_id}", headers=headers)

        assert deleted.json()["message"] == "Shop deleted successfully"
        db.expunge_all()
        assert await db.get(Product, product.id) is None

    @pytest.mark.asyncio
    async def test_foreign_shop_forbidden(self, client, catalog, auth_headers):
        headers = auth_headers(catalog["owner"])
        shop_id = catalog["other_shop"].id

        update = await client.put(f"/api/shops/{shop_id}", json={"name": "Mine now"}, headers=headers)
        delete = await client.delete(f"/api/shops/{shop_id}", headers=headers)

        assert update.status_code == 403
        assert delete.status_code == 403

    @pytest.mark.asyncio
    async def test_update_cannot_clear_required_fields(self, client, catalog, auth_headers):
        response = await client.put(
            f"/api/shops/{catalog['shop'].id}",
            json={"name": None, "businessAddress": None},
            headers=auth_headers(catalog["owner"]),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"
        assert {d["field"] for d in response.json()["details"]} == {"name", "businessAddress"}
