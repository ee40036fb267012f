"""Tests for the product-facing API (X-API-Key routes)."""

from __future__ import annotations

import pytest

from subplatform.services import payment_method_service, plan_service


@pytest.fixture
async def acme(make_product, make_plan):
    """Active product with one active and one retired plan."""
    product, api_key = await make_product("Acme")
    pro = await make_plan(product.id, "pro")
    await make_plan(product.id, "legacy", is_active=False)
    return {"X-API-Key": api_key}, pro


@pytest.mark.asyncio
class TestPlans:
    async def test_only_active_plans_of_own_product(self, client, acme, make_product, make_plan):
        headers, _ = acme
        other, _ = await make_product("Globex")
        await make_plan(other.id, "globex-pro")
        resp = await client.get("/plans", headers=headers)
        assert resp.status_code == 200
        assert [p["slug"] for p in resp.json()] == ["pro"]
        assert resp.json()[0]["maxProperties"] == 5

    async def test_payment_methods_of_own_product(self, client, db, acme):
        headers, _ = acme
        wire = await payment_method_service.create_payment_method(
            db, slug="wire", name="Wire", type="manual"
        )
        card = await payment_method_service.create_payment_method(
            db, slug="card", name="Card", type="automated", provider="stripe"
        )
        off = await payment_method_service.create_payment_method(
            db, slug="cash", name="Cash", type="manual", is_active=False
        )
        await payment_method_service.set_product_payment_methods(
            db,
            "acme",
            [
                {"payment_method_id": card.id, "display_order": 2, "is_default": False},
                {"payment_method_id": wire.id, "display_order": 1, "is_default": True},
                {"payment_method_id": off.id, "display_order": 3, "is_default": False},
            ],
        )
        await db.commit()

        resp = await client.get("/plans/acme/payment-methods", headers=headers)
        assert resp.status_code == 200
        assert [(m["slug"], m["displayOrder"], m["isDefault"]) for m in resp.json()] == [
            ("wire", 1, True),
            ("card", 2, False),
        ]

    async def test_payment_methods_of_other_product_forbidden(self, client, acme, make_product):
        headers, _ = acme
        await make_product("Globex")
        resp = await client.get("/plans/globex/payment-methods", headers=headers)
        assert resp.status_code == 403
        assert resp.json() == {"error": "API key does not grant access to this product"}


@pytest.mark.asyncio
class TestUpgradeFlow:
    async def test_unknown_user_without_email(self, client, acme):
        headers, pro = acme
        resp = await client.post("/subscriptions/u1/upgrade", json={"planId": pro.id}, headers=headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}

    async def test_request_then_approve(self, client, acme):
        headers, pro = acme
        resp = await client.post(
            "/subscriptions/u1/upgrade",
            json={
                "planId": pro.id,
                "productId": "acme",
                "paymentProofUrl": "https://files.example.com/receipt.png",
                "paymentNote": "paid by wire",
                "email": "u1@example.com",
            },
            headers=headers,
        )
        assert resp.status_code == 201
        sub = resp.json()
        assert sub["status"] == "pending_verification"
        assert sub["paymentProofUrl"] == "https://files.example.com/receipt.png"

        pending = await client.get("/admin/pending", headers=headers)
        assert [(s["id"], s["plan"]["slug"]) for s in pending.json()] == [(sub["id"], "pro")]

        resp = await client.post(
            "/admin/verify", json={"subscriptionId": sub["id"], "approve": True}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"
        assert resp.json()["startDate"] is not None

        current = await client.get("/subscriptions/u1", headers=headers)
        assert current.status_code == 200
        assert current.json()["plan"]["slug"] == "pro"
        assert (await client.get("/admin/pending", headers=headers)).json() == []

    async def test_reject(self, client, acme, make_user):
        headers, pro = acme
        await make_user("u1", "u1@example.com")
        sub = (
            await client.post("/subscriptions/u1/upgrade", json={"planId": pro.id}, headers=headers)
        ).json()
        resp = await client.post(
            "/admin/verify", json={"subscriptionId": sub["id"], "approve": False}, headers=headers
        )
        assert resp.json()["status"] == "canceled"

    async def test_second_request_reuses_subscription(self, client, acme, make_user, make_plan):
        headers, pro = acme
        await make_user("u1", "u1@example.com")
        first = await client.post("/subscriptions/u1/upgrade", json={"planId": pro.id}, headers=headers)
        team = await make_plan("acme", "team", price=4900)
        second = await client.post(
            "/subscriptions/u1/upgrade", json={"planId": team.id}, headers=headers
        )
        assert second.status_code == 201
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["planId"] == team.id

    async def test_retired_plan_rejected(self, client, db, acme, make_user):
        headers, _ = acme
        await make_user("u1", "u1@example.com")
        legacy = await plan_service.get_plan_by_slug(db, "legacy")
        resp = await client.post(
            "/subscriptions/u1/upgrade", json={"planId": legacy.id}, headers=headers
        )
        assert resp.status_code == 400

    async def test_other_products_plan_rejected(self, client, acme, make_product, make_plan, make_user):
        headers, _ = acme
        other, _ = await make_product("Globex")
        foreign = await make_plan(other.id, "globex-pro")
        await make_user("u1", "u1@example.com")
        resp = await client.post(
            "/subscriptions/u1/upgrade", json={"planId": foreign.id}, headers=headers
        )
        assert resp.status_code == 400

    async def test_mismatching_product_id_rejected(self, client, acme, make_user):
        headers, pro = acme
        await make_user("u1", "u1@example.com")
        resp = await client.post(
            "/subscriptions/u1/upgrade",
            json={"planId": pro.id, "productId": "globex"},
            headers=headers,
        )
        assert resp.status_code == 400

    async def test_verify_is_scoped_to_product(self, client, acme, make_product, make_user):
        headers, pro = acme
        await make_user("u1", "u1@example.com")
        sub = (
            await client.post("/subscriptions/u1/upgrade", json={"planId": pro.id}, headers=headers)
        ).json()
        _, globex_key = await make_product("Globex")
        resp = await client.post(
            "/admin/verify",
            json={"subscriptionId": sub["id"], "approve": True},
            headers={"X-API-Key": globex_key},
        )
        assert resp.status_code == 404

    async def test_no_subscription(self, client, acme):
        headers, _ = acme
        resp = await client.get("/subscriptions/nobody", headers=headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "No active subscription found"}
