# Overview: HTTP-level tests for catalog, cart, order and settings endpoints.

from decimal import Decimal

import pytest

from storefront.models import Order, Product


def _base(tenant_id):
    return f"/api/tenants/{tenant_id}"


def _checkout_body(c, **overrides):
    body = {
        "items": [
            {"product_id": c.burger.id, "quantity": 2, "toggled": [c.res.id, c.bacon.id]},
            {"product_id": c.water.id, "quantity": 1, "comment": "sin hielo"},
        ],
        "customer": {"name": "Ana", "phone": "+54 9 11 4444-1111"},
        "delivery_type": "mostrador",
        "payment_method": "tarjeta",
    }
    body.update(overrides)
    return body


class TestTenantResolution:
    def test_unknown_tenant_is_404(self, client, db_session):
        assert client.get(f"{_base(424242)}/catalog").status_code == 404

    def test_catalog(self, client, burger_catalog):
        c = burger_catalog
        response = client.get(f"{_base(c.tenant.id)}/catalog")

        assert response.status_code == 200
        names = [p["name"] for p in response.get_json()["products"]]
        assert names == ["Clásica", "Agua"]


class TestCatalogAdmin:
    def test_create_group_validation(self, client, burger_catalog):
        base = _base(burger_catalog.tenant.id)

        bad = client.post(f"{base}/extra-groups", json={"name": "Salsas", "min_selections": 2, "max_selections": 1})
        good = client.post(f"{base}/extra-groups", json={"name": "Salsas", "max_selections": 2})

        assert bad.status_code == 400
        assert good.status_code == 201
        assert good.get_json()["extra_group"]["max_selections"] == 2

    def test_restock_without_pool_conflicts(self, client, burger_catalog):
        c = burger_catalog
        response = client.post(f"{_base(c.tenant.id)}/categories/{c.drinks.id}/restock")
        assert response.status_code == 409

    def test_set_pool(self, client, burger_catalog):
        c = burger_catalog
        response = client.put(f"{_base(c.tenant.id)}/categories/{c.burgers.id}/stock", json={"max_stock": 40})

        assert response.status_code == 200
        assert response.get_json()["category"]["current_stock"] == 40


class TestCartQuote:
    def test_quote_prices_line(self, client, burger_catalog):
        c = burger_catalog
        response = client.post(f"{_base(c.tenant.id)}/cart/quote", json={
            "product_id": c.burger.id,
            "quantity": 2,
            "toggled": [c.res.id, c.bacon.id],
        })

        data = response.get_json()
        assert response.status_code == 200
        assert Decimal(data["pricing"]["line_total"]) == Decimal("6600")
        assert data["all_groups_valid"] is True
        assert data["rejection"] is None
        assert data["effective_limit"] == 3

    def test_quote_requires_product(self, client, burger_catalog):
        response = client.post(f"{_base(burger_catalog.tenant.id)}/cart/quote", json={})
        assert response.status_code == 400

    def test_editing_index_leaves_that_item_out(self, client, burger_catalog):
        c = burger_catalog
        cart = [
            {"product_id": c.burger.id, "quantity": 2, "toggled": [c.res.id]},
            {"product_id": c.burger.id, "quantity": 1, "toggled": [c.res.id]},
        ]
        url = f"{_base(c.tenant.id)}/cart/quote"

        editing = client.post(url, json={
            "product_id": c.burger.id, "quantity": 3, "toggled": [c.res.id], "cart": cart, "editing_index": 1,
        }).get_json()
        bad_index = client.post(url, json={"product_id": c.burger.id, "cart": cart, "editing_index": 5})

        assert editing["effective_limit"] == 1
        assert editing["rejection"]["code"] == "exceeds_stock"
        assert len(editing["cart"]["lines"]) == 1
        assert bad_index.status_code == 400

    def test_string_toggled_is_400(self, client, burger_catalog):
        c = burger_catalog
        response = client.post(f"{_base(c.tenant.id)}/cart/quote", json={"product_id": c.burger.id, "toggled": "12"})
        assert response.status_code == 400


class TestCheckout:
    def test_checkout_creates_pending_order(self, client, burger_catalog, db_session):
        c = burger_catalog
        response = client.post(f"{_base(c.tenant.id)}/orders", json=_checkout_body(c))

        assert response.status_code == 201
        order = response.get_json()["order"]
        assert order["status"] == "pending"
        assert Decimal(order["total"]) == Decimal("8100")
        assert order["items"][1]["comment"] == "sin hielo"

        db_session.expire_all()
        assert db_session.get(Product, c.burger.id).stock == 3

    def test_rejected_item_fails_whole_checkout(self, client, burger_catalog, db_session):
        c = burger_catalog
        body = _checkout_body(c, items=[
            {"product_id": c.water.id, "quantity": 1},
            {"product_id": c.burger.id, "quantity": 1, "toggled": [c.bacon.id]},
        ])

        response = client.post(f"{_base(c.tenant.id)}/orders", json=body)

        assert response.status_code == 400
        assert response.get_json()["rejections"][0]["code"] == "groups_unmet"
        assert db_session.query(Order).count() == 0

    def test_paused_store(self, client, burger_catalog):
        c = burger_catalog
        client.put(f"{_base(c.tenant.id)}/settings/pause", json={"is_paused": True})

        response = client.post(f"{_base(c.tenant.id)}/orders", json=_checkout_body(c))

        assert response.status_code == 400
        assert response.get_json()["details"] == {"paused": True}

    @pytest.mark.parametrize("overrides", [
        {"delivery_type": ["mesa"]},
        {"payment_method": {"tarjeta": True}},
    ])
    def test_non_string_choices_are_400(self, client, burger_catalog, db_session, overrides):
        c = burger_catalog
        response = client.post(f"{_base(c.tenant.id)}/orders", json=_checkout_body(c, **overrides))

        assert response.status_code == 400
        assert "allowed" in response.get_json()["details"]
        assert db_session.query(Order).count() == 0


class TestOrderActions:
    def test_list_and_filter(self, client, make_order):
        order = make_order()
        base = _base(order.tenant_id)

        listed = client.get(f"{base}/orders").get_json()
        filtered = client.get(f"{base}/orders?status=completed").get_json()

        assert listed["count"] == 1
        assert listed["items"][0]["id"] == order.id
        assert filtered["items"] == []
        assert client.get(f"{base}/orders?status=lost").status_code == 400
        assert client.get(f"{base}/orders?since=yesterday").status_code == 400

    def test_cash_finalize_asks_for_confirmation(self, client, make_order):
        order = make_order(payment_method="efectivo")
        base = f"{_base(order.tenant_id)}/orders/{order.id}"
        assert client.post(f"{base}/take").status_code == 200

        prompt = client.post(f"{base}/finalize", json={})
        done = client.post(f"{base}/finalize", json={"payment_confirmed": True})

        assert prompt.status_code == 409
        assert prompt.get_json()["confirmation_required"] is True
        assert prompt.get_json()["payment_method"] == "efectivo"
        assert done.status_code == 200
        assert done.get_json()["order"]["status"] == "completed"
        assert done.get_json()["order"]["is_paid"] is True

    def test_delivery_finalize_returns_link(self, client, make_order):
        order = make_order(delivery_type="domicilio")
        base = f"{_base(order.tenant_id)}/orders/{order.id}"
        client.post(f"{base}/take")

        response = client.post(f"{base}/finalize")

        assert response.get_json()["notification_link"].startswith("https://wa.me/5491144441111")

    def test_invalid_transition_is_409(self, client, make_order):
        order = make_order()
        response = client.post(f"{_base(order.tenant_id)}/orders/{order.id}/finalize")
        assert response.status_code == 409

    def test_mark_paid(self, client, make_order):
        order = make_order(payment_method="transferencia")
        response = client.post(f"{_base(order.tenant_id)}/orders/{order.id}/mark-paid", json={"paid": True})

        assert response.get_json()["order"]["is_paid"] is True
        assert response.get_json()["order"]["status"] == "pending"

    def test_delete_needs_confirm(self, client, make_order, db_session):
        order = make_order()
        url = f"{_base(order.tenant_id)}/orders/{order.id}"

        refused = client.delete(url)
        deleted = client.delete(f"{url}?confirm=true")

        assert refused.status_code == 400
        assert refused.get_json()["confirmation_required"] is True
        assert deleted.status_code == 200
        db_session.expire_all()
        assert db_session.query(Order).count() == 0

    def test_other_tenant_gets_404(self, client, make_order, other_tenant):
        order = make_order()
        assert client.get(f"{_base(other_tenant.id)}/orders/{order.id}").status_code == 404


class TestBulk:
    def test_partial_failure_report(self, client, make_order):
        orders = [make_order() for _ in range(3)]
        tenant_id = orders[0].tenant_id
        client.post(f"{_base(tenant_id)}/orders/{orders[1].id}/cancel")

        response = client.post(f"{_base(tenant_id)}/orders/bulk", json={
            "operation": "set_status",
            "status": "in_progress",
            "order_ids": [o.id for o in orders],
        })

        data = response.get_json()
        assert response.status_code == 200
        assert (data["report"]["fulfilled"], data["report"]["rejected"]) == (2, 1)
        assert {o["status"] for o in data["orders"]} == {"in_progress", "cancelled"}

    @pytest.mark.parametrize("body", [
        {"operation": "delete", "order_ids": [1]},
        {"operation": "set_status", "status": "in_progress", "order_ids": "1,2"},
        {"operation": "nope", "order_ids": [1]},
    ])
    def test_bad_requests(self, client, tenant, body):
        assert client.post(f"{_base(tenant.id)}/orders/bulk", json=body).status_code == 400


class TestSettings:
    def test_round_trip_payment_methods(self, client, tenant):
        url = f"{_base(tenant.id)}/settings/payment-methods"

        put = client.put(url, json={"qr": False})
        get = client.get(url)

        assert put.status_code == 200
        assert get.get_json()["payment_methods"]["qr"] is False

    @pytest.mark.parametrize("path,body", [
        ("delivery", {"drone": True}),
        ("pause", {"message": "sin flag"}),
        ("pause", {"is_paused": "si"}),
        ("payment-methods", {"efectivo": False, "tarjeta": False, "qr": False, "transferencia": False}),
    ])
    def test_invalid_settings(self, client, tenant, path, body):
        assert client.put(f"{_base(tenant.id)}/settings/{path}", json=body).status_code == 400

    def test_failed_write_is_503_with_previous_value(self, client, tenant, monkeypatch):
        from storefront.services import store_config_service

        def broken_write(tenant_id, key, value):
            raise RuntimeError("database is read-only")

        monkeypatch.setattr(store_config_service, "_write_setting", broken_write)

        response = client.put(f"{_base(tenant.id)}/settings/delivery", json={"mesa": False})

        assert response.status_code == 503
        assert response.get_json()["value"]["mesa"] is True


class TestCors:
    def test_allowed_origin_is_echoed(self, client, tenant):
        response = client.get(f"{_base(tenant.id)}/settings/pause", headers={"Origin": "http://localhost:5173"})
        assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"
