# Overview: Pytest coverage for checkout (cart -> order) and order queries.

from decimal import Decimal

import pytest

from storefront.models import Category, Order, Product
from storefront.services import order_lifecycle, order_service, store_config_service
from storefront.services.cart_service import CartStore
from storefront.services.order_service import CustomerInfo, OrderError
from storefront.services.selection_validator import Selections
from storefront.services.tenant_service import TenantAccessError


ANA = CustomerInfo(name="Ana", phone="+54 9 11 4444-1111")


def _burger_cart(c, quantity=1, *toppings):
    cart = CartStore.for_tenant(c.tenant.id)
    result = cart.add(c.burger.id, Selections.from_payload([c.res.id, *toppings]), quantity)
    assert result.ok, result.rejection
    return cart


class TestCreateOrder:
    def test_order_snapshots_lines_and_total(self, burger_catalog):
        c = burger_catalog
        cart = _burger_cart(c, 2, c.bacon.id)
        assert cart.add(c.water.id, Selections(), 1).ok

        order = order_service.create_order(c.tenant.id, cart, ANA, "mostrador", "tarjeta")

        assert order.status == "pending"
        assert order.total == Decimal("8100")
        assert [(i.product_name, i.quantity, i.line_total) for i in order.items] == [
            ("Clásica", 2, Decimal("6600")),
            ("Agua", 1, Decimal("1500")),
        ]
        assert [e["name"] for e in order.items[0].extras] == ["Bacon", "Res"]
        assert sum(i.line_total for i in order.items) == order.total

    def test_stock_is_decremented_once(self, burger_catalog, db_session):
        c = burger_catalog
        cart = _burger_cart(c, 2)

        order_service.create_order(c.tenant.id, cart, ANA, "mostrador", "tarjeta")

        db_session.expire_all()
        assert db_session.get(Product, c.burger.id).stock == 3
        assert db_session.get(Category, c.burgers.id).current_stock == 1

    def test_shortfall_rolls_back_everything(self, burger_catalog, db_session):
        c = burger_catalog
        cart = _burger_cart(c, 3)
        assert cart.add(c.water.id, Selections(), 1).ok

        # Someone else bought from the pool after the cart was filled
        c.burgers.current_stock = 2
        db_session.commit()

        with pytest.raises(OrderError) as exc:
            order_service.create_order(c.tenant.id, cart, ANA, "mostrador", "tarjeta")

        shortfalls = exc.value.details["shortfalls"]
        assert [(s["scope"], s["id"]) for s in shortfalls] == [("category", c.burgers.id)]
        db_session.expire_all()
        assert db_session.get(Product, c.burger.id).stock == 5
        assert db_session.get(Category, c.burgers.id).current_stock == 2
        assert db_session.query(Order).count() == 0

    def test_empty_cart(self, burger_catalog):
        cart = CartStore.for_tenant(burger_catalog.tenant.id)
        with pytest.raises(OrderError, match="empty"):
            order_service.create_order(burger_catalog.tenant.id, cart, ANA, "mostrador", "tarjeta")

    @pytest.mark.parametrize("delivery_type,payment_method", [
        ("drone", "tarjeta"),
        ("mostrador", "cheque"),
        (["mesa"], "tarjeta"),
        ("mostrador", {"tarjeta": True}),
    ])
    def test_unknown_delivery_type_or_payment_method(self, burger_catalog, delivery_type, payment_method):
        cart = _burger_cart(burger_catalog)
        with pytest.raises(OrderError) as exc:
            order_service.create_order(burger_catalog.tenant.id, cart, ANA, delivery_type, payment_method)
        assert "allowed" in exc.value.details

    def test_delivery_needs_address(self, burger_catalog):
        cart = _burger_cart(burger_catalog)
        with pytest.raises(OrderError) as exc:
            order_service.create_order(burger_catalog.tenant.id, cart, ANA, "domicilio", "tarjeta")
        assert exc.value.details["missing"] == ["address"]

    def test_missing_name_and_phone(self, burger_catalog):
        cart = _burger_cart(burger_catalog)
        customer = CustomerInfo.from_payload({"name": "  ", "phone": None})
        with pytest.raises(OrderError) as exc:
            order_service.create_order(burger_catalog.tenant.id, cart, customer, "mostrador", "tarjeta")
        assert exc.value.details["missing"] == ["name", "phone"]

    def test_paused_store_takes_no_orders(self, burger_catalog, db_session):
        c = burger_catalog
        store_config_service.set_pause_status(c.tenant.id, True, "Volvemos a las 20hs")
        cart = _burger_cart(c)

        with pytest.raises(OrderError, match="Volvemos") as exc:
            order_service.create_order(c.tenant.id, cart, ANA, "mostrador", "tarjeta")

        assert exc.value.details == {"paused": True}
        db_session.expire_all()
        assert db_session.get(Product, c.burger.id).stock == 5

    def test_disabled_options_are_refused(self, burger_catalog):
        c = burger_catalog
        store_config_service.update_delivery_config(c.tenant.id, {"mesa": False})
        store_config_service.update_payment_methods(c.tenant.id, {"qr": False})
        cart = _burger_cart(c)

        with pytest.raises(OrderError, match="mesa"):
            order_service.create_order(c.tenant.id, cart, ANA, "mesa", "tarjeta")
        with pytest.raises(OrderError, match="qr"):
            order_service.create_order(c.tenant.id, cart, ANA, "mostrador", "qr")

    def test_unknown_tenant(self, burger_catalog):
        cart = _burger_cart(burger_catalog)
        with pytest.raises(TenantAccessError):
            order_service.create_order(99999, cart, ANA, "mostrador", "tarjeta")


class TestQueries:
    def test_list_is_newest_first_with_paid_flags(self, make_order):
        first = make_order(payment_method="efectivo")
        second = make_order(payment_method="tarjeta")
        order_lifecycle.mark_paid(first.tenant_id, first.id)

        orders = order_service.list_orders(first.tenant_id)

        assert [o["id"] for o in orders] == [second.id, first.id]
        assert orders[1]["is_paid"] is True
        assert orders[0]["is_paid"] is False
        assert orders[0]["display_paid"] is False

    def test_status_filter_and_validation(self, make_order):
        a = make_order()
        b = make_order()
        order_lifecycle.take_order(b.tenant_id, b.id)

        in_progress = order_service.list_orders(a.tenant_id, status="in_progress")

        assert [o["id"] for o in in_progress] == [b.id]
        with pytest.raises(OrderError):
            order_service.list_orders(a.tenant_id, status="lost")

    def test_orders_are_scoped_to_tenant(self, make_order, other_tenant):
        order = make_order()

        assert order_service.list_orders(other_tenant.id) == []
        with pytest.raises(TenantAccessError):
            order_service.get_order(other_tenant.id, order.id)

    def test_get_order_serializes_items(self, make_order):
        order = make_order(quantity=2)

        data = order_service.get_order(order.tenant_id, order.id)

        assert data["items"][0]["quantity"] == 2
        assert Decimal(data["total"]) == Decimal("3000")
        assert data["is_paid"] is False
