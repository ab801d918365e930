# Overview: Pytest coverage for order status transitions, payment confirmation and deletion.

import httpx
import pytest

from storefront.models import Order, OrderPaymentFlag
from storefront.services import order_lifecycle, payment_flags
from storefront.services.order_lifecycle import (
    ConfirmationRequired,
    LifecycleError,
    PaymentConfirmationRequired,
    VALID_STATUSES,
    TERMINAL_STATUSES,
)
from storefront.services.tenant_service import TenantAccessError


class TestStateMachine:
    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
    def test_no_transition_out_of_terminal_states(self, terminal):
        for target in VALID_STATUSES:
            assert order_lifecycle.can_transition(terminal, target) is False

    def test_allowed_transitions(self):
        assert order_lifecycle.can_transition("pending", "in_progress")
        assert order_lifecycle.can_transition("in_progress", "completed")
        assert order_lifecycle.can_transition("pending", "cancelled")
        assert order_lifecycle.can_transition("in_progress", "cancelled")
        assert not order_lifecycle.can_transition("pending", "completed")
        assert not order_lifecycle.can_transition("in_progress", "pending")

    def test_unknown_status_rejected(self):
        with pytest.raises(LifecycleError):
            order_lifecycle.can_transition("pending", "shipped")

    @pytest.mark.parametrize("method,is_paid,expected", [
        ("efectivo", False, True),
        ("transferencia", False, True),
        ("efectivo", True, False),
        ("tarjeta", False, False),
        ("qr", False, False),
    ])
    def test_payment_confirmation_only_for_unpaid_manual_methods(self, method, is_paid, expected):
        order = Order(payment_method=method)
        assert order_lifecycle.requires_payment_confirmation(order, is_paid) is expected


class TestTransitions:
    def test_take_then_finalize_card_order(self, make_order):
        order = make_order(payment_method="tarjeta")
        tenant_id = order.tenant_id

        order_lifecycle.take_order(tenant_id, order.id)
        done = order_lifecycle.finalize(tenant_id, order.id)

        assert done.status == "completed"
        assert done.completed_at is not None

    def test_finalize_requires_in_progress(self, make_order):
        order = make_order()
        with pytest.raises(LifecycleError):
            order_lifecycle.finalize(order.tenant_id, order.id)

    def test_cash_finalize_prompts_for_payment(self, make_order, db_session):
        """efectivo without prior mark-paid: the prompt comes before completion."""
        order = make_order(payment_method="efectivo")
        order_lifecycle.take_order(order.tenant_id, order.id)

        with pytest.raises(PaymentConfirmationRequired) as exc:
            order_lifecycle.finalize(order.tenant_id, order.id)

        assert exc.value.payment_method == "efectivo"
        db_session.expire_all()
        assert db_session.get(Order, order.id).status == "in_progress"

    def test_cash_finalize_declined_keeps_order_open(self, make_order, db_session):
        order = make_order(payment_method="transferencia")
        order_lifecycle.take_order(order.tenant_id, order.id)

        with pytest.raises(LifecycleError):
            order_lifecycle.finalize(order.tenant_id, order.id, payment_confirmed=False)

        db_session.expire_all()
        assert db_session.get(Order, order.id).status == "in_progress"
        assert payment_flags.get_flag(order.tenant_id, order.id) is False

    def test_cash_finalize_confirmed_sets_paid_flag(self, make_order):
        order = make_order(payment_method="efectivo")
        order_lifecycle.take_order(order.tenant_id, order.id)

        done = order_lifecycle.finalize(order.tenant_id, order.id, payment_confirmed=True)

        assert done.status == "completed"
        assert payment_flags.get_flag(order.tenant_id, order.id) is True

    def test_already_paid_cash_order_skips_prompt(self, make_order):
        order = make_order(payment_method="efectivo")
        order_lifecycle.mark_paid(order.tenant_id, order.id)
        order_lifecycle.take_order(order.tenant_id, order.id)

        assert order_lifecycle.finalize(order.tenant_id, order.id).status == "completed"

    @pytest.mark.parametrize("take_first", [False, True])
    def test_cancel_from_open_states(self, make_order, take_first):
        order = make_order(payment_method="efectivo")
        if take_first:
            order_lifecycle.take_order(order.tenant_id, order.id)

        cancelled = order_lifecycle.cancel(order.tenant_id, order.id)

        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_at is not None

    def test_terminal_order_cannot_move(self, make_order):
        order = make_order()
        order_lifecycle.cancel(order.tenant_id, order.id)

        for action in (order_lifecycle.take_order, order_lifecycle.finalize, order_lifecycle.cancel):
            with pytest.raises(LifecycleError):
                action(order.tenant_id, order.id)

    def test_set_status_dispatch(self, make_order):
        order = make_order()
        assert order_lifecycle.set_status(order.tenant_id, order.id, "in_progress").status == "in_progress"
        with pytest.raises(LifecycleError):
            order_lifecycle.set_status(order.tenant_id, order.id, "pending")

    def test_other_tenant_cannot_touch_order(self, make_order, other_tenant):
        order = make_order()
        with pytest.raises(TenantAccessError):
            order_lifecycle.take_order(other_tenant.id, order.id)


class TestDispatchNotification:
    def test_delivery_finalize_posts_webhook(self, app, make_order, monkeypatch):
        sent = []

        def fake_post(url, json=None, timeout=None):
            sent.append((url, json))
            return httpx.Response(200, request=httpx.Request("POST", url))

        monkeypatch.setitem(app.config, "NOTIFY_WEBHOOK_URL", "http://hooks.test/notify")
        monkeypatch.setattr("storefront.services.notification_service.httpx.post", fake_post)

        order = make_order(payment_method="tarjeta", delivery_type="domicilio")
        order_lifecycle.take_order(order.tenant_id, order.id)
        order_lifecycle.finalize(order.tenant_id, order.id)

        assert len(sent) == 1
        url, payload = sent[0]
        assert url == "http://hooks.test/notify"
        assert payload["order_id"] == order.id
        assert payload["link"].startswith("https://wa.me/5491144441111?text=")

    def test_notification_failure_does_not_block_finalize(self, app, make_order, monkeypatch, db_session):
        def failing_post(url, json=None, timeout=None):
            raise httpx.ConnectError("unreachable", request=httpx.Request("POST", url))

        monkeypatch.setitem(app.config, "NOTIFY_WEBHOOK_URL", "http://hooks.test/notify")
        monkeypatch.setattr("storefront.services.notification_service.httpx.post", failing_post)

        order = make_order(payment_method="qr", delivery_type="domicilio")
        order_lifecycle.take_order(order.tenant_id, order.id)
        done = order_lifecycle.finalize(order.tenant_id, order.id)

        assert done.status == "completed"
        db_session.expire_all()
        assert db_session.get(Order, order.id).status == "completed"


class TestPaidFlagAndDelete:
    def test_mark_paid_does_not_change_status(self, make_order):
        order = make_order()

        order_lifecycle.mark_paid(order.tenant_id, order.id)

        assert payment_flags.get_flag(order.tenant_id, order.id) is True
        assert order.status == "pending"

    def test_terminal_orders_display_as_paid(self, make_order):
        order = make_order(payment_method="efectivo")
        order_lifecycle.cancel(order.tenant_id, order.id)

        assert order_lifecycle.display_paid(order, False) is True

    def test_delete_requires_confirmation(self, make_order, db_session):
        order = make_order()

        with pytest.raises(ConfirmationRequired):
            order_lifecycle.delete_order(order.tenant_id, order.id)

        assert db_session.get(Order, order.id) is not None

    def test_delete_from_any_state_clears_flag(self, make_order, db_session):
        order = make_order()
        order_id, tenant_id = order.id, order.tenant_id
        order_lifecycle.mark_paid(tenant_id, order_id)
        order_lifecycle.cancel(tenant_id, order_id)

        order_lifecycle.delete_order(tenant_id, order_id, confirmed=True)

        db_session.expire_all()
        assert db_session.get(Order, order_id) is None
        assert db_session.query(OrderPaymentFlag).filter_by(order_id=order_id).count() == 0
