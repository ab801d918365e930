# Overview: Customer message sent when a delivery order leaves the kitchen.

from __future__ import annotations

import re
from urllib.parse import quote

import httpx
from flask import current_app


class NotificationError(Exception):
    """Transport failed; callers treat notifications as best-effort."""
    pass


def build_dispatch_message(order) -> str:
    name = (order.customer_name or "").strip()
    greeting = f"Hola {name}!" if name else "Hola!"
    lines = [
        greeting,
        f"Tu pedido #{order.id} ya está en camino.",
        f"Total: ${order.total}",
    ]
    if order.payment_method in ("efectivo", "transferencia"):
        lines.append(f"Forma de pago: {order.payment_method}.")
    if order.delivery_address:
        lines.append(f"Dirección: {order.delivery_address}")
    lines.append("Gracias por tu compra!")
    return "\n".join(lines)


def whatsapp_link(phone: str | None, message: str) -> str | None:
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return None
    return f"https://wa.me/{digits}?text={quote(message)}"


def notify_order_dispatched(order) -> dict:
    """
    Deliver the dispatch message for a domicilio order.

    With NOTIFY_WEBHOOK_URL set, POST {order_id, phone, message, link} to it;
    otherwise only log. Raises NotificationError on transport failure.
    """
    message = build_dispatch_message(order)
    link = whatsapp_link(order.customer_phone, message)
    payload = {
        "order_id": order.id,
        "tenant_id": order.tenant_id,
        "phone": order.customer_phone,
        "message": message,
        "link": link,
    }

    webhook = current_app.config.get("NOTIFY_WEBHOOK_URL")
    if not webhook:
        current_app.logger.info("Dispatch notification for order %s (no webhook configured)", order.id)
        return payload

    try:
        response = httpx.post(
            webhook,
            json=payload,
            timeout=current_app.config.get("NOTIFY_TIMEOUT_SECONDS", 5),
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise NotificationError(f"Notification for order {order.id} failed: {exc}") from exc
    return payload
