"""
Notifications sortantes (emails transactionnels) vers un collaborateur externe.

Le rendu et l'envoi des emails sont hors périmètre: on transmet un message
JSON à un service d'envoi (NOTIFY_WEBHOOK_URL) ou, à défaut, on journalise.
Un échec d'envoi est capturé et journalisé, il ne fait jamais échouer ni
n'annule la transition qui l'a déclenché.
"""
from typing import Any, Callable, Dict, Optional
import logging

import httpx

from storefront.config import NOTIFY_WEBHOOK_URL, NOTIFY_TIMEOUT_SECONDS
from storefront.orders.models import Order

logger = logging.getLogger(__name__)


def _order_payload(order: Order) -> Dict[str, Any]:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "store_id": order.store_id,
        "customer_email": order.customer_email,
        "customer_name": order.customer_name,
        "status": order.status.value,
        "payment_status": order.payment_status.value,
        "total": order.total,
        "currency": order.currency,
        "items": [{"title": i.title, "quantity": i.quantity, "price": i.price} for i in order.items],
    }


class Notifier:
    """Interface: implémentations LogNotifier (dev) et HttpNotifier (prod)."""

    def send(self, kind: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def order_confirmed(self, order: Order) -> None:
        self.send("order.confirmed", _order_payload(order))

    def order_status_changed(self, order: Order) -> None:
        self.send("order.status_changed", _order_payload(order))


class LogNotifier(Notifier):
    def send(self, kind: str, payload: Dict[str, Any]) -> None:
        logger.info("notifications.%s order_number=%s to=%s", kind, payload.get("order_number"), payload.get("customer_email"))


class HttpNotifier(Notifier):
    def __init__(self, url: str, timeout: float = NOTIFY_TIMEOUT_SECONDS, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    def send(self, kind: str, payload: Dict[str, Any]) -> None:
        body = {"type": kind, "data": payload}
        if self._client is not None:
            res = self._client.post(self.url, json=body, timeout=self.timeout)
        else:
            res = httpx.post(self.url, json=body, timeout=self.timeout)
        res.raise_for_status()


def notify_safely(action: Callable[[Order], None], order: Order) -> bool:
    """Exécute une notification en best-effort; retourne False (et journalise) en cas d'échec."""
    try:
        action(order)
        return True
    except Exception:
        logger.exception("notifications.failed order_id=%s action=%s", order.id, getattr(action, "__name__", action))
        return False


def default_notifier() -> Notifier:
    if NOTIFY_WEBHOOK_URL:
        return HttpNotifier(NOTIFY_WEBHOOK_URL)
    return LogNotifier()
