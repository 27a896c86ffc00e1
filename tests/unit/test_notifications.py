import json

import httpx

from storefront.notifications.service import HttpNotifier, LogNotifier, default_notifier, notify_safely
from storefront.orders.models import Order, OrderItem


def _order():
    return Order(
        id="o1", store_id="s1", order_number="ORD-1", customer_email="a@example.com", customer_name="A",
        shipping_address={}, subtotal=5000, platform_fee=500, total=5000,
        items=[OrderItem(id="i1", order_id="o1", product_id="p1", title="T-shirt", quantity=1, price=5000)],
    )

def test_http_notifier_posts_payload():
    seen = []

    def handler(request: httpx.Request):
        seen.append(json.loads(request.content))
        return httpx.Response(202)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = HttpNotifier("https://mail.example.com/hooks", client=client)
    notifier.order_confirmed(_order())

    assert seen[0]["type"] == "order.confirmed"
    assert seen[0]["data"]["order_number"] == "ORD-1"
    assert seen[0]["data"]["items"] == [{"title": "T-shirt", "quantity": 1, "price": 5000}]

def test_notify_safely_swallows_and_reports_failure(caplog):
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    notifier = HttpNotifier("https://mail.example.com/hooks", client=client)

    assert notify_safely(notifier.order_status_changed, _order()) is False
    assert "notifications.failed" in caplog.text

def test_notify_safely_success():
    assert notify_safely(LogNotifier().order_confirmed, _order()) is True

def test_default_notifier_without_url(monkeypatch):
    monkeypatch.setattr("storefront.notifications.service.NOTIFY_WEBHOOK_URL", "")
    assert isinstance(default_notifier(), LogNotifier)
