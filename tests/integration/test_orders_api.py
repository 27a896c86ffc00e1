from storefront.orders.models import CartLine, OrderStatus, PaymentStatus
from storefront.utils.security import get_current_user
from tests.fakes import make_customer


def _paid(ledger):
    order = ledger.service.create_pending_order("store-1", [CartLine("prod-1", 2)], make_customer())
    ledger.service.record_payment_succeeded(order, "pi_1")
    return order


def test_merchant_completes_order(api, ledger):
    order = _paid(ledger)
    res = api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "COMPLETED"})

    assert res.status_code == 200
    body = res.json()
    assert body["changed"] is True
    assert body["order"]["status"] == "COMPLETED"
    assert body["order"]["payment_status"] == "PAID"
    assert ledger.notifier.sent[-1][0] == "order.status_changed"

def test_completed_to_pending_is_400(api, ledger):
    order = _paid(ledger)
    api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "COMPLETED"})
    res = api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "PENDING"})

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidStateTransition"
    assert ledger.orders.get(order.id).status == OrderStatus.COMPLETED

def test_unknown_status_value_is_400(api, ledger):
    order = _paid(ledger)
    res = api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "SHIPPED"})
    assert res.status_code == 400

def test_cancel_paid_order_restocks(api, ledger):
    order = _paid(ledger)
    assert ledger.stock() == 8
    res = api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "CANCELLED"})
    assert res.status_code == 200
    assert ledger.orders.get(order.id).state == (OrderStatus.CANCELLED, PaymentStatus.PAID)
    assert ledger.stock() == 10

def test_other_merchant_gets_403(api, wired_app, ledger):
    order = _paid(ledger)
    wired_app.dependency_overrides[get_current_user] = lambda: {"id": "someone-else", "email": "x@example.com"}
    res = api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "COMPLETED"})
    assert res.status_code == 403
    assert res.json()["error"] == "Forbidden"

def test_get_order_detail(api, ledger):
    order = _paid(ledger)
    res = api.get(f"/api/v1/orders/{order.id}")
    assert res.status_code == 200
    data = res.json()
    assert data["order_number"] == order.order_number
    assert data["items"][0]["quantity"] == 2
    assert data["platform_fee"] == 1000

def test_get_unknown_order_404(api):
    assert api.get("/api/v1/orders/does-not-exist").status_code == 404

def test_list_orders_by_status(api, ledger):
    _paid(ledger)
    ledger.service.create_pending_order("store-1", [CartLine("prod-1", 1)], make_customer())

    everything = api.get("/api/v1/orders").json()
    processing = api.get("/api/v1/orders", params={"status": "PROCESSING"}).json()

    assert everything["count"] == 2
    assert [o["status"] for o in processing["orders"]] == ["PROCESSING"]

def test_unauthenticated_request_is_401(api, wired_app):
    wired_app.dependency_overrides.pop(get_current_user, None)
    res = api.get("/api/v1/orders")
    assert res.status_code == 401
    assert res.json()["error"] == "Unauthorized"

def test_cancel_unpaid_order_is_400(api, ledger):
    order = ledger.service.create_pending_order("store-1", [CartLine("prod-1", 1)], make_customer())
    res = api.patch(f"/api/v1/orders/{order.id}/status", json={"status": "CANCELLED"})

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidStateTransition"
    assert ledger.orders.get(order.id).state == (OrderStatus.PENDING, PaymentStatus.PENDING)
