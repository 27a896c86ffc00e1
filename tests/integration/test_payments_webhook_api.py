from storefront.errors import StorageError
from storefront.orders.models import CartLine, OrderStatus, PaymentStatus
from tests.fakes import make_customer, payment_intent_event, session_event, sign_payload

WEBHOOK = "/api/v1/payments/webhook"


def _pending(ledger):
    return ledger.service.create_pending_order("store-1", [CartLine("prod-1", 1)], make_customer())

def _post(api, payload, signature=None):
    return api.post(
        WEBHOOK,
        content=payload,
        headers={"Stripe-Signature": signature or sign_payload(payload), "Content-Type": "application/json"},
    )


def test_completed_event_marks_order_paid(api, ledger):
    order = _pending(ledger)
    res = _post(api, session_event("checkout.session.completed", order))

    assert res.status_code == 200
    assert res.json() == {"received": True, "status": "applied", "order_id": order.id}
    assert ledger.orders.get(order.id).state == (OrderStatus.PROCESSING, PaymentStatus.PAID)
    assert ledger.stock() == 9

def test_redelivery_is_acknowledged_without_second_decrement(api, ledger):
    order = _pending(ledger)
    payload = session_event("checkout.session.completed", order)
    _post(api, payload)
    res = _post(api, payload)

    assert res.status_code == 200
    assert res.json()["status"] == "duplicate"
    assert ledger.stock() == 9

def test_failed_after_completed_is_noop(api, ledger):
    order = _pending(ledger)
    _post(api, session_event("checkout.session.completed", order))
    res = _post(api, payment_intent_event("payment_intent.payment_failed", order))

    assert res.status_code == 200
    assert res.json()["status"] == "noop"
    assert ledger.orders.get(order.id).payment_status == PaymentStatus.PAID

def test_invalid_signature_400_and_no_mutation(api, ledger):
    order = _pending(ledger)
    payload = session_event("checkout.session.completed", order)
    res = _post(api, payload, signature=sign_payload(payload, secret="whsec_other"))

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidSignature"
    assert ledger.orders.get(order.id).state == (OrderStatus.PENDING, PaymentStatus.PENDING)
    assert ledger.stock() == 10

def test_missing_signature_header_400(api):
    res = api.post(WEBHOOK, content=b"{}")
    assert res.status_code == 400

def test_malformed_payload_400(api):
    res = _post(api, b"not json")
    assert res.status_code == 400
    assert res.json()["error"] == "ValidationError"

def test_storage_failure_returns_503_for_redelivery(api, ledger, monkeypatch):
    order = _pending(ledger)

    def _down(*args, **kwargs):
        raise StorageError("db down")
    monkeypatch.setattr(ledger.orders, "get", _down)

    res = _post(api, session_event("checkout.session.completed", order))
    assert res.status_code == 503

def test_non_utf8_body_is_400_not_500(api, ledger):
    order = _pending(ledger)
    res = _post(api, b"\xff\xfe not utf8", signature="t=1,v1=deadbeef")

    assert res.status_code == 400
    assert res.json()["error"] == "ValidationError"
    assert ledger.orders.get(order.id).state == (OrderStatus.PENDING, PaymentStatus.PENDING)
