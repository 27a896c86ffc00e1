import pytest

from storefront.checkout.service import CheckoutService, checkout_urls
from storefront.errors import ExternalProcessorError, StoreNotReady
from storefront.orders.models import CartLine, OrderStatus
from tests.fakes import FakeProcessor, Ledger, make_customer, make_store


def test_start_checkout_builds_destination_charge(ledger, processor):
    service = CheckoutService(processor, ledger.service, base_url="https://shop.example.com/")
    result = service.start_checkout("store-1", [CartLine("prod-1", 1)], make_customer())

    call = processor.sessions[0]
    assert call["application_fee_amount"] == 500
    assert call["destination_account"] == "acct_test_1"
    assert call["metadata"]["order_id"] == result.order_id
    assert call["metadata"]["store_id"] == "store-1"
    assert call["client_reference_id"] == result.order_id
    assert call["idempotency_key"] == f"checkout-{result.order_id}"
    assert call["customer_email"] == "alice@example.com"
    assert call["success_url"] == "https://shop.example.com/checkout/success?session_id={CHECKOUT_SESSION_ID}"
    assert call["cancel_url"] == "https://shop.example.com/checkout/cancel"
    assert call["line_items"] == [{
        "price_data": {
            "currency": "usd",
            "unit_amount": 5000,
            "product_data": {"name": "T-shirt", "description": "Coton bio"},
        },
        "quantity": 1,
    }]

    assert result.session_id == "cs_test_1"
    assert result.url.endswith("cs_test_1")
    stored = ledger.orders.get(result.order_id)
    assert stored.stripe_session_id == "cs_test_1"
    assert stored.status == OrderStatus.PENDING

def test_processor_failure_leaves_pending_order_without_session(ledger):
    service = CheckoutService(FakeProcessor(fail=True), ledger.service)
    with pytest.raises(ExternalProcessorError):
        service.start_checkout("store-1", [CartLine("prod-1", 1)], make_customer())

    orders = list(ledger.orders.orders.values())
    assert len(orders) == 1
    assert orders[0]["status"] == "PENDING"
    assert orders[0]["stripe_session_id"] is None
    assert len(orders[0]["order_items"]) == 1
    assert ledger.stock() == 10

def test_store_without_account_is_rejected_before_any_write(processor):
    ledger = Ledger(stores=[make_store(stripe_account_id=None, stripe_onboarded=False)])
    service = CheckoutService(processor, ledger.service)
    with pytest.raises(StoreNotReady):
        service.start_checkout("store-1", [CartLine("prod-1", 1)], make_customer())
    assert ledger.orders.orders == {}
    assert processor.sessions == []

def test_checkout_urls_template():
    urls = checkout_urls("http://localhost:8000")
    assert urls["success_url"].endswith("?session_id={CHECKOUT_SESSION_ID}")

def test_checkout_urls_keep_existing_query_string():
    urls = checkout_urls("https://shop.example.com/", success_path="/merci?src=checkout", cancel_path="/panier")
    assert urls["success_url"] == "https://shop.example.com/merci?src=checkout&session_id={CHECKOUT_SESSION_ID}"
    assert urls["cancel_url"] == "https://shop.example.com/panier"
