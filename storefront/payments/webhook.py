"""
Réconciliation des webhooks Stripe (livraison au moins une fois, ordre quelconque).

Chaque événement est vérifié (signature), puis dispatché:
- checkout.session.completed (payé) / checkout.session.async_payment_succeeded -> paiement confirmé
- payment_intent.payment_failed / checkout.session.async_payment_failed / checkout.session.expired -> échec
- account.updated -> drapeau d'onboarding de la boutique
- tout autre type -> ignoré
Les rejeux et événements hors ordre sont des no-op acquittés (200), jamais des erreurs.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from storefront.errors import InvalidSignature
from storefront.orders.models import Order
from storefront.orders.service import OrderService
from storefront.payments.metadata import EventRefs, event_object, extract_refs
from storefront.payments.stripe_client import StripeProcessor
from storefront.stores.repository import StoreRepository

logger = logging.getLogger(__name__)

SUCCESS_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
FAILURE_EVENTS = (
    "payment_intent.payment_failed",
    "checkout.session.async_payment_failed",
    "checkout.session.expired",
)
ACCOUNT_EVENTS = ("account.updated",)


@dataclass
class WebhookResult:
    event_type: str
    status: str
    order_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"received": True, "status": self.status}
        if self.order_id:
            body["order_id"] = self.order_id
        return body


# module storefront.payments.webhook
class PaymentReconciler:
    def __init__(
        self,
        processor: Optional[StripeProcessor] = None,
        orders: Optional[OrderService] = None,
        stores: Optional[StoreRepository] = None,
    ):
        self.processor = processor or StripeProcessor()
        self.orders = orders or OrderService()
        self.stores = stores or StoreRepository()

    def handle(self, payload: bytes, sig_header: Optional[str]) -> WebhookResult:
        """
        Point d'entrée du webhook.
        - InvalidSignature / ValidationError: propagées (400), aucune écriture
        - StorageError: propagée (503) pour que Stripe relivre l'événement
        """
        try:
            event = self.processor.parse_event(payload, sig_header)
        except InvalidSignature as e:
            logger.warning("payments.webhook invalid_signature reason=%s", e.message)
            raise
        return self.dispatch(event)

    def dispatch(self, event: Dict[str, Any]) -> WebhookResult:
        event_type = event.get("type") or ""
        logger.info("payments.webhook received type=%s id=%s", event_type, event.get("id"))
        if event_type in SUCCESS_EVENTS:
            return self._on_success(event_type, event)
        if event_type in FAILURE_EVENTS:
            return self._on_failure(event_type, event)
        if event_type in ACCOUNT_EVENTS:
            return self._on_account_updated(event_type, event)
        return WebhookResult(event_type, "ignored")

    def _locate(self, refs: EventRefs) -> Optional[Order]:
        """Localise la commande: metadata.order_id, puis session, puis payment intent."""
        if refs.order_id:
            order = self.orders.get_order(refs.order_id)
            if order:
                return order
        if refs.session_id:
            order = self.orders.orders.find_by_session(refs.session_id)
            if order:
                return order
        if refs.payment_intent_id:
            return self.orders.orders.find_by_payment_intent(refs.payment_intent_id)
        return None

    def _on_success(self, event_type: str, event: Dict[str, Any]) -> WebhookResult:
        refs = extract_refs(event)
        if event_type == "checkout.session.completed" and refs.payment_status != "paid":
            # Paiement différé: la confirmation arrivera via async_payment_succeeded
            logger.info("payments.webhook awaiting_async session_id=%s payment_status=%s", refs.session_id, refs.payment_status)
            return WebhookResult(event_type, "pending")
        order = self._locate(refs)
        if not order:
            logger.warning(
                "payments.webhook order_not_found type=%s order_id=%s session_id=%s",
                event_type, refs.order_id, refs.session_id,
            )
            return WebhookResult(event_type, "not_found")
        result = self.orders.record_payment_succeeded(order, refs.payment_intent_id)
        return WebhookResult(event_type, result.outcome.value, order.id)

    def _on_failure(self, event_type: str, event: Dict[str, Any]) -> WebhookResult:
        refs = extract_refs(event)
        order = self._locate(refs)
        if not order:
            logger.info(
                "payments.webhook order_not_found type=%s order_id=%s payment_intent_id=%s",
                event_type, refs.order_id, refs.payment_intent_id,
            )
            return WebhookResult(event_type, "not_found")
        result = self.orders.record_payment_failed(order)
        return WebhookResult(event_type, result.outcome.value, order.id)

    def _on_account_updated(self, event_type: str, event: Dict[str, Any]) -> WebhookResult:
        account = event_object(event)
        account_id = account.get("id")
        onboarded = bool(account.get("charges_enabled")) and bool(account.get("payouts_enabled"))
        store = self.stores.set_onboarded(account_id, onboarded) if account_id else None
        if not store:
            logger.info("payments.webhook account_unknown account=%s", account_id)
            return WebhookResult(event_type, "not_found")
        logger.info("stores.onboarding account=%s store_id=%s onboarded=%s", account_id, store.id, onboarded)
        return WebhookResult(event_type, "applied")
