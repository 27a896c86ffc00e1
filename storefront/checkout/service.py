"""Construction de la session de paiement hébergée (Stripe Checkout, charge de destination).
Étapes:
- Crée la commande PENDING/PENDING et ses lignes (OrderService.create_pending_order).
- Demande la session Stripe: line_items, commission plateforme, compte marchand destinataire,
  métadonnées (order_id, store_id) recopiées sur le PaymentIntent.
- Enregistre l'identifiant de session sur la commande (tant qu'elle est PENDING).
Si Stripe échoue ou expire, la commande PENDING reste en place (session nulle) et
ExternalProcessorError est levée: le client peut réessayer, une commande orpheline n'est jamais payée.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from storefront.config import BASE_URL, CHECKOUT_CANCEL_PATH, CHECKOUT_SUCCESS_PATH
from storefront.orders.models import CartLine, Customer, Order
from storefront.orders.service import OrderService
from storefront.payments.metadata import make_metadata
from storefront.payments.stripe_client import StripeProcessor
from storefront.products.models import Product

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    order_id: str
    order_number: str
    session_id: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "session_id": self.session_id,
            "url": self.url,
        }


def checkout_urls(
    base_url: str = BASE_URL,
    success_path: str = CHECKOUT_SUCCESS_PATH,
    cancel_path: str = CHECKOUT_CANCEL_PATH,
) -> Dict[str, str]:
    """URLs de retour; Stripe substitue {CHECKOUT_SESSION_ID} dans l'URL de succès."""
    base = base_url.rstrip("/")
    sep = "&" if "?" in success_path else "?"
    return {
        "success_url": f"{base}{success_path}{sep}session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base}{cancel_path}",
    }


def to_line_items(order: Order, catalog: Dict[str, Product]) -> List[Dict[str, Any]]:
    """Une ligne Stripe par ligne de commande, au prix figé dans la commande."""
    line_items: List[Dict[str, Any]] = []
    for item in order.items:
        product_data: Dict[str, Any] = {"name": item.title}
        product = catalog.get(item.product_id) if item.product_id else None
        if product and product.description:
            product_data["description"] = product.description
        line_items.append({
            "price_data": {
                "currency": order.currency,
                "unit_amount": item.price,
                "product_data": product_data,
            },
            "quantity": item.quantity,
        })
    return line_items


# module storefront.checkout.service
class CheckoutService:
    def __init__(self, processor: StripeProcessor, orders: Optional[OrderService] = None, base_url: str = BASE_URL):
        self.processor = processor
        self.orders = orders or OrderService()
        self.base_url = base_url

    def start_checkout(self, store_id: str, items: List[CartLine], customer: Customer) -> CheckoutResult:
        store = self.orders.require_ready_store(store_id)
        order = self.orders.create_pending_order(store_id, items, customer, store=store)

        catalog = self.orders.products.get_many(store.id, [i.product_id for i in order.items if i.product_id])
        session = self.processor.create_checkout_session(
            line_items=to_line_items(order, catalog),
            metadata=make_metadata(order),
            application_fee_amount=order.platform_fee,
            destination_account=store.stripe_account_id,
            customer_email=order.customer_email,
            client_reference_id=order.id,
            idempotency_key=f"checkout-{order.id}",
            **checkout_urls(self.base_url),
        )

        if not self.orders.orders.attach_session(order.id, session["id"]):
            # Un webhook a pu faire avancer la commande entre-temps: la session reste valide
            logger.warning("checkout.attach_session skipped order_id=%s session_id=%s", order.id, session["id"])
        logger.info(
            "checkout.session_created order_id=%s session_id=%s fee=%s destination=%s",
            order.id, session["id"], order.platform_fee, store.stripe_account_id,
        )
        return CheckoutResult(order.id, order.order_number, session["id"], session["url"])
