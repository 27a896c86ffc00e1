"""
Sérialisation/désérialisation des métadonnées Stripe (order_id, store_id).
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from storefront.orders.models import Order

# module storefront.payments.metadata
def make_metadata(order: Order) -> Dict[str, str]:
    """
    Métadonnées attachées à la session et au PaymentIntent.
    - order_id: clé primaire de la commande (localisation dans le webhook)
    - store_id / order_number: diagnostic côté dashboard Stripe
    """
    return {
        "order_id": order.id,
        "store_id": order.store_id,
        "order_number": order.order_number,
    }


@dataclass(frozen=True)
class EventRefs:
    """Références extraites de data.object d'un événement Stripe."""
    object_id: Optional[str]
    order_id: Optional[str]
    session_id: Optional[str]
    payment_intent_id: Optional[str]
    payment_status: Optional[str]


def event_object(event: Dict[str, Any]) -> Dict[str, Any]:
    data_obj = (event or {}).get("data", {}).get("object", {}) if isinstance(event, dict) else {}
    return data_obj if isinstance(data_obj, dict) else {}


def extract_refs(event: Dict[str, Any]) -> EventRefs:
    """
    Extrait (order_id, session_id, payment_intent_id) quel que soit le type d'objet.
    - checkout.session: id = cs_..., payment_intent = pi_... (ou objet développé)
    - payment_intent: id = pi_...
    Tolérant: les champs absents valent None.
    """
    obj = event_object(event)
    meta = obj.get("metadata") or {}
    kind = obj.get("object")
    object_id = obj.get("id")

    order_id = meta.get("order_id") or None
    if kind == "checkout.session":
        order_id = order_id or obj.get("client_reference_id") or None
        pi = obj.get("payment_intent")
        if isinstance(pi, dict):
            pi = pi.get("id")
        return EventRefs(object_id, order_id, object_id, pi or None, obj.get("payment_status"))
    if kind == "payment_intent":
        return EventRefs(object_id, order_id, None, object_id, obj.get("status"))
    return EventRefs(object_id, order_id, None, None, None)
