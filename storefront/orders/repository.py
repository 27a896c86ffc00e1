"""
Accès aux données pour les commandes (tables orders / order_items).

- create: passe par la fonction SQL create_order_with_items (une seule transaction:
  la commande et ses lignes existent ensemble ou pas du tout).
- transition: écriture conditionnelle, UPDATE ... WHERE status/payment_status = précondition.
  Aucune ligne modifiée => la précondition ne tient plus (rejeu, concurrence).
"""
from typing import Any, Dict, List, Optional
import logging

from storefront.errors import OrderNumberTaken, StorageError
from storefront.infra.supabase_client import get_service_supabase, is_unique_violation, rows_of
from storefront.orders.models import Order, OrderStatus
from storefront.orders.state import Transition

logger = logging.getLogger(__name__)

ORDER_SELECT = "*, order_items(id, order_id, product_id, title, quantity, price)"

# module storefront.orders.repository
class OrderRepository:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_service_supabase()

    def create(self, order: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """
        Insère commande + lignes atomiquement et retourne l'Order relu.
        Lève OrderNumberTaken si order_number existe déjà (23505), StorageError sinon.
        """
        try:
            res = self.client.rpc("create_order_with_items", {"p_order": order, "p_items": items}).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise OrderNumberTaken(f"Numéro de commande déjà utilisé: {order.get('order_number')}") from e
            logger.exception("orders.repository.create failed order_number=%s", order.get("order_number"))
            raise StorageError("Création de commande impossible") from e
        data = getattr(res, "data", None)
        order_id = data[0] if isinstance(data, list) and data else data
        if isinstance(order_id, dict):
            order_id = order_id.get("id") or order_id.get("create_order_with_items")
        created = self.get(str(order_id)) if order_id else None
        if not created:
            raise StorageError("Commande créée introuvable")
        return created

    def _one(self, column: str, value: str) -> Optional[Order]:
        if not value:
            return None
        try:
            res = self.client.table("orders").select(ORDER_SELECT).eq(column, value).limit(1).execute()
        except Exception as e:
            logger.exception("orders.repository lookup failed %s=%s", column, value)
            raise StorageError("Lecture commande impossible") from e
        rows = rows_of(res)
        return Order.from_row(rows[0]) if rows else None

    def get(self, order_id: str) -> Optional[Order]:
        return self._one("id", order_id)

    def find_by_session(self, session_id: str) -> Optional[Order]:
        return self._one("stripe_session_id", session_id)

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        return self._one("stripe_payment_intent_id", payment_intent_id)

    def list_for_store(self, store_id: str, status: Optional[OrderStatus] = None, limit: int = 50) -> List[Order]:
        try:
            query = self.client.table("orders").select(ORDER_SELECT).eq("store_id", store_id)
            if status is not None:
                query = query.eq("status", status.value)
            res = query.order("created_at", desc=True).limit(limit).execute()
        except Exception as e:
            logger.exception("orders.repository.list_for_store failed store_id=%s", store_id)
            raise StorageError("Lecture commandes impossible") from e
        return [Order.from_row(r) for r in rows_of(res)]

    def transition(self, order_id: str, transition: Transition, extra: Optional[Dict[str, Any]] = None) -> Optional[Order]:
        """
        Applique la transition si l'état courant est une de ses sources.
        Retourne l'Order mis à jour (sans ses lignes) ou None si la précondition a échoué.
        """
        payments = {p for _, p in transition.sources}
        if len(payments) != 1:
            raise ValueError(f"Transition {transition.name}: sources sur plusieurs payment_status")
        statuses = [s.value for s, _ in transition.sources]
        status, payment = transition.target
        data = {"status": status.value, "payment_status": payment.value, **(extra or {})}
        try:
            res = (
                self.client.table("orders")
                .update(data)
                .eq("id", order_id)
                .eq("payment_status", payments.pop().value)
                .in_("status", statuses)
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.transition failed order_id=%s transition=%s", order_id, transition.name)
            raise StorageError("Mise à jour commande impossible") from e
        rows = rows_of(res)
        return Order.from_row(rows[0]) if rows else None

    def attach_session(self, order_id: str, session_id: str) -> bool:
        """Enregistre l'identifiant de session Stripe tant que la commande est PENDING et sans session."""
        try:
            res = (
                self.client.table("orders")
                .update({"stripe_session_id": session_id})
                .eq("id", order_id)
                .eq("status", OrderStatus.PENDING.value)
                .is_("stripe_session_id", "null")
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.attach_session failed order_id=%s", order_id)
            raise StorageError("Mise à jour commande impossible") from e
        return bool(rows_of(res))
