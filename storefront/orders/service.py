"""Couche service du registre des commandes (Order Ledger).
Rôles:
- Créer une commande PENDING/PENDING avec ses lignes (validation boutique, produits, stock, totaux).
- Appliquer les transitions pilotées par le webhook (paiement réussi / échoué), de façon idempotente.
- Appliquer les transitions pilotées par le marchand (COMPLETED, CANCELLED + restock).
Toutes les écritures d'état sont conditionnelles (cf. orders/repository.py): rejouer une
transition dont la précondition ne tient plus est un no-op, jamais une erreur.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional
import logging
import secrets
import string
import time

from storefront.config import CURRENCY, ORDER_NUMBER_MAX_ATTEMPTS, TAX_RATE_PERCENT
from storefront.errors import (
    InvalidStateTransition,
    NotFound,
    OrderNumberTaken,
    ProductUnavailable,
    StoreNotReady,
    ValidationError,
)
from storefront.inventory.service import InventoryGuard
from storefront.notifications.service import Notifier, default_notifier, notify_safely
from storefront.orders import state
from storefront.orders.models import CartLine, Customer, Order, OrderStatus, PaymentStatus
from storefront.orders.repository import OrderRepository
from storefront.payments.fees import compute_totals
from storefront.products.repository import ProductRepository
from storefront.stores.models import Store
from storefront.stores.repository import StoreRepository

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


class Outcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    NOOP = "noop"


@dataclass
class LedgerResult:
    outcome: Outcome
    order: Order


def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if n == 0:
            return out


def generate_order_number() -> str:
    """ORD-<timestamp ms en base36>-<6 caractères aléatoires>; l'unicité est garantie par la contrainte SQL."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"ORD-{_base36(int(time.time() * 1000))}-{suffix}"


def merge_cart(lines: List[CartLine]) -> Dict[str, int]:
    """Agrège les lignes du panier par produit en conservant l'ordre d'apparition."""
    if not lines:
        raise ValidationError("Panier vide")
    quantities: Dict[str, int] = {}
    for line in lines:
        if not line.product_id or line.quantity <= 0:
            raise ValidationError("Ligne de panier invalide", details={"product_id": line.product_id})
        quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity
    return quantities


# module storefront.orders.service
class OrderService:
    def __init__(
        self,
        orders: Optional[OrderRepository] = None,
        stores: Optional[StoreRepository] = None,
        products: Optional[ProductRepository] = None,
        inventory: Optional[InventoryGuard] = None,
        notifier: Optional[Notifier] = None,
        tax_rate_percent=TAX_RATE_PERCENT,
        currency: str = CURRENCY,
    ):
        self.orders = orders or OrderRepository()
        self.stores = stores or StoreRepository()
        self.products = products or ProductRepository()
        self.inventory = inventory or InventoryGuard()
        self.notifier = notifier or default_notifier()
        self.tax_rate_percent = tax_rate_percent
        self.currency = currency

    # --- Création ---

    def require_ready_store(self, store_id: str) -> Store:
        store = self.stores.get(store_id)
        if not store:
            raise NotFound("Boutique introuvable")
        if not store.ready_for_payments:
            raise StoreNotReady("La boutique n'accepte pas encore les paiements")
        return store

    def create_pending_order(
        self, store_id: str, items: List[CartLine], customer: Customer, store: Optional[Store] = None
    ) -> Order:
        """
        Crée une commande (PENDING, PENDING) et ses lignes en une seule écriture.
        `store` évite une relecture quand l'appelant l'a déjà validée.
        Erreurs: NotFound (boutique), StoreNotReady, ProductUnavailable, OutOfStock, ValidationError.
        """
        if store is None or store.id != store_id:
            store = self.require_ready_store(store_id)
        quantities = merge_cart(items)
        catalog = self.products.get_many(store.id, quantities.keys())

        order_items = []
        subtotal = 0
        for product_id, qty in quantities.items():
            product = catalog.get(product_id)
            if not product or not product.is_active:
                raise ProductUnavailable(f"Produit {product_id} indisponible", details={"product_id": product_id})
            self.inventory.reserve_check(product, qty)
            subtotal += product.price * qty
            order_items.append({
                "product_id": product.id,
                "title": product.title,
                "quantity": qty,
                "price": product.price,
            })

        totals = compute_totals(subtotal, store.commission_rate, self.tax_rate_percent)
        payload = {
            "store_id": store.id,
            "customer_email": str(customer.email),
            "customer_name": customer.name,
            "shipping_address": customer.address.model_dump(),
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "discount": totals.discount,
            "platform_fee": totals.platform_fee,
            "total": totals.total,
            "currency": self.currency,
            "status": OrderStatus.PENDING.value,
            "payment_status": PaymentStatus.PENDING.value,
        }

        for attempt in range(1, ORDER_NUMBER_MAX_ATTEMPTS + 1):
            payload["order_number"] = generate_order_number()
            try:
                order = self.orders.create(payload, order_items)
            except OrderNumberTaken:
                logger.warning("orders.number_collision order_number=%s attempt=%s", payload["order_number"], attempt)
                continue
            logger.info(
                "orders.created order_id=%s order_number=%s store_id=%s subtotal=%s fee=%s total=%s",
                order.id, order.order_number, store.id, order.subtotal, order.platform_fee, order.total,
            )
            return order
        raise OrderNumberTaken("Impossible de générer un numéro de commande unique")

    # --- Lecture ---

    def get_order(self, order_id: str) -> Optional[Order]:
        return self.orders.get(order_id)

    def get_order_for_store(self, order_id: str, store_id: str) -> Order:
        order = self.orders.get(order_id)
        if not order or order.store_id != store_id:
            raise NotFound("Commande introuvable")
        return order

    def list_orders_for_store(self, store_id: str, status: Optional[OrderStatus] = None, limit: int = 50) -> List[Order]:
        return self.orders.list_for_store(store_id, status=status, limit=limit)

    # --- Transitions pilotées par le paiement ---

    def record_payment_succeeded(self, order: Order, payment_intent_id: Optional[str] = None) -> LedgerResult:
        """
        Transition A: (PENDING, PENDING) -> (PROCESSING, PAID) + décrément de stock par ligne.
        - Déjà PAID: rejeu. commit_order est relancé (no-op pour les lignes déjà appliquées,
          rattrape un décrément interrompu par une panne partielle). Si le rejeu applique
          des lignes, la confirmation n'était pas partie: elle est envoyée maintenant.
        - Autre état (ex: déjà FAILED): no-op journalisé.
        """
        if order.payment_status == PaymentStatus.PAID:
            report = self.inventory.commit_order(order)
            logger.info("orders.payment_succeeded duplicate order_id=%s recovered=%s", order.id, len(report.applied))
            if report.applied:
                notify_safely(self.notifier.order_confirmed, order)
            return LedgerResult(Outcome.DUPLICATE, order)
        if not state.PAYMENT_SUCCEEDED.allows(order.state):
            logger.error(
                "orders.payment_succeeded ignored order_id=%s status=%s payment_status=%s (paiement à vérifier)",
                order.id, order.status.value, order.payment_status.value,
            )
            return LedgerResult(Outcome.NOOP, order)

        extra = {"stripe_payment_intent_id": payment_intent_id} if payment_intent_id else None
        updated = self.orders.transition(order.id, state.PAYMENT_SUCCEEDED, extra)
        if updated is None:
            # Course perdue avec une autre livraison: on relit et on traite comme un rejeu
            current = self.orders.get(order.id) or order
            if current.payment_status == PaymentStatus.PAID:
                self.inventory.commit_order(current)
                return LedgerResult(Outcome.DUPLICATE, current)
            return LedgerResult(Outcome.NOOP, current)

        updated.items = order.items
        logger.info("orders.transition order_id=%s transition=%s", order.id, state.PAYMENT_SUCCEEDED.name)
        self.inventory.commit_order(updated)
        notify_safely(self.notifier.order_confirmed, updated)
        return LedgerResult(Outcome.APPLIED, updated)

    def record_payment_failed(self, order: Order) -> LedgerResult:
        """Transition B: (PENDING, PENDING) -> (CANCELLED, FAILED). No-op depuis tout autre état."""
        if not state.PAYMENT_FAILED.allows(order.state):
            logger.info(
                "orders.payment_failed noop order_id=%s status=%s payment_status=%s",
                order.id, order.status.value, order.payment_status.value,
            )
            return LedgerResult(Outcome.NOOP, order)
        updated = self.orders.transition(order.id, state.PAYMENT_FAILED)
        if updated is None:
            return LedgerResult(Outcome.NOOP, self.orders.get(order.id) or order)
        updated.items = order.items
        logger.info("orders.transition order_id=%s transition=%s", order.id, state.PAYMENT_FAILED.name)
        return LedgerResult(Outcome.APPLIED, updated)

    # --- Transitions pilotées par le marchand ---

    def update_status(self, order_id: str, store_id: str, target: OrderStatus) -> LedgerResult:
        """
        Mise à jour de statut par le marchand propriétaire de la boutique.
        - Même statut: no-op (pour une annulation payée, relance le restock idempotent).
        - Transition non permise: InvalidStateTransition, commande inchangée.
        - Succès: notification best-effort, qui ne fait jamais échouer la mise à jour.
        """
        order = self.get_order_for_store(order_id, store_id)
        for _ in range(2):
            if order.status == target:
                if target == OrderStatus.CANCELLED and order.payment_status == PaymentStatus.PAID:
                    self.inventory.restore_order(order)
                return LedgerResult(Outcome.NOOP, order)
            transition = state.merchant_transition(order.state, target)
            updated = self.orders.transition(order.id, transition)
            if updated is not None:
                updated.items = order.items
                logger.info("orders.transition order_id=%s transition=%s by=merchant", order.id, transition.name)
                if transition.restock:
                    self.inventory.restore_order(updated)
                notify_safely(self.notifier.order_status_changed, updated)
                return LedgerResult(Outcome.APPLIED, updated)
            # L'état a changé entre la lecture et l'écriture (ex: webhook): réévaluer une fois
            order = self.get_order_for_store(order_id, store_id)
        raise InvalidStateTransition("La commande a changé d'état pendant la mise à jour")
