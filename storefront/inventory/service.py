"""Garde d'inventaire.
Rôles:
- reserve_check: contrôle consultatif au checkout (aucune réservation, aucun décrément).
- commit_order / commit_decrement: décrément autoritaire après paiement confirmé, une fois par ligne.
- restore_order: restock compensatoire quand une commande payée est annulée.
Oversell:
- Deux checkouts concurrents peuvent passer reserve_check pour la dernière unité.
- Le décrément n'est jamais bloqué (la commande est déjà payée) mais le stock négatif
  est journalisé en WARNING, marqué sur le mouvement et compté (exposé par /health/inventory).
"""
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional
import logging

from storefront.errors import OutOfStock, ValidationError
from storefront.inventory.repository import InventoryRepository, MovementReason, MovementResult
from storefront.orders.models import Order, OrderItem
from storefront.products.models import Product

logger = logging.getLogger(__name__)


class OversellMonitor:
    """Compteur en mémoire des oversells observés par ce processus."""

    def __init__(self):
        self._lock = Lock()
        self._count = 0
        self._by_product: Dict[str, int] = {}

    def record(self, product_id: str, resulting_stock: Optional[int]) -> None:
        with self._lock:
            self._count += 1
            self._by_product[product_id] = self._by_product.get(product_id, 0) + 1
        logger.warning("inventory.oversell product_id=%s resulting_stock=%s", product_id, resulting_stock)

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {"oversell_events": self._count, "by_product": dict(self._by_product)}

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._by_product.clear()


oversell_monitor = OversellMonitor()


@dataclass
class CommitReport:
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    oversold: List[str] = field(default_factory=list)


def reserve_check(product: Product, requested_qty: int) -> None:
    """Lève OutOfStock si requested_qty > stock courant. Pas de réservation."""
    if requested_qty <= 0:
        raise ValidationError("La quantité doit être un entier positif")
    if requested_qty > product.stock:
        raise OutOfStock(
            f"Stock insuffisant pour {product.title}",
            details={"product_id": product.id, "requested": requested_qty, "available": product.stock},
        )


# module storefront.inventory.service
class InventoryGuard:
    def __init__(self, repository: Optional[InventoryRepository] = None, monitor: Optional[OversellMonitor] = None):
        self.repository = repository or InventoryRepository()
        self.monitor = monitor or oversell_monitor

    reserve_check = staticmethod(reserve_check)

    def commit_decrement(self, item: OrderItem) -> MovementResult:
        """Décrément autoritaire d'une ligne; no-op si déjà appliqué (clé order_item_id + SALE)."""
        if not item.product_id:
            # Produit supprimé depuis la commande: rien à décrémenter
            logger.info("inventory.commit skipped order_item_id=%s reason=product_deleted", item.id)
            return MovementResult(applied=False)
        result = self.repository.apply_movement(
            order_item_id=item.id,
            product_id=item.product_id,
            reason=MovementReason.SALE,
            delta=-item.quantity,
        )
        if result.applied and result.oversold:
            self.monitor.record(item.product_id, result.resulting_stock)
        return result

    def commit_order(self, order: Order) -> CommitReport:
        report = CommitReport()
        for item in order.items:
            result = self.commit_decrement(item)
            (report.applied if result.applied else report.skipped).append(item.id)
            if result.applied and result.oversold:
                report.oversold.append(item.id)
        logger.info(
            "inventory.commit order_id=%s applied=%s skipped=%s oversold=%s",
            order.id, len(report.applied), len(report.skipped), len(report.oversold),
        )
        return report

    def restore_order(self, order: Order) -> CommitReport:
        """Restock compensatoire (annulation d'une commande payée); idempotent par ligne."""
        report = CommitReport()
        for item in order.items:
            if not item.product_id:
                report.skipped.append(item.id)
                continue
            result = self.repository.apply_movement(
                order_item_id=item.id,
                product_id=item.product_id,
                reason=MovementReason.RESTOCK,
                delta=item.quantity,
            )
            (report.applied if result.applied else report.skipped).append(item.id)
        logger.info("inventory.restore order_id=%s applied=%s skipped=%s", order.id, len(report.applied), len(report.skipped))
        return report
