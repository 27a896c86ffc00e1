"""
Mouvements de stock (table inventory_movements + fonction SQL apply_inventory_movement).

La fonction SQL insère le mouvement et ajuste products.stock dans une même
transaction. La contrainte unique (order_item_id, reason) rend chaque mouvement
applicable une seule fois: un doublon renvoie applied=false sans toucher au stock.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from storefront.errors import StorageError
from storefront.infra.supabase_client import get_service_supabase, rows_of

logger = logging.getLogger(__name__)


class MovementReason(str, Enum):
    SALE = "SALE"
    RESTOCK = "RESTOCK"


@dataclass(frozen=True)
class MovementResult:
    applied: bool
    resulting_stock: Optional[int] = None
    oversold: bool = False


# module storefront.inventory.repository
class InventoryRepository:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_service_supabase()

    def apply_movement(self, *, order_item_id: str, product_id: str, reason: MovementReason, delta: int) -> MovementResult:
        """
        Applique un mouvement idempotent.
        - SALE: delta négatif, le stock peut passer sous zéro (oversell signalé).
        - RESTOCK: appliqué seulement si le SALE du même order_item existe.
        """
        params = {
            "p_order_item_id": order_item_id,
            "p_product_id": product_id,
            "p_reason": reason.value,
            "p_delta": int(delta),
        }
        try:
            res = self.client.rpc("apply_inventory_movement", params).execute()
        except Exception as e:
            logger.exception("inventory.repository.apply_movement failed order_item_id=%s reason=%s", order_item_id, reason.value)
            raise StorageError("Mouvement de stock impossible") from e
        rows = rows_of(res)
        if not rows:
            return MovementResult(applied=False)
        row = rows[0]
        stock = row.get("resulting_stock")
        return MovementResult(
            applied=bool(row.get("applied")),
            resulting_stock=int(stock) if stock is not None else None,
            oversold=bool(row.get("oversold")),
        )
