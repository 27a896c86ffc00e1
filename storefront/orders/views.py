# module storefront.orders.views

"""Endpoints marchands sur les commandes de leur boutique.
- PATCH /api/v1/orders/{id}/status: transition pilotée par le marchand (COMPLETED, CANCELLED...).
- GET /api/v1/orders/{id}: détail d'une commande et de ses lignes.
- GET /api/v1/orders?status=: liste récente (50 max par défaut).
Sécurité:
- require_merchant: Bearer ou cookie sb_access vérifié par Supabase, boutique dont user_id = utilisateur.
- Une commande d'une autre boutique est traitée comme introuvable (404).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from storefront.app_setup.dependencies import get_order_service
from storefront.orders.models import OrderStatus
from storefront.orders.service import OrderService, Outcome
from storefront.stores.models import Store
from storefront.utils.security import require_merchant

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


class StatusUpdate(BaseModel):
    status: OrderStatus


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    body: StatusUpdate,
    store: Store = Depends(require_merchant),
    service: OrderService = Depends(get_order_service),
):
    """Retourne {order, changed}; changed=False si la commande était déjà dans ce statut."""
    result = service.update_status(order_id, store.id, body.status)
    return {"order": result.order.to_public_dict(), "changed": result.outcome == Outcome.APPLIED}


@router.get("/{order_id}")
def get_order(
    order_id: str,
    store: Store = Depends(require_merchant),
    service: OrderService = Depends(get_order_service),
):
    return service.get_order_for_store(order_id, store.id).to_public_dict()


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    store: Store = Depends(require_merchant),
    service: OrderService = Depends(get_order_service),
):
    orders = service.list_orders_for_store(store.id, status=status, limit=limit)
    return {"orders": [o.to_public_dict() for o in orders], "count": len(orders)}
