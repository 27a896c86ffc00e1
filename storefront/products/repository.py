"""
Accès aux données 'products' (lecture catalogue au moment du checkout).
Les écritures de stock passent exclusivement par inventory/repository.py.
"""
from typing import Dict, Iterable
import logging

from storefront.errors import StorageError
from storefront.infra.supabase_client import get_service_supabase, rows_of
from storefront.products.models import Product

logger = logging.getLogger(__name__)

# module storefront.products.repository
class ProductRepository:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_service_supabase()

    def get_many(self, store_id: str, ids: Iterable[str]) -> Dict[str, Product]:
        """
        Retourne {id: Product} pour les produits de la boutique parmi `ids`.
        - Les produits inactifs sont renvoyés (le service décide de ProductUnavailable).
        - Les produits d'une autre boutique ne sont jamais renvoyés.
        """
        ids = [str(i) for i in ids if i]
        if not ids:
            return {}
        try:
            res = (
                self.client.table("products")
                .select("id, store_id, slug, title, description, price, stock, is_active")
                .eq("store_id", store_id)
                .in_("id", ids)
                .execute()
            )
        except Exception as e:
            logger.exception("products.repository.get_many failed store_id=%s ids=%s", store_id, ids)
            raise StorageError("Lecture catalogue impossible") from e
        products = [Product.from_row(r) for r in rows_of(res)]
        return {p.id: p for p in products}
