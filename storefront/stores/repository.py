"""
Accès aux données 'stores' (table stores).
"""
from typing import Optional
import logging

from storefront.errors import StorageError
from storefront.infra.supabase_client import get_service_supabase, rows_of
from storefront.stores.models import Store

logger = logging.getLogger(__name__)

STORE_COLUMNS = "id, user_id, name, slug, custom_domain, commission_rate, stripe_account_id, stripe_onboarded, is_active"

# module storefront.stores.repository
class StoreRepository:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_service_supabase()

    def _first(self, column: str, value: str) -> Optional[Store]:
        if not value:
            return None
        try:
            res = self.client.table("stores").select(STORE_COLUMNS).eq(column, value).limit(1).execute()
        except Exception as e:
            logger.exception("stores.repository lookup failed %s=%s", column, value)
            raise StorageError("Lecture boutique impossible") from e
        rows = rows_of(res)
        return Store.from_row(rows[0]) if rows else None

    def get(self, store_id: str) -> Optional[Store]:
        return self._first("id", store_id)

    def get_by_owner(self, user_id: str) -> Optional[Store]:
        return self._first("user_id", user_id)

    def set_onboarded(self, stripe_account_id: str, onboarded: bool) -> Optional[Store]:
        """Met à jour stripe_onboarded; retourne la boutique modifiée ou None si compte inconnu."""
        try:
            res = (
                self.client.table("stores")
                .update({"stripe_onboarded": bool(onboarded)})
                .eq("stripe_account_id", stripe_account_id)
                .execute()
            )
        except Exception as e:
            logger.exception("stores.repository.set_onboarded failed account=%s", stripe_account_id)
            raise StorageError("Mise à jour boutique impossible") from e
        rows = rows_of(res)
        return Store.from_row(rows[0]) if rows else None

    def attach_account(self, store_id: str, stripe_account_id: str) -> bool:
        """Associe un compte connecté à la boutique s'il n'y en a pas encore (écriture conditionnelle)."""
        try:
            res = (
                self.client.table("stores")
                .update({"stripe_account_id": stripe_account_id})
                .eq("id", store_id)
                .is_("stripe_account_id", "null")
                .execute()
            )
        except Exception as e:
            logger.exception("stores.repository.attach_account failed store_id=%s", store_id)
            raise StorageError("Mise à jour boutique impossible") from e
        return bool(rows_of(res))
