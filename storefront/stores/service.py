"""Onboarding marchand (Stripe Connect Express).
- Crée le compte connecté si la boutique n'en a pas (capacités card_payments + transfers).
- Retourne un lien d'onboarding hébergé; le drapeau stripe_onboarded est ensuite
  piloté par le webhook account.updated (cf. payments/webhook.py).
"""
from typing import Optional
import logging

from storefront.config import BASE_URL, ONBOARDING_RETURN_PATH
from storefront.errors import StorageError
from storefront.payments.stripe_client import StripeProcessor
from storefront.stores.models import Store
from storefront.stores.repository import StoreRepository

logger = logging.getLogger(__name__)


# module storefront.stores.service
class OnboardingService:
    def __init__(self, processor: StripeProcessor, stores: Optional[StoreRepository] = None, base_url: str = BASE_URL):
        self.processor = processor
        self.stores = stores or StoreRepository()
        self.base_url = base_url.rstrip("/")

    def create_onboarding_link(self, store: Store, email: Optional[str] = None, country: str = "US") -> str:
        account_id = store.stripe_account_id
        if not account_id:
            account_id = self.processor.create_express_account(email=email or "", country=country)
            if not self.stores.attach_account(store.id, account_id):
                # Une requête concurrente a déjà associé un compte: on garde celui-là
                current = self.stores.get(store.id)
                if not current or not current.stripe_account_id:
                    raise StorageError("Association du compte marchand impossible")
                logger.warning(
                    "stores.onboarding account_race store_id=%s created=%s kept=%s",
                    store.id, account_id, current.stripe_account_id,
                )
                account_id = current.stripe_account_id
            else:
                logger.info("stores.onboarding account_created store_id=%s account=%s", store.id, account_id)

        return_url = f"{self.base_url}{ONBOARDING_RETURN_PATH}"
        return self.processor.create_account_link(
            account_id=account_id,
            refresh_url=f"{return_url}?refresh=1",
            return_url=return_url,
        )
