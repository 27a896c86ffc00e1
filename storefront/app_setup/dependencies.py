"""
Fournisseurs de dépendances FastAPI (services et adaptateurs).
- Construisent les implémentations réelles (Supabase) à la demande; le processeur Stripe est mis en cache.
- Surchargés en test via app.dependency_overrides (doubles en mémoire, faux processeur).
"""
from functools import lru_cache

from fastapi import Depends

from storefront.checkout.service import CheckoutService
from storefront.orders.service import OrderService
from storefront.payments.stripe_client import StripeProcessor
from storefront.payments.webhook import PaymentReconciler
from storefront.stores.repository import StoreRepository
from storefront.stores.service import OnboardingService


@lru_cache(maxsize=1)
def get_processor() -> StripeProcessor:
    """Un seul processeur (et son client HTTP Stripe) par processus."""
    return StripeProcessor()


def get_store_repository() -> StoreRepository:
    return StoreRepository()


def get_order_service(stores: StoreRepository = Depends(get_store_repository)) -> OrderService:
    return OrderService(stores=stores)


def get_checkout_service(
    processor: StripeProcessor = Depends(get_processor),
    orders: OrderService = Depends(get_order_service),
) -> CheckoutService:
    return CheckoutService(processor=processor, orders=orders)


def get_onboarding_service(
    processor: StripeProcessor = Depends(get_processor),
    stores: StoreRepository = Depends(get_store_repository),
) -> OnboardingService:
    return OnboardingService(processor=processor, stores=stores)


def get_reconciler(
    processor: StripeProcessor = Depends(get_processor),
    orders: OrderService = Depends(get_order_service),
    stores: StoreRepository = Depends(get_store_repository),
) -> PaymentReconciler:
    return PaymentReconciler(processor=processor, orders=orders, stores=stores)
