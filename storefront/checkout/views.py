# module storefront.checkout.views

"""Endpoint du parcours d'achat (checkout invité).
- POST /api/v1/checkout: valide le panier et le client, crée la commande PENDING
  puis une session Stripe; retourne l'URL de redirection.
Sécurité:
- optional_rate_limit: 10 sessions / 60 s par client.
Les erreurs métier (StorefrontError) sont converties en JSON par app_setup/exceptions.py.
"""
from fastapi import APIRouter, Depends

from storefront.app_setup.dependencies import get_checkout_service
from storefront.checkout.models import CheckoutRequest, CheckoutResponse
from storefront.checkout.service import CheckoutService
from storefront.utils.rate_limit import optional_rate_limit

router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


@router.post("", response_model=CheckoutResponse, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout(body: CheckoutRequest, service: CheckoutService = Depends(get_checkout_service)):
    result = service.start_checkout(body.store_id, body.cart_lines(), body.customer)
    return result.to_dict()
