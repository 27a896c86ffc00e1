# module storefront.stores.views
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.app_setup.dependencies import get_onboarding_service
from storefront.stores.models import Store
from storefront.stores.service import OnboardingService
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import get_current_user, require_merchant

router = APIRouter(prefix="/api/v1/stores", tags=["Stores API"])


@router.post("/onboarding", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def start_onboarding(
    store: Store = Depends(require_merchant),
    user: Dict[str, Any] = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Retourne {url}: lien Stripe d'onboarding du compte connecté de la boutique du marchand."""
    url = service.create_onboarding_link(store, email=user.get("email"))
    return {"url": url}
