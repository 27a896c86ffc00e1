import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from storefront.app_setup.dependencies import get_reconciler
from storefront.payments.webhook import PaymentReconciler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module storefront.payments.views
@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, reconciler: PaymentReconciler = Depends(get_reconciler)):
    """
    Webhook Stripe (paiements et comptes connectés).
    - Signature: vérifiée sur le corps brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
    - Réponses: 200 {"received": true, "status": applied|duplicate|noop|ignored|pending|not_found}
    - Erreurs: 400 si signature/payload invalide, 503 si stockage indisponible (Stripe relivre)
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    result = await run_in_threadpool(reconciler.handle, payload, sig_header)
    logger.info("payments.webhook handled type=%s status=%s order_id=%s", result.event_type, result.status, result.order_id)
    return result.to_dict()
