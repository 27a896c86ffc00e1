"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.

Injecté explicitement dans CheckoutService et PaymentReconciler (pas de client global
dans les services), ce qui permet de le remplacer par un double en test.
Chaque StripeProcessor possède son propre stripe.StripeClient (clé, timeout, tentatives
réseau): aucune configuration n'est posée sur le module stripe.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import stripe

from storefront.config import (
    STRIPE_MAX_NETWORK_RETRIES,
    STRIPE_SECRET_KEY,
    STRIPE_TIMEOUT_SECONDS,
    STRIPE_WEBHOOK_SECRET,
    STRIPE_WEBHOOK_TOLERANCE,
)
from storefront.errors import ExternalProcessorError, InvalidSignature, ValidationError

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
def build_client(
    api_key: str,
    timeout: int = STRIPE_TIMEOUT_SECONDS,
    max_retries: int = STRIPE_MAX_NETWORK_RETRIES,
) -> stripe.StripeClient:
    """
    Construit un client Stripe dédié.
    - Borne la durée de chaque requête (timeout) et le nombre de tentatives réseau.
    - Le client HTTP (session requests) appartient au client, pas au module stripe.
    """
    return stripe.StripeClient(
        api_key,
        http_client=stripe.RequestsClient(timeout=timeout),
        max_network_retries=max_retries,
    )


class StripeProcessor:
    def __init__(
        self,
        api_key: str = STRIPE_SECRET_KEY,
        webhook_secret: str = STRIPE_WEBHOOK_SECRET,
        timeout: int = STRIPE_TIMEOUT_SECONDS,
        tolerance: int = STRIPE_WEBHOOK_TOLERANCE,
        client: Optional[stripe.StripeClient] = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance
        if client is None and api_key:
            client = build_client(api_key, timeout=timeout)
        self._client = client

    @property
    def client(self) -> stripe.StripeClient:
        self._require_key()
        return self._client

    def _require_key(self) -> None:
        if not self.api_key:
            raise ExternalProcessorError("STRIPE_SECRET_KEY manquant")

    def create_checkout_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        application_fee_amount: int,
        destination_account: str,
        customer_email: Optional[str] = None,
        client_reference_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Crée une session Stripe Checkout en charge de destination (Connect).
        - application_fee_amount: commission plateforme (centimes)
        - destination_account: compte connecté du marchand (reçoit le reste)
        - metadata: recopiée sur la session et sur le PaymentIntent
        Retour: {"id": "cs_...", "url": "https://checkout.stripe.com/..."}
        """
        client = self.client
        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "payment_intent_data": {
                "application_fee_amount": application_fee_amount,
                "transfer_data": {"destination": destination_account},
                "metadata": metadata,
            },
        }
        if customer_email:
            params["customer_email"] = customer_email
        if client_reference_id:
            params["client_reference_id"] = client_reference_id
        options = {"idempotency_key": idempotency_key} if idempotency_key else {}
        try:
            session = client.checkout.sessions.create(params=params, options=options)
        except stripe.StripeError as e:
            logger.warning("stripe.create_checkout_session failed: %s", e)
            raise ExternalProcessorError("Le processeur de paiement a refusé ou n'a pas répondu") from e
        return {"id": session["id"], "url": session["url"]}

    def create_express_account(self, *, email: str, country: str = "US") -> str:
        client = self.client
        try:
            account = client.accounts.create(params={
                "type": "express",
                "country": country,
                "email": email,
                "capabilities": {"card_payments": {"requested": True}, "transfers": {"requested": True}},
            })
        except stripe.StripeError as e:
            logger.warning("stripe.create_express_account failed: %s", e)
            raise ExternalProcessorError("Création du compte marchand impossible") from e
        return account["id"]

    def create_account_link(self, *, account_id: str, refresh_url: str, return_url: str) -> str:
        client = self.client
        try:
            link = client.account_links.create(params={
                "account": account_id,
                "refresh_url": refresh_url,
                "return_url": return_url,
                "type": "account_onboarding",
            })
        except stripe.StripeError as e:
            logger.warning("stripe.create_account_link failed: %s", e)
            raise ExternalProcessorError("Création du lien d'onboarding impossible") from e
        return link["url"]

    def parse_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Parse et valide un événement Stripe signé (webhook).
        - Vérifie Stripe-Signature (HMAC-SHA256 de "<t>.<payload brut>") avec le secret partagé
        - Retourne l'événement sous forme de dict
        Lève InvalidSignature (signature/secret) ou ValidationError (payload illisible, non UTF-8).
        """
        if not self.webhook_secret:
            raise InvalidSignature("STRIPE_WEBHOOK_SECRET manquant")
        if not sig_header:
            raise InvalidSignature("En-tête Stripe-Signature manquant")
        try:
            text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        except UnicodeDecodeError as e:
            raise ValidationError("Payload webhook illisible (encodage)") from e
        try:
            stripe.WebhookSignature.verify_header(text, sig_header, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature("Signature webhook invalide") from e
        try:
            event = json.loads(text)
        except ValueError as e:
            raise ValidationError("Payload webhook illisible") from e
        if not isinstance(event, dict) or not event.get("type"):
            raise ValidationError("Payload webhook inattendu")
        return event
