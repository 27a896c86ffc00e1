"""
Module 'payments' (feature-first): point d'entrée public.
Réunit calcul des frais, metadata Stripe et client Stripe.
La réconciliation des webhooks (payments.webhook) s'importe directement: elle dépend de orders.service.
"""

from .fees import OrderTotals, compute_fee, compute_tax, compute_totals
from .metadata import EventRefs, event_object, extract_refs, make_metadata
from .stripe_client import StripeProcessor, build_client

__all__ = [
    # fees
    "OrderTotals",
    "compute_fee",
    "compute_tax",
    "compute_totals",
    # metadata
    "EventRefs",
    "event_object",
    "extract_refs",
    "make_metadata",
    # stripe
    "StripeProcessor",
    "build_client",
]
