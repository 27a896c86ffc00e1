"""
Calcul pur des commissions plateforme et des totaux de commande (pas de Stripe, pas de DB).

Tous les montants sont des entiers en unités mineures (centimes).
Règle d'arrondi unique: demi-supérieur (ROUND_HALF_UP) sur arithmétique décimale
exacte, appliquée à la commission comme à la taxe forfaitaire.
Ex: 1005 centimes à 10 % -> 100.5 -> 101.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from storefront.errors import ValidationError

Rate = Union[int, float, str, Decimal]

# module storefront.payments.fees
def _as_rate(rate: Rate) -> Decimal:
    try:
        # str() évite d'importer l'erreur binaire d'un float (10.1 -> '10.1')
        value = rate if isinstance(rate, Decimal) else Decimal(str(rate))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Taux invalide: {rate!r}")
    if not value.is_finite() or value < 0:
        raise ValidationError(f"Taux invalide: {rate!r}")
    return value

def _as_amount(amount: int, name: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError(f"{name} doit être un entier >= 0 (unités mineures)")
    return amount

def _percent_of(amount: int, rate: Decimal) -> int:
    return int((Decimal(amount) * rate / Decimal(100)).quantize(Decimal(1), rounding=ROUND_HALF_UP))

def compute_fee(line_subtotal: int, commission_rate_percent: Rate) -> int:
    """
    Commission plateforme = round_half_up(subtotal × taux / 100), plafonnée au subtotal.
    - line_subtotal: entier >= 0 en centimes
    - commission_rate_percent: pourcentage >= 0 (int, str, Decimal; float toléré)
    """
    subtotal = _as_amount(line_subtotal, "line_subtotal")
    fee = _percent_of(subtotal, _as_rate(commission_rate_percent))
    return min(fee, subtotal)

def compute_tax(subtotal: int, tax_rate_percent: Rate) -> int:
    return _percent_of(_as_amount(subtotal, "subtotal"), _as_rate(tax_rate_percent))

@dataclass(frozen=True)
class OrderTotals:
    subtotal: int
    tax: int
    discount: int
    platform_fee: int
    total: int

    @property
    def merchant_net(self) -> int:
        return self.subtotal - self.platform_fee

def compute_totals(subtotal: int, commission_rate_percent: Rate, tax_rate_percent: Rate = 0, discount: int = 0) -> OrderTotals:
    """
    Totaux d'une commande: total = subtotal + tax - discount.
    La remise ne peut pas dépasser subtotal + tax (total jamais négatif).
    """
    subtotal = _as_amount(subtotal, "subtotal")
    discount = _as_amount(discount, "discount")
    tax = compute_tax(subtotal, tax_rate_percent)
    if discount > subtotal + tax:
        raise ValidationError("La remise dépasse le montant de la commande")
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        platform_fee=compute_fee(subtotal, commission_rate_percent),
        total=subtotal + tax - discount,
    )
