"""
Machine à états (status × payment_status) d'une commande.

    (PENDING, PENDING)      --payment_succeeded-->  (PROCESSING, PAID)     [webhook]
    (PENDING, PENDING)      --payment_failed----->  (CANCELLED, FAILED)    [webhook]
    (PROCESSING, PAID)      --complete----------->  (COMPLETED, PAID)      [marchand]
    (PROCESSING|COMPLETED, PAID) --cancel-------->  (CANCELLED, PAID)      [marchand, restock]

Les transitions sont pures: elles ne font que décrire les préconditions et l'état
cible. L'écriture conditionnelle vit dans orders/repository.py.
"""
from dataclasses import dataclass
from typing import Tuple

from storefront.errors import InvalidStateTransition
from storefront.orders.models import OrderStatus as S, PaymentStatus as P

State = Tuple[S, P]


@dataclass(frozen=True)
class Transition:
    name: str
    sources: Tuple[State, ...]
    target: State
    restock: bool = False

    def allows(self, state: State) -> bool:
        return state in self.sources


PAYMENT_SUCCEEDED = Transition("payment_succeeded", ((S.PENDING, P.PENDING),), (S.PROCESSING, P.PAID))
PAYMENT_FAILED = Transition("payment_failed", ((S.PENDING, P.PENDING),), (S.CANCELLED, P.FAILED))
COMPLETE = Transition("complete", ((S.PROCESSING, P.PAID),), (S.COMPLETED, P.PAID))
CANCEL_PAID = Transition("cancel_paid", ((S.PROCESSING, P.PAID), (S.COMPLETED, P.PAID)), (S.CANCELLED, P.PAID), restock=True)

# Cibles accessibles au marchand via l'API de mise à jour de statut
MERCHANT_TARGETS = (S.PENDING, S.PROCESSING, S.COMPLETED, S.CANCELLED)


def merchant_transition(state: State, target: S) -> Transition:
    """
    Résout la transition demandée par un marchand depuis l'état courant.
    - COMPLETED: uniquement depuis (PROCESSING, PAID)
    - CANCELLED: uniquement une commande payée, avec restock. Une commande non payée
      reste ouverte côté Stripe et ne s'annule que par le webhook (expiration ou échec).
    - PENDING / PROCESSING: jamais pilotés par le marchand (le paiement les gouverne)
    Lève InvalidStateTransition sinon.
    """
    if target not in MERCHANT_TARGETS:
        raise InvalidStateTransition(f"Statut cible non autorisé: {target.value}")
    candidates = {
        S.COMPLETED: (COMPLETE,),
        S.CANCELLED: (CANCEL_PAID,),
    }.get(target, ())
    for transition in candidates:
        if transition.allows(state):
            return transition
    status, payment = state
    raise InvalidStateTransition(
        f"Transition interdite: ({status.value}, {payment.value}) -> {target.value}",
        details={"status": status.value, "payment_status": payment.value, "target": target.value},
    )
