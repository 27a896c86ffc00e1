from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class Store:
    id: str
    user_id: str
    name: str
    slug: str
    commission_rate: Decimal
    stripe_account_id: Optional[str] = None
    stripe_onboarded: bool = False
    is_active: bool = True
    custom_domain: Optional[str] = None

    @property
    def ready_for_payments(self) -> bool:
        return bool(self.is_active and self.stripe_onboarded and self.stripe_account_id)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Store":
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id") or ""),
            name=row.get("name") or "",
            slug=row.get("slug") or "",
            # numeric Postgres -> str/float côté PostgREST: on repasse par str pour garder l'exactitude
            commission_rate=Decimal(str(row.get("commission_rate") if row.get("commission_rate") is not None else "10")),
            stripe_account_id=row.get("stripe_account_id"),
            stripe_onboarded=bool(row.get("stripe_onboarded")),
            is_active=bool(row.get("is_active", True)),
            custom_domain=row.get("custom_domain"),
        )
