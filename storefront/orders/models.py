# module storefront.orders.models
"""Agrégat Order/OrderItem et types d'entrée associés.
- ShippingAddress / Customer: validés à la frontière (Pydantic), jamais de blob libre.
- Order / OrderItem: enregistrements lus depuis le stockage (dataclasses).
- Les montants sont des entiers en centimes.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class ShippingAddress(BaseModel):
    line1: str = Field(min_length=1, max_length=200)
    line2: Optional[str] = Field(default=None, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(default="", max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=2, max_length=2)

    @field_validator("line1", "city", "postal_code")
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Champ obligatoire")
        return v.strip()

    @field_validator("country")
    def iso_country(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError("Code pays ISO 3166-1 alpha-2 attendu")
        return v


class Customer(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=200)
    address: ShippingAddress


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass
class OrderItem:
    id: str
    order_id: str
    product_id: Optional[str]
    title: str
    quantity: int
    price: int

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OrderItem":
        return cls(
            id=str(row["id"]),
            order_id=str(row.get("order_id") or ""),
            product_id=str(row["product_id"]) if row.get("product_id") else None,
            title=row.get("title") or "",
            quantity=int(row.get("quantity") or 0),
            price=int(row.get("price") or 0),
        )


@dataclass
class Order:
    id: str
    store_id: str
    order_number: str
    customer_email: str
    customer_name: str
    shipping_address: Dict[str, Any]
    subtotal: int
    platform_fee: int
    total: int
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    tax: int = 0
    discount: int = 0
    currency: str = "usd"
    stripe_session_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    items: List[OrderItem] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def state(self):
        return (self.status, self.payment_status)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Order":
        items = [OrderItem.from_row(r) for r in (row.get("order_items") or [])]
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=str(row["id"]),
            store_id=str(row.get("store_id") or ""),
            order_number=row.get("order_number") or "",
            customer_email=row.get("customer_email") or "",
            customer_name=row.get("customer_name") or "",
            shipping_address=row.get("shipping_address") or {},
            subtotal=int(row.get("subtotal") or 0),
            tax=int(row.get("tax") or 0),
            discount=int(row.get("discount") or 0),
            platform_fee=int(row.get("platform_fee") or 0),
            total=int(row.get("total") or 0),
            currency=row.get("currency") or "usd",
            status=OrderStatus(row.get("status") or "PENDING"),
            payment_status=PaymentStatus(row.get("payment_status") or "PENDING"),
            stripe_session_id=row.get("stripe_session_id"),
            stripe_payment_intent_id=row.get("stripe_payment_intent_id"),
            items=items,
            created_at=created_at,
        )

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "store_id": self.store_id,
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "shipping_address": self.shipping_address,
            "subtotal": self.subtotal,
            "tax": self.tax,
            "discount": self.discount,
            "platform_fee": self.platform_fee,
            "total": self.total,
            "currency": self.currency,
            "items": [
                {"product_id": i.product_id, "title": i.title, "quantity": i.quantity, "price": i.price}
                for i in self.items
            ],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
