from typing import List

from pydantic import BaseModel, Field

from storefront.orders.models import CartLine, Customer

# module storefront.checkout.models
class CheckoutItem(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0, le=1000)


class CheckoutRequest(BaseModel):
    store_id: str = Field(min_length=1)
    items: List[CheckoutItem] = Field(min_length=1)
    customer: Customer

    def cart_lines(self) -> List[CartLine]:
        return [CartLine(product_id=i.product_id, quantity=i.quantity) for i in self.items]


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    session_id: str
    url: str
