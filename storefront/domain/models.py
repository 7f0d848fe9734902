"""
Ledger records: products, cart lines and orders.

Prices are Decimals throughout; quantities are ints. The storage adapter
parses raw store values into these models, so nothing above it ever sees a
string-typed number.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """
    A catalog product and its available (unreserved) stock.

    ``initial_stock`` is recorded when the product is seeded and is only used
    by the reconciliation audit.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal = Field(ge=0)
    stock: int
    initial_stock: Optional[int] = None


class CartLine(BaseModel):
    """Quantity of one product reserved in one user's cart."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    product_id: str
    name: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    """An immutable record of a committed checkout."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    timestamp: int = Field(description="Commit time in epoch milliseconds")
    items: List[OrderLine]
    total: Decimal = Field(ge=0)

    @classmethod
    def from_cart(cls, user_id: str, timestamp: int, lines: Sequence[CartLine]) -> Order:
        """Build an order from a cart snapshot, computing the total."""
        items = [
            OrderLine(
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity,
                price=line.price,
            )
            for line in lines
        ]
        total = sum((item.subtotal for item in items), Decimal("0"))
        return cls(user_id=user_id, timestamp=timestamp, items=items, total=total)
