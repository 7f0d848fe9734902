"""
Typed record keys.

The ledger addresses records by these keys; only the storage package renders
them to Redis key strings or parses enumerated keys back.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

PRODUCT_PREFIX = "product:"
CART_PREFIX = "cart:"
ORDER_PREFIX = "order:"


@dataclass(frozen=True)
class ProductKey:
    product_id: str

    @property
    def redis_key(self) -> str:
        return f"{PRODUCT_PREFIX}{self.product_id}"

    @classmethod
    def parse(cls, raw: str) -> Optional[ProductKey]:
        if not raw.startswith(PRODUCT_PREFIX):
            return None
        product_id = raw[len(PRODUCT_PREFIX):]
        if not product_id or ":" in product_id:
            return None
        return cls(product_id)


@dataclass(frozen=True)
class CatalogIndexKey:
    """Set of every seeded product id."""

    @property
    def redis_key(self) -> str:
        return "catalog:products"


@dataclass(frozen=True)
class CartLineKey:
    user_id: str
    product_id: str

    @property
    def redis_key(self) -> str:
        return f"{CART_PREFIX}{self.user_id}:item:{self.product_id}"

    @classmethod
    def parse(cls, raw: str) -> Optional[CartLineKey]:
        # cart:{user}:item:{product}
        parts = raw.split(":")
        if len(parts) != 4 or parts[0] != "cart" or parts[2] != "item":
            return None
        if not parts[1] or not parts[3]:
            return None
        return cls(user_id=parts[1], product_id=parts[3])

    @staticmethod
    def pattern() -> str:
        return f"{CART_PREFIX}*:item:*"


@dataclass(frozen=True)
class CartIndexKey:
    """Set of the product ids currently in one user's cart."""

    user_id: str

    @property
    def redis_key(self) -> str:
        return f"{CART_PREFIX}{self.user_id}:items"

    def line(self, product_id: str) -> CartLineKey:
        return CartLineKey(user_id=self.user_id, product_id=product_id)


@dataclass(frozen=True)
class OrderKey:
    user_id: str
    timestamp: int

    @property
    def redis_key(self) -> str:
        return f"{ORDER_PREFIX}{self.user_id}:{self.timestamp}"

    @classmethod
    def parse(cls, raw: str) -> Optional[OrderKey]:
        parts = raw.split(":")
        if len(parts) != 3 or parts[0] != "order" or not parts[1]:
            return None
        try:
            timestamp = int(parts[2])
        except ValueError:
            return None
        return cls(user_id=parts[1], timestamp=timestamp)
