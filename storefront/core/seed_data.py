"""Default catalog seeded into an empty store."""
from decimal import Decimal

from storefront.domain.models import Product

DEFAULT_CATALOG = [
    Product(id="1", name="T-shirt", price=Decimal("2"), stock=10),
    Product(id="2", name="Apple", price=Decimal("2"), stock=10),
    Product(id="3", name="Banana", price=Decimal("1"), stock=15),
    Product(id="4", name="Milk", price=Decimal("3"), stock=8),
    Product(id="5", name="Bread", price=Decimal("2"), stock=12),
    Product(id="6", name="Sushi", price=Decimal("2"), stock=12),
    Product(id="7", name="Ice cream", price=Decimal("3"), stock=6),
    Product(id="8", name="Ramen", price=Decimal("2"), stock=9),
    Product(id="9", name="Cheese", price=Decimal("2"), stock=2),
    Product(id="10", name="Noodle", price=Decimal("3"), stock=20),
]
