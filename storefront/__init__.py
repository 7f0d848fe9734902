"""
Storefront inventory-and-cart ledger.

Keeps product stock and per-shopper cart reservations consistent under
concurrent access, and converts carts into immutable orders.

Components:
- Product Catalog: authoritative stock per product
- Cart Ledger: per-user reservations taken from stock at add-time
- Checkout Protocol: commits a cart into an order and clears it atomically
- Reconciliation: audits stock + reservations + orders against seeded stock
"""

__version__ = "0.1.0"
__author__ = "ML Roadmap Bootcamp"
