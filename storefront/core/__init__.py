"""Core ledger logic: catalog, cart, checkout and reconciliation."""
from .cart import CartLedger
from .catalog import ProductCatalog
from .checkout import CheckoutProtocol, CheckoutStage
from .reconciliation import ProductBalance, ReconciliationEngine, ReconciliationReport
from .seed_data import DEFAULT_CATALOG

__all__ = [
    "ProductCatalog",
    "CartLedger",
    "CheckoutProtocol",
    "CheckoutStage",
    "ReconciliationEngine",
    "ReconciliationReport",
    "ProductBalance",
    "DEFAULT_CATALOG",
]
