"""Configuration package for the storefront ledger."""
from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
