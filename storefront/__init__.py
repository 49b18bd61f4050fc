"""Hosting storefront: local cart, pricing and cart reconciliation."""

__version__ = "1.0.0"
