# Services Module
from .catalog import ADDONS, PLANS, BillingCycle, ItemType, find_entry
from .pricing import CartTotals, calculate_totals, cart_total, yearly_savings

__all__ = [
    "ADDONS",
    "PLANS",
    "BillingCycle",
    "ItemType",
    "find_entry",
    "CartTotals",
    "calculate_totals",
    "cart_total",
    "yearly_savings",
]
