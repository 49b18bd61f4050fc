"""
Pricing calculator.

Pure functions over the static catalog. Plans get two months free on
yearly billing; add-ons are billed the full twelve months. A line whose
id is no longer in the catalog prices at zero instead of failing.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from storefront.services.catalog import (
    BillingCycle,
    ItemType,
    MONTHS_PER_YEAR,
    YEARLY_DISCOUNT_MONTHS,
    find_entry,
)
from storefront.services.money import ZERO, divide, multiply, round_money, subtract


class PricedItem(Protocol):
    id: str
    type: ItemType
    quantity: int


def unit_price(item_id: str, item_type: ItemType | str) -> Decimal:
    """Monthly catalog price of one unit, or zero on a catalog miss."""
    entry = find_entry(item_id, item_type)
    if entry is None:
        return ZERO
    return entry.monthly_price


def billed_months(item_type: ItemType | str) -> int:
    """Months charged per year for the given item type."""
    if ItemType(item_type) is ItemType.PLAN:
        return MONTHS_PER_YEAR - YEARLY_DISCOUNT_MONTHS
    return MONTHS_PER_YEAR


def monthly_price(item: PricedItem) -> Decimal:
    return multiply(unit_price(item.id, item.type), item.quantity)


def yearly_price(item: PricedItem) -> Decimal:
    return multiply(monthly_price(item), billed_months(item.type))


def monthly_total(items: Iterable[PricedItem]) -> Decimal:
    return sum((monthly_price(item) for item in items), ZERO)


def yearly_total(items: Iterable[PricedItem]) -> Decimal:
    return sum((yearly_price(item) for item in items), ZERO)


def cart_total(items: Iterable[PricedItem], cycle: BillingCycle | str) -> Decimal:
    """Total for the given billing cycle."""
    if BillingCycle(cycle) is BillingCycle.YEARLY:
        return yearly_total(items)
    return monthly_total(items)


def yearly_savings(items: Iterable[PricedItem]) -> Decimal:
    """What yearly billing saves versus twelve monthly payments (never negative)."""
    items = list(items)
    return subtract(multiply(monthly_total(items), MONTHS_PER_YEAR), yearly_total(items))


def yearly_monthly_equivalent(monthly: Decimal) -> Decimal:
    """Effective per-month price of a plan billed yearly, rounded to cents."""
    return round_money(divide(multiply(monthly, billed_months(ItemType.PLAN)), MONTHS_PER_YEAR))


@dataclass(frozen=True)
class CartTotals:
    """Summary shown next to the cart and logged before checkout."""
    monthly_total: Decimal
    yearly_total: Decimal
    yearly_savings: Decimal
    total: Decimal
    billing_cycle: BillingCycle
    item_count: int

    def to_dict(self) -> dict:
        return {
            "monthlyTotal": str(round_money(self.monthly_total)),
            "yearlyTotal": str(round_money(self.yearly_total)),
            "yearlySavings": str(round_money(self.yearly_savings)),
            "total": str(round_money(self.total)),
            "billingCycle": self.billing_cycle.value,
            "itemCount": self.item_count,
        }


def calculate_totals(items: Iterable[PricedItem], cycle: BillingCycle | str) -> CartTotals:
    items = list(items)
    cycle = BillingCycle(cycle)
    monthly = monthly_total(items)
    yearly = yearly_total(items)
    return CartTotals(
        monthly_total=monthly,
        yearly_total=yearly,
        yearly_savings=subtract(multiply(monthly, MONTHS_PER_YEAR), yearly),
        total=yearly if cycle is BillingCycle.YEARLY else monthly,
        billing_cycle=cycle,
        item_count=sum(item.quantity for item in items),
    )
