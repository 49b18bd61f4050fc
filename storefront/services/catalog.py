"""
Static hosting catalog.

The catalog is a closed set known at build time. Lookups return
``None`` on a miss; callers decide the fallback (pricing uses zero,
display uses the raw id).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class ItemType(str, Enum):
    """Kind of purchasable catalog entry."""
    PLAN = "plan"
    ADDON = "addon"


class BillingCycle(str, Enum):
    """Payment cadence."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Yearly billing gives 2 months free on plans (pay for 10, get 12)
YEARLY_DISCOUNT_MONTHS = 2
MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class Plan:
    """Hosting plan."""
    id: str
    name: str
    monthly_price: Decimal
    target_audience: str = ""
    limits: str = ""
    features: tuple[str, ...] = field(default_factory=tuple)

    @property
    def item_type(self) -> ItemType:
        return ItemType.PLAN


@dataclass(frozen=True)
class Addon:
    """Add-on product (domains and the like)."""
    id: str
    name: str
    monthly_price: Decimal

    @property
    def item_type(self) -> ItemType:
        return ItemType.ADDON


CatalogEntry = Plan | Addon


PLANS: dict[str, Plan] = {
    "static-micro": Plan(
        id="static-micro",
        name="Static Micro",
        monthly_price=Decimal("3.90"),
        target_audience="React/Vue SPAs",
        limits="Shared RAM, 1GB Storage",
        features=(
            "Static site hosting",
            "Shared resources",
            "1GB NVMe storage",
            "SSL included",
            "German datacenter",
        ),
    ),
    "node-starter": Plan(
        id="node-starter",
        name="Node Starter",
        monthly_price=Decimal("9.90"),
        target_audience="Personal Blogs",
        limits="1 vCPU (Shared), 512MB RAM, 5GB Storage",
        features=(
            "Next.js / Nuxt support",
            "High-Performance Burstable CPU",
            "512MB RAM",
            "5GB NVMe storage",
            "SSL included",
            "German datacenter",
        ),
    ),
    "node-pro": Plan(
        id="node-pro",
        name="Node Pro",
        monthly_price=Decimal("39.90"),
        target_audience="E-commerce/SaaS",
        limits="2 vCPU (Dedicated), 4GB RAM, 20GB Storage",
        features=(
            "Next.js / Nuxt support",
            "Dedicated Core Performance",
            "4GB RAM",
            "20GB NVMe storage",
            "SSL included",
            "German datacenter",
            "Priority support",
        ),
    ),
}

ADDONS: dict[str, Addon] = {
    "de-domain": Addon(
        id="de-domain",
        name=".de Domain",
        monthly_price=Decimal("1.00"),
    ),
}


def find_entry(item_id: str, item_type: ItemType | str) -> Optional[CatalogEntry]:
    """Look up a plan or add-on; ``None`` when the id is not in the catalog."""
    kind = ItemType(item_type)
    if kind is ItemType.PLAN:
        return PLANS.get(item_id)
    return ADDONS.get(item_id)


def display_name(item_id: str, item_type: ItemType | str) -> str:
    """Catalog name, or the raw id for entries that left the catalog."""
    entry = find_entry(item_id, item_type)
    if entry is None:
        return item_id
    return entry.name
