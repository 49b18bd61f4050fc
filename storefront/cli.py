"""
Command-line storefront.

Edits the locally persisted cart and runs checkout against the
configured cart API.

Usage:
    python -m storefront add node-starter
    python -m storefront add de-domain
    python -m storefront set node-starter 2
    python -m storefront cycle yearly
    python -m storefront show
    python -m storefront checkout
    python -m storefront complete      # after the payment redirect succeeded
"""
import argparse
import asyncio
import sys
from dataclasses import dataclass
from typing import List, Optional

import httpx

from storefront.auth import AuthTokenStore, SessionIdentityProvider
from storefront.cart import CartStore, KeyValueStorage, create_storage
from storefront.errors import AddressValidationError, CheckoutError
from storefront.services.api_client import CartApiClient
from storefront.services.catalog import ADDONS, PLANS, BillingCycle, ItemType, display_name
from storefront.services.checkout import CheckoutService
from storefront.services.money import format_money
from storefront.services.pricing import calculate_totals, monthly_price, yearly_price


@dataclass
class Storefront:
    """Application object graph, built once per process."""
    store: CartStore
    sessions: SessionIdentityProvider
    tokens: AuthTokenStore
    client: CartApiClient
    checkout: CheckoutService

    @classmethod
    def create(
        cls,
        storage: KeyValueStorage,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "Storefront":
        store = CartStore(storage)
        store.load()
        sessions = SessionIdentityProvider(storage)
        tokens = AuthTokenStore(storage)
        client = CartApiClient(
            session_id=sessions.get_or_create_session_id,
            auth_token=tokens.get_token,
            base_url=base_url,
            transport=transport,
        )
        checkout = CheckoutService(store, sessions, client)
        return cls(store=store, sessions=sessions, tokens=tokens, client=client, checkout=checkout)


def _infer_type(item_id: str) -> ItemType:
    if item_id in PLANS:
        return ItemType.PLAN
    if item_id in ADDONS:
        return ItemType.ADDON
    raise SystemExit(f"Unknown catalog item: {item_id} (use --type to add it anyway)")


def render_cart(store: CartStore) -> str:
    state = store.state
    if not store.has_items():
        return "Cart is empty."

    yearly = state.billing_cycle is BillingCycle.YEARLY
    lines = []
    for item in state.items:
        price = yearly_price(item) if yearly else monthly_price(item)
        suffix = "/year" if yearly else "/mo"
        lines.append(
            f"  {display_name(item.id, item.type):<20} {item.type.value:<6} x{item.quantity:<3} "
            f"{format_money(price)}{suffix}"
        )

    totals = calculate_totals(state.items, state.billing_cycle)
    lines.append(f"  Billing: {state.billing_cycle.value}")
    lines.append(f"  Monthly total: {format_money(totals.monthly_total)}/mo")
    if yearly:
        lines.append(f"  Yearly total:  {format_money(totals.yearly_total)}/year")
        lines.append(f"  You save:      {format_money(totals.yearly_savings)}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Hosting storefront cart")
    parser.add_argument("--storage", choices=["file", "memory", "redis"], help="Storage backend")
    parser.add_argument("--api-url", help="Cart API base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add one unit of a plan or add-on")
    add.add_argument("item_id")
    add.add_argument("--type", choices=[t.value for t in ItemType])

    set_qty = sub.add_parser("set", help="Set item quantity (0 removes)")
    set_qty.add_argument("item_id")
    set_qty.add_argument("quantity", type=int)

    remove = sub.add_parser("remove", help="Remove an item")
    remove.add_argument("item_id")

    cycle = sub.add_parser("cycle", help="Set billing cycle")
    cycle.add_argument("cycle", choices=[c.value for c in BillingCycle])

    sub.add_parser("show", help="Show cart and totals")
    sub.add_parser("clear", help="Empty the cart")

    checkout = sub.add_parser("checkout", help="Sync cart and start payment")
    checkout.add_argument("--address-id")

    sub.add_parser("complete", help="Finish checkout: clear cart and session")
    return parser


async def _run_checkout(app: Storefront, address_id: Optional[str]) -> int:
    try:
        url = await app.checkout.checkout(address_id=address_id)
    except (CheckoutError, AddressValidationError) as e:
        print(f"Checkout failed: {e}", file=sys.stderr)
        return 1
    finally:
        await app.client.aclose()
    print(f"Continue to payment: {url}")
    return 0


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    app = Storefront.create(create_storage(args.storage), base_url=args.api_url)
    store = app.store

    if args.command == "add":
        item_type = ItemType(args.type) if args.type else _infer_type(args.item_id)
        store.add_item(args.item_id, item_type)
    elif args.command == "set":
        store.set_quantity(args.item_id, args.quantity)
    elif args.command == "remove":
        store.remove_item(args.item_id)
    elif args.command == "cycle":
        store.set_billing_cycle(BillingCycle(args.cycle))
    elif args.command == "clear":
        store.clear()
    elif args.command == "checkout":
        return asyncio.run(_run_checkout(app, args.address_id))
    elif args.command == "complete":
        app.checkout.complete_checkout()
        print("Checkout complete. Cart cleared.")
        return 0

    print(render_cart(store))
    return 0
