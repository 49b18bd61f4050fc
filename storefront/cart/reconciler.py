"""
Local-is-truth cart reconciliation.

The remote cart is fetched once, diffed against the local cart, and
driven to match it with the fewest calls:

    1. set the billing cycle (always, it is idempotent)
    2. per local item: update when the quantity differs, add when missing
    3. per remote item not in the local cart: delete

The diff is computed from that single snapshot and never re-fetched
mid-run. Calls are awaited one after another; the first failure aborts
the run and leaves the remote partially converged, which the next run
repairs.
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from storefront.logging import get_logger
from storefront.services.catalog import BillingCycle, ItemType
from .models import CartItem, LocalCart, RemoteCartSnapshot

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconciliationPlan:
    """Calls needed to make the remote cart equal the local one."""
    billing_cycle: BillingCycle
    updates: Tuple[Tuple[str, int], ...] = ()
    adds: Tuple[CartItem, ...] = ()
    deletes: Tuple[str, ...] = ()
    cycle_changed: bool = True

    @property
    def item_call_count(self) -> int:
        return len(self.updates) + len(self.adds) + len(self.deletes)

    @property
    def is_converged(self) -> bool:
        """True when no line item needs touching."""
        return self.item_call_count == 0

    def describe(self) -> List[str]:
        steps = [f"billing-cycle {self.billing_cycle.value}"]
        steps += [f"update {item_id} -> {qty}" for item_id, qty in self.updates]
        steps += [f"add {item.id} x{item.quantity}" for item in self.adds]
        steps += [f"delete {item_id}" for item_id in self.deletes]
        return steps


def plan_reconciliation(local: LocalCart, remote: RemoteCartSnapshot) -> ReconciliationPlan:
    """Diff a local cart against one remote snapshot (pure, no I/O)."""
    updates: List[Tuple[str, int]] = []
    adds: List[CartItem] = []

    for item in local.items:
        remote_item = remote.get(item.id)
        if remote_item is None:
            adds.append(item)
        elif remote_item.quantity != item.quantity:
            updates.append((item.id, item.quantity))

    local_ids = local.item_ids
    deletes: List[str] = []
    for remote_item in remote.items:
        if remote_item.item_id not in local_ids and remote_item.item_id not in deletes:
            deletes.append(remote_item.item_id)

    return ReconciliationPlan(
        billing_cycle=local.billing_cycle,
        updates=tuple(updates),
        adds=tuple(adds),
        deletes=tuple(deletes),
        cycle_changed=remote.billing_cycle != local.billing_cycle,
    )


class CartReconciler:
    """Runs a reconciliation plan against the cart API client."""

    def __init__(self, client):
        self.client = client

    async def reconcile(self, local: LocalCart) -> ReconciliationPlan:
        """
        Converge the remote cart to ``local``.

        Raises:
            CartSyncError: on the first failed call; later steps are skipped
        """
        remote = await self.client.fetch_cart()
        plan = plan_reconciliation(local, remote)
        logger.info("Reconciling cart: %s", ", ".join(plan.describe()))

        await self.client.set_billing_cycle(plan.billing_cycle)

        for item_id, quantity in plan.updates:
            await self.client.update_item_quantity(item_id, quantity)

        for item in plan.adds:
            if item.type is ItemType.PLAN:
                await self.client.add_plan(item.id, item.quantity)
            else:
                await self.client.add_addon(item.id, item.quantity)

        for item_id in plan.deletes:
            await self.client.remove_item(item_id)

        logger.info(
            "Cart reconciled with %d item call(s)%s",
            plan.item_call_count,
            ", billing cycle changed" if plan.cycle_changed else "",
        )
        return plan
