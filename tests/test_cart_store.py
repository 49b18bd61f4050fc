"""
Tests for the local cart store
"""
import json
import random
from unittest.mock import Mock

import pytest

from storefront.cart import (
    CartItem,
    CartStatus,
    CartStore,
    FileStorage,
    LocalCart,
    MemoryStorage,
    RedisStorage,
)
from storefront.config import StorageKeys
from storefront.errors import StorageError
from storefront.services.catalog import BillingCycle, ItemType


class _BrokenStorage(MemoryStorage):
    """Storage whose writes always fail (quota exceeded and the like)."""

    def set(self, key, value):
        raise StorageError("quota exceeded")


class TestCartItem:
    """Tests for CartItem dataclass."""

    def test_to_dict(self):
        item = CartItem(id="node-pro", type=ItemType.PLAN, quantity=2)
        assert item.to_dict() == {"id": "node-pro", "type": "plan", "quantity": 2}

    def test_from_dict(self):
        item = CartItem.from_dict({"id": "de-domain", "type": "addon", "quantity": 1})
        assert item.type is ItemType.ADDON

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValueError):
            CartItem(id="node-pro", type=ItemType.PLAN, quantity=0)

    def test_local_cart_rejects_duplicate_ids(self):
        with pytest.raises(ValueError):
            LocalCart(items=[
                CartItem(id="node-pro", type=ItemType.PLAN),
                CartItem(id="node-pro", type=ItemType.PLAN),
            ])


class TestMutations:
    """add/set/remove/cycle/clear."""

    def test_starts_empty(self, cart_store):
        assert not cart_store.has_items()
        assert cart_store.get_item_count() == 0
        assert cart_store.state.billing_cycle is BillingCycle.MONTHLY
        assert cart_store.status is CartStatus.EMPTY

    def test_add_item_appends(self, cart_store):
        cart_store.add_item("node-starter", ItemType.PLAN)
        cart_store.add_item("de-domain", "addon")
        assert [item.id for item in cart_store.state.items] == ["node-starter", "de-domain"]
        assert cart_store.status is CartStatus.POPULATED

    def test_add_existing_increments(self, cart_store):
        cart_store.add_item("node-starter", ItemType.PLAN)
        cart_store.add_item("node-starter", ItemType.PLAN)
        assert len(cart_store.state.items) == 1
        assert cart_store.get_cart_item("node-starter").quantity == 2

    def test_set_quantity(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.set_quantity("node-pro", 5)
        assert cart_store.get_cart_item("node-pro").quantity == 5

    @pytest.mark.parametrize("quantity", [0, -1, -10])
    def test_set_quantity_non_positive_removes(self, cart_store, quantity):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.add_item("de-domain", ItemType.ADDON)
        cart_store.set_quantity("de-domain", 3)
        cart_store.set_quantity("node-pro", quantity)
        assert cart_store.get_cart_item("node-pro") is None
        assert cart_store.get_item_count() == 3

    def test_set_quantity_absent_is_noop(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.set_quantity("missing", 0)
        cart_store.set_quantity("missing", 4)
        assert [item.id for item in cart_store.state.items] == ["node-pro"]

    def test_remove_item(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.remove_item("node-pro")
        cart_store.remove_item("node-pro")
        assert not cart_store.has_items()

    def test_set_billing_cycle_keeps_items(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.set_billing_cycle(BillingCycle.YEARLY)
        assert cart_store.state.billing_cycle is BillingCycle.YEARLY
        assert cart_store.get_item_count() == 1

    def test_clear(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.set_billing_cycle("yearly")
        cart_store.clear()
        assert cart_store.has_items() is False
        assert cart_store.get_item_count() == 0
        assert cart_store.state.billing_cycle is BillingCycle.MONTHLY

    def test_previous_state_is_not_mutated(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        before = cart_store.state
        cart_store.add_item("node-pro", ItemType.PLAN)
        assert before.items[0].quantity == 1
        assert cart_store.state.items[0].quantity == 2

    def test_random_operations_never_duplicate_ids(self, cart_store):
        rng = random.Random(1234)
        ids = [("node-starter", ItemType.PLAN), ("node-pro", ItemType.PLAN), ("de-domain", ItemType.ADDON)]
        for _ in range(500):
            item_id, item_type = rng.choice(ids)
            op = rng.choice(["add", "set", "remove"])
            if op == "add":
                cart_store.add_item(item_id, item_type)
            elif op == "set":
                cart_store.set_quantity(item_id, rng.randint(-2, 5))
            else:
                cart_store.remove_item(item_id)

            current_ids = [item.id for item in cart_store.state.items]
            assert len(current_ids) == len(set(current_ids))
            assert all(item.quantity >= 1 for item in cart_store.state.items)
            assert cart_store.get_item_count() == sum(item.quantity for item in cart_store.state.items)


class TestSubscriptions:
    """Change notification."""

    def test_listener_called_after_each_mutation(self, cart_store):
        listener = Mock()
        cart_store.subscribe(listener)
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.set_billing_cycle(BillingCycle.YEARLY)
        cart_store.clear()
        assert listener.call_count == 3

    def test_persist_happens_before_notify(self, storage):
        store = CartStore(storage)
        seen = []

        def listener(state):
            seen.append(json.loads(storage.get(StorageKeys.CART)))

        store.subscribe(listener)
        store.add_item("node-pro", ItemType.PLAN)
        assert seen == [{"items": [{"id": "node-pro", "type": "plan", "quantity": 1}], "billingCycle": "monthly"}]

    def test_unsubscribe(self, cart_store):
        listener = Mock()
        unsubscribe = cart_store.subscribe(listener)
        unsubscribe()
        cart_store.add_item("node-pro", ItemType.PLAN)
        listener.assert_not_called()

    def test_failing_listener_does_not_break_store(self, cart_store):
        good = Mock()
        cart_store.subscribe(Mock(side_effect=RuntimeError("boom")))
        cart_store.subscribe(good)
        cart_store.add_item("node-pro", ItemType.PLAN)
        good.assert_called_once()
        assert cart_store.has_items()

    def test_load_notifies(self, storage):
        store = CartStore(storage)
        listener = Mock()
        store.subscribe(listener)
        store.load()
        listener.assert_called_once()


class TestPersistence:
    """load()/persist() against durable storage."""

    def test_round_trip_through_storage(self, storage):
        store = CartStore(storage)
        store.add_item("node-pro", ItemType.PLAN)
        store.add_item("de-domain", ItemType.ADDON)
        store.set_billing_cycle(BillingCycle.YEARLY)

        restored = CartStore(storage)
        restored.load()
        assert restored.state == store.state

    @pytest.mark.parametrize("raw", [
        "{not json",
        "[]",
        '{"items": [{"id": "node-pro"}]}',
        '{"items": [], "billingCycle": "weekly"}',
        '{"items": [{"id": "a", "type": "plan", "quantity": 1}, {"id": "a", "type": "plan", "quantity": 2}]}',
        '{"items": [{"id": "a", "type": "gift", "quantity": 1}]}',
    ])
    def test_corrupt_data_falls_back_to_empty(self, raw, caplog):
        storage = MemoryStorage({StorageKeys.CART: raw})
        store = CartStore(storage)
        state = store.load()
        assert state == LocalCart()
        assert not store.has_items()
        assert "Corrupted cart data" in caplog.text

    def test_write_failure_does_not_crash(self):
        store = CartStore(_BrokenStorage())
        store.add_item("node-pro", ItemType.PLAN)
        assert store.get_item_count() == 1
        assert store.persist() is False

    def test_file_storage(self, tmp_path):
        storage = FileStorage(tmp_path / "state")
        store = CartStore(storage)
        store.add_item("node-starter", ItemType.PLAN)

        restored = CartStore(FileStorage(tmp_path / "state"))
        restored.load()
        assert restored.get_cart_item("node-starter").quantity == 1

        storage.delete(StorageKeys.CART)
        assert storage.get(StorageKeys.CART) is None

    def test_redis_storage_prefixes_keys(self):
        client = Mock()
        client.get.return_value = '{"items": [], "billingCycle": "yearly"}'
        storage = RedisStorage(client, prefix="shop:")

        store = CartStore(storage)
        store.load()
        assert store.state.billing_cycle is BillingCycle.YEARLY
        client.get.assert_called_with("shop:dysv_cart")

        store.add_item("node-pro", ItemType.PLAN)
        key, value = client.set.call_args.args
        assert key == "shop:dysv_cart"
        assert json.loads(value)["items"][0]["id"] == "node-pro"

    def test_redis_errors_become_storage_errors(self):
        client = Mock()
        client.get.side_effect = ConnectionError("down")
        with pytest.raises(StorageError):
            RedisStorage(client).get(StorageKeys.CART)


class TestStatus:
    """Sync status transitions."""

    def test_syncing_then_error_then_retry(self, cart_store):
        cart_store.add_item("node-pro", ItemType.PLAN)
        cart_store.mark_syncing()
        assert cart_store.status is CartStatus.SYNCING
        cart_store.mark_sync_failed("Failed to set plan: invalid plan ID")
        assert cart_store.status is CartStatus.ERROR
        assert cart_store.last_error == "Failed to set plan: invalid plan ID"
        cart_store.mark_syncing()
        cart_store.mark_synced()
        assert cart_store.status is CartStatus.POPULATED
