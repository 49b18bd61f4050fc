"""Cart package: models, storage, store and reconciliation."""
from .models import CartItem, LocalCart, RemoteCartItem, RemoteCartSnapshot
from .storage import KeyValueStorage, MemoryStorage, FileStorage, RedisStorage, create_storage
from .store import CartStore, CartStatus
from .reconciler import CartReconciler, ReconciliationPlan, plan_reconciliation

__all__ = [
    "CartItem",
    "LocalCart",
    "RemoteCartItem",
    "RemoteCartSnapshot",
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "RedisStorage",
    "create_storage",
    "CartStore",
    "CartStatus",
    "CartReconciler",
    "ReconciliationPlan",
    "plan_reconciliation",
]
