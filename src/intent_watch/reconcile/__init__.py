"""Transaction reconciliation of intent outcomes."""

from intent_watch.reconcile.engine import (
    CANCELLED,
    FULFILLED,
    PRUNED,
    IntentBook,
    TransactionReconciler,
)

__all__ = ["CANCELLED", "FULFILLED", "PRUNED", "IntentBook", "TransactionReconciler"]
