"""Clean-filter reconciliation — decide, recover, emit."""

from sopsfilter.reconcile.engine import Reconciler, UnhandledStatusError
from sopsfilter.reconcile.models import Fresh, ReconciliationInput, ReconciliationResult, Reuse
from sopsfilter.reconcile.recoverer import PlaintextRecoverer
from sopsfilter.reconcile.sink import WriteFailure, emit

__all__ = [
    "Fresh",
    "PlaintextRecoverer",
    "ReconciliationInput",
    "ReconciliationResult",
    "Reconciler",
    "Reuse",
    "UnhandledStatusError",
    "WriteFailure",
    "emit",
]
