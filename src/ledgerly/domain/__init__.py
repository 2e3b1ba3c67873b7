"""Domain layer for ledgerly application.

Services are resolved lazily: the storage layer imports the entity module,
which would otherwise pull every service back in through this package.
"""

import importlib

_SERVICES = {
    "AccountService": "ledgerly.domain.account",
    "EntryService": "ledgerly.domain.entry",
    "LedgerBalanceCalculator": "ledgerly.domain.balance",
    "PeriodScheduler": "ledgerly.domain.scheduler",
    "PlanService": "ledgerly.domain.plan",
    "BillingCycleAssembler": "ledgerly.domain.billing",
    "ReconciliationService": "ledgerly.domain.reconciliation",
    "CashflowProjector": "ledgerly.domain.cashflow",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
