"""Domain models and the ledger/settlement engine for shared trip expenses.

This package contains in-memory (Pydantic) models for participants, expenses and
transfers, plus the pure functions that turn them into balances and suggested
settlement debts. They are independent from persistence models so that business
logic and testing can evolve without DB coupling.
"""

__all__ = [
    "balance_tracker",
    "base_types",
    "debt_simplifier",
    "ledger",
    "ledger_builder",
    "share_validator",
]
