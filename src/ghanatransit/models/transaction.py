"""Wallet ledger entries."""

from __future__ import annotations

from enum import StrEnum

from ghanatransit.models._base import TransitBaseModel, UtcTimestamp


class TransactionType(StrEnum):
    DEBIT = "debit"
    CREDIT = "credit"


class _TransactionFields(TransitBaseModel):
    transaction_type: TransactionType
    amount: float


class NewTransaction(_TransactionFields):
    """Caller-supplied transaction fields."""


class Transaction(_TransactionFields):
    id: str
    user_id: str
    created_at: UtcTimestamp

    @property
    def signed_amount(self) -> float:
        """Amount as it affects the wallet balance (debits are negative)."""
        if self.transaction_type is TransactionType.DEBIT:
            return -self.amount
        return self.amount
