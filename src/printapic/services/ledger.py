"""Token ledger: balance changes with an append-only audit trail."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from printapic.domain.errors import (
    InsufficientFunds,
    InvalidRequest,
    NotFound,
    StoreError,
)
from printapic.domain.models import TokenTransaction

logger = logging.getLogger(__name__)


class LedgerRepository(Protocol):
    """Persistence interface for balances and token transactions."""

    def get_balance(self, user_id: UUID) -> int | None:
        """Return the user's token balance, or None if the user is unknown."""

    def set_balance_if(self, user_id: UUID, expected: int, new_balance: int) -> bool:
        """Write new_balance only if the stored balance still equals expected."""

    def create_transaction(
        self, user_id: UUID, amount: int, reason: str, reference_id: UUID
    ) -> TokenTransaction:
        """Append a token transaction."""

    def list_transactions(self, user_id: UUID, limit: int) -> list[TokenTransaction]:
        """Return the most recent transactions for a user."""


@dataclass
class TokenLedger:
    """Applies signed token deltas without letting a balance go negative.

    The balance write is conditional on the value that was read, so two
    concurrent changes for the same user cannot overwrite each other; the
    loser re-reads and tries again.
    """

    repository: LedgerRepository
    max_attempts: int = 5

    def apply(
        self, user_id: UUID, amount: int, reason: str, reference_id: UUID
    ) -> int:
        """Apply amount (credit if positive, debit if negative); return the balance."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise InvalidRequest("Token amount must be a non-zero integer")

        for _ in range(self.max_attempts):
            balance = self.repository.get_balance(user_id)
            if balance is None:
                raise NotFound(f"User {user_id} not found")
            new_balance = balance + amount
            if new_balance < 0:
                raise InsufficientFunds(
                    f"Balance {balance} cannot cover {-amount} tokens"
                )
            if self.repository.set_balance_if(user_id, balance, new_balance):
                try:
                    self.repository.create_transaction(
                        user_id=user_id,
                        amount=amount,
                        reason=reason,
                        reference_id=reference_id,
                    )
                except Exception:
                    self._revert(user_id, amount)
                    raise
                logger.info(
                    "Applied %+d tokens for user %s (%s), balance %d",
                    amount,
                    user_id,
                    reason,
                    new_balance,
                )
                return new_balance
            logger.info("Balance changed concurrently for user %s, retrying", user_id)

        raise StoreError(
            f"Could not update balance for user {user_id} "
            f"after {self.max_attempts} attempts"
        )

    def _revert(self, user_id: UUID, amount: int) -> None:
        """Undo a balance write whose transaction could not be recorded."""
        for _ in range(self.max_attempts):
            try:
                balance = self.repository.get_balance(user_id)
                if balance is None:
                    break
                if self.repository.set_balance_if(user_id, balance, balance - amount):
                    logger.warning(
                        "Reverted %+d tokens for user %s after a failed record",
                        amount,
                        user_id,
                    )
                    return
            except Exception:
                logger.exception("Balance revert failed", extra={"user_id": user_id})
                break
        logger.error(
            "Balance for user %s is off by %+d tokens from its transactions",
            user_id,
            amount,
        )

    def balance(self, user_id: UUID) -> int:
        """Return the current balance."""
        balance = self.repository.get_balance(user_id)
        if balance is None:
            raise NotFound(f"User {user_id} not found")
        return balance

    def history(self, user_id: UUID, limit: int = 20) -> list[TokenTransaction]:
        """Return recent transactions, newest first."""
        return self.repository.list_transactions(user_id, limit)
