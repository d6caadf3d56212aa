"""Admin service for token credits and account inspection."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from printapic.domain.edits import EditRecord
from printapic.domain.errors import InvalidRequest
from printapic.domain.models import PaymentRecord, TokenTransaction
from printapic.services.edit_store import EditStore
from printapic.services.ledger import TokenLedger

logger = logging.getLogger(__name__)

PRICE_PER_TOKEN_CENTS = 10
MANUAL_PRICE_ID = "manual_addition"
MANUAL_CREDIT_REASON = "Manual token addition"


class PaymentRepository(Protocol):
    """Persistence interface for token purchases."""

    def create_payment(  # noqa: PLR0913
        self,
        user_id: UUID,
        session_id: str,
        price_id: str,
        amount_cents: int,
        tokens: int,
        status: str,
    ) -> PaymentRecord:
        """Create a payment row and return it."""


@dataclass
class AdminService:
    """Service for admin endpoints."""

    payment_repository: PaymentRepository
    ledger: TokenLedger
    store: EditStore

    def credit_tokens(self, user_id: UUID, tokens: int) -> dict[str, object]:
        """Record a manual purchase and credit the tokens."""
        if tokens <= 0:
            raise InvalidRequest("Token amount must be a positive number")
        self.ledger.balance(user_id)
        payment = self.payment_repository.create_payment(
            user_id=user_id,
            session_id=f"manual_{uuid4().hex}",
            price_id=MANUAL_PRICE_ID,
            amount_cents=tokens * PRICE_PER_TOKEN_CENTS,
            tokens=tokens,
            status="complete",
        )
        balance = self.ledger.apply(user_id, tokens, MANUAL_CREDIT_REASON, payment.id)
        logger.info("Manually credited %d tokens to %s", tokens, user_id)
        return {
            "payment_id": str(payment.id),
            "tokens_added": tokens,
            "balance": balance,
        }

    def get_user_detail(self, user_id: UUID, limit: int = 20) -> dict[str, object]:
        """Return balance, recent transactions and recent edits for a user."""
        balance = self.ledger.balance(user_id)
        transactions = self.ledger.history(user_id, limit=limit)
        edits = self.store.list_edits(user_id=user_id, limit=limit)
        return {
            "user_id": str(user_id),
            "tokens": balance,
            "transactions": [_serialize_transaction(tx) for tx in transactions],
            "edits": [_serialize_edit(edit) for edit in edits],
        }


def _serialize_transaction(tx: TokenTransaction) -> dict[str, object]:
    return {
        "id": str(tx.id),
        "amount": tx.amount,
        "reason": tx.reason,
        "reference_id": str(tx.reference_id),
        "created_at": tx.created_at.isoformat() if tx.created_at else None,
    }


def _serialize_edit(edit: EditRecord) -> dict[str, object]:
    return {
        "id": str(edit.id),
        "photo_id": str(edit.photo_id),
        "status": edit.status.value,
        "tokens_cost": edit.tokens_cost,
        "completed": edit.completed.isoformat() if edit.completed else None,
    }
