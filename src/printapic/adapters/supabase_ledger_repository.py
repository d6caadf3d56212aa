"""Supabase repository for balances and token transactions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.errors import StoreError
from printapic.domain.models import TokenTransaction
from printapic.services.ledger import LedgerRepository


@dataclass
class SupabaseLedgerRepository(LedgerRepository):
    """Supabase-backed ledger repository."""

    session: SupabaseSession

    def get_balance(self, user_id: UUID) -> int | None:
        """Return the stored token balance."""
        response = (
            self.session.ensure_valid()
            .table("users")
            .select("tokens")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return int(response.data[0].get("tokens") or 0)

    def set_balance_if(self, user_id: UUID, expected: int, new_balance: int) -> bool:
        """Conditionally write the balance; false when it changed meanwhile."""
        response = (
            self.session.ensure_valid()
            .table("users")
            .update({"tokens": new_balance})
            .eq("id", str(user_id))
            .eq("tokens", expected)
            .execute()
        )
        return bool(response.data)

    def create_transaction(
        self, user_id: UUID, amount: int, reason: str, reference_id: UUID
    ) -> TokenTransaction:
        """Insert a token transaction row."""
        response = (
            self.session.ensure_valid()
            .table("token_transactions")
            .insert(
                {
                    "user_id": str(user_id),
                    "amount": amount,
                    "reason": reason,
                    "reference_id": str(reference_id),
                }
            )
            .execute()
        )
        if not response.data:
            raise StoreError("Failed to record token transaction")
        return _to_transaction(response.data[0])

    def list_transactions(self, user_id: UUID, limit: int) -> list[TokenTransaction]:
        """Return recent transactions for a user."""
        response = (
            self.session.ensure_valid()
            .table("token_transactions")
            .select("id, user_id, amount, reason, reference_id, created_at")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_to_transaction(row) for row in response.data or []]


def _to_transaction(row: dict[str, object]) -> TokenTransaction:
    created_at = row.get("created_at")
    return TokenTransaction(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        amount=int(row["amount"]),
        reason=str(row.get("reason") or ""),
        reference_id=UUID(str(row["reference_id"])),
        created_at=datetime.fromisoformat(created_at)
        if isinstance(created_at, str) and created_at
        else None,
    )
