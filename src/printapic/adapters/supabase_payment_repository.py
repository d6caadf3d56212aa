"""Supabase repository for token purchases."""

from dataclasses import dataclass
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.errors import StoreError
from printapic.domain.models import PaymentRecord
from printapic.services.admin import PaymentRepository


@dataclass
class SupabasePaymentRepository(PaymentRepository):
    """Supabase implementation for payments."""

    session: SupabaseSession

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
        response = (
            self.session.ensure_valid()
            .table("payments")
            .insert(
                {
                    "user_id": str(user_id),
                    "stripe_session_id": session_id,
                    "price_id": price_id,
                    "amount_cents": amount_cents,
                    "tokens": tokens,
                    "status": status,
                }
            )
            .execute()
        )
        if not response.data:
            raise StoreError("Failed to create payment")
        row = response.data[0]
        return PaymentRecord(
            id=UUID(str(row["id"])),
            user_id=UUID(str(row["user_id"])),
            tokens=int(row["tokens"]),
            amount_cents=int(row["amount_cents"]),
            status=str(row["status"]),
        )
