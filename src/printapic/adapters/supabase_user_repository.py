"""Supabase-backed user repository."""

from dataclasses import dataclass
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.errors import StoreError
from printapic.domain.models import UserRecord
from printapic.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user profiles."""

    session: SupabaseSession

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return the profile for a user id, if present."""
        response = (
            self.session.ensure_valid()
            .table("users")
            .select("id, email, tokens")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_user(response.data[0])
        return None

    def create_user(self, user_id: UUID, email: str | None) -> UserRecord:
        """Create a profile row with an empty balance and return it."""
        response = (
            self.session.ensure_valid()
            .table("users")
            .insert({"id": str(user_id), "email": email, "tokens": 0})
            .execute()
        )
        if not response.data:
            raise StoreError("Failed to create user in Supabase")
        return _to_user(response.data[0])


def _to_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        email=row.get("email"),
        tokens=int(row.get("tokens") or 0),
    )
