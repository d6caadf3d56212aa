"""Supabase repository for edits."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.edits import EditRecord, EditStatus
from printapic.domain.errors import StoreError
from printapic.services.edit_store import EditRepository

_COLUMNS = (
    "id, user_id, photo_id, operation, instruction_key, status, tokens_cost, "
    "completed, result_photo_id, created_at"
)


@dataclass
class SupabaseEditRepository(EditRepository):
    """Supabase implementation for edits."""

    session: SupabaseSession

    def create_edit(  # noqa: PLR0913
        self,
        user_id: UUID,
        photo_id: UUID,
        operation: str,
        instruction_key: str,
        tokens_cost: int,
    ) -> EditRecord:
        """Create a pending edit row and return it."""
        response = (
            self.session.ensure_valid()
            .table("edits")
            .insert(
                {
                    "user_id": str(user_id),
                    "photo_id": str(photo_id),
                    "operation": operation,
                    "instruction_key": instruction_key,
                    "status": EditStatus.PENDING.value,
                    "tokens_cost": tokens_cost,
                }
            )
            .execute()
        )
        if not response.data:
            raise StoreError("Failed to create edit")
        return _to_edit(response.data[0])

    def get_edit(self, edit_id: UUID) -> EditRecord | None:
        """Return an edit by id."""
        response = (
            self.session.ensure_valid()
            .table("edits")
            .select(_COLUMNS)
            .eq("id", str(edit_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_edit(response.data[0])

    def update_status(
        self,
        edit_id: UUID,
        expected: EditStatus,
        status: EditStatus,
        fields: dict[str, object],
    ) -> bool:
        """Update the status if it still equals expected; report whether it did."""
        response = (
            self.session.ensure_valid()
            .table("edits")
            .update(
                {
                    **fields,
                    "status": status.value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(edit_id))
            .eq("status", expected.value)
            .execute()
        )
        return bool(response.data)

    def list_edits(
        self,
        status: EditStatus | None = None,
        user_id: UUID | None = None,
        limit: int = 100,
        newest_first: bool = True,
    ) -> list[EditRecord]:
        """Return edits filtered by status and/or owner."""
        query = self.session.ensure_valid().table("edits").select(_COLUMNS)
        if status is not None:
            query = query.eq("status", status.value)
        if user_id is not None:
            query = query.eq("user_id", str(user_id))
        response = query.order("created_at", desc=newest_first).limit(limit).execute()
        return [_to_edit(row) for row in response.data or []]


def _to_edit(row: dict[str, object]) -> EditRecord:
    result_photo_id = row.get("result_photo_id")
    return EditRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        photo_id=UUID(str(row["photo_id"])),
        operation=str(row.get("operation") or "sticker"),
        instruction_key=str(row.get("instruction_key") or "sticker"),
        status=EditStatus(row["status"]),
        tokens_cost=int(row.get("tokens_cost") or 0),
        completed=_parse_timestamp(row.get("completed")),
        result_photo_id=UUID(str(result_photo_id)) if result_photo_id else None,
        created_at=_parse_timestamp(row.get("created_at")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
