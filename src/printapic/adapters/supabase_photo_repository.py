"""Supabase-backed photo repository."""

from dataclasses import dataclass
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.errors import StoreError
from printapic.domain.models import PhotoRecord
from printapic.services.edit_store import PhotoRepository

_COLUMNS = "id, user_id, image_path, caption, source_photo_id"


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo metadata persistence."""

    session: SupabaseSession

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo row by id, if present."""
        response = (
            self.session.ensure_valid()
            .table("photos")
            .select(_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_photo(response.data[0])

    def create_photo(
        self,
        user_id: UUID,
        image_path: str,
        caption: str | None,
        source_photo_id: UUID | None,
    ) -> PhotoRecord:
        """Create a photo metadata row and return it."""
        response = (
            self.session.ensure_valid()
            .table("photos")
            .insert(
                {
                    "user_id": str(user_id),
                    "image_path": image_path,
                    "caption": caption,
                    "source_photo_id": str(source_photo_id)
                    if source_photo_id
                    else None,
                }
            )
            .execute()
        )
        if not response.data:
            raise StoreError("Failed to create photo metadata")
        return _to_photo(response.data[0])

    def delete_photo(self, photo_id: UUID) -> None:
        """Delete a photo row."""
        self.session.ensure_valid().table("photos").delete().eq(
            "id", str(photo_id)
        ).execute()


def _to_photo(row: dict[str, object]) -> PhotoRecord:
    source = row.get("source_photo_id")
    return PhotoRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        image_path=str(row["image_path"]),
        caption=row.get("caption"),
        source_photo_id=UUID(str(source)) if source else None,
    )
