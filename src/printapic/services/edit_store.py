"""Ownership-enforcing access to photos and edits."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4

from printapic.domain.edits import EditRecord, EditStatus, can_transition
from printapic.domain.errors import Forbidden, InvalidTransition, NotFound
from printapic.domain.models import PhotoRecord
from printapic.services.images import detect_mime_type, extension_for


class PhotoRepository(Protocol):
    """Persistence interface for photo metadata."""

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo by id, if present."""

    def create_photo(
        self,
        user_id: UUID,
        image_path: str,
        caption: str | None,
        source_photo_id: UUID | None,
    ) -> PhotoRecord:
        """Create a photo metadata row and return it."""

    def delete_photo(self, photo_id: UUID) -> None:
        """Delete a photo metadata row."""


class EditRepository(Protocol):
    """Persistence interface for edits."""

    def create_edit(  # noqa: PLR0913
        self,
        user_id: UUID,
        photo_id: UUID,
        operation: str,
        instruction_key: str,
        tokens_cost: int,
    ) -> EditRecord:
        """Create an edit in pending status and return it."""

    def get_edit(self, edit_id: UUID) -> EditRecord | None:
        """Return an edit by id, if present."""

    def update_status(
        self,
        edit_id: UUID,
        expected: EditStatus,
        status: EditStatus,
        fields: dict[str, object],
    ) -> bool:
        """Update status only if the stored status equals expected."""

    def list_edits(
        self,
        status: EditStatus | None = None,
        user_id: UUID | None = None,
        limit: int = 100,
        newest_first: bool = True,
    ) -> list[EditRecord]:
        """Return edits filtered by status and/or owner."""


class ImageStorage(Protocol):
    """Binary object storage for images."""

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store bytes at path."""

    def download(self, path: str) -> bytes:
        """Return the bytes stored at path."""

    def public_url(self, path: str) -> str:
        """Return a fetchable URL for path."""

    def remove(self, path: str) -> None:
        """Delete the object stored at path."""


@dataclass
class EditStore:
    """Adapter over the record store used by the edit workflow."""

    photo_repository: PhotoRepository
    edit_repository: EditRepository
    storage: ImageStorage

    def get_owned_photo(self, photo_id: UUID, user_id: UUID) -> PhotoRecord:
        """Return the photo if it exists and belongs to user_id."""
        photo = self.photo_repository.get_photo(photo_id)
        if photo is None:
            raise NotFound(f"Photo {photo_id} not found")
        if photo.user_id != user_id:
            raise Forbidden("You do not have access to this photo")
        return photo

    def get_photo(self, photo_id: UUID) -> PhotoRecord:
        photo = self.photo_repository.get_photo(photo_id)
        if photo is None:
            raise NotFound(f"Photo {photo_id} not found")
        return photo

    def load_photo_bytes(self, photo: PhotoRecord) -> bytes:
        """Download the image bytes for a photo."""
        return self.storage.download(photo.image_path)

    def create_edit(  # noqa: PLR0913
        self,
        user_id: UUID,
        photo_id: UUID,
        operation: str,
        instruction_key: str,
        tokens_cost: int,
    ) -> EditRecord:
        """Create a pending edit."""
        return self.edit_repository.create_edit(
            user_id=user_id,
            photo_id=photo_id,
            operation=operation,
            instruction_key=instruction_key,
            tokens_cost=tokens_cost,
        )

    def get_edit(self, edit_id: UUID) -> EditRecord:
        edit = self.edit_repository.get_edit(edit_id)
        if edit is None:
            raise NotFound(f"Edit {edit_id} not found")
        return edit

    def get_owned_edit(self, edit_id: UUID, user_id: UUID) -> EditRecord:
        """Return the edit if it exists and belongs to user_id."""
        edit = self.get_edit(edit_id)
        if edit.user_id != user_id:
            raise Forbidden("You do not have access to this edit")
        return edit

    def list_edits(
        self,
        status: EditStatus | None = None,
        user_id: UUID | None = None,
        limit: int = 100,
        newest_first: bool = True,
    ) -> list[EditRecord]:
        return self.edit_repository.list_edits(
            status=status, user_id=user_id, limit=limit, newest_first=newest_first
        )

    def transition_edit(
        self,
        edit_id: UUID,
        expected: EditStatus,
        status: EditStatus,
        result_photo_id: UUID | None = None,
        completed: datetime | None = None,
    ) -> None:
        """Move an edit from expected to status, or raise InvalidTransition."""
        if not can_transition(expected, status):
            raise InvalidTransition(
                f"Edit cannot move from {expected.value} to {status.value}"
            )
        fields: dict[str, object] = {}
        if result_photo_id is not None:
            fields["result_photo_id"] = str(result_photo_id)
        if completed is not None:
            fields["completed"] = completed.isoformat()
        if not self.edit_repository.update_status(edit_id, expected, status, fields):
            raise InvalidTransition(
                f"Edit {edit_id} is no longer {expected.value}; "
                f"not moving it to {status.value}"
            )

    def create_derived_photo(
        self,
        user_id: UUID,
        image_bytes: bytes,
        caption: str | None,
        source_photo_id: UUID | None = None,
    ) -> PhotoRecord:
        """Upload edited bytes and record them as a new photo."""
        mime_type = detect_mime_type(image_bytes)
        path = f"{user_id}/{uuid4().hex}.{extension_for(mime_type)}"
        self.storage.upload(path, image_bytes, mime_type)
        return self.photo_repository.create_photo(
            user_id=user_id,
            image_path=path,
            caption=caption,
            source_photo_id=source_photo_id,
        )

    def discard_photo(self, photo: PhotoRecord) -> None:
        """Delete a photo row and its stored image."""
        self.photo_repository.delete_photo(photo.id)
        self.storage.remove(photo.image_path)

    def result_url(self, edit: EditRecord) -> str | None:
        """Return a URL for the edit's result image, if it has one."""
        if edit.result_photo_id is None:
            return None
        photo = self.photo_repository.get_photo(edit.result_photo_id)
        if photo is None:
            return None
        return self.storage.public_url(photo.image_path)
