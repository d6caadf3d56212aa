"""Supabase Storage client for image bytes."""

from dataclasses import dataclass

from printapic.adapters.supabase_session import SupabaseSession
from printapic.services.edit_store import ImageStorage


@dataclass
class SupabaseImageStorage(ImageStorage):
    """Stores images in a Supabase Storage bucket."""

    session: SupabaseSession
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Upload bytes to the bucket at path."""
        self.session.ensure_valid().storage.from_(self.bucket).upload(
            path=path,
            file=data,
            file_options={"content-type": content_type},
        )

    def download(self, path: str) -> bytes:
        """Download the object stored at path."""
        return self.session.ensure_valid().storage.from_(self.bucket).download(path)

    def public_url(self, path: str) -> str:
        """Return the public URL for path."""
        return (
            self.session.ensure_valid().storage.from_(self.bucket).get_public_url(path)
        )

    def remove(self, path: str) -> None:
        """Delete the object stored at path."""
        self.session.ensure_valid().storage.from_(self.bucket).remove([path])
