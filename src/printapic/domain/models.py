"""Domain models for the printapic backend."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a user profile stored in the database."""

    id: UUID
    email: str | None
    tokens: int


@dataclass(frozen=True)
class AuthIdentity:
    """Identity returned by the auth service for a bearer token."""

    id: UUID
    email: str | None


@dataclass(frozen=True)
class PhotoRecord:
    """Photo metadata; the image itself lives in object storage."""

    id: UUID
    user_id: UUID
    image_path: str
    caption: str | None = None
    source_photo_id: UUID | None = None


@dataclass(frozen=True)
class TokenTransaction:
    """Append-only ledger entry."""

    id: UUID
    user_id: UUID
    amount: int
    reason: str
    reference_id: UUID
    created_at: datetime | None = None


@dataclass(frozen=True)
class PaymentRecord:
    """Token purchase record."""

    id: UUID
    user_id: UUID
    tokens: int
    amount_cents: int
    status: str
