"""User authentication and profile provisioning."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from printapic.domain.models import AuthIdentity, UserRecord


class UserRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return the user profile, if present."""

    def create_user(self, user_id: UUID, email: str | None) -> UserRecord:
        """Create a profile with an empty balance and return it."""


class TokenVerifier(Protocol):
    """Verifies bearer tokens against the auth service."""

    def verify(self, token: str) -> AuthIdentity:
        """Return the identity for token or raise Unauthenticated."""


@dataclass
class UserService:
    """Application service for authenticated users."""

    repository: UserRepository
    verifier: TokenVerifier

    def authenticate(self, token: str) -> UserRecord:
        """Verify a bearer token and return the caller's profile."""
        identity = self.verifier.verify(token)
        return self.ensure_user(identity)

    def ensure_user(self, identity: AuthIdentity) -> UserRecord:
        """Ensure a profile exists for the identity and return it."""
        existing = self.repository.get_user(identity.id)
        if existing:
            return existing
        return self.repository.create_user(identity.id, identity.email)
