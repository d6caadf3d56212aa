"""Bearer token verification via Supabase Auth."""

import logging
from dataclasses import dataclass
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.errors import Unauthenticated
from printapic.domain.models import AuthIdentity
from printapic.services.users import TokenVerifier

logger = logging.getLogger(__name__)


@dataclass
class SupabaseTokenVerifier(TokenVerifier):
    """Resolves a user JWT to the Supabase auth user."""

    session: SupabaseSession

    def verify(self, token: str) -> AuthIdentity:
        """Return the identity behind token, or raise Unauthenticated."""
        if not token:
            raise Unauthenticated("Missing token")
        try:
            response = self.session.ensure_valid().auth.get_user(token)
        except Exception as exc:
            logger.info("Token verification failed: %s", exc)
            raise Unauthenticated("Invalid or expired token") from exc
        user = response.user if response else None
        if user is None:
            raise Unauthenticated("Invalid or expired token")
        return AuthIdentity(id=UUID(str(user.id)), email=user.email)
