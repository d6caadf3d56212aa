"""Process-wide privileged Supabase client."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from supabase import Client, create_client

logger = logging.getLogger(__name__)


@dataclass
class SupabaseSession:
    """Holds the single privileged client shared by all repositories.

    Repositories call ``ensure_valid()`` before each store call. The client
    is created on first use. When admin credentials are configured the
    session signs in with them and signs in again once the access token is
    close to expiry.
    """

    url: str
    service_key: str
    admin_email: str | None = None
    admin_password: str | None = None
    refresh_margin_seconds: int = 60
    client_factory: Callable[[str, str], Client] = create_client
    _client: Client | None = field(default=None, init=False, repr=False)
    _expires_at: datetime | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def ensure_valid(self) -> Client:
        """Return a client whose credentials are valid right now."""
        with self._lock:
            if self._client is None:
                self._client = self.client_factory(self.url, self.service_key)
                if self.admin_email:
                    self._sign_in(self._client)
            elif self._is_expiring():
                logger.info("Supabase admin session expiring, signing in again")
                self._sign_in(self._client)
            return self._client

    def _is_expiring(self) -> bool:
        if self._expires_at is None:
            return False
        margin = timedelta(seconds=self.refresh_margin_seconds)
        return datetime.now(tz=UTC) + margin >= self._expires_at

    def _sign_in(self, client: Client) -> None:
        response = client.auth.sign_in_with_password(
            {"email": self.admin_email, "password": self.admin_password}
        )
        session = response.session
        if session is None or session.expires_at is None:
            self._expires_at = None
            return
        self._expires_at = datetime.fromtimestamp(session.expires_at, tz=UTC)
