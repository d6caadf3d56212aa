"""Bearer token authentication dependency."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, Request

from printapic.domain.errors import Unauthenticated
from printapic.domain.models import UserRecord  # noqa: TC001

if TYPE_CHECKING:
    from printapic.containers import AppContainer


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not authorization:
        raise Unauthenticated("Missing token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Missing token")
    return token.strip()


async def require_user(
    request: Request, token: str = Depends(bearer_token)
) -> UserRecord:
    """Resolve the authenticated user for the request."""
    container: AppContainer = request.app.state.container
    return container.user_service.authenticate(token)
