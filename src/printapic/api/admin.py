"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, Request

from printapic.api.models import TokenCreditRequest  # noqa: TC001
from printapic.domain.errors import Unauthenticated

if TYPE_CHECKING:
    from printapic.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise Unauthenticated("Invalid admin token")


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/users/{user_id}", dependencies=[Depends(require_admin)])
async def user_detail(user_id: UUID, request: Request) -> dict[str, object]:
    """Return a user's balance, transactions and edits."""
    container: AppContainer = request.app.state.container
    return container.admin_service.get_user_detail(user_id)


@router.post("/users/{user_id}/tokens", dependencies=[Depends(require_admin)])
async def credit_tokens(
    user_id: UUID, payload: TokenCreditRequest, request: Request
) -> dict[str, object]:
    """Manually add tokens to a user, recorded as a payment."""
    container: AppContainer = request.app.state.container
    return container.admin_service.credit_tokens(user_id, payload.tokens)
