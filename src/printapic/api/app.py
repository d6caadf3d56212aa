"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from printapic.api.admin import router as admin_router
from printapic.api.auth import require_user
from printapic.api.models import EditRequest, OrderRequest
from printapic.app_logging import configure_logging
from printapic.containers import AppContainer
from printapic.domain.edits import EditStatusView
from printapic.domain.errors import (
    CapacityExceeded,
    Forbidden,
    InsufficientFunds,
    InvalidRequest,
    InvalidTransition,
    NotFound,
    PrintapicError,
    ProviderError,
    ProviderTimeout,
    StoreError,
    Unauthenticated,
    UnsupportedOperation,
)
from printapic.domain.models import UserRecord
from printapic.domain.orders import OrderLine

_STATUS_CODES: dict[type[PrintapicError], int] = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidRequest: status.HTTP_400_BAD_REQUEST,
    UnsupportedOperation: status.HTTP_400_BAD_REQUEST,
    InsufficientFunds: status.HTTP_402_PAYMENT_REQUIRED,
    InvalidTransition: status.HTTP_409_CONFLICT,
    CapacityExceeded: status.HTTP_503_SERVICE_UNAVAILABLE,
    ProviderTimeout: status.HTTP_504_GATEWAY_TIMEOUT,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        await state_container.edit_workers.start(state_container.edit_service.process)
        try:
            state_container.edit_service.recover()
        except Exception:
            logger.exception("Failed to recover pending edits")
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(PrintapicError)
    async def handle_domain_error(
        request: Request, exc: PrintapicError
    ) -> JSONResponse:
        status_code = _status_code_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error_response(status_code, exc.kind, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            InvalidRequest.kind,
            _describe_validation_error(exc),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "Internal server error",
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/me")
    async def me(user: UserRecord = Depends(require_user)) -> dict[str, object]:
        """Return the authenticated user's profile."""
        return {"id": str(user.id), "email": user.email, "tokens": user.tokens}

    @app.post("/edits", status_code=status.HTTP_202_ACCEPTED)
    async def submit_edit(
        payload: EditRequest,
        request: Request,
        user: UserRecord = Depends(require_user),
    ) -> dict[str, object]:
        """Start an edit; the client polls GET /edits/{id} for the outcome.

        Besides 400/403/404, returns 402 when the balance cannot cover the
        edit and 503 when the worker queue is full.
        """
        state_container: AppContainer = request.app.state.container
        submission = state_container.edit_service.submit(
            user=user,
            photo_id=payload.photo_id,
            operation=payload.operation,
            instruction_key=payload.instruction_key or payload.operation,
        )
        return {
            "success": True,
            "editId": str(submission.edit_id),
            "status": submission.status.value,
            "message": submission.message,
        }

    @app.get("/edits/{edit_id}")
    async def get_edit_status(
        edit_id: UUID,
        request: Request,
        user: UserRecord = Depends(require_user),
    ) -> dict[str, object]:
        """Return the current state of one of the caller's edits."""
        state_container: AppContainer = request.app.state.container
        view = state_container.edit_service.get_status(edit_id, user)
        return _serialize_status(view)

    @app.post("/orders", status_code=status.HTTP_201_CREATED)
    async def create_order(
        payload: OrderRequest,
        request: Request,
        user: UserRecord = Depends(require_user),
    ) -> dict[str, object]:
        """Pay for prints of finished edits with tokens."""
        state_container: AppContainer = request.app.state.container
        lines = [
            OrderLine(
                photo_id=item.photo_id,
                edit_id=item.edit_id,
                size=item.size,
                quantity=item.quantity,
            )
            for item in payload.items
        ]
        result = state_container.order_service.checkout(user, lines)
        return {
            "orderId": str(result.order.id),
            "status": result.order.status.value,
            "total_tokens": result.order.total_tokens,
            "balance": result.balance,
        }

    return app


def _status_code_for(exc: PrintapicError) -> int:
    """Map an error to its HTTP status, honouring subclasses."""
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_CODES:
            return _STATUS_CODES[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": kind, "message": message}},
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Summarise pydantic errors as 'field: problem' pairs."""
    parts = []
    for error in exc.errors():
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part != "body"
        )
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts) or "Invalid request"


def _serialize_status(view: EditStatusView) -> dict[str, object]:
    return {
        "id": str(view.id),
        "status": view.status.value,
        "tokens_cost": view.tokens_cost,
        "completed": view.completed.isoformat() if view.completed else None,
        "message": view.message,
        "result_url": view.result_url,
    }
