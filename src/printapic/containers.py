"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from printapic.adapters.bfl_client import HttpxBflClient
from printapic.adapters.openai_edit_client import OpenAIEditClient
from printapic.adapters.supabase_auth_client import SupabaseTokenVerifier
from printapic.adapters.supabase_edit_repository import SupabaseEditRepository
from printapic.adapters.supabase_ledger_repository import SupabaseLedgerRepository
from printapic.adapters.supabase_order_repository import SupabaseOrderRepository
from printapic.adapters.supabase_payment_repository import (
    SupabasePaymentRepository,
)
from printapic.adapters.supabase_photo_repository import SupabasePhotoRepository
from printapic.adapters.supabase_session import SupabaseSession
from printapic.adapters.supabase_storage import SupabaseImageStorage
from printapic.adapters.supabase_user_repository import SupabaseUserRepository
from printapic.config import Settings
from printapic.services.admin import AdminService
from printapic.services.edit_store import EditStore
from printapic.services.edits import EditService
from printapic.services.ledger import TokenLedger
from printapic.services.orders import OrderService
from printapic.services.users import UserService
from printapic.services.workers import EditWorkerPool


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    ledger: TokenLedger
    edit_store: EditStore
    edit_workers: EditWorkerPool
    edit_service: EditService
    order_service: OrderService
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    session = SupabaseSession(
        url=resolved_settings.supabase_url,
        service_key=resolved_settings.supabase_service_key,
        admin_email=resolved_settings.supabase_admin_email,
        admin_password=resolved_settings.supabase_admin_password,
    )
    user_service = UserService(
        repository=SupabaseUserRepository(session),
        verifier=SupabaseTokenVerifier(session),
    )
    ledger = TokenLedger(SupabaseLedgerRepository(session))
    edit_store = EditStore(
        photo_repository=SupabasePhotoRepository(session),
        edit_repository=SupabaseEditRepository(session),
        storage=SupabaseImageStorage(
            session, bucket=resolved_settings.supabase_storage_bucket
        ),
    )
    provider = _build_provider(resolved_settings)
    edit_workers = EditWorkerPool(
        concurrency=resolved_settings.edit_worker_concurrency,
        max_queue_size=resolved_settings.edit_queue_size,
    )
    edit_service = EditService(
        store=edit_store,
        provider=provider,
        ledger=ledger,
        workers=edit_workers,
    )
    order_service = OrderService(
        repository=SupabaseOrderRepository(session),
        store=edit_store,
        ledger=ledger,
    )
    admin_service = AdminService(
        payment_repository=SupabasePaymentRepository(session),
        ledger=ledger,
        store=edit_store,
    )

    async def close_resources() -> None:
        await edit_workers.stop()
        await provider.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        ledger=ledger,
        edit_store=edit_store,
        edit_workers=edit_workers,
        edit_service=edit_service,
        order_service=order_service,
        admin_service=admin_service,
        close_resources=close_resources,
    )


def _build_provider(settings: Settings) -> HttpxBflClient | OpenAIEditClient:
    """Create the configured image edit provider client."""
    if settings.edit_provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")
        return OpenAIEditClient.create(
            api_key=settings.openai_api_key, model=settings.openai_image_model
        )
    if settings.edit_provider == "bfl":
        if not settings.bfl_api_key:
            raise ValueError("BFL_API_KEY is required for the bfl provider")
        return HttpxBflClient.create(
            api_key=settings.bfl_api_key,
            base_url=settings.bfl_base_url,
            model=settings.bfl_model,
            poll_interval=settings.bfl_poll_interval_seconds,
            max_attempts=settings.bfl_max_poll_attempts,
        )
    raise ValueError(f"Unknown edit provider: {settings.edit_provider}")
