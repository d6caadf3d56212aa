"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from printapic.config import Settings
from printapic.containers import AppContainer
from printapic.domain.edits import EditRecord, EditStatus
from printapic.domain.errors import Unauthenticated
from printapic.domain.models import (
    AuthIdentity,
    PaymentRecord,
    PhotoRecord,
    TokenTransaction,
    UserRecord,
)
from printapic.domain.orders import OrderItem, OrderRecord, OrderStatus
from printapic.services.admin import AdminService, PaymentRepository
from printapic.services.edit_store import (
    EditRepository,
    EditStore,
    ImageStorage,
    PhotoRepository,
)
from printapic.services.edits import EditService
from printapic.services.ledger import LedgerRepository, TokenLedger
from printapic.services.orders import OrderRepository, OrderService
from printapic.services.provider import EditProviderClient, resolve_instruction
from printapic.services.users import TokenVerifier, UserRepository, UserService
from printapic.services.workers import EditWorkerPool

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"edited-image"
JPEG_BYTES = b"\xff\xd8\xff" + b"original-image"


@dataclass
class InMemoryLedgerRepository(LedgerRepository):
    """In-memory balances and transactions for tests."""

    balances: dict[UUID, int] = field(default_factory=dict)
    transactions: list[TokenTransaction] = field(default_factory=list)
    lost_races: int = 0

    def get_balance(self, user_id: UUID) -> int | None:
        return self.balances.get(user_id)

    def set_balance_if(self, user_id: UUID, expected: int, new_balance: int) -> bool:
        if self.lost_races:
            # Simulate another writer changing the balance in between.
            self.lost_races -= 1
            return False
        if self.balances.get(user_id) != expected:
            return False
        self.balances[user_id] = new_balance
        return True

    def create_transaction(
        self, user_id: UUID, amount: int, reason: str, reference_id: UUID
    ) -> TokenTransaction:
        transaction = TokenTransaction(
            id=uuid4(),
            user_id=user_id,
            amount=amount,
            reason=reason,
            reference_id=reference_id,
            created_at=datetime.now(tz=UTC),
        )
        self.transactions.append(transaction)
        return transaction

    def list_transactions(self, user_id: UUID, limit: int) -> list[TokenTransaction]:
        owned = [tx for tx in self.transactions if tx.user_id == user_id]
        return list(reversed(owned))[:limit]


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user profiles sharing balances with the ledger fake."""

    ledger: InMemoryLedgerRepository
    emails: dict[UUID, str | None] = field(default_factory=dict)

    def get_user(self, user_id: UUID) -> UserRecord | None:
        if user_id not in self.emails:
            return None
        return UserRecord(
            id=user_id,
            email=self.emails[user_id],
            tokens=self.ledger.balances.get(user_id, 0),
        )

    def create_user(self, user_id: UUID, email: str | None) -> UserRecord:
        self.emails[user_id] = email
        self.ledger.balances[user_id] = 0
        return UserRecord(id=user_id, email=email, tokens=0)

    def add_user(self, email: str = "user@example.com", tokens: int = 0) -> UserRecord:
        user_id = uuid4()
        self.emails[user_id] = email
        self.ledger.balances[user_id] = tokens
        return UserRecord(id=user_id, email=email, tokens=tokens)


@dataclass
class FakeTokenVerifier(TokenVerifier):
    """Accepts only the tokens it was given."""

    identities: dict[str, AuthIdentity] = field(default_factory=dict)

    def verify(self, token: str) -> AuthIdentity:
        identity = self.identities.get(token)
        if identity is None:
            raise Unauthenticated("Invalid or expired token")
        return identity


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository for tests."""

    photos: dict[UUID, PhotoRecord] = field(default_factory=dict)

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        return self.photos.get(photo_id)

    def create_photo(
        self,
        user_id: UUID,
        image_path: str,
        caption: str | None,
        source_photo_id: UUID | None,
    ) -> PhotoRecord:
        photo = PhotoRecord(
            id=uuid4(),
            user_id=user_id,
            image_path=image_path,
            caption=caption,
            source_photo_id=source_photo_id,
        )
        self.photos[photo.id] = photo
        return photo

    def delete_photo(self, photo_id: UUID) -> None:
        self.photos.pop(photo_id, None)


@dataclass
class InMemoryEditRepository(EditRepository):
    """In-memory edits that remember every status each edit went through."""

    edits: dict[UUID, EditRecord] = field(default_factory=dict)
    history: dict[UUID, list[EditStatus]] = field(default_factory=dict)

    def create_edit(  # noqa: PLR0913
        self,
        user_id: UUID,
        photo_id: UUID,
        operation: str,
        instruction_key: str,
        tokens_cost: int,
    ) -> EditRecord:
        edit = EditRecord(
            id=uuid4(),
            user_id=user_id,
            photo_id=photo_id,
            operation=operation,
            instruction_key=instruction_key,
            status=EditStatus.PENDING,
            tokens_cost=tokens_cost,
            created_at=datetime.now(tz=UTC),
        )
        self.add(edit)
        return edit

    def add(self, edit: EditRecord) -> EditRecord:
        self.edits[edit.id] = edit
        self.history[edit.id] = [edit.status]
        return edit

    def get_edit(self, edit_id: UUID) -> EditRecord | None:
        return self.edits.get(edit_id)

    def update_status(
        self,
        edit_id: UUID,
        expected: EditStatus,
        status: EditStatus,
        fields: dict[str, object],
    ) -> bool:
        current = self.edits.get(edit_id)
        if current is None or current.status is not expected:
            return False
        completed = fields.get("completed")
        result_photo_id = fields.get("result_photo_id")
        self.edits[edit_id] = EditRecord(
            id=current.id,
            user_id=current.user_id,
            photo_id=current.photo_id,
            operation=current.operation,
            instruction_key=current.instruction_key,
            status=status,
            tokens_cost=current.tokens_cost,
            completed=datetime.fromisoformat(completed)
            if isinstance(completed, str)
            else current.completed,
            result_photo_id=UUID(result_photo_id)
            if isinstance(result_photo_id, str)
            else current.result_photo_id,
            created_at=current.created_at,
        )
        self.history[edit_id].append(status)
        return True

    def list_edits(
        self,
        status: EditStatus | None = None,
        user_id: UUID | None = None,
        limit: int = 100,
        newest_first: bool = True,
    ) -> list[EditRecord]:
        edits = [
            edit
            for edit in self.edits.values()
            if (status is None or edit.status is status)
            and (user_id is None or edit.user_id == user_id)
        ]
        if newest_first:
            edits.reverse()
        return edits[:limit]


@dataclass
class InMemoryImageStorage(ImageStorage):
    """In-memory object storage for tests."""

    objects: dict[str, bytes] = field(default_factory=dict)

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        self.objects[path] = data

    def download(self, path: str) -> bytes:
        return self.objects[path]

    def public_url(self, path: str) -> str:
        return f"https://storage.test/photos/{path}"

    def remove(self, path: str) -> None:
        self.objects.pop(path, None)


@dataclass
class FakeEditProvider(EditProviderClient):
    """Provider that returns fixed bytes or raises a configured error."""

    result: bytes = PNG_BYTES
    error: Exception | None = None
    calls: list[tuple[bytes, str]] = field(default_factory=list)

    async def submit_edit(self, image_bytes: bytes, instruction_key: str) -> bytes:
        resolve_instruction(instruction_key)
        self.calls.append((image_bytes, instruction_key))
        if self.error is not None:
            raise self.error
        return self.result

    async def close(self) -> None:
        return None


@dataclass
class InMemoryOrderRepository(OrderRepository):
    """In-memory order repository for tests."""

    orders: dict[UUID, OrderRecord] = field(default_factory=dict)

    def create_order(
        self, user_id: UUID, total_tokens: int, items: list[OrderItem]
    ) -> OrderRecord:
        order = OrderRecord(
            id=uuid4(),
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_tokens=total_tokens,
            items=items,
        )
        self.orders[order.id] = order
        return order

    def update_order_status(self, order_id: UUID, status: OrderStatus) -> None:
        order = self.orders[order_id]
        self.orders[order_id] = OrderRecord(
            id=order.id,
            user_id=order.user_id,
            status=status,
            total_tokens=order.total_tokens,
            items=order.items,
        )


@dataclass
class InMemoryPaymentRepository(PaymentRepository):
    """In-memory payment repository for tests."""

    payments: list[dict[str, object]] = field(default_factory=list)

    def create_payment(  # noqa: PLR0913
        self,
        user_id: UUID,
        session_id: str,
        price_id: str,
        amount_cents: int,
        tokens: int,
        status: str,
    ) -> PaymentRecord:
        payment = PaymentRecord(
            id=uuid4(),
            user_id=user_id,
            tokens=tokens,
            amount_cents=amount_cents,
            status=status,
        )
        self.payments.append(
            {
                "id": payment.id,
                "user_id": user_id,
                "session_id": session_id,
                "price_id": price_id,
                "amount_cents": amount_cents,
                "tokens": tokens,
                "status": status,
            }
        )
        return payment


def add_photo(
    store: EditStore, user_id: UUID, data: bytes = JPEG_BYTES
) -> PhotoRecord:
    """Store an uploaded photo for user_id and return its record."""
    path = f"{user_id}/{uuid4().hex}.jpg"
    store.storage.upload(path, data, "image/jpeg")
    return store.photo_repository.create_photo(
        user_id=user_id, image_path=path, caption=None, source_photo_id=None
    )


def build_edit_store() -> EditStore:
    return EditStore(
        photo_repository=InMemoryPhotoRepository(),
        edit_repository=InMemoryEditRepository(),
        storage=InMemoryImageStorage(),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        bfl_api_key="bfl-key",
    )


@pytest.fixture
def ledger_repository() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()


@pytest.fixture
def user_repository(
    ledger_repository: InMemoryLedgerRepository,
) -> InMemoryUserRepository:
    return InMemoryUserRepository(ledger=ledger_repository)


@pytest.fixture
def token_verifier() -> FakeTokenVerifier:
    return FakeTokenVerifier()


@pytest.fixture
def edit_store() -> EditStore:
    return build_edit_store()


@pytest.fixture
def provider() -> FakeEditProvider:
    return FakeEditProvider()


@pytest.fixture
def edit_service(
    edit_store: EditStore,
    provider: FakeEditProvider,
    ledger_repository: InMemoryLedgerRepository,
) -> EditService:
    return EditService(
        store=edit_store,
        provider=provider,
        ledger=TokenLedger(ledger_repository),
        workers=EditWorkerPool(concurrency=2, max_queue_size=10),
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    user_repository: InMemoryUserRepository,
    ledger_repository: InMemoryLedgerRepository,
    token_verifier: FakeTokenVerifier,
    edit_store: EditStore,
    edit_service: EditService,
) -> AppContainer:
    ledger = edit_service.ledger
    user_service = UserService(repository=user_repository, verifier=token_verifier)
    order_service = OrderService(
        repository=InMemoryOrderRepository(), store=edit_store, ledger=ledger
    )
    admin_service = AdminService(
        payment_repository=InMemoryPaymentRepository(),
        ledger=ledger,
        store=edit_store,
    )

    async def close_resources() -> None:
        await edit_service.workers.stop()

    return AppContainer(
        settings=settings,
        user_service=user_service,
        ledger=ledger,
        edit_store=edit_store,
        edit_workers=edit_service.workers,
        edit_service=edit_service,
        order_service=order_service,
        admin_service=admin_service,
        close_resources=close_resources,
    )


def sign_in(
    user_repository: InMemoryUserRepository,
    token_verifier: FakeTokenVerifier,
    tokens: int = 5,
    token: str = "valid-token",
) -> UserRecord:
    """Create a user with a balance and register a bearer token for them."""
    user = user_repository.add_user(email=f"{token}@example.com", tokens=tokens)
    token_verifier.identities[token] = AuthIdentity(id=user.id, email=user.email)
    return user
