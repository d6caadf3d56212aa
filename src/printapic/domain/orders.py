"""Domain models for print orders."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

# Token price per print, keyed by size.
PRINT_PRICES: dict[str, int] = {
    "4x6": 2,
    "5x7": 3,
    "8x10": 5,
    "sticker-3in": 1,
}

MAX_LINE_QUANTITY = 50


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class OrderLine:
    """Requested print of a finished edit."""

    photo_id: UUID
    edit_id: UUID
    size: str
    quantity: int


@dataclass(frozen=True)
class OrderItem:
    """Priced order line."""

    photo_id: UUID
    edit_id: UUID
    size: str
    quantity: int
    unit_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.unit_tokens * self.quantity


@dataclass(frozen=True)
class OrderRecord:
    """Persisted order."""

    id: UUID
    user_id: UUID
    status: OrderStatus
    total_tokens: int
    items: list[OrderItem]


@dataclass(frozen=True)
class CheckoutResult:
    """Outcome of a successful checkout."""

    order: OrderRecord
    balance: int
