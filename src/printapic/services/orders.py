"""Print order checkout."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from printapic.domain.edits import EditStatus
from printapic.domain.errors import InsufficientFunds, InvalidRequest
from printapic.domain.models import UserRecord
from printapic.domain.orders import (
    MAX_LINE_QUANTITY,
    PRINT_PRICES,
    CheckoutResult,
    OrderItem,
    OrderLine,
    OrderRecord,
    OrderStatus,
)
from printapic.services.edit_store import EditStore
from printapic.services.ledger import TokenLedger

logger = logging.getLogger(__name__)

ORDER_DEBIT_REASON = "Order checkout"


class OrderRepository(Protocol):
    """Persistence interface for orders."""

    def create_order(
        self, user_id: UUID, total_tokens: int, items: list[OrderItem]
    ) -> OrderRecord:
        """Create a pending order with its items."""

    def update_order_status(self, order_id: UUID, status: OrderStatus) -> None:
        """Set the status of an order."""


@dataclass
class OrderService:
    """Validates print orders and pays for them with tokens."""

    repository: OrderRepository
    store: EditStore
    ledger: TokenLedger

    def checkout(self, user: UserRecord, lines: list[OrderLine]) -> CheckoutResult:
        """Price and pay for an order of finished edits."""
        items = [self._price_line(user, line) for line in self._validate(lines)]
        total = sum(item.total_tokens for item in items)
        balance = self.ledger.balance(user.id)
        if balance < total:
            raise InsufficientFunds(f"Order costs {total} tokens, balance is {balance}")

        order = self.repository.create_order(user.id, total, items)
        try:
            new_balance = self.ledger.apply(
                user.id, -total, ORDER_DEBIT_REASON, order.id
            )
        except Exception:
            self.repository.update_order_status(order.id, OrderStatus.CANCELLED)
            raise
        self.repository.update_order_status(order.id, OrderStatus.PAID)
        logger.info("Order %s paid with %d tokens", order.id, total)
        return CheckoutResult(
            order=OrderRecord(
                id=order.id,
                user_id=order.user_id,
                status=OrderStatus.PAID,
                total_tokens=total,
                items=items,
            ),
            balance=new_balance,
        )

    def _validate(self, lines: list[OrderLine]) -> list[OrderLine]:
        if not lines:
            raise InvalidRequest("An order needs at least one item")
        for line in lines:
            if line.size not in PRINT_PRICES:
                raise InvalidRequest(f"Unknown print size: {line.size}")
            if not 1 <= line.quantity <= MAX_LINE_QUANTITY:
                raise InvalidRequest(
                    f"Quantity must be between 1 and {MAX_LINE_QUANTITY}"
                )
        return lines

    def _price_line(self, user: UserRecord, line: OrderLine) -> OrderItem:
        self.store.get_owned_photo(line.photo_id, user.id)
        edit = self.store.get_owned_edit(line.edit_id, user.id)
        if edit.photo_id != line.photo_id:
            raise InvalidRequest(f"Edit {edit.id} was not made from this photo")
        if edit.status is not EditStatus.DONE:
            raise InvalidRequest(f"Edit {edit.id} is not complete")
        return OrderItem(
            photo_id=line.photo_id,
            edit_id=line.edit_id,
            size=line.size,
            quantity=line.quantity,
            unit_tokens=PRINT_PRICES[line.size],
        )
