"""Supabase repository for print orders."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from printapic.adapters.supabase_session import SupabaseSession
from printapic.domain.errors import StoreError
from printapic.domain.orders import OrderItem, OrderRecord, OrderStatus
from printapic.services.orders import OrderRepository


@dataclass
class SupabaseOrderRepository(OrderRepository):
    """Supabase implementation for orders and order items."""

    session: SupabaseSession

    def create_order(
        self, user_id: UUID, total_tokens: int, items: list[OrderItem]
    ) -> OrderRecord:
        """Create a pending order with its item rows."""
        client = self.session.ensure_valid()
        response = (
            client.table("orders")
            .insert(
                {
                    "user_id": str(user_id),
                    "status": OrderStatus.PENDING.value,
                    "total_tokens": total_tokens,
                }
            )
            .execute()
        )
        if not response.data:
            raise StoreError("Failed to create order")
        order_id = UUID(str(response.data[0]["id"]))
        if items:
            client.table("order_items").insert(
                [
                    {
                        "order_id": str(order_id),
                        "photo_id": str(item.photo_id),
                        "edit_id": str(item.edit_id),
                        "size": item.size,
                        "quantity": item.quantity,
                        "unit_tokens": item.unit_tokens,
                    }
                    for item in items
                ]
            ).execute()
        return OrderRecord(
            id=order_id,
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_tokens=total_tokens,
            items=items,
        )

    def update_order_status(self, order_id: UUID, status: OrderStatus) -> None:
        """Set the order status."""
        self.session.ensure_valid().table("orders").update(
            {"status": status.value, "updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(order_id)).execute()
