"""Relational storage used by the accounting domain."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from orderservice.accounting_models import ChangeOrderStatus, EntityNotFoundError, Order
from orderservice.transactions import DatabaseError, EngineStorage

_SELECT_ORDER = text(
    """
    SELECT o.id,
           o.total_price,
           o.status
    FROM orders.orders o
    WHERE o.id = :id
    """
)

_UPDATE_STATUS = text("UPDATE orders.orders SET status = :status WHERE id = :id")


def _as_uuid(value: object) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


class AccountingStorage(EngineStorage):
    """Reads orders and changes their status."""

    def get_order_by_id(self, order_id: UUID) -> Order:
        """Return the order; raise EntityNotFoundError if there is none."""
        op = "accounting.adapters.postgres.GetOrderByID"
        try:
            with self.connection() as conn:
                row = conn.execute(_SELECT_ORDER, {"id": str(order_id)}).first()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"{op}: {exc}") from exc
        if row is None:
            raise EntityNotFoundError(f"{op}: entity not found")
        return Order(id=_as_uuid(row[0]), total_price=row[1], status=row[2])

    def change_order_status(self, change: ChangeOrderStatus) -> None:
        """Set the status of an order."""
        op = "accounting.adapters.postgres.ChangeOrderStatus"
        status = getattr(change.new_status, "value", change.new_status)
        try:
            with self.connection() as conn:
                conn.execute(_UPDATE_STATUS, {"id": str(change.id), "status": status})
        except SQLAlchemyError as exc:
            raise DatabaseError(f"{op}: {exc}") from exc