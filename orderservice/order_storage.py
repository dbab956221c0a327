"""Relational storage of orders, order lines and the menu."""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from orderservice.order_models import (
    AddItemsToOrder,
    CreateOrderInDB,
    Item,
    MenuItem,
    Order,
)
from orderservice.transactions import DatabaseError, EngineStorage

_INSERT_ORDER = text(
    "INSERT INTO orders.orders (id, total_price, status) "
    "VALUES (:id, :total_price, :status)"
)

_INSERT_ORDER_ITEM = text(
    "INSERT INTO orders.order_items (order_id, menu_item_id, quantity, total_price) "
    "VALUES (:order_id, :menu_item_id, :quantity, :total_price)"
)

_SELECT_MENU_ITEMS = text("SELECT id, name, price FROM orders.menu_items")

_SELECT_ORDER = text(
    """
    SELECT o.id,
           o.total_price,
           o.status,
           mi.id,
           mi.name,
           oi.quantity,
           oi.total_price
    FROM orders.orders o
    LEFT JOIN orders.order_items oi ON oi.order_id = o.id
    LEFT JOIN orders.menu_items mi ON mi.id = oi.menu_item_id
    WHERE o.id = :id
    """
)


def _status_value(status: object) -> str:
    return status.value if isinstance(status, Enum) else str(status)


def _as_uuid(value: object) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


class OrderStorage(EngineStorage):
    """Reads and writes orders, order lines and menu items."""

    def create_order(self, data: CreateOrderInDB) -> None:
        """Insert the order row."""
        op = "order.adapter.postgres.CreateOrder"
        try:
            with self.connection() as conn:
                conn.execute(
                    _INSERT_ORDER,
                    {
                        "id": str(data.id),
                        "total_price": data.total_price,
                        "status": _status_value(data.status),
                    },
                )
        except SQLAlchemyError as exc:
            raise DatabaseError(f"{op}: {exc}") from exc

    def get_order_by_id(self, order_id: UUID) -> Order:
        """Return the order with its lines.

        An unknown id yields an order with the nil id and no lines.
        """
        op = "order.adapters.postgres.GetOrderByID"
        try:
            with self.connection() as conn:
                rows = conn.execute(_SELECT_ORDER, {"id": str(order_id)}).all()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"{op}: {exc}") from exc

        if not rows:
            return Order(id=UUID(int=0))

        first = rows[0]
        return Order(
            id=_as_uuid(first[0]),
            total_price=first[1],
            status=first[2],
            items=[
                Item(id=row[3], name=row[4], quantity=row[5], total_price=row[6])
                for row in rows
            ],
        )

    def get_menu_items(self) -> list[MenuItem]:
        """Return every menu item with its price in kopecks."""
        op = "order.adapters.postgres.GetMenuItems"
        try:
            with self.connection() as conn:
                rows = conn.execute(_SELECT_MENU_ITEMS).all()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"{op}: {exc}") from exc
        return [MenuItem(id=row[0], name=row[1], price=row[2]) for row in rows]

    def add_items_to_order(self, data: AddItemsToOrder) -> None:
        """Insert the order lines of an existing order."""
        op = "order.adapters.postgres.AddItemsToOrder"
        if not data.items:
            return
        params = [
            {
                "order_id": str(data.order_id),
                "menu_item_id": item.id,
                "quantity": item.quantity,
                "total_price": item.total_price,
            }
            for item in data.items
        ]
        try:
            with self.connection() as conn:
                conn.execute(_INSERT_ORDER_ITEM, params)
        except SQLAlchemyError as exc:
            raise DatabaseError(f"{op}: failed to send batch: {exc}") from exc