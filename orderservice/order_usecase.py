"""Ordering use cases: placing orders and reading menu and orders."""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol, TypeVar
from uuid import UUID

from orderservice.order_models import (
    AddItemsToOrder,
    CreateOrder,
    CreateOrderInDB,
    ItemInOrder,
    ItemsMustBeMoreThanZeroError,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
)

_T = TypeVar("_T")


class _TxManager(Protocol):
    def perform_transaction(self, fn: Callable[[], _T]) -> _T: ...


class _Storage(Protocol):
    def create_order(self, data: CreateOrderInDB) -> None: ...

    def get_order_by_id(self, order_id: UUID) -> Order: ...

    def get_menu_items(self) -> list[MenuItem]: ...

    def add_items_to_order(self, data: AddItemsToOrder) -> None: ...


def from_kopecks_to_rubles(amount: int) -> int:
    """Convert kopecks to whole rubles, truncating toward zero."""
    rubles = abs(amount) // 100
    return rubles if amount >= 0 else -rubles


def validate_create_order(order: CreateOrder) -> None:
    """Raise ItemsMustBeMoreThanZeroError unless every line has a positive quantity."""
    if not order.items:
        raise ItemsMustBeMoreThanZeroError()
    if any(item.quantity <= 0 for item in order.items):
        raise ItemsMustBeMoreThanZeroError()


def calculate_prices(
    menu_items: Iterable[MenuItem], items: Sequence[OrderItem]
) -> tuple[list[ItemInOrder], int]:
    """Price each order line from the menu; unknown dishes cost nothing."""
    prices = {menu_item.id: menu_item.price for menu_item in menu_items}
    lines = [
        ItemInOrder(
            id=item.id,
            quantity=item.quantity,
            total_price=prices.get(item.id, 0) * item.quantity,
        )
        for item in items
    ]
    return lines, sum(line.total_price for line in lines)


def _to_rubles(value: int | None) -> int | None:
    return None if value is None else from_kopecks_to_rubles(value)


class OrderUseCase:
    """Application logic of the ordering domain."""

    def __init__(self, storage: _Storage, tx_manager: _TxManager) -> None:
        self._storage = storage
        self._tx_manager = tx_manager

    def create_order(self, order: CreateOrder) -> UUID:
        """Validate, price and store a new order; return its id."""
        validate_create_order(order)
        order_id = uuid.uuid4()

        def store() -> None:
            menu_items = self._storage.get_menu_items()
            lines, total_price = calculate_prices(menu_items, order.items)
            self._storage.create_order(
                CreateOrderInDB(
                    id=order_id, total_price=total_price, status=OrderStatus.CREATED.value
                )
            )
            self._storage.add_items_to_order(AddItemsToOrder(order_id=order_id, items=lines))

        self._tx_manager.perform_transaction(store)
        return order_id

    def get_menu_items(self) -> list[MenuItem]:
        """Return the menu with prices in rubles."""
        return [
            dataclasses.replace(item, price=from_kopecks_to_rubles(item.price))
            for item in self._storage.get_menu_items()
        ]

    def get_order_by_id(self, order_id: UUID) -> Order:
        """Return an order with its prices in rubles."""
        order = self._storage.get_order_by_id(order_id)
        return dataclasses.replace(
            order,
            total_price=from_kopecks_to_rubles(order.total_price),
            items=[
                dataclasses.replace(item, total_price=_to_rubles(item.total_price))
                for item in order.items
            ],
        )