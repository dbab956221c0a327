"""Data types and errors of the accounting domain."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class OrderStatus(str, Enum):
    """Order states as seen by accounting."""

    CREATED = "created"
    PAID = "paid"
    COOKING = "cooking"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"


@dataclass
class MakePayment:
    """A request to pay for an order."""

    order_id: UUID


@dataclass
class ChangeOrderStatus:
    """A new status for an order."""

    id: UUID
    new_status: str


@dataclass
class Order:
    """The parts of an order accounting cares about."""

    id: UUID
    total_price: int
    status: str


class AccountingError(Exception):
    """Base class of accounting errors."""


class EntityNotFoundError(AccountingError):
    def __init__(self, message: str = "entity not found") -> None:
        super().__init__(message)


class CannotMakePaymentError(AccountingError):
    def __init__(self, message: str = "cannot make payment") -> None:
        super().__init__(message)


class CannotChangeOrderInThisStatusError(AccountingError):
    def __init__(self, message: str = "cannot change order in this status") -> None:
        super().__init__(message)