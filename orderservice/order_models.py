"""Data types and errors of the ordering domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class OrderStatus(str, Enum):
    """Lifecycle states of an order."""

    CREATED = "created"
    COOKING = "cooking"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"


@dataclass
class MenuItem:
    """A dish on the menu with its price."""

    id: int
    name: str
    price: int

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "price": self.price}


@dataclass
class ItemInOrder:
    """A priced order line ready to be stored."""

    id: int
    quantity: int
    total_price: int


@dataclass
class AddItemsToOrder:
    """Order lines to attach to an existing order."""

    order_id: UUID
    items: list[ItemInOrder] = field(default_factory=list)


@dataclass
class Item:
    """An order line as read back from storage."""

    id: int | None = None
    name: str | None = None
    quantity: int | None = None
    total_price: int | None = None

    def to_dict(self) -> dict:
        return {
            "ID": self.id,
            "Name": self.name,
            "Quantity": self.quantity,
            "TotalPrice": self.total_price,
        }


@dataclass
class Courier:
    id: int = 0
    name: str = ""
    contact_number: str = ""

    def to_dict(self) -> dict:
        return {"ID": self.id, "Name": self.name, "ContactNumber": self.contact_number}


@dataclass
class Delivery:
    courier: Courier = field(default_factory=Courier)
    delivery_time: str = ""
    delivery_address: str = ""

    def to_dict(self) -> dict:
        return {
            "Courier": self.courier.to_dict(),
            "DeliveryTime": self.delivery_time,
            "DeliveryAddress": self.delivery_address,
        }


@dataclass
class Customer:
    id: int = 0
    customer_contact_number: str = ""
    customer_address: str = ""

    def to_dict(self) -> dict:
        return {
            "ID": self.id,
            "CustomerContactNumber": self.customer_contact_number,
            "CustomerAddress": self.customer_address,
        }


@dataclass
class Order:
    """A full order with its lines."""

    id: UUID
    items: list[Item] = field(default_factory=list)
    total_price: int = 0
    status: str = ""
    payment_method: str = ""
    customer: Customer = field(default_factory=Customer)
    delivery: Delivery = field(default_factory=Delivery)

    def to_dict(self) -> dict:
        return {
            "ID": str(self.id),
            "Items": [item.to_dict() for item in self.items],
            "TotalPrice": self.total_price,
            "Status": str(self.status.value if isinstance(self.status, Enum) else self.status),
            "PaymentMethod": self.payment_method,
            "Customer": self.customer.to_dict(),
            "Delivery": self.delivery.to_dict(),
        }


@dataclass
class OrderItem:
    """A requested dish and how many of it."""

    id: int
    quantity: int


@dataclass
class CreateOrder:
    """A request to place a new order."""

    items: list[OrderItem] = field(default_factory=list)


@dataclass
class CreateOrderInDB:
    """The order row to be inserted."""

    id: UUID
    total_price: int
    status: str


class OrderError(Exception):
    """Base class of ordering errors."""


class EntityNotFoundError(OrderError):
    def __init__(self, message: str = "entity not found") -> None:
        super().__init__(message)


class ItemsMustBeMoreThanZeroError(OrderError):
    def __init__(self, message: str = "items must be more than zero") -> None:
        super().__init__(message)