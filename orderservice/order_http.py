"""HTTP endpoints of the ordering domain."""

from __future__ import annotations

import json
import logging
import string
from typing import Any, Protocol
from uuid import UUID

from flask import Blueprint, Flask, jsonify, request
from sqlalchemy.engine import Engine

from orderservice.order_models import (
    CreateOrder,
    EntityNotFoundError,
    ItemsMustBeMoreThanZeroError,
    MenuItem,
    Order,
    OrderItem,
)
from orderservice.order_storage import OrderStorage
from orderservice.order_usecase import OrderUseCase
from orderservice.transactions import TransactionManager

_log = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_HEX = frozenset(string.hexdigits)


class RequestError(Exception):
    """Raised when a request does not bind to the expected shape."""


class _OrderUseCase(Protocol):
    def create_order(self, order: CreateOrder) -> UUID: ...

    def get_menu_items(self) -> list[MenuItem]: ...

    def get_order_by_id(self, order_id: UUID) -> Order: ...


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "null"


def _lookup(obj: dict, key: str) -> Any:
    if key in obj:
        return obj[key]
    folded = key.casefold()
    for name, value in obj.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


def _required(path: str, name: str) -> str:
    return f"Key: '{path}' Error:Field validation for '{name}' failed on the 'required' tag"


def _decode_int64(value: Any, field: str) -> int:
    if value is None:
        return 0
    if (
        isinstance(value, bool)
        or not isinstance(value, int)
        or not _INT64_MIN <= value <= _INT64_MAX
    ):
        raise RequestError(
            f"json: cannot unmarshal {_json_kind(value)} into field {field} of type int64"
        )
    return value


def _decode_item(raw: Any) -> OrderItem:
    if raw is None:
        return OrderItem(id=0, quantity=0)
    if not isinstance(raw, dict):
        raise RequestError(
            f"json: cannot unmarshal {_json_kind(raw)} into field CreateOrder.items "
            "of type OrderItem"
        )
    return OrderItem(
        id=_decode_int64(_lookup(raw, "id"), "CreateOrder.items.id"),
        quantity=_decode_int64(_lookup(raw, "quantity"), "CreateOrder.items.quantity"),
    )


def parse_create_order(payload: Any) -> CreateOrder:
    """Bind a decoded JSON body to a CreateOrder, enforcing required fields."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise RequestError(
            f"json: cannot unmarshal {_json_kind(payload)} into value of type CreateOrder"
        )
    raw_items = _lookup(payload, "items")
    if raw_items is not None and not isinstance(raw_items, list):
        raise RequestError(
            f"json: cannot unmarshal {_json_kind(raw_items)} into field CreateOrder.items "
            "of type []OrderItem"
        )
    items = None if raw_items is None else [_decode_item(raw) for raw in raw_items]

    problems: list[str] = []
    if items is None:
        problems.append(_required("CreateOrder.Items", "Items"))
    else:
        for index, item in enumerate(items):
            if item.id == 0:
                problems.append(_required(f"CreateOrder.Items[{index}].ID", "ID"))
            if item.quantity == 0:
                problems.append(_required(f"CreateOrder.Items[{index}].Quantity", "Quantity"))
    if problems:
        raise RequestError("\n".join(problems))
    return CreateOrder(items=items or [])


def _parse_uuid(raw: str) -> UUID:
    length = len(raw)
    if length == 41 and raw[:9].lower() == "urn:uuid:":
        text = raw[9:]
    elif length == 38 and raw.startswith("{") and raw.endswith("}"):
        text = raw[1:-1]
    elif length in (32, 36):
        text = raw
    elif length in (38, 41):
        raise RequestError("invalid UUID format")
    else:
        raise RequestError(f"invalid UUID length: {length}")
    if len(text) == 36 and any(text[pos] != "-" for pos in (8, 13, 18, 23)):
        raise RequestError("invalid UUID format")
    digits = text.replace("-", "") if len(text) == 36 else text
    if len(digits) != 32 or not set(digits) <= _HEX:
        raise RequestError("invalid UUID format")
    return UUID(hex=digits)


def map_order_error(error: BaseException) -> tuple[int, dict]:
    """Return the HTTP status and body that report ``error``."""
    if isinstance(error, EntityNotFoundError):
        status = 404
    elif isinstance(error, ItemsMustBeMoreThanZeroError):
        status = 400
    else:
        status = 500
    _log.error("%s", error)
    return status, {"error": str(error)}


def _decode_body() -> Any:
    raw = request.get_data()
    if not raw.strip():
        raise RequestError("EOF")
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise RequestError(str(exc)) from exc


def _error(status: int, message: str):
    return jsonify({"error": message}), status


def _respond(status: int, data: Any):
    return jsonify({"status": status, "data": data}), status


def _failure(error: Exception):
    status, body = map_order_error(error)
    return jsonify(body), status


def create_order_blueprint(use_case: _OrderUseCase) -> Blueprint:
    """Build the blueprint serving order creation, lookup and the menu."""
    blueprint = Blueprint("orders", __name__)

    @blueprint.post("")
    def create_order():
        try:
            order = parse_create_order(_decode_body())
        except RequestError as exc:
            return _error(400, str(exc))
        try:
            order_id = use_case.create_order(order)
        except Exception as exc:
            return _failure(exc)
        return _respond(201, str(order_id))

    @blueprint.get("/menu")
    def get_menu_items():
        try:
            items = use_case.get_menu_items()
        except Exception as exc:
            return _failure(exc)
        return _respond(200, [item.to_dict() for item in items])

    @blueprint.get("/<order_id>")
    def get_order_by_id(order_id: str):
        try:
            parsed = _parse_uuid(order_id)
        except RequestError as exc:
            return _error(400, str(exc))
        try:
            order = use_case.get_order_by_id(parsed)
        except Exception as exc:
            return _failure(exc)
        return _respond(200, order.to_dict())

    return blueprint


class OrderModule:
    """The ordering domain wired to a database engine."""

    def __init__(self, engine: Engine) -> None:
        use_case = OrderUseCase(OrderStorage(engine), TransactionManager(engine))
        self.blueprint = create_order_blueprint(use_case)

    def register_routes(self, app: Flask, prefix: str) -> None:
        """Mount the order endpoints under ``<prefix>/v1/orders``."""
        app.register_blueprint(self.blueprint, url_prefix=f"{prefix.rstrip('/')}/v1/orders")