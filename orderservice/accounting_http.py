"""HTTP endpoints of the accounting domain."""

from __future__ import annotations

import json
import logging
import string
from typing import Any, Protocol
from uuid import UUID

from flask import Blueprint, Flask, jsonify, request
from sqlalchemy.engine import Engine

from orderservice.accounting_models import (
    CannotChangeOrderInThisStatusError,
    CannotMakePaymentError,
    EntityNotFoundError,
    MakePayment,
)
from orderservice.accounting_storage import AccountingStorage
from orderservice.accounting_usecase import PaymentUseCase
from orderservice.order_http import RequestError
from orderservice.payment_gateway import PaymentGatewayClient
from orderservice.transactions import TransactionManager

_log = logging.getLogger(__name__)

_NIL = UUID(int=0)
_HEX = frozenset(string.hexdigits)


class _PaymentUseCase(Protocol):
    def make_payment(self, payment: MakePayment) -> None: ...


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string" if isinstance(value, str) else "null"


def _lookup(obj: dict, key: str) -> Any:
    if key in obj:
        return obj[key]
    folded = key.casefold()
    return next(
        (v for k, v in obj.items() if isinstance(k, str) and k.casefold() == folded), None
    )


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


def parse_make_payment(payload: Any) -> MakePayment:
    """Bind a decoded JSON body to a MakePayment; ``order_id`` is required."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise RequestError(
            f"json: cannot unmarshal {_json_kind(payload)} into value of type MakePaymentRequest"
        )
    raw = _lookup(payload, "order_id")
    order_id = _NIL
    if raw is not None:
        if not isinstance(raw, str):
            raise RequestError(
                f"json: cannot unmarshal {_json_kind(raw)} into field "
                "MakePaymentRequest.order_id of type UUID"
            )
        order_id = _parse_uuid(raw)
    if order_id == _NIL:
        raise RequestError(
            "Key: 'MakePaymentRequest.OrderID' Error:Field validation for 'OrderID' "
            "failed on the 'required' tag"
        )
    return MakePayment(order_id=order_id)


def map_payment_error(error: BaseException) -> tuple[int, dict]:
    """Return the HTTP status and body that report ``error``."""
    if isinstance(error, EntityNotFoundError):
        status = 404
    elif isinstance(error, (CannotMakePaymentError, CannotChangeOrderInThisStatusError)):
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


def create_payment_blueprint(use_case: _PaymentUseCase) -> Blueprint:
    """Build the blueprint that accepts payments for orders."""
    blueprint = Blueprint("payments", __name__)

    @blueprint.post("")
    def make_payment():
        try:
            payment = parse_make_payment(_decode_body())
        except RequestError as exc:
            return jsonify({"error": str(exc)}), 400
        try:
            use_case.make_payment(payment)
        except Exception as exc:
            status, body = map_payment_error(exc)
            return jsonify(body), status
        return jsonify({"status": 201}), 201

    return blueprint


class AccountingModule:
    """The accounting domain wired to a database engine and a payment gateway."""

    def __init__(self, engine: Engine, gateway: Any = None) -> None:
        use_case = PaymentUseCase(
            AccountingStorage(engine),
            TransactionManager(engine),
            gateway if gateway is not None else PaymentGatewayClient(),
        )
        self.blueprint = create_payment_blueprint(use_case)

    def register_routes(self, app: Flask, prefix: str) -> None:
        """Mount the payment endpoint under ``<prefix>/v1/payments``."""
        app.register_blueprint(self.blueprint, url_prefix=f"{prefix.rstrip('/')}/v1/payments")