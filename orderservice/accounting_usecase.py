"""Accounting use case: paying for orders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, TypeVar
from uuid import UUID

from orderservice.accounting_models import (
    CannotChangeOrderInThisStatusError,
    CannotMakePaymentError,
    ChangeOrderStatus,
    MakePayment,
    Order,
    OrderStatus,
)

_T = TypeVar("_T")


class _TxManager(Protocol):
    def perform_transaction(self, fn: Callable[[], _T]) -> _T: ...


class _Storage(Protocol):
    def get_order_by_id(self, order_id: UUID) -> Order: ...

    def change_order_status(self, change: ChangeOrderStatus) -> None: ...


class _PaymentGateway(Protocol):
    def make_payment(self, order_id: UUID) -> None: ...


class PaymentUseCase:
    """Charges for created orders and marks them paid."""

    def __init__(
        self, storage: _Storage, tx_manager: _TxManager, payment_gateway: _PaymentGateway
    ) -> None:
        self._storage = storage
        self._tx_manager = tx_manager
        self._payment_gateway = payment_gateway

    def make_payment(self, payment: MakePayment) -> None:
        """Pay for the order and set its status to paid, all in one transaction."""

        def pay() -> None:
            order = self._storage.get_order_by_id(payment.order_id)
            if order.status != OrderStatus.CREATED:
                raise CannotChangeOrderInThisStatusError()
            try:
                self._payment_gateway.make_payment(order.id)
            except Exception as exc:
                raise CannotMakePaymentError(f"cannot make payment: {exc}") from exc
            self._storage.change_order_status(
                ChangeOrderStatus(id=payment.order_id, new_status=OrderStatus.PAID.value)
            )

        self._tx_manager.perform_transaction(pay)