"""Client for the external payment gateway."""

from __future__ import annotations

import random
from typing import Protocol
from uuid import UUID


class _RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


class PaymentDeclinedError(Exception):
    """Raised when the gateway refuses a payment."""


class PaymentGatewayClient:
    """Payment gateway that declines roughly one payment in four."""

    timeout = 10.0

    def __init__(self, rng: _RandomSource | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def make_payment(self, order_id: UUID) -> None:
        """Charge for ``order_id``; raise PaymentDeclinedError if refused."""
        if self._rng.randrange(4) == 0:
            raise PaymentDeclinedError("not enough money on balance")