"""Inventory reservation saga: take stock for every line or for none.

Flow:
    PENDING → RESERVING → COMMITTED
    RESERVING → ROLLING_BACK → FAILED        (a line could not be reserved)
    COMMITTED → ROLLING_BACK → FAILED        (the order could not be saved)

Each successful decrement is recorded as an applied reservation; rolling
back increments every one of them in reverse order. ``current_line`` is the
index of the line being reserved, RESERVING(i), and stays on the short line
when reservation fails. Progress is tracked in ``state``, and a short line
is a normal outcome (``reserve_all`` returns False), not an exception.

Rollback is best-effort and in-process only: a crash between a decrement and
its compensation leaves stock reduced.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from checkout.inventory.stock.port import StockStore

logger = structlog.get_logger(__name__)


class SagaState(Enum):
    PENDING = "pending"
    RESERVING = "reserving"
    COMMITTED = "committed"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"


@dataclass(frozen=True)
class Reservation:
    product_id: str
    variant_id: str | None
    quantity: int


class ReservationSaga:
    def __init__(self, stock_store: StockStore):
        self.stock_store = stock_store
        self.state = SagaState.PENDING
        self.applied: list[Reservation] = []
        self.current_line: int | None = None
        self.failed_line: Reservation | None = None
        self.compensation_failures: list[Reservation] = []

    def reserve_all(self, lines) -> bool:
        """Reserve ``lines`` (Reservation-shaped) one by one, in order.

        On the first shortfall everything already taken is given back and
        the saga ends FAILED.
        """
        if self.state is not SagaState.PENDING:
            raise RuntimeError(f"Saga already {self.state.value}")

        self.state = SagaState.RESERVING
        for index, line in enumerate(lines):
            self.current_line = index
            reservation = Reservation(
                product_id=str(line.product_id),
                variant_id=line.variant_id or None,
                quantity=int(line.quantity),
            )
            taken = self.stock_store.decrement_if_available(
                reservation.product_id, reservation.variant_id, reservation.quantity
            )
            if not taken:
                self.failed_line = reservation
                logger.info(
                    "reservation_conflict",
                    product_id=reservation.product_id,
                    variant_id=reservation.variant_id,
                    quantity=reservation.quantity,
                    applied=len(self.applied),
                    line_index=index,
                )
                self.rollback()
                return False
            self.applied.append(reservation)

        self.state = SagaState.COMMITTED
        return True

    def rollback(self) -> None:
        """Undo every applied reservation. Safe to call more than once."""
        if self.state is SagaState.FAILED:
            return

        self.state = SagaState.ROLLING_BACK
        while self.applied:
            reservation = self.applied.pop()
            try:
                self.stock_store.increment(reservation.product_id, reservation.variant_id, reservation.quantity)
            except Exception:
                self.compensation_failures.append(reservation)
                logger.exception(
                    "reservation_compensation_failed",
                    product_id=reservation.product_id,
                    variant_id=reservation.variant_id,
                    quantity=reservation.quantity,
                )

        self.state = SagaState.FAILED
