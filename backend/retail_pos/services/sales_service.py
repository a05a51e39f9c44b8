"""
Sales Service - all-or-nothing sale recording

One call to record_sale() is one unit of work:

    STARTED -> RECONCILED -> STOCK_CHECKED -> PERSISTED -> COMMITTED

Any failure on the way ends in ROLLED_BACK with nothing written: no sale
header, no items, no payments, no stock decrement. Failures come back as
values on SaleOutcome rather than exceptions, and a non-success outcome is
always preceded by a rollback of the injected session.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InsufficientStock, NotFound, PosError, StorageFailure
from ..models import Sale, SaleItem, SalePayment
from ..money import to_cents
from ..time_utils import utcnow
from ..validation import SaleRequest
from . import inventory_service
from .concurrency import begin_write, run_with_retry
from .payment_service import expected_total, reconcile


class SaleState(str, enum.Enum):
    STARTED = "STARTED"
    RECONCILED = "RECONCILED"
    STOCK_CHECKED = "STOCK_CHECKED"
    PERSISTED = "PERSISTED"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


@dataclass
class SaleOutcome:
    """Result of one sale attempt. Exactly one of sale_id / error is set."""
    state: SaleState
    reached: SaleState
    sale_id: int | None = None
    error: PosError | None = None

    @property
    def ok(self) -> bool:
        return self.state is SaleState.COMMITTED

    def to_dict(self) -> dict:
        if self.ok:
            return {"message": "Sale recorded successfully", "saleId": self.sale_id}
        return self.error.to_dict()


class _Progress:
    def __init__(self):
        self.state = SaleState.STARTED

    def advance(self, state: SaleState) -> None:
        self.state = state

    def committed(self, sale_id: int) -> SaleOutcome:
        return SaleOutcome(state=SaleState.COMMITTED, reached=SaleState.COMMITTED, sale_id=sale_id)

    def rolled_back(self, error: PosError) -> SaleOutcome:
        return SaleOutcome(state=SaleState.ROLLED_BACK, reached=self.state, error=error)


def _check_stock(session, request: SaleRequest) -> InsufficientStock | None:
    reserved: dict[int, int] = {}
    for item in request.items:
        shortage = inventory_service.check_available(
            session,
            item.variant_id,
            item.quantity,
            reserved=reserved.get(item.variant_id, 0),
        )
        if shortage is not None:
            return shortage
        reserved[item.variant_id] = reserved.get(item.variant_id, 0) + item.quantity
    return None


def _persist(session, request: SaleRequest, total) -> Sale:
    sale = Sale(
        total_cents=to_cents(total),
        discount_cents=to_cents(request.discount),
        created_at=utcnow(),
    )
    session.add(sale)
    session.flush()

    for payment in request.payments:
        session.add(SalePayment(
            sale_id=sale.id,
            method=payment.method,
            amount_cents=to_cents(payment.amount),
        ))

    for item in request.items:
        inventory_service.decrement(session, item.variant_id, item.quantity)
        session.add(SaleItem(
            sale_id=sale.id,
            variant_id=item.variant_id,
            quantity=item.quantity,
            price_at_sale_cents=to_cents(item.price_at_sale),
        ))

    session.flush()
    return sale


def record_sale(
    request: SaleRequest,
    *,
    session,
    attempts: int = 3,
    backoff_base: float = 0.1,
) -> SaleOutcome:
    """
    Record a sale atomically against the given storage session.

    The declared total (if any) is checked, never trusted: when omitted it
    is derived from items and discount, and either way it must reconcile
    with both the payments and the items before stock is touched.
    """
    progress = _Progress()
    total = request.total if request.total is not None else expected_total(request.items, request.discount)

    mismatch = reconcile(
        total=total,
        discount=request.discount,
        items=request.items,
        payments=request.payments,
    )
    if mismatch is not None:
        session.rollback()
        current_app.logger.warning("Sale rejected: %s mismatch", mismatch.check)
        return progress.rolled_back(mismatch.to_error())
    progress.advance(SaleState.RECONCILED)

    def _attempt() -> SaleOutcome:
        progress.advance(SaleState.RECONCILED)
        begin_write(session)

        shortage = _check_stock(session, request)
        if shortage is not None:
            session.rollback()
            return progress.rolled_back(shortage)
        progress.advance(SaleState.STOCK_CHECKED)

        sale = _persist(session, request, total)
        progress.advance(SaleState.PERSISTED)

        sale_id = sale.id
        session.commit()
        progress.advance(SaleState.COMMITTED)
        return progress.committed(sale_id)

    try:
        outcome = run_with_retry(
            _attempt,
            session=session,
            attempts=attempts,
            backoff_base=backoff_base,
        )
    except SQLAlchemyError as exc:
        session.rollback()
        current_app.logger.warning("Sale rolled back at %s: %s", progress.state.value, exc)
        return progress.rolled_back(StorageFailure(
            "Sale could not be committed, please retry",
            details={"stage": progress.state.value},
        ))
    except BaseException:
        session.rollback()
        raise

    if outcome.ok:
        current_app.logger.info("Sale %s committed", outcome.sale_id)
    else:
        current_app.logger.warning("Sale rejected: %s", outcome.error.message)
    return outcome


def get_sale(session, sale_id: int) -> Sale:
    sale = session.get(Sale, sale_id)
    if sale is None:
        raise NotFound("Sale not found", details={"saleId": sale_id})
    return sale
