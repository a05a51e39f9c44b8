# Overview: Read-only aggregation over committed sales for history, reports and dashboards.

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..errors import ValidationFailed
from ..models import Sale, SaleItem, SalePayment, Variant
from ..money import format_cents
from ..time_utils import day_bounds, parse_iso_date


def _with_lines(query):
    return query.options(
        selectinload(Sale.items).selectinload(SaleItem.variant).selectinload(Variant.product),
        selectinload(Sale.payments),
    )


def list_sales(session, *, limit: int | None = None) -> list[Sale]:
    """Committed sales with items (variant + product) and payments, newest first."""
    if limit is not None and limit < 1:
        raise ValidationFailed("limit must be >= 1", details={"check": "schema", "field": "limit"})
    query = _with_lines(session.query(Sale)).order_by(Sale.created_at.desc(), Sale.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def _parse_period(start: str | None, end: str | None):
    if not start or not end:
        raise ValidationFailed(
            "Both start and end dates are required (YYYY-MM-DD)",
            details={"check": "schema", "field": "start/end"},
        )
    try:
        start_date = parse_iso_date(start)
        end_date = parse_iso_date(end)
    except ValueError:
        raise ValidationFailed(
            "start and end must be dates in YYYY-MM-DD format",
            details={"check": "schema", "field": "start/end"},
        )
    if start_date > end_date:
        raise ValidationFailed(
            "start must not be after end",
            details={"check": "schema", "field": "start/end"},
        )
    return start_date, end_date


def sales_report(session, *, start: str | None, end: str | None) -> dict:
    """
    Revenue for an inclusive date range.

    The range covers start 00:00:00.000 through end 23:59:59.999 (UTC) on
    Sale.created_at. Revenue is broken down per payment method.
    """
    start_date, end_date = _parse_period(start, end)
    start_dt, end_dt = day_bounds(start_date, end_date)

    sales = _with_lines(session.query(Sale)).filter(
        Sale.created_at.between(start_dt, end_dt),
    ).order_by(Sale.created_at.asc(), Sale.id.asc()).all()

    rows = session.query(
        SalePayment.method,
        func.count(SalePayment.id).label("payment_count"),
        func.coalesce(func.sum(SalePayment.amount_cents), 0).label("amount_cents"),
    ).join(Sale, Sale.id == SalePayment.sale_id).filter(
        Sale.created_at.between(start_dt, end_dt),
    ).group_by(SalePayment.method).order_by(SalePayment.method.asc()).all()

    total_cents = sum(sale.total_cents for sale in sales)

    return {
        "period": {"start": start_date.isoformat(), "end": end_date.isoformat()},
        "salesCount": len(sales),
        "totalRevenue": format_cents(total_cents),
        "byPaymentMethod": [
            {
                "method": row.method,
                "count": int(row.payment_count or 0),
                "total": format_cents(int(row.amount_cents or 0)),
            }
            for row in rows
        ],
        "sales": [sale.to_dict() for sale in sales],
    }


def dashboard_stats(session, *, currency: str) -> dict:
    row = session.query(
        func.count(Sale.id).label("sales_count"),
        func.coalesce(func.sum(Sale.total_cents), 0).label("revenue_cents"),
    ).one()
    return {
        "totalRevenue": format_cents(int(row.revenue_cents or 0)),
        "totalSalesCount": int(row.sales_count or 0),
        "currency": currency,
    }
