"""
Schedule E aggregation for one property and tax year.

Expenses are grouped by category and summed with Decimal arithmetic, income is
totalled, and the result is the report model consumed by the renderer.
"""
import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.core.exceptions import AggregationError, NotFoundError
from taxreports.schemas.report import ScheduleELineItem, ScheduleEReport
from taxreports.services import ledger
from taxreports.services.categories import get_category

if TYPE_CHECKING:
    from taxreports.services.pdf_renderer import ReportRenderer

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_address(
    street: str | None,
    city: str | None,
    state: str | None,
    zip_code: str | None,
) -> str:
    """'12 Oak St, Austin, TX, 78701'. Blank parts are skipped."""
    parts = []
    if street and street.strip():
        parts.append(street.strip())
    city_state_zip = [p.strip() for p in (city, state, zip_code) if p and p.strip()]
    if city_state_zip:
        parts.append(", ".join(city_state_zip))
    return ", ".join(parts)


def build_schedule_e_report(
    property_id: uuid.UUID,
    property_name: str,
    property_address: str,
    tax_year: int,
    expenses: Iterable,
    income: Iterable,
    generated_at: datetime | None = None,
) -> ScheduleEReport:
    """
    Pure aggregation step. ``expenses`` need ``category_id`` and ``amount``;
    ``income`` rows need ``amount``. Rows are assumed already filtered to the
    property, account and year.
    """
    by_category: dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        by_category[expense.category_id] += _money(expense.amount)

    line_items: list[tuple[int, ScheduleELineItem]] = []
    for category_id, amount in by_category.items():
        category = get_category(category_id)
        if category is None:
            raise AggregationError(
                f"Expense category {category_id} is not a Schedule E category"
            )
        line_items.append((
            category.sort_order,
            ScheduleELineItem(
                line_number=category.line_number,
                category_name=category.name,
                schedule_line=category.schedule_line,
                amount=amount,
            ),
        ))
    line_items.sort(key=lambda pair: pair[0])

    total_expenses = sum((item.amount for _, item in line_items), ZERO)
    total_income = sum((_money(row.amount) for row in income), ZERO)

    return ScheduleEReport(
        property_id=property_id,
        property_name=property_name,
        property_address=property_address,
        tax_year=tax_year,
        total_income=total_income,
        expenses_by_category=[item for _, item in line_items],
        total_expenses=total_expenses,
        net_income=total_income - total_expenses,
        generated_at=generated_at or datetime.now(timezone.utc),
    )


async def aggregate_schedule_e(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_id: uuid.UUID,
    year: int,
) -> ScheduleEReport:
    prop = await ledger.get_property(db, account_id, property_id)
    if prop is None:
        raise NotFoundError("Property", property_id)

    start, end = ledger.year_range(year)
    expenses = await ledger.list_expenses(db, account_id, property_id, start, end)
    income = await ledger.list_income(db, account_id, property_id, start, end)

    report = build_schedule_e_report(
        property_id=prop.id,
        property_name=prop.name,
        property_address=format_address(prop.street, prop.city, prop.state, prop.zip_code),
        tax_year=year,
        expenses=expenses,
        income=income,
    )
    logger.debug(
        "Aggregated Schedule E for property %s, year %s: %d expense rows, %d income rows",
        property_id, year, len(expenses), len(income),
    )
    return report


async def render_report(renderer: "ReportRenderer", report: ScheduleEReport) -> bytes:
    # PDF layout is CPU bound; keep it off the event loop
    return await asyncio.to_thread(renderer.render, report)


async def generate_report_pdf(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_id: uuid.UUID,
    year: int,
    renderer: "ReportRenderer",
) -> tuple[ScheduleEReport, bytes]:
    """Aggregate then render. Errors propagate; persisting the result is up to the caller."""
    report = await aggregate_schedule_e(db, account_id, property_id, year)
    pdf_bytes = await render_report(renderer, report)
    return report, pdf_bytes
