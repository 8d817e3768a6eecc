"""Read-only, account-scoped queries over properties and their ledger rows."""
import uuid
from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.models.ledger import Expense, Income
from taxreports.models.property import Property


def year_range(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


async def get_property(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_id: uuid.UUID,
) -> Property | None:
    result = await db.execute(
        select(Property).where(
            Property.id == property_id,
            Property.account_id == account_id,
            Property.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def list_owned_properties(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_ids: Sequence[uuid.UUID],
) -> list[Property]:
    """The subset of ``property_ids`` that exist and belong to the account."""
    if not property_ids:
        return []
    result = await db.execute(
        select(Property).where(
            Property.id.in_(list(property_ids)),
            Property.account_id == account_id,
            Property.deleted_at.is_(None),
        )
    )
    return list(result.scalars().all())


async def list_expenses(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_id: uuid.UUID,
    start: date,
    end: date,
) -> list[Expense]:
    result = await db.execute(
        select(Expense)
        .where(
            Expense.account_id == account_id,
            Expense.property_id == property_id,
            Expense.expense_date >= start,
            Expense.expense_date <= end,
            Expense.deleted_at.is_(None),
        )
        .order_by(Expense.expense_date, Expense.id)
    )
    return list(result.scalars().all())


async def list_income(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_id: uuid.UUID,
    start: date,
    end: date,
) -> list[Income]:
    result = await db.execute(
        select(Income)
        .where(
            Income.account_id == account_id,
            Income.property_id == property_id,
            Income.income_date >= start,
            Income.income_date <= end,
            Income.deleted_at.is_(None),
        )
        .order_by(Income.income_date, Income.id)
    )
    return list(result.scalars().all())
