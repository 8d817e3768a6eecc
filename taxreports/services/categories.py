"""
Schedule E expense category taxonomy.

The 15 categories are fixed reference data: built once at import, read-only
afterwards, and safe to share between concurrent requests. The
``expense_categories`` table mirrors these rows so expenses can reference them
by foreign key; ``seed_categories`` keeps the two in sync.
"""
import logging
import re
import uuid
from dataclasses import dataclass
from types import MappingProxyType

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.models.ledger import ExpenseCategory

logger = logging.getLogger(__name__)

_LINE_NUMBER_RE = re.compile(r"\d+")


def parse_line_number(schedule_line: str | None) -> int | None:
    """'Line 14' -> 14. Also accepts '14' and 'Line  5'. None when no number is present."""
    if not schedule_line:
        return None
    match = _LINE_NUMBER_RE.search(schedule_line)
    return int(match.group()) if match else None


@dataclass(frozen=True)
class CategoryDefinition:
    id: uuid.UUID
    name: str
    schedule_line: str
    sort_order: int

    @property
    def line_number(self) -> int | None:
        return parse_line_number(self.schedule_line)


def _category_id(sort_order: int) -> uuid.UUID:
    return uuid.UUID(f"11111111-1111-1111-1111-1111111111{sort_order:02d}")


_SEED: tuple[tuple[int, str, str], ...] = (
    (1, "Advertising", "Line 5"),
    (2, "Auto and Travel", "Line 6"),
    (3, "Cleaning and Maintenance", "Line 7"),
    (4, "Commissions", "Line 8"),
    (5, "Insurance", "Line 9"),
    (6, "Legal and Professional Fees", "Line 10"),
    (7, "Management Fees", "Line 11"),
    (8, "Mortgage Interest", "Line 12"),
    (9, "Other Interest", "Line 13"),
    (10, "Repairs", "Line 14"),
    (11, "Supplies", "Line 15"),
    (12, "Taxes", "Line 16"),
    (13, "Utilities", "Line 17"),
    (14, "Depreciation", "Line 18"),
    (15, "Other", "Line 19"),
)

SCHEDULE_E_CATEGORIES: tuple[CategoryDefinition, ...] = tuple(
    CategoryDefinition(
        id=_category_id(sort_order),
        name=name,
        schedule_line=line,
        sort_order=sort_order,
    )
    for sort_order, name, line in _SEED
)

CATEGORIES_BY_ID = MappingProxyType({c.id: c for c in SCHEDULE_E_CATEGORIES})
CATEGORIES_BY_SORT_ORDER = MappingProxyType({c.sort_order: c for c in SCHEDULE_E_CATEGORIES})
CATEGORIES_BY_NAME = MappingProxyType({c.name: c for c in SCHEDULE_E_CATEGORIES})


def get_category(category_id: uuid.UUID) -> CategoryDefinition | None:
    return CATEGORIES_BY_ID.get(category_id)


def category_by_name(name: str) -> CategoryDefinition:
    """Lookup by display name. Raises KeyError for names outside the taxonomy."""
    return CATEGORIES_BY_NAME[name]


async def seed_categories(db: AsyncSession) -> int:
    """Insert any taxonomy rows missing from expense_categories. Returns rows added."""
    result = await db.execute(select(ExpenseCategory.id))
    existing = set(result.scalars().all())
    missing = [c for c in SCHEDULE_E_CATEGORIES if c.id not in existing]
    for c in missing:
        db.add(ExpenseCategory(
            id=c.id,
            name=c.name,
            schedule_line=c.schedule_line,
            sort_order=c.sort_order,
        ))
    if missing:
        await db.flush()
        logger.info("Seeded %d Schedule E expense categories", len(missing))
    return len(missing)
