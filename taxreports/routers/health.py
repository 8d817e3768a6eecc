from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.core.database import get_db
from taxreports.models.ledger import ExpenseCategory
from taxreports.services.categories import SCHEDULE_E_CATEGORIES

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/db")
async def health_db(db: AsyncSession = Depends(get_db)):
    """Database reachability plus whether the Schedule E categories are seeded."""
    result = await db.execute(select(func.count()).select_from(ExpenseCategory))
    seeded = result.scalar_one()
    return {
        "status": "ok" if seeded == len(SCHEDULE_E_CATEGORIES) else "degraded",
        "database": "connected",
        "expense_categories": seeded,
    }
