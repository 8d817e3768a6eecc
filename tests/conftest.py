"""Shared fixtures: a throwaway SQLite database per test, ledger builders, fake collaborators."""
import os

# Set test environment variables before importing settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("API_SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("API_LOG_LEVEL", "warning")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from taxreports.core.database import Base, utcnow  # noqa: E402
from taxreports.core.exceptions import RenderError, StorageError  # noqa: E402
from taxreports.models import Account, Expense, Income, Property  # noqa: E402
from taxreports.schemas.report import ScheduleEReport  # noqa: E402
from taxreports.services.categories import category_by_name, seed_categories  # noqa: E402


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reports.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def empty_db(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def db(empty_db):
    await seed_categories(empty_db)
    return empty_db


class LedgerBuilder:
    """Adds accounts, properties and ledger rows to the test session."""

    def __init__(self, db):
        self.db = db

    async def _add(self, obj):
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def account(self, name: str = "Test Account") -> Account:
        return await self._add(Account(name=name))

    async def property(
        self,
        account: Account,
        name: str = "Test Property",
        street: str | None = "123 Main St",
        city: str | None = "Austin",
        state: str | None = "TX",
        zip_code: str | None = "78701",
        deleted: bool = False,
    ) -> Property:
        return await self._add(Property(
            account_id=account.id,
            name=name,
            street=street,
            city=city,
            state=state,
            zip_code=zip_code,
            deleted_at=utcnow() if deleted else None,
        ))

    async def expense(
        self,
        prop: Property,
        category: str,
        amount: str,
        on: date,
        deleted: bool = False,
        account_id=None,
    ) -> Expense:
        return await self._add(Expense(
            account_id=account_id or prop.account_id,
            property_id=prop.id,
            category_id=category_by_name(category).id,
            amount=Decimal(amount),
            expense_date=on,
            deleted_at=utcnow() if deleted else None,
        ))

    async def income(
        self,
        prop: Property,
        amount: str,
        on: date,
        deleted: bool = False,
    ) -> Income:
        return await self._add(Income(
            account_id=prop.account_id,
            property_id=prop.id,
            amount=Decimal(amount),
            income_date=on,
            deleted_at=utcnow() if deleted else None,
        ))


@pytest.fixture
def ledger(db):
    return LedgerBuilder(db)


class FakeStorage:
    """In-memory report storage with switchable failures."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_put = False
        self.fail_get = False
        self.fail_delete = False

    def put(self, storage_key: str, content: bytes) -> None:
        if self.fail_put:
            raise StorageError("Failed to save report: storage unavailable")
        self.blobs[storage_key] = content

    def get(self, storage_key: str) -> bytes:
        if self.fail_get:
            raise StorageError("Failed to retrieve report: storage unavailable")
        if storage_key not in self.blobs:
            raise StorageError(f"Report not found: {storage_key}")
        return self.blobs[storage_key]

    def delete(self, storage_key: str) -> None:
        self.deleted.append(storage_key)
        if self.fail_delete:
            raise StorageError("Failed to delete report: storage unavailable")
        self.blobs.pop(storage_key, None)


class FakeRenderer:
    """Returns small fake PDFs; raises RenderError for the property names in ``fail_for``."""

    def __init__(self, fail_for: tuple[str, ...] = ()):
        self.fail_for = set(fail_for)
        self.rendered: list[ScheduleEReport] = []

    def render(self, report: ScheduleEReport) -> bytes:
        if report.property_name in self.fail_for:
            raise RenderError(f"Failed to render Schedule E report: {report.property_name}")
        self.rendered.append(report)
        return b"%PDF-1.4 fake " + str(report.property_id).encode()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def renderer():
    return FakeRenderer()
