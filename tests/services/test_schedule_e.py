"""
Tests for Schedule E aggregation: the pure grouping step and the database-backed
aggregate for one property and year.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from taxreports.core.exceptions import AggregationError, NotFoundError, RenderError
from taxreports.services.categories import category_by_name
from taxreports.services.schedule_e import (
    aggregate_schedule_e,
    build_schedule_e_report,
    format_address,
    generate_report_pdf,
)

from tests.conftest import FakeRenderer


def _expense(category: str, amount: str):
    return SimpleNamespace(category_id=category_by_name(category).id, amount=Decimal(amount))


def _income(amount: str):
    return SimpleNamespace(amount=Decimal(amount))


def _build(expenses=(), income=()):
    return build_schedule_e_report(
        property_id=uuid.uuid4(),
        property_name="Oak Duplex",
        property_address="12 Oak St, Austin, TX, 78701",
        tax_year=2024,
        expenses=expenses,
        income=income,
        generated_at=datetime(2025, 1, 15, tzinfo=timezone.utc),
    )


# ── format_address ───────────────────────────────────────────────────────────

class TestFormatAddress:
    def test_full_address(self):
        assert format_address("12 Oak St", "Austin", "TX", "78701") == "12 Oak St, Austin, TX, 78701"

    def test_missing_street(self):
        assert format_address(None, "Austin", "TX", "78701") == "Austin, TX, 78701"

    def test_blank_parts_skipped(self):
        assert format_address("12 Oak St", "  ", "TX", "") == "12 Oak St, TX"

    def test_all_blank(self):
        assert format_address(None, None, None, None) == ""


# ── build_schedule_e_report ──────────────────────────────────────────────────

class TestBuildReport:
    def test_groups_and_sums_by_category(self):
        report = _build(
            expenses=[_expense("Repairs", "100.00"), _expense("Repairs", "50.00"), _expense("Insurance", "200.00")],
            income=[_income("1500.00"), _income("1500.00")],
        )
        assert report.total_expenses == Decimal("350.00")
        assert report.total_income == Decimal("3000.00")
        assert report.net_income == Decimal("2650.00")
        amounts = {item.category_name: item.amount for item in report.expenses_by_category}
        assert amounts == {"Repairs": Decimal("150.00"), "Insurance": Decimal("200.00")}

    def test_line_items_follow_schedule_order(self):
        report = _build(expenses=[
            _expense("Utilities", "10.00"),
            _expense("Advertising", "20.00"),
            _expense("Repairs", "30.00"),
        ])
        assert [i.line_number for i in report.expenses_by_category] == [5, 14, 17]
        assert [i.schedule_line for i in report.expenses_by_category] == ["Line 5", "Line 14", "Line 17"]

    def test_order_is_independent_of_input_order(self):
        rows = [_expense("Taxes", "1.00"), _expense("Insurance", "2.00"), _expense("Supplies", "3.00")]
        first = _build(expenses=rows)
        second = _build(expenses=list(reversed(rows)))
        assert first.expenses_by_category == second.expenses_by_category

    def test_each_category_appears_once(self):
        report = _build(expenses=[_expense("Repairs", "1.00")] * 5)
        assert len(report.expenses_by_category) == 1
        assert report.expenses_by_category[0].amount == Decimal("5.00")

    def test_exact_decimal_summation(self):
        report = _build(expenses=[_expense("Supplies", "0.10"), _expense("Supplies", "0.20")])
        assert report.total_expenses == Decimal("0.30")

    def test_no_rows(self):
        report = _build()
        assert report.total_income == Decimal("0")
        assert report.total_expenses == Decimal("0")
        assert report.net_income == Decimal("0")
        assert report.expenses_by_category == []
        assert report.has_data is False

    def test_negative_net_income_not_clamped(self):
        report = _build(expenses=[_expense("Repairs", "5000.00")], income=[_income("1000.00")])
        assert report.net_income == Decimal("-4000.00")
        assert report.has_data is True

    def test_unknown_category_raises(self):
        rogue = SimpleNamespace(category_id=uuid.uuid4(), amount=Decimal("10.00"))
        with pytest.raises(AggregationError):
            _build(expenses=[rogue])


# ── aggregate_schedule_e ─────────────────────────────────────────────────────

class TestAggregate:
    @pytest.mark.asyncio
    async def test_totals_for_year(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account, name="Oak Duplex", street="12 Oak St")
        await ledger.expense(prop, "Repairs", "100.00", date(2024, 3, 1))
        await ledger.expense(prop, "Repairs", "50.00", date(2024, 6, 1))
        await ledger.expense(prop, "Insurance", "200.00", date(2024, 1, 1))
        await ledger.income(prop, "1500.00", date(2024, 1, 31))
        await ledger.income(prop, "1500.00", date(2024, 12, 31))

        report = await aggregate_schedule_e(db, account.id, prop.id, 2024)

        assert report.property_id == prop.id
        assert report.property_name == "Oak Duplex"
        assert report.property_address == "12 Oak St, Austin, TX, 78701"
        assert report.tax_year == 2024
        assert report.total_expenses == Decimal("350.00")
        assert report.total_income == Decimal("3000.00")
        assert report.net_income == Decimal("2650.00")
        assert [(i.category_name, i.amount) for i in report.expenses_by_category] == [
            ("Insurance", Decimal("200.00")),
            ("Repairs", Decimal("150.00")),
        ]

    @pytest.mark.asyncio
    async def test_excludes_other_years(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account)
        await ledger.expense(prop, "Repairs", "100.00", date(2024, 1, 1))
        await ledger.expense(prop, "Repairs", "100.00", date(2023, 12, 31))
        await ledger.expense(prop, "Repairs", "100.00", date(2025, 1, 1))
        await ledger.income(prop, "900.00", date(2023, 12, 31))

        report = await aggregate_schedule_e(db, account.id, prop.id, 2024)

        assert report.total_expenses == Decimal("100.00")
        assert report.total_income == Decimal("0")

    @pytest.mark.asyncio
    async def test_excludes_soft_deleted_rows(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account)
        await ledger.expense(prop, "Repairs", "100.00", date(2024, 5, 1))
        await ledger.expense(prop, "Repairs", "999.00", date(2024, 5, 1), deleted=True)
        await ledger.income(prop, "500.00", date(2024, 5, 1), deleted=True)

        report = await aggregate_schedule_e(db, account.id, prop.id, 2024)

        assert report.total_expenses == Decimal("100.00")
        assert report.total_income == Decimal("0")

    @pytest.mark.asyncio
    async def test_property_without_rows(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account)

        report = await aggregate_schedule_e(db, account.id, prop.id, 2024)

        assert report.total_income == 0
        assert report.total_expenses == 0
        assert report.net_income == 0
        assert report.expenses_by_category == []
        assert report.has_data is False

    @pytest.mark.asyncio
    async def test_negative_net_income(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account)
        await ledger.expense(prop, "Mortgage Interest", "5000.00", date(2024, 7, 1))
        await ledger.income(prop, "1000.00", date(2024, 7, 1))

        report = await aggregate_schedule_e(db, account.id, prop.id, 2024)

        assert report.net_income == Decimal("-4000.00")

    @pytest.mark.asyncio
    async def test_missing_property_not_found(self, db, ledger):
        account = await ledger.account()
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as exc_info:
            await aggregate_schedule_e(db, account.id, missing, 2024)
        assert str(missing) in exc_info.value.message

    @pytest.mark.asyncio
    async def test_other_accounts_property_not_found(self, db, ledger):
        mine = await ledger.account("Mine")
        theirs = await ledger.account("Theirs")
        prop = await ledger.property(theirs)
        await ledger.expense(prop, "Repairs", "100.00", date(2024, 1, 1))

        with pytest.raises(NotFoundError):
            await aggregate_schedule_e(db, mine.id, prop.id, 2024)

    @pytest.mark.asyncio
    async def test_soft_deleted_property_not_found(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account, deleted=True)
        with pytest.raises(NotFoundError):
            await aggregate_schedule_e(db, account.id, prop.id, 2024)

    @pytest.mark.asyncio
    async def test_ignores_rows_tagged_with_another_account(self, db, ledger):
        mine = await ledger.account("Mine")
        theirs = await ledger.account("Theirs")
        prop = await ledger.property(mine)
        await ledger.expense(prop, "Repairs", "100.00", date(2024, 1, 1))
        await ledger.expense(prop, "Repairs", "700.00", date(2024, 1, 1), account_id=theirs.id)

        report = await aggregate_schedule_e(db, mine.id, prop.id, 2024)

        assert report.total_expenses == Decimal("100.00")


# ── generate_report_pdf ──────────────────────────────────────────────────────

class TestGenerateReportPdf:
    @pytest.mark.asyncio
    async def test_returns_report_and_bytes(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account, name="Elm House")
        await ledger.income(prop, "1200.00", date(2024, 2, 1))
        renderer = FakeRenderer()

        report, pdf_bytes = await generate_report_pdf(db, account.id, prop.id, 2024, renderer)

        assert report.total_income == Decimal("1200.00")
        assert pdf_bytes.startswith(b"%PDF")
        assert renderer.rendered == [report]

    @pytest.mark.asyncio
    async def test_render_failure_propagates(self, db, ledger):
        account = await ledger.account()
        prop = await ledger.property(account, name="Broken")
        with pytest.raises(RenderError):
            await generate_report_pdf(db, account.id, prop.id, 2024, FakeRenderer(fail_for=("Broken",)))

    @pytest.mark.asyncio
    async def test_not_found_propagates(self, db, ledger):
        account = await ledger.account()
        with pytest.raises(NotFoundError):
            await generate_report_pdf(db, account.id, uuid.uuid4(), 2024, FakeRenderer())
