"""
Batch Schedule E generation across several properties.

Each property is aggregated and rendered on its own; a failure is captured as
that property's result and the batch moves on. Items run one after another
because they share the request's AsyncSession, each inside its own savepoint.
"""
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.core.exceptions import ValidationError
from taxreports.services import ledger, schedule_e
from taxreports.services.pdf_renderer import ReportRenderer

logger = logging.getLogger(__name__)

UNKNOWN_PROPERTY = "Unknown Property"


@dataclass(frozen=True)
class PropertyReportResult:
    property_id: uuid.UUID
    property_name: str
    has_data: bool
    success: bool
    error_message: str | None = None
    pdf_bytes: bytes | None = None


@dataclass
class BatchScheduleEReport:
    year: int
    generated_at: datetime
    results: list[PropertyReportResult] = field(default_factory=list)

    def result_for(self, property_id: uuid.UUID) -> PropertyReportResult | None:
        for result in self.results:
            if result.property_id == property_id:
                return result
        return None

    @property
    def succeeded(self) -> list[PropertyReportResult]:
        return [r for r in self.results if r.success and r.pdf_bytes is not None]

    @property
    def failed(self) -> list[PropertyReportResult]:
        return [r for r in self.results if not r.success]


async def _generate_one(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_id: uuid.UUID,
    year: int,
    renderer: ReportRenderer,
    known_name: str | None,
) -> PropertyReportResult:
    try:
        # A failed statement rolls back to this savepoint, not the whole transaction
        async with db.begin_nested():
            report, pdf_bytes = await schedule_e.generate_report_pdf(
                db, account_id, property_id, year, renderer
            )
    except Exception as exc:
        logger.warning(
            "Schedule E generation failed for property %s, year %s: %s",
            property_id, year, exc,
        )
        return PropertyReportResult(
            property_id=property_id,
            property_name=known_name or UNKNOWN_PROPERTY,
            has_data=False,
            success=False,
            error_message=str(exc),
            pdf_bytes=None,
        )

    return PropertyReportResult(
        property_id=property_id,
        property_name=report.property_name,
        has_data=report.has_data,
        success=True,
        error_message=None,
        pdf_bytes=pdf_bytes,
    )


async def generate_batch(
    db: AsyncSession,
    account_id: uuid.UUID,
    property_ids: Sequence[uuid.UUID],
    year: int,
    renderer: ReportRenderer,
) -> BatchScheduleEReport:
    if not property_ids:
        raise ValidationError("At least one property ID is required")

    # Collapse duplicates, keep request order
    requested = list(dict.fromkeys(property_ids))

    owned = await ledger.list_owned_properties(db, account_id, requested)
    if not owned:
        raise ValidationError(
            "One or more properties not found or do not belong to your account"
        )
    names = {p.id: p.name for p in owned}
    if len(owned) != len(requested):
        logger.warning(
            "Batch for account %s: %d of %d requested properties are not owned",
            account_id, len(requested) - len(owned), len(requested),
        )

    # CancelledError is not an Exception, so cancelling stops the loop here
    results = []
    for property_id in requested:
        results.append(
            await _generate_one(db, account_id, property_id, year, renderer, names.get(property_id))
        )

    batch = BatchScheduleEReport(
        year=year,
        generated_at=datetime.now(timezone.utc),
        results=results,
    )
    logger.info(
        "Batch Schedule E for account %s, year %s: %d succeeded, %d failed",
        account_id, year, len(batch.succeeded), len(batch.failed),
    )
    return batch
