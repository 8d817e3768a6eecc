"""
Generated report records: save, list, download and soft delete.

The ``generated_reports`` row is the source of truth for whether a report
exists. Its file in report storage is written before the row and removed
best-effort after the row is soft-deleted, so an orphaned file is possible and
tolerated.
"""
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.core.database import utcnow
from taxreports.core.exceptions import NotFoundError
from taxreports.models.report import GeneratedReport, ReportType
from taxreports.schemas.report import GeneratedReportResponse
from taxreports.services.report_storage import ReportStorage, build_storage_key

logger = logging.getLogger(__name__)

_CONTENT_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "zip": "application/zip",
}
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_\- ]")


# ─── File names & projections ─────────────────────────────────────────────────

def sanitize_file_name(name: str) -> str:
    """Keep letters, digits, '-', '_' and spaces; spaces become '-'."""
    return _UNSAFE_FILENAME_CHARS.sub("", name).replace(" ", "-")


def single_report_file_name(property_name: str, year: int) -> str:
    return f"Schedule-E-{sanitize_file_name(property_name)}-{year}.pdf"


def batch_report_file_name(year: int) -> str:
    return f"Schedule-E-Reports-{year}.zip"


def file_type_for(file_name: str) -> str:
    return PurePosixPath(file_name).suffix.lstrip(".").upper()


def content_type_for(report: GeneratedReport) -> str:
    if report.report_type == ReportType.BATCH:
        return _CONTENT_TYPES["zip"]
    ext = PurePosixPath(report.file_name).suffix.lstrip(".").lower()
    return _CONTENT_TYPES.get(ext, _CONTENT_TYPES["pdf"])


def display_name_for(report: GeneratedReport) -> str:
    if report.property_name:
        return report.property_name
    if report.report_type == ReportType.BATCH:
        return "All Properties"
    return "Unknown Property"


def to_response(report: GeneratedReport) -> GeneratedReportResponse:
    return GeneratedReportResponse(
        id=report.id,
        display_name=display_name_for(report),
        year=report.year,
        generated_at=report.created_at,
        file_name=report.file_name,
        file_type=file_type_for(report.file_name),
        file_size_bytes=report.file_size_bytes,
        report_type=report.report_type,
    )


@dataclass(frozen=True)
class ReportDownload:
    content: bytes
    file_name: str
    content_type: str


# ─── Operations ───────────────────────────────────────────────────────────────

async def save_report(
    db: AsyncSession,
    storage: ReportStorage,
    *,
    account_id: uuid.UUID,
    content: bytes,
    file_name: str,
    year: int,
    report_type: ReportType,
    property_id: uuid.UUID | None = None,
    property_name: str | None = None,
) -> GeneratedReport:
    """Store the bytes, then record them. A storage failure leaves no row behind."""
    storage_key = build_storage_key(account_id, year, file_name)
    storage.put(storage_key, content)

    report = GeneratedReport(
        account_id=account_id,
        property_id=property_id,
        property_name=property_name,
        year=year,
        file_name=file_name,
        storage_key=storage_key,
        file_size_bytes=len(content),
        report_type=report_type.value,
    )
    db.add(report)
    await db.flush()
    await db.refresh(report)
    logger.info(
        "Saved %s report %s for account %s (%s, %d bytes)",
        report_type.value, report.id, account_id, file_name, len(content),
    )
    return report


async def list_reports(db: AsyncSession, account_id: uuid.UUID) -> list[GeneratedReportResponse]:
    result = await db.execute(
        select(GeneratedReport)
        .where(
            GeneratedReport.account_id == account_id,
            GeneratedReport.deleted_at.is_(None),
        )
        .order_by(GeneratedReport.created_at.desc(), GeneratedReport.id.desc())
    )
    return [to_response(r) for r in result.scalars().all()]


async def _get_active_report(
    db: AsyncSession,
    account_id: uuid.UUID,
    report_id: uuid.UUID,
) -> GeneratedReport:
    result = await db.execute(
        select(GeneratedReport).where(
            GeneratedReport.id == report_id,
            GeneratedReport.account_id == account_id,
            GeneratedReport.deleted_at.is_(None),
        )
    )
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFoundError("Report", report_id)
    return report


async def get_report_download(
    db: AsyncSession,
    storage: ReportStorage,
    account_id: uuid.UUID,
    report_id: uuid.UUID,
) -> ReportDownload:
    report = await _get_active_report(db, account_id, report_id)
    # Storage errors propagate: the caller did not get the file
    content = storage.get(report.storage_key)
    logger.info(
        "Report %s downloaded by account %s (%s, %d bytes)",
        report.id, account_id, report.file_name, len(content),
    )
    return ReportDownload(
        content=content,
        file_name=report.file_name,
        content_type=content_type_for(report),
    )


async def delete_report(
    db: AsyncSession,
    storage: ReportStorage,
    account_id: uuid.UUID,
    report_id: uuid.UUID,
) -> None:
    report = await _get_active_report(db, account_id, report_id)
    report.deleted_at = utcnow()
    await db.flush()

    # Best-effort: the soft delete above already decided the outcome
    try:
        storage.delete(report.storage_key)
    except Exception as exc:
        logger.warning(
            "Report %s soft-deleted but its file %s could not be removed: %s",
            report.id, report.storage_key, exc,
        )
    logger.info("Report %s deleted by account %s", report.id, account_id)
