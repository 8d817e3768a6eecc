"""
Schedule E reporting router.
Endpoints:
  GET    /reports/schedule-e/{property_id}?year=2025   report data preview (JSON)
  POST   /reports/schedule-e                          single property PDF
  POST   /reports/schedule-e/batch                    ZIP of PDFs for several properties
  GET    /reports                                     generated reports, newest first
  GET    /reports/{report_id}/download
  DELETE /reports/{report_id}
"""
import asyncio
import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from taxreports.core.config import settings
from taxreports.core.database import get_db
from taxreports.core.deps import get_current_account_id, get_report_renderer, get_report_storage
from taxreports.core.exceptions import ValidationError
from taxreports.models.report import ReportType
from taxreports.schemas.report import (
    GenerateBatchScheduleERequest,
    GeneratedReportResponse,
    GenerateScheduleERequest,
    ScheduleEReport,
)
from taxreports.services.batch import generate_batch
from taxreports.services.pdf_renderer import ReportRenderer, bundle_reports
from taxreports.services.report_records import (
    batch_report_file_name,
    delete_report,
    get_report_download,
    list_reports,
    save_report,
    single_report_file_name,
)
from taxreports.services.report_storage import ReportStorage
from taxreports.services.schedule_e import aggregate_schedule_e, generate_report_pdf

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


def _validate_year(year: int) -> None:
    if year < settings.min_report_year or year > date.today().year + 1:
        raise ValidationError(f"Year must be between {settings.min_report_year} and next year")


def _attachment(file_name: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{file_name}"'}


# ─── Generate ─────────────────────────────────────────────────────────────────

@router.get("/reports/schedule-e/{property_id}", response_model=ScheduleEReport)
async def preview_schedule_e(
    property_id: uuid.UUID,
    year: int = Query(...),
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
):
    _validate_year(year)
    return await aggregate_schedule_e(db, account_id, property_id, year)


@router.post("/reports/schedule-e")
async def generate_schedule_e(
    payload: GenerateScheduleERequest,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
    renderer: ReportRenderer = Depends(get_report_renderer),
    storage: ReportStorage = Depends(get_report_storage),
):
    _validate_year(payload.year)
    report, pdf_bytes = await generate_report_pdf(
        db, account_id, payload.property_id, payload.year, renderer
    )
    file_name = single_report_file_name(report.property_name, payload.year)
    saved = await save_report(
        db,
        storage,
        account_id=account_id,
        content=pdf_bytes,
        file_name=file_name,
        year=payload.year,
        report_type=ReportType.SINGLE_PROPERTY,
        property_id=report.property_id,
        property_name=report.property_name,
    )

    logger.info(
        "Generated Schedule E for property %s, year %s: income=%s expenses=%s net=%s",
        payload.property_id, payload.year,
        report.total_income, report.total_expenses, report.net_income,
    )
    headers = _attachment(file_name)
    headers["X-Report-Id"] = str(saved.id)
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


@router.post("/reports/schedule-e/batch")
async def generate_schedule_e_batch(
    payload: GenerateBatchScheduleERequest,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
    renderer: ReportRenderer = Depends(get_report_renderer),
    storage: ReportStorage = Depends(get_report_storage),
):
    _validate_year(payload.year)
    batch = await generate_batch(db, account_id, payload.property_ids, payload.year, renderer)

    pdf_files = [
        (single_report_file_name(r.property_name, payload.year), r.pdf_bytes)
        for r in batch.succeeded
    ]
    if not pdf_files:
        raise ValidationError("No reports generated: all report generations failed")

    zip_bytes = await asyncio.to_thread(bundle_reports, pdf_files)
    file_name = batch_report_file_name(payload.year)
    saved = await save_report(
        db,
        storage,
        account_id=account_id,
        content=zip_bytes,
        file_name=file_name,
        year=payload.year,
        report_type=ReportType.BATCH,
    )

    logger.info(
        "Generated batch Schedule E for %d/%d properties, year %s",
        len(pdf_files), len(batch.results), payload.year,
    )
    headers = _attachment(file_name)
    headers["X-Report-Id"] = str(saved.id)
    if batch.failed:
        headers["X-Report-Failures"] = ",".join(str(r.property_id) for r in batch.failed)
    return Response(content=zip_bytes, media_type="application/zip", headers=headers)


# ─── Generated reports ────────────────────────────────────────────────────────

@router.get("/reports", response_model=list[GeneratedReportResponse])
async def list_generated_reports(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_reports(db, account_id)


@router.get("/reports/{report_id}/download")
async def download_report(
    report_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
):
    download = await get_report_download(db, storage, account_id, report_id)
    return Response(
        content=download.content,
        media_type=download.content_type,
        headers=_attachment(download.file_name),
    )


@router.delete("/reports/{report_id}", status_code=204)
async def delete_generated_report(
    report_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
):
    await delete_report(db, storage, account_id, report_id)
