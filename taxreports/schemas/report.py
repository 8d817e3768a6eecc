import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field


# ─── Schedule E report data ─────────────────────────────────────────────────

class ScheduleELineItem(BaseModel):
    line_number: int | None
    category_name: str
    schedule_line: str | None
    amount: Decimal


class ScheduleEReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    property_id: uuid.UUID
    property_name: str
    property_address: str
    tax_year: int
    total_income: Decimal
    expenses_by_category: list[ScheduleELineItem]
    total_expenses: Decimal
    net_income: Decimal
    generated_at: datetime

    @computed_field
    @property
    def has_data(self) -> bool:
        return self.total_income != 0 or self.total_expenses != 0


# ─── Requests ───────────────────────────────────────────────────────────────

class GenerateScheduleERequest(BaseModel):
    property_id: uuid.UUID
    year: int


class GenerateBatchScheduleERequest(BaseModel):
    property_ids: list[uuid.UUID]
    year: int


# ─── Generated reports ──────────────────────────────────────────────────────

class GeneratedReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    display_name: str
    year: int
    generated_at: datetime
    file_name: str
    file_type: str
    file_size_bytes: int
    report_type: str
