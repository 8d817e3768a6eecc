import uuid

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taxreports.core.config import settings
from taxreports.core.security import decode_token
from taxreports.services.pdf_renderer import ReportRenderer, ScheduleEPdfRenderer
from taxreports.services.report_storage import LocalReportStorage, ReportStorage

bearer_scheme = HTTPBearer(auto_error=False)

_UNAUTHORIZED = HTTPException(
    status_code=401,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_account_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> uuid.UUID:
    """Resolve the caller's account from the access token's ``account_id`` (or ``sub``) claim."""
    if credentials is None:
        raise _UNAUTHORIZED
    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise _UNAUTHORIZED
    try:
        return uuid.UUID(str(payload.get("account_id") or payload.get("sub")))
    except ValueError:
        raise _UNAUTHORIZED


def get_report_storage() -> ReportStorage:
    return LocalReportStorage(settings.report_storage_dir)


def get_report_renderer() -> ReportRenderer:
    return ScheduleEPdfRenderer()
