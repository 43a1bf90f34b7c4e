"""Debug routes — audit trail read access, unavailable in production."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import settings
from app.dependencies import get_audit_recorder
from app.services.audit import AuditRecorder

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/last-audit")
def last_audit(
    n: Optional[int] = Query(None, description="Number of entries to return (1-200)"),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Return the last N audit entries, newest last."""
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")

    size = n or settings.AUDIT_PAGE_DEFAULT
    size = min(max(size, 1), settings.AUDIT_PAGE_MAX)
    entries, total = audit.tail(size)
    return {
        "count": len(entries),
        "total": total,
        "file": str(audit.path),
        "entries": entries,
    }
