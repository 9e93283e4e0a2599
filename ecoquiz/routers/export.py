import csv
import io
from datetime import datetime
from typing import Iterable, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ecoquiz.config import settings
from ecoquiz.database import get_db
from ecoquiz.schemas.analytics import RecentResponse
from ecoquiz.utils import analytics
from ecoquiz.utils.auth import Principal, require_admin

router = APIRouter(prefix="/api/export", tags=["Export"])

CSV_HEADER = ["Zeitstempel", "Alter", "Geschlecht", "Score", "Status"]
STATUS_COMPLETE = "Vollständig"
STATUS_ABORTED = "Abgebrochen"
EXPORT_FILENAME = "sustainability-quiz-export.csv"


def format_timestamp(dt: Optional[datetime]) -> str:
    """2024-05-01T08:30:00.123Z, or N/A for a session that never completed."""
    if dt is None:
        return "N/A"
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def render_csv(rows: Iterable[RecentResponse]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in rows:
        writer.writerow([
            format_timestamp(r.completed_at),
            r.age,
            r.gender,
            f"{r.score}%",
            STATUS_COMPLETE if r.is_completed else STATUS_ABORTED,
        ])
    return output.getvalue()


@router.get("/csv")
def export_csv(db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    rows = analytics.recent_responses(db, limit=settings.EXPORT_LIMIT)
    headers = {"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"}
    return StreamingResponse(iter([render_csv(rows)]), media_type="text/csv; charset=utf-8", headers=headers)
