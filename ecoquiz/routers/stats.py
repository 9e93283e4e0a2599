# ecoquiz/routers/stats.py
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from ecoquiz.database import get_db
from ecoquiz.schemas.analytics import DetailedQuestionStats, SimpleStats
from ecoquiz.utils import analytics

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))

# Public: no authentication on any of these
router = APIRouter(tags=["Stats"])


@router.get("/api/stats/simple", response_model=SimpleStats)
def get_simple_stats(db: Session = Depends(get_db)):
    """Totals, score ranges, reasons and demographic breakdowns."""
    return analytics.simple_stats(db)


@router.get("/api/stats/questions", response_model=DetailedQuestionStats)
def get_question_details(db: Session = Depends(get_db)):
    """Raw answer counts and reason counts per question."""
    return analytics.detailed_question_stats(db)


@router.get("/stats", response_class=HTMLResponse)
def stats_page(request: Request, db: Session = Depends(get_db)):
    stats = analytics.simple_stats(db)
    details = analytics.detailed_question_stats(db)

    # {question_id: {"text": ..., "yes": n, "no": n, "reasons": [(reason, n), ...]}}
    questions = {}
    for row in details.question_stats:
        q = questions.setdefault(row.question_id, {"text": row.question_text, "yes": 0, "no": 0, "reasons": []})
        q[row.answer] = row.count
    for row in details.reason_stats:
        q = questions.setdefault(row.question_id, {"text": row.question_text, "yes": 0, "no": 0, "reasons": []})
        q["reasons"].append((row.reason, row.count))

    return templates.TemplateResponse(
        request,
        "stats.html",
        {"stats": stats, "questions": [questions[k] for k in sorted(questions)]},
    )
