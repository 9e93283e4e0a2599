from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecoquiz.database import get_db
from ecoquiz.schemas.analytics import (
    Demographics,
    Overview,
    QuestionStat,
    ReasonCount,
    RecentResponse,
    TrendPoint,
)
from ecoquiz.utils import analytics
from ecoquiz.utils.auth import Principal, require_admin

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/overview", response_model=Overview)
def get_overview(db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return analytics.overview(db)


@router.get("/demographics", response_model=Demographics)
def get_demographics(db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return analytics.demographics(db)


@router.get("/questions", response_model=List[QuestionStat])
def get_question_stats(db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return analytics.question_stats(db)


@router.get("/recent", response_model=List[RecentResponse])
def get_recent(
    limit: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return analytics.recent_responses(db, limit=limit)


@router.get("/reasons", response_model=List[ReasonCount])
def get_top_reasons(db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return analytics.top_reasons(db)


@router.get("/trend", response_model=List[TrendPoint])
def get_trend(
    days: int = Query(7, ge=1, le=365),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return analytics.participation_trend(db, days)
