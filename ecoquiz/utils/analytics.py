# ecoquiz/utils/analytics.py
"""
Read-side aggregates over quiz_sessions / question_responses.

Nothing here is cached: every call recomputes from the rows that currently
exist. Percentages are rounded half-up independently, so buckets do not
necessarily add up to 100.
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ecoquiz.config import settings
from ecoquiz.models.quiz import QuizSession, QuestionResponse
from ecoquiz.schemas.analytics import (
    AgeBucket,
    Demographics,
    DetailedQuestionStats,
    GenderBucket,
    Overview,
    QuestionAnswerCount,
    QuestionReasonCount,
    QuestionStat,
    RangeBucket,
    ReasonCount,
    RecentResponse,
    SimpleStats,
    TrendPoint,
)
from ecoquiz.utils.scoring import (
    SCORE_RANGES,
    compute_score,
    mean_score,
    percentage,
    score_range,
)

TOP_REASONS_LIMIT = 10
SIMPLE_STATS_REASONS = 5

_is_yes = case((QuestionResponse.answer == "yes", 1), else_=0)

_age_group = case(
    (QuizSession.age.between(16, 24), "16-24"),
    (QuizSession.age.between(25, 34), "25-34"),
    (QuizSession.age.between(35, 44), "35-44"),
    else_="45+",
).label("age_group")


# ------------------------------------------------------------
# Time helpers
# ------------------------------------------------------------
def local_tz() -> tzinfo:
    return ZoneInfo(settings.TIMEZONE)


def _to_utc_naive(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _local_now(now: datetime | None) -> datetime:
    tz = local_tz()
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def local_midnight_utc(now: datetime | None = None) -> datetime:
    """Start of the current local day, as a naive UTC timestamp."""
    local = _local_now(now)
    return _to_utc_naive(local.replace(hour=0, minute=0, second=0, microsecond=0))


def _local_day(created_at: datetime) -> str:
    return created_at.replace(tzinfo=timezone.utc).astimezone(local_tz()).date().isoformat()


# ------------------------------------------------------------
# Per-session answer counts
# ------------------------------------------------------------
def _answer_counts(db: Session, session_ids: Iterable[str] | None = None) -> Dict[str, Tuple[int, int]]:
    """session_id -> (yes answers, answered questions)"""
    q = db.query(
        QuestionResponse.session_id,
        func.sum(_is_yes),
        func.count(QuestionResponse.id),
    ).group_by(QuestionResponse.session_id)
    if session_ids is not None:
        ids = list(session_ids)
        if not ids:
            return {}
        q = q.filter(QuestionResponse.session_id.in_(ids))
    return {sid: (int(yes or 0), int(n)) for sid, yes, n in q.all()}


def _completed_sessions(db: Session) -> List[Tuple[str, int]]:
    return (
        db.query(QuizSession.session_id, QuizSession.total_questions)
        .filter(QuizSession.completed_at.isnot(None))
        .all()
    )


def _completed_scores(db: Session) -> List[Tuple[int, int]]:
    """(yes answers, total questions) for every completed session"""
    sessions = _completed_sessions(db)
    counts = _answer_counts(db, [sid for sid, _ in sessions])
    return [(counts.get(sid, (0, 0))[0], total) for sid, total in sessions]


# ------------------------------------------------------------
# Overview
# ------------------------------------------------------------
def total_participants(db: Session) -> int:
    return db.query(func.count(QuizSession.id)).scalar() or 0


def completed_surveys(db: Session) -> int:
    return (
        db.query(func.count(QuizSession.id))
        .filter(QuizSession.completed_at.isnot(None))
        .scalar()
        or 0
    )


def completion_rate(db: Session) -> int:
    return percentage(completed_surveys(db), total_participants(db))


def average_score(db: Session) -> int:
    """
    Mean score over completed sessions. Each session score is rounded first
    (the number the participant saw), then the mean is rounded again.
    """
    scores = [compute_score(yes, total) for yes, total in _completed_scores(db)]
    return mean_score(scores)


def today_participants(db: Session, now: datetime | None = None) -> int:
    since = local_midnight_utc(now)
    return (
        db.query(func.count(QuizSession.id))
        .filter(QuizSession.created_at >= since)
        .scalar()
        or 0
    )


def overview(db: Session, now: datetime | None = None) -> Overview:
    return Overview(
        total_participants=total_participants(db),
        completion_rate=completion_rate(db),
        avg_score=average_score(db),
        today_participants=today_participants(db, now),
    )


# ------------------------------------------------------------
# Demographics
# ------------------------------------------------------------
def age_distribution(db: Session) -> List[AgeBucket]:
    total = total_participants(db)
    if total == 0:
        return []
    rows = (
        db.query(_age_group, func.count(QuizSession.id))
        .group_by(_age_group)
        .all()
    )
    return [
        AgeBucket(age_group=group, count=int(n), percentage=percentage(int(n), total))
        for group, n in sorted(rows)
    ]


def gender_distribution(db: Session) -> List[GenderBucket]:
    total = total_participants(db)
    if total == 0:
        return []
    n = func.count(QuizSession.id)
    rows = (
        db.query(QuizSession.gender, n)
        .group_by(QuizSession.gender)
        .order_by(n.desc(), QuizSession.gender)
        .all()
    )
    return [
        GenderBucket(gender=gender, count=int(cnt), percentage=percentage(int(cnt), total))
        for gender, cnt in rows
    ]


def demographics(db: Session) -> Demographics:
    return Demographics(
        age_distribution=age_distribution(db),
        gender_distribution=gender_distribution(db),
    )


# ------------------------------------------------------------
# Questions and reasons
# ------------------------------------------------------------
def question_stats(db: Session) -> List[QuestionStat]:
    """Share of `yes` per question over all responses, completed or not."""
    rows = (
        db.query(
            QuestionResponse.question_id,
            func.max(QuestionResponse.question_text),
            func.sum(_is_yes),
            func.count(QuestionResponse.id),
        )
        .group_by(QuestionResponse.question_id)
        .order_by(QuestionResponse.question_id)
        .all()
    )
    return [
        QuestionStat(
            question_id=qid,
            question_text=text,
            yes_percentage=percentage(int(yes or 0), int(n)),
        )
        for qid, text, yes, n in rows
    ]


def _ranked(counter: Counter) -> List[Tuple[str, int]]:
    return sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))


def top_reasons(db: Session, limit: int = TOP_REASONS_LIMIT) -> List[ReasonCount]:
    counter: Counter = Counter()
    for (reasons,) in db.query(QuestionResponse.reasons).all():
        counter.update(reasons or [])
    return [ReasonCount(reason=r, count=n) for r, n in _ranked(counter)[:limit]]


def detailed_question_stats(db: Session) -> DetailedQuestionStats:
    answer_rows = (
        db.query(
            QuestionResponse.question_id,
            func.max(QuestionResponse.question_text),
            QuestionResponse.answer,
            func.count(QuestionResponse.id),
        )
        .group_by(QuestionResponse.question_id, QuestionResponse.answer)
        .order_by(QuestionResponse.question_id, QuestionResponse.answer.desc())
        .all()
    )

    texts: Dict[int, str] = {}
    per_question: Dict[int, Counter] = {}
    for qid, text, reasons in db.query(
        QuestionResponse.question_id,
        QuestionResponse.question_text,
        QuestionResponse.reasons,
    ).all():
        texts.setdefault(qid, text)
        per_question.setdefault(qid, Counter()).update(reasons or [])

    reason_stats = [
        QuestionReasonCount(question_id=qid, question_text=texts[qid], reason=r, count=n)
        for qid in sorted(per_question)
        for r, n in _ranked(per_question[qid])
    ]

    return DetailedQuestionStats(
        question_stats=[
            QuestionAnswerCount(question_id=qid, question_text=text, answer=answer, count=int(n))
            for qid, text, answer, n in answer_rows
        ],
        reason_stats=reason_stats,
    )


# ------------------------------------------------------------
# Trend and recent sessions
# ------------------------------------------------------------
def participation_trend(db: Session, days: int, now: datetime | None = None) -> List[TrendPoint]:
    """Sessions created per local calendar day over the trailing `days` days."""
    since = _to_utc_naive(_local_now(now) - timedelta(days=days))
    counter: Counter = Counter()
    for (created_at,) in db.query(QuizSession.created_at).filter(QuizSession.created_at >= since).all():
        counter[_local_day(created_at)] += 1
    return [TrendPoint(day=day, count=n) for day, n in sorted(counter.items())]


def recent_responses(db: Session, limit: int = 10) -> List[RecentResponse]:
    """
    Newest sessions first. Score is taken over the answered questions, so an
    abandoned session is scored on what it got through.
    """
    sessions = (
        db.query(QuizSession)
        .order_by(QuizSession.created_at.desc(), QuizSession.id.desc())
        .limit(limit)
        .all()
    )
    counts = _answer_counts(db, [s.session_id for s in sessions])

    out = []
    for s in sessions:
        yes, answered = counts.get(s.session_id, (0, 0))
        out.append(RecentResponse(
            session_id=s.session_id,
            age=s.age,
            gender=s.gender,
            score=percentage(yes, answered),
            created_at=s.created_at,
            completed_at=s.completed_at,
            is_completed=s.is_completed,
        ))
    return out


# ------------------------------------------------------------
# Public statistics page
# ------------------------------------------------------------
def score_ranges(db: Session) -> List[RangeBucket]:
    scores = _completed_scores(db)
    counts = Counter(score_range(yes, total) for yes, total in scores)
    return [
        RangeBucket(range=label, count=counts[label], percentage=percentage(counts[label], len(scores)))
        for label, _ in SCORE_RANGES
    ]


def simple_stats(db: Session) -> SimpleStats:
    return SimpleStats(
        total_participants=total_participants(db),
        completed_surveys=completed_surveys(db),
        average_score=average_score(db),
        top_score_range=score_ranges(db),
        most_common_reasons=top_reasons(db, limit=SIMPLE_STATS_REASONS),
        gender_breakdown=gender_distribution(db),
        age_breakdown=[
            RangeBucket(range=b.age_group, count=b.count, percentage=b.percentage)
            for b in age_distribution(db)
        ],
    )
