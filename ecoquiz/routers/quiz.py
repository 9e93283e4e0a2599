from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ecoquiz.database import get_db, utcnow
from ecoquiz.models.quiz import QuizSession, QuestionResponse
from ecoquiz.schemas.quiz import (
    CompleteRequest,
    CompleteResponse,
    QuestionResponseOut,
    QuizSessionOut,
    ResponseCreate,
    StartQuizRequest,
)
from ecoquiz.utils.catalog import get_question

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quiz", tags=["Quiz"])

# Generic messages, the client only shows a toast
INVALID_SESSION_DATA = "Invalid session data"
INVALID_RESPONSE_DATA = "Invalid response data"
INVALID_SESSION_ID = "Invalid session ID"


@router.post("/start", response_model=QuizSessionOut)
def start_quiz(payload: StartQuizRequest, db: Session = Depends(get_db)):
    session = QuizSession(
        session_id=payload.session_id,
        age=payload.age,
        gender=payload.gender,
        total_questions=payload.total_questions,
    )
    db.add(session)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Rejected duplicate session id %s", payload.session_id)
        raise HTTPException(status_code=400, detail=INVALID_SESSION_DATA)
    db.refresh(session)

    logger.info("Quiz session %s started (age=%s, gender=%s)", session.session_id, session.age, session.gender)
    return QuizSessionOut.model_validate(session)


@router.post("/response", response_model=QuestionResponseOut)
def record_response(payload: ResponseCreate, db: Session = Depends(get_db)):
    session = db.query(QuizSession).filter(QuizSession.session_id == payload.session_id).first()
    if not session:
        logger.warning("Response for unknown session %s", payload.session_id)
        raise HTTPException(status_code=400, detail=INVALID_RESPONSE_DATA)

    if get_question(payload.question_id) is None:
        logger.warning("Response for unknown question id %s", payload.question_id)
        raise HTTPException(status_code=400, detail=INVALID_RESPONSE_DATA)

    if payload.question_number > session.total_questions:
        raise HTTPException(status_code=400, detail=INVALID_RESPONSE_DATA)

    answered = (
        db.query(func.count(QuestionResponse.id))
        .filter(QuestionResponse.session_id == session.session_id)
        .scalar()
    )
    if answered >= session.total_questions:
        logger.warning("Session %s already has all %s responses", session.session_id, answered)
        raise HTTPException(status_code=400, detail=INVALID_RESPONSE_DATA)

    response = QuestionResponse(
        session_id=session.session_id,
        question_number=payload.question_number,
        question_id=payload.question_id,
        question_text=payload.question_text,
        answer=payload.answer,
        reasons=payload.reasons,
    )
    db.add(response)
    db.commit()
    db.refresh(response)
    return QuestionResponseOut.model_validate(response)


@router.post("/complete", response_model=CompleteResponse)
def complete_quiz(payload: CompleteRequest, db: Session = Depends(get_db)):
    session = db.query(QuizSession).filter(QuizSession.session_id == payload.session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    # completed_at is set exactly once
    if session.completed_at is None:
        session.completed_at = utcnow()
        db.commit()
        logger.info("Quiz session %s completed", session.session_id)

    return CompleteResponse(success=True)


@router.get("/session/{session_id}/responses", response_model=List[QuestionResponseOut])
def session_responses(session_id: str, db: Session = Depends(get_db)):
    rows = (
        db.query(QuestionResponse)
        .filter(QuestionResponse.session_id == session_id)
        .order_by(QuestionResponse.question_number, QuestionResponse.id)
        .all()
    )
    return [QuestionResponseOut.model_validate(r) for r in rows]
