from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class CamelModel(BaseModel):
    class Config:
        populate_by_name = True
        from_attributes = True


class StartQuizRequest(CamelModel):
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=100)
    age: int = Field(..., ge=16, le=100)
    gender: str = Field(..., max_length=50)
    total_questions: int = Field(..., alias="totalQuestions", ge=1)

    @field_validator("session_id", "gender")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class QuizSessionOut(CamelModel):
    id: int
    session_id: str = Field(..., alias="sessionId")
    age: int
    gender: str
    total_questions: int = Field(..., alias="totalQuestions")
    created_at: datetime = Field(..., alias="createdAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")


class ResponseCreate(CamelModel):
    session_id: str = Field(..., alias="sessionId", min_length=1)
    question_number: int = Field(..., alias="questionNumber", ge=1)
    question_id: int = Field(..., alias="questionId", ge=1)
    question_text: str = Field(..., alias="questionText", min_length=1)
    answer: Literal["yes", "no"]
    reasons: List[str] = Field(default_factory=list)

    @field_validator("reasons")
    @classmethod
    def _unique_reasons(cls, v: List[str]) -> List[str]:
        # a set of tags; keep first occurrence order
        seen = []
        for r in v:
            r = r.strip()
            if r and r not in seen:
                seen.append(r)
        return seen


class QuestionResponseOut(CamelModel):
    id: int
    session_id: str = Field(..., alias="sessionId")
    question_number: int = Field(..., alias="questionNumber")
    question_id: int = Field(..., alias="questionId")
    question_text: str = Field(..., alias="questionText")
    answer: Literal["yes", "no"]
    reasons: List[str]
    created_at: datetime = Field(..., alias="createdAt")


class CompleteRequest(CamelModel):
    session_id: str = Field(..., alias="sessionId", min_length=1)


class CompleteResponse(BaseModel):
    success: bool = True
