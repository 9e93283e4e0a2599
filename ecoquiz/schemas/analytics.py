"""
Result records of the aggregation queries.

Every aggregate has a fixed field set; rows coming out of SQL are validated
into these models before they leave the analytics layer.
"""
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import Field, NonNegativeInt

from ecoquiz.schemas.quiz import CamelModel

Percent = Annotated[int, Field(ge=0, le=100)]


class Overview(CamelModel):
    total_participants: NonNegativeInt = Field(..., alias="totalParticipants")
    completion_rate: int = Field(..., alias="completionRate", ge=0, le=100)
    avg_score: int = Field(..., alias="avgScore", ge=0, le=100)
    today_participants: NonNegativeInt = Field(..., alias="todayParticipants")


class AgeBucket(CamelModel):
    age_group: str = Field(..., alias="ageGroup")
    count: NonNegativeInt
    percentage: Percent


class GenderBucket(CamelModel):
    gender: str
    count: NonNegativeInt
    percentage: Percent


class Demographics(CamelModel):
    age_distribution: List[AgeBucket] = Field(..., alias="ageDistribution")
    gender_distribution: List[GenderBucket] = Field(..., alias="genderDistribution")


class QuestionStat(CamelModel):
    question_id: int = Field(..., alias="questionId")
    question_text: str = Field(..., alias="questionText")
    yes_percentage: int = Field(..., alias="yesPercentage", ge=0, le=100)


class RecentResponse(CamelModel):
    session_id: str = Field(..., alias="sessionId")
    age: int
    gender: str
    score: Percent
    created_at: datetime = Field(..., alias="createdAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    is_completed: bool = Field(..., alias="isCompleted")


class ReasonCount(CamelModel):
    reason: str
    count: NonNegativeInt


class TrendPoint(CamelModel):
    day: str = Field(..., alias="date")  # YYYY-MM-DD
    count: NonNegativeInt


class RangeBucket(CamelModel):
    range: str
    count: NonNegativeInt
    percentage: Percent


class SimpleStats(CamelModel):
    total_participants: NonNegativeInt = Field(..., alias="totalParticipants")
    completed_surveys: NonNegativeInt = Field(..., alias="completedSurveys")
    average_score: int = Field(..., alias="averageScore", ge=0, le=100)
    top_score_range: List[RangeBucket] = Field(..., alias="topScoreRange")
    most_common_reasons: List[ReasonCount] = Field(..., alias="mostCommonReasons")
    gender_breakdown: List[GenderBucket] = Field(..., alias="genderBreakdown")
    age_breakdown: List[RangeBucket] = Field(..., alias="ageBreakdown")


class QuestionAnswerCount(CamelModel):
    question_id: int = Field(..., alias="questionId")
    question_text: str = Field(..., alias="questionText")
    answer: str
    count: NonNegativeInt


class QuestionReasonCount(CamelModel):
    question_id: int = Field(..., alias="questionId")
    question_text: str = Field(..., alias="questionText")
    reason: str
    count: NonNegativeInt


class DetailedQuestionStats(CamelModel):
    question_stats: List[QuestionAnswerCount] = Field(..., alias="questionStats")
    reason_stats: List[QuestionReasonCount] = Field(..., alias="reasonStats")
