from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ecoquiz.database import Base, utcnow


class QuizSession(Base):
    __tablename__ = "quiz_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # generated by the client, e.g. 1718000000000_k3j9x0a1b
    session_id = Column(String, unique=True, index=True, nullable=False)

    age = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)
    total_questions = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)

    responses = relationship(
        "QuestionResponse",
        back_populates="session",
        order_by="QuestionResponse.question_number",
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class QuestionResponse(Base):
    __tablename__ = "question_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, ForeignKey("quiz_sessions.session_id"), nullable=False, index=True)
    session = relationship("QuizSession", back_populates="responses")

    question_number = Column(Integer, nullable=False)  # 1-based position in the shuffled order
    question_id = Column(Integer, nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    answer = Column(String, nullable=False)  # yes | no
    reasons = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=utcnow, nullable=False)
