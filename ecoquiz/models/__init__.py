from ecoquiz.models.user import User, AuthSession
from ecoquiz.models.quiz import QuizSession, QuestionResponse

__all__ = ["User", "AuthSession", "QuizSession", "QuestionResponse"]
