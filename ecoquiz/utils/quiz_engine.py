from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple

from ecoquiz.utils.catalog import ANSWERS, Question, load_catalog, reasons_for
from ecoquiz.utils.gateway import GatewayError
from ecoquiz.utils.scoring import compute_score, count_yes

logger = logging.getLogger(__name__)

# --------------------- Constants ---------------------

MIN_AGE = 16
MAX_AGE = 100
GENDERS = ("männlich", "weiblich", "divers")

SWIPE_THRESHOLD = 100  # px of horizontal drag that commits an answer
SWIPE_ROTATION = 0.1   # deg per px

_SUFFIX_CHARS = string.ascii_lowercase + string.digits


class QuizState(str, Enum):
    ONBOARDING = "onboarding"
    ANSWERING = "quiz"
    CAPTURING_REASON = "reason"
    RESULTS = "results"


class OnboardingError(ValueError):
    """Invalid age/gender; raised before anything is sent."""


class InvalidTransition(RuntimeError):
    """Operation not allowed in the current state."""


class Gateway(Protocol):
    def start_session(self, session_id: str, age: int, gender: str, total_questions: int): ...

    def record_response(self, session_id: str, question_number: int, question_id: int,
                        question_text: str, answer: str, reasons: Iterable[str]): ...

    def complete_session(self, session_id: str): ...


Notifier = Callable[[str, str], None]


# --------------------- Local session ---------------------

@dataclass
class LocalResponse:
    question_number: int
    question_id: int
    question_text: str
    answer: str
    reasons: Tuple[str, ...]


@dataclass
class LocalSession:
    session_id: str
    age: int
    gender: str
    questions: List[Question]
    responses: List[LocalResponse] = field(default_factory=list)
    is_complete: bool = False

    @property
    def total_questions(self) -> int:
        return len(self.questions)


# --------------------- Helpers ---------------------

def generate_session_id(rng: random.Random, now: Optional[float] = None) -> str:
    """<epoch millis>_<9 base36 chars>"""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(rng.choice(_SUFFIX_CHARS) for _ in range(9))
    return f"{millis}_{suffix}"


def shuffle_questions(questions: Sequence[Question], rng: random.Random) -> List[Question]:
    shuffled = list(questions)
    rng.shuffle(shuffled)  # Fisher-Yates
    return shuffled


def validate_onboarding(age, gender) -> Tuple[int, str]:
    if age is None or gender is None or str(age).strip() == "" or str(gender).strip() == "":
        raise OnboardingError("Bitte fülle alle Felder aus!")
    try:
        age_num = int(str(age).strip())
    except ValueError:
        raise OnboardingError("Alter muss eine Zahl sein.")
    if age_num < MIN_AGE or age_num > MAX_AGE:
        raise OnboardingError(f"Bitte gib ein gültiges Alter zwischen {MIN_AGE} und {MAX_AGE} ein!")
    return age_num, str(gender).strip()


def answer_for_key(key: str) -> Optional[str]:
    """ArrowLeft answers no, ArrowRight answers yes, anything else is ignored."""
    return {"ArrowLeft": "no", "ArrowRight": "yes"}.get(key)


class SwipeGesture:
    """
    Tracks one drag of the question card. A release beyond the horizontal
    threshold commits (right = yes, left = no); anything shorter springs back.
    """

    def __init__(self, threshold: float = SWIPE_THRESHOLD):
        self.threshold = threshold
        self.dragging = False
        self._start = (0.0, 0.0)
        self.offset = (0.0, 0.0)

    @property
    def rotation(self) -> float:
        return self.offset[0] * SWIPE_ROTATION

    def start(self, x: float, y: float) -> None:
        self.dragging = True
        self._start = (x, y)
        self.offset = (0.0, 0.0)

    def move(self, x: float, y: float) -> None:
        if not self.dragging:
            return
        self.offset = (x - self._start[0], y - self._start[1])

    def end(self) -> Optional[str]:
        if not self.dragging:
            return None
        self.dragging = False
        dx = self.offset[0]
        if abs(dx) > self.threshold:
            return "yes" if dx > 0 else "no"
        self.offset = (0.0, 0.0)
        return None


def _log_notify(title: str, description: str) -> None:
    logger.info("%s: %s", title, description)


# --------------------- State machine ---------------------

class QuizMachine:
    """
    One quiz run: onboarding -> quiz -> reason -> ... -> results.

    Session start must reach the store, otherwise the machine stays in
    onboarding. Responses and completion are fire-and-forget: a failed call is
    reported through `notify` and the quiz moves on, so local and stored state
    can diverge. The score is always computed from local answers.
    """

    def __init__(self, gateway: Gateway, catalog: Optional[Sequence[Question]] = None,
                 rng: Optional[random.Random] = None, notify: Optional[Notifier] = None,
                 clock: Callable[[], float] = time.time):
        self.gateway = gateway
        self.catalog = tuple(catalog) if catalog is not None else load_catalog()
        self.rng = rng or random.Random()
        self.notify = notify or _log_notify
        self.clock = clock

        self.state = QuizState.ONBOARDING
        self.session: Optional[LocalSession] = None
        self.question_index = 0
        self.pending_answer: Optional[str] = None

    # ---- introspection ------------------------------------------------
    def _require(self, *states: QuizState) -> None:
        if self.state not in states:
            raise InvalidTransition(f"not allowed in state {self.state.value!r}")

    @property
    def current_question(self) -> Optional[Question]:
        if self.session is None or self.state not in (QuizState.ANSWERING, QuizState.CAPTURING_REASON):
            return None
        return self.session.questions[self.question_index]

    @property
    def question_number(self) -> int:
        return self.question_index + 1

    def reason_options(self) -> Tuple[str, ...]:
        self._require(QuizState.CAPTURING_REASON)
        return reasons_for(self.current_question, self.pending_answer)

    def yes_count(self) -> int:
        if self.session is None:
            return 0
        return count_yes(r.answer for r in self.session.responses)

    def no_count(self) -> int:
        if self.session is None:
            return 0
        return len(self.session.responses) - self.yes_count()

    def score(self) -> int:
        if self.session is None or not self.session.questions:
            return 0
        return compute_score(self.yes_count(), self.session.total_questions)

    # ---- transitions --------------------------------------------------
    def start(self, age, gender) -> Optional[LocalSession]:
        """
        Onboarding -> Answering(0). Invalid input raises OnboardingError and
        nothing is sent. Returns None when the store did not accept the session.
        """
        self._require(QuizState.ONBOARDING)
        age, gender = validate_onboarding(age, gender)

        session_id = generate_session_id(self.rng, self.clock())
        questions = shuffle_questions(self.catalog, self.rng)
        try:
            self.gateway.start_session(session_id, age, gender, len(questions))
        except GatewayError as e:
            logger.warning("Could not start session %s: %s", session_id, e)
            self.notify("Fehler", "Quiz konnte nicht gestartet werden.")
            return None

        self.session = LocalSession(session_id=session_id, age=age, gender=gender, questions=questions)
        self.question_index = 0
        self.pending_answer = None
        self.state = QuizState.ANSWERING
        self.notify("Quiz gestartet", "Viel Erfolg bei den Fragen!")
        return self.session

    def answer(self, answer: str) -> None:
        """Answering(i) -> CapturingReason(i, answer). Nothing is persisted yet."""
        self._require(QuizState.ANSWERING)
        if answer not in ANSWERS:
            raise ValueError(f"answer must be one of {ANSWERS}, got {answer!r}")
        self.pending_answer = answer
        self.state = QuizState.CAPTURING_REASON

    def cancel(self) -> None:
        """Dismiss the reason dialog: the pending answer is dropped."""
        self._require(QuizState.CAPTURING_REASON)
        self.pending_answer = None
        self.state = QuizState.ANSWERING

    def submit_reasons(self, reasons: Iterable[str] = ()) -> QuizState:
        self._require(QuizState.CAPTURING_REASON)
        offered = self.reason_options()
        selected: List[str] = []
        for r in reasons:
            if r not in offered:
                raise ValueError(f"{r!r} is not a reason offered for this answer")
            if r not in selected:
                selected.append(r)

        question = self.current_question
        session = self.session
        response = LocalResponse(
            question_number=self.question_number,
            question_id=question.id,
            question_text=question.text,
            answer=self.pending_answer,
            reasons=tuple(selected),
        )
        try:
            self.gateway.record_response(
                session.session_id,
                response.question_number,
                response.question_id,
                response.question_text,
                response.answer,
                list(response.reasons),
            )
        except GatewayError as e:
            logger.warning("Response %s of %s not saved: %s", response.question_number, session.session_id, e)
            self.notify("Fehler", "Antwort konnte nicht gespeichert werden.")

        # local state moves only after the store call
        session.responses.append(response)
        self.pending_answer = None
        if self.question_index + 1 < session.total_questions:
            self.question_index += 1
            self.state = QuizState.ANSWERING
            return self.state

        session.is_complete = True
        self.state = QuizState.RESULTS
        try:
            self.gateway.complete_session(session.session_id)
        except GatewayError as e:
            logger.warning("Session %s not marked complete: %s", session.session_id, e)
            self.notify("Fehler", "Quiz konnte nicht abgeschlossen werden.")
        return self.state

    def restart(self) -> None:
        """Back to onboarding; stored data is left alone."""
        self.state = QuizState.ONBOARDING
        self.session = None
        self.question_index = 0
        self.pending_answer = None
