from __future__ import annotations
import math
from typing import Iterable, List, Tuple

# (label, inclusive upper bound in percent)
SCORE_RANGES: List[Tuple[str, int]] = [
    ("0-30%", 30),
    ("31-60%", 60),
    ("61-80%", 80),
    ("81-100%", 100),
]


def round_half_up(value: float) -> int:
    # 12.5 -> 13, unlike round() which gives 12
    return int(math.floor(value + 0.5))


def percentage(part: int, total: int) -> int:
    """Share of `part` in `total` as a whole percent; 0 for an empty total."""
    if total <= 0:
        return 0
    return round_half_up(part * 100.0 / total)


def compute_score(yes_count: int, total_questions: int) -> int:
    """
    Score of one session: percentage of `yes` answers, rounded.
    Always in 0..100 as long as yes_count <= total_questions.
    """
    return percentage(yes_count, total_questions)


def count_yes(answers: Iterable[str]) -> int:
    return sum(1 for a in answers if a == "yes")


def score_range(yes_count: int, total_questions: int) -> str:
    """
    Bucket label for a session score. Boundaries compare the exact
    (unrounded) share, so 30.5% already falls into "31-60%".
    """
    for label, upper in SCORE_RANGES:
        if yes_count * 100 <= upper * total_questions:
            return label
    return SCORE_RANGES[-1][0]


def mean_score(scores: List[int]) -> int:
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))
