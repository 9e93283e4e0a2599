from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml


# Bundled question catalog
CATALOG_PATH = Path(__file__).resolve().parents[1] / "catalog" / "questions.yaml"

ANSWERS = ("yes", "no")


class CatalogError(Exception):
    """Raised when the question catalog cannot be read or is malformed."""
    pass


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    yes_reasons: Tuple[str, ...]
    no_reasons: Tuple[str, ...]


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Reads a YAML mapping, raising CatalogError on any read/parse problem."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e
    if not isinstance(data, dict):
        raise CatalogError(f"Catalog must be a mapping: {path}")
    return data


def _reason_list(raw: Any, field: str, path: Path, qid: Any) -> Tuple[str, ...]:
    if not isinstance(raw, list) or not all(isinstance(r, str) and r.strip() for r in raw):
        raise CatalogError(f"{path}: question {qid}: '{field}' must be a list of non-empty strings")
    return tuple(r.strip() for r in raw)


def _parse_question(raw: Any, path: Path) -> Question:
    if not isinstance(raw, dict):
        raise CatalogError(f"{path}: every question must be a mapping")

    missing = [k for k in ("id", "text", "yes_reasons", "no_reasons") if k not in raw]
    if missing:
        raise CatalogError(f"{path}: question is missing fields: {', '.join(missing)}")

    qid = raw["id"]
    if isinstance(qid, bool) or not isinstance(qid, int):
        raise CatalogError(f"{path}: question id must be an integer, got {qid!r}")

    text = str(raw["text"] or "").strip()
    if not text:
        raise CatalogError(f"{path}: question {qid}: text is empty")

    return Question(
        id=qid,
        text=text,
        yes_reasons=_reason_list(raw["yes_reasons"], "yes_reasons", path, qid),
        no_reasons=_reason_list(raw["no_reasons"], "no_reasons", path, qid),
    )


def load_catalog(path: Path | None = None) -> Tuple[Question, ...]:
    """
    Loads and validates the question catalog.

    Without a path the bundled catalog is returned (parsed once per process).
    Questions keep file order; ids must be unique.
    """
    if path is None:
        return _default_catalog()
    return _parse_catalog(Path(path))


def _parse_catalog(path: Path) -> Tuple[Question, ...]:
    data = _load_yaml(path)
    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        raise CatalogError(f"{path}: 'questions' must be a non-empty list")

    parsed = tuple(_parse_question(q, path) for q in questions)
    ids = [q.id for q in parsed]
    if len(set(ids)) != len(ids):
        raise CatalogError(f"{path}: duplicate question ids")
    return parsed


@lru_cache(maxsize=1)
def _default_catalog() -> Tuple[Question, ...]:
    return _parse_catalog(CATALOG_PATH)


def get_question(question_id: int) -> Question | None:
    return next((q for q in load_catalog() if q.id == question_id), None)


def reasons_for(question: Question, answer: str) -> Tuple[str, ...]:
    if answer not in ANSWERS:
        raise ValueError(f"answer must be one of {ANSWERS}, got {answer!r}")
    return question.yes_reasons if answer == "yes" else question.no_reasons
