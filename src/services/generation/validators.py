"""Coerce loosely-typed parsed model output into typed records.

Validators never raise: every failure is returned as a ``ValidationFailure``.
"""

import json
import math
from typing import Any, List, Union

from src.schemas.generation import Flashcard, QuizQuestion, ValidationFailure


def to_text(value: Any) -> str:
    """String coercion that mirrors how the model's JSON scalars read as text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def is_truthy(value: Any) -> bool:
    """JSON truthiness: only null, false, 0, NaN and "" are falsy."""
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not math.isnan(value)
    return True


def _field(record: Any, name: str) -> Any:
    return record.get(name) if isinstance(record, dict) else None


def _check_array(raw: Any) -> Union[list, ValidationFailure]:
    if not isinstance(raw, list):
        return ValidationFailure(reason="not-an-array")
    if not raw:
        return ValidationFailure(reason="empty")
    return raw


def validate_flashcards(raw: Any) -> Union[List[Flashcard], ValidationFailure]:
    records = _check_array(raw)
    if isinstance(records, ValidationFailure):
        return records
    return [
        Flashcard(
            front=to_text(_field(record, "front")).strip(),
            back=to_text(_field(record, "back")).strip(),
        )
        for record in records
    ]


def validate_quiz_questions(raw: Any) -> Union[List[QuizQuestion], ValidationFailure]:
    records = _check_array(raw)
    if isinstance(records, ValidationFailure):
        return records

    survivors = [
        record
        for record in records
        if is_truthy(_field(record, "question")) and is_truthy(_field(record, "correct_answer"))
    ]
    if not survivors:
        return ValidationFailure(reason="all-filtered")

    return [
        QuizQuestion(
            question=to_text(record["question"]).strip(),
            correct_answer=to_text(record["correct_answer"]).strip(),
        )
        for record in survivors
    ]


def validate_verdicts(raw: Any) -> Union[list, ValidationFailure]:
    """Grading verdicts are reconciled later, so only the container is checked."""
    if not isinstance(raw, list):
        return ValidationFailure(reason="not-an-array")
    return raw
