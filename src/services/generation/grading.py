import asyncio
import logging
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Union

from src.exceptions import LLMException
from src.schemas.generation import (
    ExtractionFailure,
    GenerationError,
    GradedResult,
    GradingInput,
    ValidationFailure,
)
from src.services.generation.service import AI_UNAVAILABLE_MESSAGE, NO_ARRAY_MESSAGE
from src.services.generation.validators import validate_verdicts
from src.services.llm.client import LLMClient
from src.services.llm.parser import ResponseParser
from src.services.llm.prompts import GenerationPromptBuilder

logger = logging.getLogger(__name__)

GRADING_TEMPERATURE = 0.3
GRADING_MAX_TOKENS = 8000
UNGRADED_FEEDBACK = "Unable to grade this answer."


def _verdict_is_correct(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def reconcile(inputs: Sequence[GradingInput], verdicts: List[Any]) -> List[GradedResult]:
    """Attach model verdicts to the original questions by id.

    The output has one result per input, in input order. Verdicts for unknown
    ids are ignored; when an id repeats, the first verdict wins.
    """
    by_id: Dict[str, dict] = {}
    for verdict in verdicts:
        if not isinstance(verdict, dict) or verdict.get("questionId") is None:
            continue
        by_id.setdefault(str(verdict["questionId"]), verdict)

    results = []
    for item in inputs:
        verdict = by_id.get(item.question_id)
        feedback = verdict.get("feedback") if verdict else None
        results.append(
            GradedResult(
                question_id=item.question_id,
                user_answer=item.user_answer,
                correct_answer=item.correct_answer,
                is_correct=_verdict_is_correct(verdict.get("isCorrect")) if verdict else False,
                feedback=str(feedback) if feedback is not None else UNGRADED_FEEDBACK,
            )
        )
    return results


class GradingService:
    """Grades a whole quiz attempt with a single batched model call."""

    def __init__(self, llm_client: LLMClient, prompt_builder: Optional[GenerationPromptBuilder] = None):
        self.llm = llm_client
        self.prompts = prompt_builder or GenerationPromptBuilder()

    async def grade(self, inputs: Optional[Sequence[GradingInput]]) -> Union[List[GradedResult], GenerationError]:
        if not inputs:
            return GenerationError(error="Questions are required", status_code=400)

        prompt = self.prompts.grading(inputs)
        logger.info(f"Grading {len(inputs)} answers")
        try:
            result = await asyncio.get_running_loop().run_in_executor(
                None,
                partial(
                    self.llm.generate,
                    prompt=prompt,
                    temperature=GRADING_TEMPERATURE,
                    max_tokens=GRADING_MAX_TOKENS,
                ),
            )
        except LLMException as e:
            logger.error(f"Quiz grading failed at the model: {e}")
            return GenerationError(error=AI_UNAVAILABLE_MESSAGE, status_code=500)

        extracted = ResponseParser.extract_array(result.get("response", ""))
        if isinstance(extracted, ExtractionFailure):
            if extracted.reason == "no-array-found":
                return GenerationError(error=NO_ARRAY_MESSAGE, status_code=500)
            return GenerationError(error="Failed to parse grading results from AI response", status_code=500)

        verdicts = validate_verdicts(extracted.value)
        if isinstance(verdicts, ValidationFailure):
            return GenerationError(error="Invalid grading results format", status_code=400)

        return reconcile(inputs, verdicts)
