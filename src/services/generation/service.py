import asyncio
import logging
import math
import re
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional, Union

from src.exceptions import LLMException
from src.schemas.generation import (
    ContentType,
    ExtractionFailure,
    GenerationError,
    GenerationSuccess,
    ValidationFailure,
)
from src.services.generation.validators import validate_flashcards, validate_quiz_questions
from src.services.llm.client import LLMClient
from src.services.llm.parser import ResponseParser
from src.services.llm.prompts import GenerationPromptBuilder

logger = logging.getLogger(__name__)

AI_UNAVAILABLE_MESSAGE = "AI service is unavailable, please try again"
NO_ARRAY_MESSAGE = "AI did not return a valid JSON array"

_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class ContentSettings:
    """Per content type knobs: bounds, model config, prompt and validator."""

    target_label: str
    count_label: str
    parsed_label: str
    empty_message: str
    filtered_message: str
    min_count: int
    max_count: int
    temperature: float
    max_tokens: int
    build_prompt: Callable[[GenerationPromptBuilder, int, str], str]
    validate: Callable[[Any], Any]


CONTENT_SETTINGS = {
    ContentType.FLASHCARDS: ContentSettings(
        target_label="Deck ID",
        count_label="cards",
        parsed_label="flashcards",
        empty_message="No valid flashcards generated",
        filtered_message="No valid flashcards generated",
        min_count=5,
        max_count=50,
        temperature=0.7,
        max_tokens=4000,
        build_prompt=GenerationPromptBuilder.flashcards,
        validate=validate_flashcards,
    ),
    ContentType.QUIZ: ContentSettings(
        target_label="Quiz ID",
        count_label="questions",
        parsed_label="quiz questions",
        empty_message="No valid questions generated",
        filtered_message="No valid questions after filtering",
        min_count=5,
        max_count=30,
        temperature=0.7,
        max_tokens=6000,
        build_prompt=GenerationPromptBuilder.quiz,
        validate=validate_quiz_questions,
    ),
}


def parse_count(value: Any) -> Optional[int]:
    """Read the leading integer of a count, e.g. ``"25"``, ``25.9`` or ``"12 cards"``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INTEGER.match(str(value))
    return int(match.group(1)) if match else None


class GenerationService:
    """Turns a user request into flashcards or quiz questions with one model call."""

    def __init__(self, llm_client: LLMClient, prompt_builder: Optional[GenerationPromptBuilder] = None):
        self.llm = llm_client
        self.prompts = prompt_builder or GenerationPromptBuilder()

    def check_request(
        self,
        content_type: ContentType,
        prompt: Optional[str],
        count: Any,
        owner_id: Optional[str],
        target_id: Optional[str],
    ) -> Union[int, GenerationError]:
        """Validate preconditions in a fixed order; return the clamped count or the first error."""
        settings = CONTENT_SETTINGS[content_type]

        if not (prompt or "").strip():
            return GenerationError(error="Prompt is required", status_code=400)
        if not target_id:
            return GenerationError(error=f"{settings.target_label} is required", status_code=400)
        if not owner_id:
            return GenerationError(error="User ID is required", status_code=400)
        if count is None or count == "" or count == 0:
            return GenerationError(error=f"Number of {settings.count_label} is required", status_code=400)

        parsed = parse_count(count)
        if parsed is None or not settings.min_count <= parsed <= settings.max_count:
            return GenerationError(
                error=f"Number of {settings.count_label} must be between "
                f"{settings.min_count} and {settings.max_count}",
                status_code=400,
            )
        return parsed

    async def generate(
        self,
        content_type: ContentType,
        prompt: Optional[str],
        count: Any,
        owner_id: Optional[str],
        target_id: Optional[str],
    ) -> Union[GenerationSuccess, GenerationError]:
        if content_type not in CONTENT_SETTINGS:
            raise ValueError(f"Unsupported content type for batch generation: {content_type}")

        checked = self.check_request(content_type, prompt, count, owner_id, target_id)
        if isinstance(checked, GenerationError):
            return checked

        settings = CONTENT_SETTINGS[content_type]
        full_prompt = settings.build_prompt(self.prompts, checked, prompt.strip())

        logger.info(
            "Generating content",
            extra={"content_type": content_type.value, "count": checked, "target_id": target_id},
        )
        try:
            result = await asyncio.get_running_loop().run_in_executor(
                None,
                partial(
                    self.llm.generate,
                    prompt=full_prompt,
                    temperature=settings.temperature,
                    max_tokens=settings.max_tokens,
                ),
            )
        except LLMException as e:
            logger.error(f"{content_type.value} generation failed at the model: {e}")
            return GenerationError(error=AI_UNAVAILABLE_MESSAGE, status_code=500)

        extracted = ResponseParser.extract_array(result.get("response", ""))
        if isinstance(extracted, ExtractionFailure):
            if extracted.reason == "no-array-found":
                return GenerationError(error=NO_ARRAY_MESSAGE, status_code=500)
            return GenerationError(
                error=f"Failed to parse {settings.parsed_label} from AI response", status_code=500
            )

        records = settings.validate(extracted.value)
        if isinstance(records, ValidationFailure):
            message = settings.filtered_message if records.reason == "all-filtered" else settings.empty_message
            logger.warning(f"{content_type.value} validation failed: {records.reason}")
            return GenerationError(error=message, status_code=400)

        return GenerationSuccess(items=records, count=len(records))
