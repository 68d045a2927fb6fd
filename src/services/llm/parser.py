import json
import logging
import re
from typing import Union

from src.schemas.generation import ExtractionFailure, ParsedPayload

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
_LEADING_TICK = re.compile(r"^`\s*")
_TRAILING_TICK = re.compile(r"\s*`$")
_ANY_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

_decoder = json.JSONDecoder()

ExtractedPayload = Union[ParsedPayload, ExtractionFailure]


def _is_record_shaped(value, opener: str) -> bool:
    if opener == "{":
        return isinstance(value, dict)
    return isinstance(value, list) and bool(value) and all(isinstance(item, dict) for item in value)


class ResponseParser:
    """Recovers JSON values from free-text model replies."""

    @staticmethod
    def strip_fences(text: str) -> str:
        """Remove a leading/trailing code fence and stray backticks."""
        cleaned = (text or "").strip()
        cleaned = _LEADING_FENCE.sub("", cleaned)
        cleaned = _TRAILING_FENCE.sub("", cleaned)
        cleaned = _LEADING_TICK.sub("", cleaned)
        cleaned = _TRAILING_TICK.sub("", cleaned)
        return cleaned.strip()

    @staticmethod
    def extract_array(text: str) -> ExtractedPayload:
        """Extract the JSON array a model was asked to reply with.

        The slice from the first ``[`` to the last ``]`` is tried first. If it
        does not parse (prose around the array containing other brackets), the
        first array of objects that decodes cleanly is used instead.
        """
        cleaned = ResponseParser.strip_fences(text)
        start, end = cleaned.find("["), cleaned.rfind("]")
        if start == -1 or end < start:
            logger.error("No JSON array found in model reply", extra={"preview": cleaned[:SNIPPET_LENGTH]})
            return ExtractionFailure(reason="no-array-found", raw_snippet=cleaned[:SNIPPET_LENGTH])

        candidate = cleaned[start:end + 1]
        try:
            return ParsedPayload(value=json.loads(candidate))
        except json.JSONDecodeError as e:
            logger.warning(f"Bracket slice did not parse ({e.msg}), scanning for a balanced array")

        value = ResponseParser._scan(cleaned, "[")
        if value is None:
            logger.error("JSON parse failed for model reply", extra={"preview": candidate[:SNIPPET_LENGTH]})
            return ExtractionFailure(reason="parse-failed", raw_snippet=cleaned[:SNIPPET_LENGTH])
        return ParsedPayload(value=value)

    @staticmethod
    def extract_object(text: str) -> ExtractedPayload:
        """Extract a JSON object; every code fence anywhere in the text is dropped."""
        cleaned = _ANY_FENCE.sub("", text or "").strip()
        if not cleaned:
            return ExtractionFailure(reason="no-object-found", raw_snippet="")

        start, end = cleaned.find("{"), cleaned.rfind("}")
        candidate = cleaned[start:end + 1] if start != -1 and end > start else cleaned
        try:
            return ParsedPayload(value=json.loads(candidate))
        except json.JSONDecodeError as e:
            logger.warning(f"Object slice did not parse ({e.msg}), scanning for a balanced object")

        value = ResponseParser._scan(cleaned, "{")
        if value is None:
            reason = "parse-failed" if start != -1 else "no-object-found"
            return ExtractionFailure(reason=reason, raw_snippet=cleaned[:SNIPPET_LENGTH])
        return ParsedPayload(value=value)

    @staticmethod
    def _scan(text: str, opener: str):
        """Return the first record-shaped value decoded from an ``opener`` position, or None.

        Arrays only count when they are non-empty and hold nothing but objects,
        so a citation such as ``[1]`` in surrounding prose is passed over.
        """
        position = text.find(opener)
        while position != -1:
            try:
                value, _ = _decoder.raw_decode(text, position)
                if _is_record_shaped(value, opener):
                    return value
            except json.JSONDecodeError:
                pass
            position = text.find(opener, position + 1)
        return None
