import logging
import traceback
from typing import Any, Dict, List, Optional

from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError

from src.config import get_settings
from src.exceptions import LLMConnectionError, LLMException, LLMTimeoutError

logger = logging.getLogger(__name__)


class LLMClient:
    """Client for a hosted generative model behind an OpenAI-compatible API."""

    def __init__(self):
        """Initialize OpenAI client with the configured endpoint and API key."""
        settings = get_settings()
        self.timeout = float(settings.llm_timeout)
        self.client = OpenAI(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=self.timeout,
            max_retries=0,
        )
        self.default_model = settings.llm_model

    def health_check(self) -> Dict[str, Any]:
        """Check if the model endpoint is reachable."""
        try:
            logger.info("Performing LLM health check...")
            models = self.client.models.list()
            return {
                "status": "healthy",
                "message": "LLM endpoint reachable",
                "model_count": len(models.data),
            }

        except APITimeoutError as e:
            logger.error(
                f"[LLM ERROR] LLM API timeout.\n"
                f"Base URL: {self.client.base_url}\n"
                f"Timeout: {self.timeout}s\n"
                f"Details: {e}"
            )
            raise LLMTimeoutError(f"LLM service timeout: {e}") from e

        except APIConnectionError as e:
            logger.error(
                f"[LLM ERROR] Connection to LLM API failed.\n"
                f"Base URL: {self.client.base_url}\n"
                f"Details: {e}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )
            raise LLMConnectionError(f"Cannot connect to LLM service: {e}") from e

        except Exception as e:
            logger.error(f"[LLM ERROR] Unexpected failure during health check: {type(e).__name__}: {e}")
            raise LLMException(f"Health check failed: {e}") from e

    def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Single-turn generation. Returns ``{"response": text}``."""
        messages: List[Dict[str, str]] = [{"role": "user", "content": prompt}]
        return self.chat(
            messages=messages,
            model=model,
            system_instruction=system_instruction,
            **kwargs,
        )

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Multi-turn generation over an already ordered message history."""
        model = model or self.default_model
        if system_instruction:
            messages = [{"role": "system", "content": system_instruction}, *messages]

        try:
            logger.info(f"Sending request to LLM: model={model}, messages={len(messages)}")

            completion = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=kwargs.get("temperature", 0.7),
                max_tokens=kwargs.get("max_tokens", 2048),
            )

            return {"response": completion.choices[0].message.content or ""}

        except APITimeoutError as e:
            raise LLMTimeoutError(f"LLM request timeout: {e}") from e
        except APIConnectionError as e:
            raise LLMConnectionError(f"Cannot connect to LLM: {e}") from e
        except OpenAIError as e:
            raise LLMException(f"LLM API error: {e}") from e
        except Exception as e:
            raise LLMException(f"Generation failed: {e}") from e
