import asyncio
import logging
from functools import partial
from typing import Dict, List

from src.repositories.chat import ChatRepository
from src.services.llm.client import LLMClient
from src.services.llm.prompts import CHAT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 800


class ChatService:
    """Study-buddy chat over a stored conversation history."""

    def __init__(self, repo: ChatRepository, llm_client: LLMClient):
        self.repo = repo
        self.llm = llm_client

    def _history_messages(self, chat_id: str) -> List[Dict[str, str]]:
        return [
            {
                "role": "user" if turn.sender == "user" else "assistant",
                "content": turn.message,
            }
            for turn in self.repo.get_history(chat_id)
        ]

    async def reply(self, chat_id: str, message: str) -> str:
        """Return the model's reply, or an empty string when anything downstream fails."""
        try:
            messages = self._history_messages(chat_id)
            messages.append({"role": "user", "content": message})
            result = await asyncio.get_running_loop().run_in_executor(
                None,
                partial(
                    self.llm.chat,
                    messages=messages,
                    system_instruction=CHAT_SYSTEM_PROMPT,
                    temperature=CHAT_TEMPERATURE,
                    max_tokens=CHAT_MAX_TOKENS,
                ),
            )
            return (result.get("response") or "").strip()
        except Exception as e:
            logger.error(f"AI chat failed for chat {chat_id}: {e}")
            return ""
