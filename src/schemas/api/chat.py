from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    message: Optional[str] = None
    chat_id: Optional[str] = Field(None, alias="chatId")


class ChatResponse(BaseModel):
    reply: str
