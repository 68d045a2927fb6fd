from fastapi import APIRouter, HTTPException

from src.dependencies import ChatServiceDep
from src.schemas.api.chat import ChatRequest, ChatResponse

router = APIRouter(prefix="/ai-chat", tags=["ai-chat"])


@router.post("", response_model=ChatResponse)
async def ai_chat(body: ChatRequest, service: ChatServiceDep):
    """Reply to a chat message; failures downstream yield an empty reply."""
    if not (body.message or "").strip() or not body.chat_id:
        raise HTTPException(status_code=400, detail="Message and chatId required")

    reply = await service.reply(chat_id=body.chat_id, message=body.message)
    return ChatResponse(reply=reply)
