import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from finstart.chat import ChatAssistant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: Optional[List[ChatMessage]] = None


class ChatResponse(BaseModel):
    content: str


@lru_cache(maxsize=1)
def get_assistant() -> ChatAssistant:
    return ChatAssistant()


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, assistant: ChatAssistant = Depends(get_assistant)):
    """Answer the last message of the conversation."""
    if not request.messages:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Messages are required"
        )

    try:
        text = await assistant.reply([m.model_dump() for m in request.messages])
    except Exception as e:
        logger.error("Chat backend error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Failed to fetch response"
        )

    return ChatResponse(content=text)
