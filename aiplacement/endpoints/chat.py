# Course chat placement: send a message, list and clear the per-user history
# aiplacement/endpoints/chat.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Literal
from sqlalchemy.ext.asyncio import AsyncSession

from aiplacement.services.chat_service import chat_service
from aiplacement.services.llm_client import get_chat_backend
from aiplacement.utils.config import settings
from aiplacement.utils.db import get_db
from aiplacement.utils.logger import logger

router = APIRouter()


def require_chat_enabled():
    if not settings.chat_enabled:
        raise HTTPException(status_code=403, detail="Course chat is disabled.")


class HistoryItem(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str
    course_id: int
    user_id: int
    history: List[HistoryItem] = Field(default_factory=list)


class ChatResponse(BaseModel):
    success: bool
    message: str
    model: str | None = None
    time: int | None = None
    error: str | None = None


class HistoryEntry(BaseModel):
    role: str
    content: str
    time: str


class ClearHistoryResponse(BaseModel):
    success: bool
    deleted: int


@router.post("/", response_model=ChatResponse, response_model_exclude_none=True,
             dependencies=[Depends(require_chat_enabled)])
async def send_message(request: ChatRequest, db: AsyncSession = Depends(get_db),
                       backend=Depends(get_chat_backend)):
    logger.info(f"Chat message from user {request.user_id} in course {request.course_id}")
    result = await chat_service.send_message(
        session=db,
        backend=backend,
        message=request.message,
        course_id=request.course_id,
        user_id=request.user_id,
        history=[item.model_dump() for item in request.history],
    )
    return ChatResponse(**result)


@router.get("/{course_id}/history", response_model=List[HistoryEntry],
            dependencies=[Depends(require_chat_enabled)])
async def get_history(course_id: int, user_id: int, limit: int = 50, db: AsyncSession = Depends(get_db)):
    return await chat_service.get_history(db, course_id, user_id, limit)


@router.delete("/{course_id}/history", response_model=ClearHistoryResponse,
               dependencies=[Depends(require_chat_enabled)])
async def clear_history(course_id: int, user_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await chat_service.clear_history(db, course_id, user_id)
    return ClearHistoryResponse(success=True, deleted=deleted)
