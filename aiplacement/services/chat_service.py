# aiplacement/services/chat_service.py
import time
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from aiplacement import state_manager
from aiplacement.models.enums import ChatRole
from aiplacement.services.context_builder import build_course_context
from aiplacement.services.llm_client import BackendConnectionError, BackendError, BackendUnavailableError
from aiplacement.services.prompt_library import CHAT_SYSTEM_PROMPT
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger

ERROR_EMPTY_MESSAGE = "Please enter a message."
ERROR_CONNECTION = "Could not connect to the AI service. Please try again later."
ERROR_UNAVAILABLE = "AI generation is not available. Check the AI provider settings."
ERROR_GENERAL = "An error occurred. Please try again later."


class ChatService:
    def __init__(self, max_history: int | None = None):
        self.max_history = settings.max_history if max_history is None else max_history

    def build_messages(self, system_prompt: str, message: str,
                       history: List[Dict[str, str]]) -> List[Dict[str, str]]:
        """System turn, then the last N history turns, then the new user turn."""
        messages = [{"role": ChatRole.SYSTEM.value, "content": system_prompt}]
        recent_history = history[-self.max_history:] if self.max_history > 0 else []
        for item in recent_history:
            messages.append({"role": item["role"], "content": item["content"]})
        messages.append({"role": ChatRole.USER.value, "content": message})
        return messages

    async def build_system_prompt(self, session: AsyncSession, course_id: int, user_id: int) -> str:
        course = await state_manager.get_course(session, course_id)
        course_name = course.fullname if course else f"Course {course_id}"
        course_context = await build_course_context(session, course_id, user_id)
        return CHAT_SYSTEM_PROMPT.format(course_name=course_name, course_context=course_context)

    async def send_message(self, session: AsyncSession, backend, message: str, course_id: int,
                           user_id: int, history: List[Dict[str, str]] | None = None) -> dict:
        if not message or not message.strip():
            return {"success": False, "message": ERROR_EMPTY_MESSAGE, "error": "empty_message"}

        start_time = time.monotonic()
        system_prompt = await self.build_system_prompt(session, course_id, user_id)
        messages = self.build_messages(system_prompt, message, history or [])

        try:
            answer = await backend.chat(messages)
        except BackendConnectionError as e:
            logger.error(f"Chat backend connection error for course {course_id}: {e}")
            return {"success": False, "message": ERROR_CONNECTION, "error": str(e)}
        except BackendUnavailableError as e:
            logger.error(f"Chat backend unavailable for course {course_id}: {e}")
            return {"success": False, "message": ERROR_UNAVAILABLE, "error": str(e)}
        except BackendError as e:
            logger.error(f"Chat backend error for course {course_id}: {e}")
            return {"success": False, "message": ERROR_GENERAL, "error": str(e)}

        processing_time = round((time.monotonic() - start_time) * 1000)
        await state_manager.add_chat_log(session, course_id, user_id, message, answer,
                                         backend.model, processing_time)
        logger.info(f"Chat reply for user {user_id} in course {course_id} took {processing_time} ms.")

        return {
            "success": True,
            "message": answer,
            "model": backend.model,
            "time": processing_time,
        }

    async def get_history(self, session: AsyncSession, course_id: int, user_id: int,
                          limit: int = 50) -> List[dict]:
        history = []
        for log in await state_manager.get_chat_logs(session, course_id, user_id, limit):
            timestamp = log.created_at.isoformat()
            history.append({"role": ChatRole.USER.value, "content": log.question, "time": timestamp})
            history.append({"role": ChatRole.ASSISTANT.value, "content": log.answer, "time": timestamp})
        return history

    async def clear_history(self, session: AsyncSession, course_id: int, user_id: int) -> int:
        deleted = await state_manager.delete_chat_logs(session, course_id, user_id)
        logger.info(f"Cleared {deleted} chat log row(s) for user {user_id} in course {course_id}.")
        return deleted


chat_service = ChatService()
