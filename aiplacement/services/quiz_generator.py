# aiplacement/services/quiz_generator.py
import time

from aiplacement.models.enums import Difficulty, RequestedQuizType
from aiplacement.services.llm_client import BackendError
from aiplacement.services.prompt_library import QUIZ_SYSTEM_MESSAGE, build_quiz_prompt
from aiplacement.services.quiz_parser import parse_quiz_response
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger


class QuizGenerator:
    async def generate(self, backend, text: str, count: int = 5,
                       quiz_type: RequestedQuizType = RequestedQuizType.MULTICHOICE,
                       difficulty: Difficulty = Difficulty.MEDIUM,
                       language: str | None = None) -> dict:
        """
        Generates quiz questions from a source text. Zero parsed questions is
        still a success; only a failed backend call is reported as an error.
        """
        start_time = time.monotonic()
        language = language or settings.default_language

        if not text or not text.strip():
            return {"success": False, "error": "empty_text"}

        prompt = build_quiz_prompt(text, count=count, quiz_type=quiz_type,
                                   difficulty=difficulty, language=language)
        messages = [
            {"role": "system", "content": QUIZ_SYSTEM_MESSAGE},
            {"role": "user", "content": prompt},
        ]

        try:
            response = await backend.chat(messages)
        except BackendError as e:
            logger.error(f"Quiz generation error: {e}")
            return {"success": False, "error": str(e)}

        questions = parse_quiz_response(response, default_type=quiz_type, language=language,
                                        max_questions=settings.max_questions)
        elapsed_ms = round((time.monotonic() - start_time) * 1000)
        logger.info(f"Generated {len(questions)} question(s) with model '{backend.model}' in {elapsed_ms} ms.")

        return {
            "success": True,
            "questions": [question.to_record() for question in questions],
            "count": len(questions),
            "model": backend.model,
            "time": elapsed_ms,
        }


quiz_generator = QuizGenerator()
