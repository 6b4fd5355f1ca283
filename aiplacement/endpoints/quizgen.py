# Quiz generator placement: generate questions from text, export them as Moodle XML
# aiplacement/endpoints/quizgen.py
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from typing import Any, Dict, List

from aiplacement.models.enums import Difficulty, RequestedQuizType
from aiplacement.services.llm_client import get_quizgen_backend
from aiplacement.services.question_bank import build_moodle_xml
from aiplacement.services.quiz_generator import quiz_generator
from aiplacement.services.quiz_parser import validate_questions
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger

router = APIRouter()


def require_quizgen_enabled():
    if not settings.quizgen_enabled:
        raise HTTPException(status_code=403, detail="Quiz generator is disabled.")


class GenerateRequest(BaseModel):
    text: str
    count: int = Field(5, ge=1, le=20)
    type: RequestedQuizType = RequestedQuizType.MULTICHOICE
    difficulty: Difficulty = Difficulty.MEDIUM
    language: str | None = None


class GenerateResponse(BaseModel):
    success: bool
    questions: List[Dict[str, Any]] | None = None
    count: int | None = None
    model: str | None = None
    time: int | None = None
    error: str | None = None


class ExportRequest(BaseModel):
    questions: List[Dict[str, Any]]
    category: str | None = None
    language: str | None = None


@router.post("/generate", response_model=GenerateResponse, response_model_exclude_none=True,
             dependencies=[Depends(require_quizgen_enabled)])
async def generate(request: GenerateRequest, backend=Depends(get_quizgen_backend)):
    logger.info(f"Quiz generation requested: {request.count} x {request.type.value}, {request.difficulty.value}")
    result = await quiz_generator.generate(
        backend,
        request.text,
        count=request.count,
        quiz_type=request.type,
        difficulty=request.difficulty,
        language=request.language,
    )
    return GenerateResponse(**result)


@router.post("/export", dependencies=[Depends(require_quizgen_enabled)])
async def export(request: ExportRequest):
    """Re-validates the selected questions and returns them as Moodle XML."""
    questions = validate_questions(request.questions, language=request.language or settings.default_language)
    if not questions:
        raise HTTPException(status_code=422, detail="No valid questions to export.")
    xml = build_moodle_xml(questions, category=request.category)
    logger.info(f"Exported {len(questions)} question(s) as Moodle XML.")
    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Content-Disposition": 'attachment; filename="questions.xml"'},
    )
