# Data model for generated quiz questions
# aiplacement/models/question.py
from pydantic import BaseModel, Field
from typing import List, Optional

from aiplacement.models.enums import QuestionType

class QuizQuestion(BaseModel):
    question: str
    type: QuestionType = QuestionType.MULTICHOICE
    options: Optional[List[str]] = None  # Not used for shortanswer
    correct: Optional[int] = None  # Index into options
    correctanswer: Optional[str] = None  # Only for shortanswer
    explanation: str = ""
    tags: List[str] = Field(default_factory=list)

    def to_record(self) -> dict:
        """Plain dict with only the fields that apply to this question type."""
        return self.model_dump(mode="json", exclude_none=True)
