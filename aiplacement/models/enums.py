# aiplacement/models/enums.py
from enum import Enum

class QuestionType(str, Enum):
    """Question types the validator knows how to normalize."""
    MULTICHOICE = "multichoice"
    TRUEFALSE = "truefalse"
    SHORTANSWER = "shortanswer"
    ESSAY = "essay"

class RequestedQuizType(str, Enum):
    """Types a quiz can be requested as; the last two only shape the prompt."""
    MULTICHOICE = "multichoice"
    TRUEFALSE = "truefalse"
    SHORTANSWER = "shortanswer"
    MATCHING = "matching"
    ESSAY = "essay"
    COMBINED = "combined"

class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class ContextSource(str, Enum):
    """Course data that can be fed into the chat context, in assembly order."""
    SECTIONS = "sections"
    ACTIVITIES = "activities"
    FILES = "files"
    GRADES = "grades"

class TextAction(str, Enum):
    """Formatting actions offered by the text processor."""
    TO_HTML = "to_html"
    FROM_MARKDOWN = "from_markdown"
    TO_TABLE = "to_table"
    CLEAN_HTML = "clean_html"

class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

class BackendKind(str, Enum):
    OLLAMA = "ollama"
    MANAGER = "manager"
