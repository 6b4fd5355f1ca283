# aiplacement/services/prompt_library.py
from dataclasses import dataclass
from langchain_core.prompts import PromptTemplate

from aiplacement.models.enums import Difficulty, RequestedQuizType, TextAction

# --- Course chat ---
CHAT_SYSTEM_PROMPT = PromptTemplate.from_template(
    """You are a helpful teaching assistant for the course "{course_name}".
Answer the student's questions using the course information below. If the answer
is not covered by the course material, say so and give general guidance instead.
Be concise, friendly and accurate. Answer in the language the student writes in.

Course information:
---------------------
{course_context}
---------------------
"""
)

# --- Quiz generator ---
QUIZ_SYSTEM_MESSAGE = (
    "You are an AI that generates educational quiz questions. You ALWAYS respond with valid JSON only. "
    "Never include explanations, markdown, or any text outside the JSON."
)

QUIZ_TYPE_DESCRIPTIONS = {
    RequestedQuizType.MULTICHOICE: "multiple choice questions with 4 options, one correct answer, and an explanation",
    RequestedQuizType.TRUEFALSE: "true/false statements with explanation",
    RequestedQuizType.SHORTANSWER: "short answer questions (1-2 words) with correct answer and explanation",
    RequestedQuizType.MATCHING: "matching questions: 4-5 pairs of terms and definitions",
    RequestedQuizType.ESSAY: "essay questions with detailed rubric",
    RequestedQuizType.COMBINED: "mix of different question types",
}

DIFFICULTY_DESCRIPTIONS = {
    Difficulty.EASY: "basic, factual knowledge",
    Difficulty.MEDIUM: "application and comprehension",
    Difficulty.HARD: "analysis, synthesis, and evaluation",
}

LANGUAGE_NAMES = {"en": "English", "ru": "Russian"}

QUIZ_PROMPT = PromptTemplate.from_template(
    """Generate {count} {type_description} based on this text.
Difficulty: {difficulty_description}.
Language: {language_name}.

IMPORTANT: Return ONLY valid JSON array. NO other text, NO markdown, NO comments.

[
    {{
        "question": "Question text",
        "type": "{type}",
        "options": ["Option A", "Option B", "Option C", "Option D"] (for multichoice),
        "correct": 0 (index of correct answer),
        "explanation": "Why this is correct",
        "tags": ["topic1", "topic2"]
    }}
]

Text: {text}"""
)


def build_quiz_prompt(text: str, count: int = 5, quiz_type: RequestedQuizType = RequestedQuizType.MULTICHOICE,
                      difficulty: Difficulty = Difficulty.MEDIUM, language: str = "en") -> str:
    return QUIZ_PROMPT.format(
        count=count,
        type_description=QUIZ_TYPE_DESCRIPTIONS[quiz_type],
        difficulty_description=DIFFICULTY_DESCRIPTIONS[difficulty],
        language_name=LANGUAGE_NAMES.get(language, "English"),
        type=quiz_type.value,
        text=text,
    )


# --- Text processor actions ---
@dataclass(frozen=True)
class ActionSpec:
    name: str
    icon: str
    description: str
    prompt: PromptTemplate
    default: bool = False


TEXT_ACTIONS = {
    TextAction.TO_HTML: ActionSpec(
        name="To HTML",
        icon="📄",
        description="Convert plain text to HTML",
        prompt=PromptTemplate.from_template(
            "Convert this text to clean HTML. Use <p>, <h2>, <h3>, <ul>, <ol>, <li>, <strong>, <em>. "
            "Return ONLY HTML code:\n\n{text}"
        ),
        default=True,
    ),
    TextAction.FROM_MARKDOWN: ActionSpec(
        name="From Markdown",
        icon="🔗",
        description="Convert Markdown to HTML",
        prompt=PromptTemplate.from_template("Convert this Markdown to HTML. Return ONLY HTML code:\n\n{text}"),
    ),
    TextAction.TO_TABLE: ActionSpec(
        name="To table",
        icon="📊",
        description="Convert a list to an HTML table",
        prompt=PromptTemplate.from_template(
            "Convert this data to an HTML table. Use <table>, <thead>, <tbody>. Return ONLY HTML code:\n\n{text}"
        ),
    ),
    TextAction.CLEAN_HTML: ActionSpec(
        name="Clean up",
        icon="✨",
        description="Clean and format HTML",
        prompt=PromptTemplate.from_template(
            "Clean and fix this HTML. Remove extra whitespace, fix nesting. Return ONLY HTML code:\n\n{text}"
        ),
    ),
}
