# Coerces a language model's quiz answer into a bounded, validated list of questions
# aiplacement/services/quiz_parser.py
"""
The model is asked for a JSON array of question objects but does not always
comply. Parsing runs as ordered stages, each usable on its own:

1. ``strip_code_fences``     remove ```json / ``` markers and outer whitespace
2. ``extract_json_array``    the text itself if it starts with '[', else the
                             greedy first '[' ... last ']' substring
3. ``load_question_list``    strict JSON parse, must yield a list
4. ``parse_fallback_lines``  "Question:" / "A)" / "Correct:" / "Explanation:"
                             heuristics, used when stages 2-3 yield nothing
5. truncation to ``MAX_QUESTIONS``
6. ``validate_questions``    per-type normalization

Nothing here raises on bad model output; the worst case is an empty list.
"""
import json
import math
import re
from typing import Any, List, Optional

from aiplacement.models.enums import QuestionType
from aiplacement.models.question import QuizQuestion
from aiplacement.utils.logger import logger
from aiplacement.utils.text import strip_tags

MAX_QUESTIONS = 20
MULTICHOICE_OPTION_COUNT = 4

QUESTION_PREFIXES = ("Question:", "Вопрос:")
CORRECT_PREFIXES = ("Correct:", "Правильный:")
EXPLANATION_PREFIXES = ("Explanation:", "Пояснение:")

PLACEHOLDER_LABELS = {
    "en": {"option": "Option {n}", "true": "True", "false": "False"},
    "ru": {"option": "Вариант {n}", "true": "Верно", "false": "Неверно"},
}

TRUE_WORDS = {"true", "t", "yes", "верно", "да"}
FALSE_WORDS = {"false", "f", "no", "неверно", "нет"}

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_OPTION_RE = re.compile(r"^(?:[A-Za-z]|\d{1,2})\)\s*(.*)$")
_LEADING_LETTER_RE = re.compile(r"^([A-D])(?![A-Z])")


# --- Stage 1-3: JSON ---

def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def extract_json_array(text: str) -> Optional[str]:
    """Returns the candidate JSON array text, or None when there is no '[...]'."""
    if text.startswith("["):
        return text
    match = _ARRAY_RE.search(text)
    return match.group(0) if match else None


def load_question_list(candidate: Optional[str]) -> Optional[list]:
    if candidate is None:
        return None
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.debug(f"Model response is not valid JSON: {e}")
        return None
    return data if isinstance(data, list) else None


# --- Stage 4: line heuristics ---

def _after_marker(line: str, marker: str) -> str:
    return line[line.index(marker) + 1:].strip()


def find_correct_index(answer: str, options: List[str]) -> int:
    """
    A leading letter A-D maps to 0-3. Otherwise the first option containing
    the answer text (case-insensitive) wins. Falls back to 0.
    """
    answer = answer.strip()
    letter = _LEADING_LETTER_RE.match(answer.upper())
    if letter:
        return ord(letter.group(1)) - ord("A")
    needle = answer.lower()
    if needle:
        for i, option in enumerate(options):
            if needle in option.lower():
                return i
    # Unresolved answers are marked as the first option; callers get no signal.
    logger.debug(f"Could not match answer '{answer}' to any option, defaulting to index 0.")
    return 0


def parse_fallback_lines(text: str) -> List[dict]:
    records = []
    current: dict = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith(QUESTION_PREFIXES):
            if current:
                records.append(current)
            current = {"question": _after_marker(line, ":")}
            continue

        option = _OPTION_RE.match(line)
        if option:
            current.setdefault("options", []).append(option.group(1).strip())
        elif line.startswith(CORRECT_PREFIXES):
            current["correct"] = find_correct_index(_after_marker(line, ":"), current.get("options", []))
        elif line.startswith(EXPLANATION_PREFIXES):
            current["explanation"] = _after_marker(line, ":")

    if current:
        records.append(current)
    return records


# --- Stage 6: validation ---

def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_tags(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [_as_text(tag) for tag in value if tag is not None and _as_text(tag).strip()]
    return []


def _as_index(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        value = value.strip()
        try:
            return int(value)
        except ValueError:
            letter = _LEADING_LETTER_RE.match(value.upper())
            return ord(letter.group(1)) - ord("A") if letter else 0
    return 0


def _truefalse_index(value: Any) -> int:
    """0 is the "True" option, 1 is "False"; anything non-zero is False."""
    if isinstance(value, bool):
        return 0 if value else 1
    if isinstance(value, str) and value.strip().lower() in TRUE_WORDS:
        return 0
    if isinstance(value, str) and value.strip().lower() in FALSE_WORDS:
        return 1
    return 0 if _as_index(value) == 0 else 1


def _resolve_type(value: Any, default_type: QuestionType) -> QuestionType:
    if value is None or _as_text(value).strip() == "":
        return default_type
    try:
        return QuestionType(_as_text(value).strip().lower())
    except ValueError:
        return QuestionType.MULTICHOICE


def _default_type(requested: Any) -> QuestionType:
    try:
        return QuestionType(requested)
    except ValueError:
        # "matching" and "combined" only shape the prompt
        return QuestionType.MULTICHOICE


def validate_question(item: dict, default_type: QuestionType = QuestionType.MULTICHOICE,
                      language: str = "en") -> Optional[QuizQuestion]:
    """Normalizes one candidate; returns None when it has no question text."""
    question_text = strip_tags(_as_text(item.get("question")))
    if not question_text:
        return None

    question_type = _resolve_type(item.get("type"), default_type)
    labels = PLACEHOLDER_LABELS.get(language, PLACEHOLDER_LABELS["en"])
    raw_options = item.get("options")
    options = [_as_text(option) for option in raw_options] if isinstance(raw_options, list) else []
    common = {
        "question": question_text,
        "type": question_type,
        "explanation": strip_tags(_as_text(item.get("explanation"))),
        "tags": _as_tags(item.get("tags")),
    }

    if question_type == QuestionType.MULTICHOICE:
        options = options[:MULTICHOICE_OPTION_COUNT]
        while len(options) < MULTICHOICE_OPTION_COUNT:
            options.append(labels["option"].format(n=len(options) + 1))
        correct = max(0, min(_as_index(item.get("correct")), MULTICHOICE_OPTION_COUNT - 1))
        return QuizQuestion(options=options, correct=correct, **common)

    if question_type == QuestionType.TRUEFALSE:
        return QuizQuestion(options=[labels["true"], labels["false"]],
                            correct=_truefalse_index(item.get("correct")), **common)

    if question_type == QuestionType.SHORTANSWER:
        answer = _as_text(item.get("correctanswer")) or (options[0] if options else "")
        return QuizQuestion(correctanswer=answer, **common)

    return QuizQuestion(options=[], correct=0, **common)


def validate_questions(items: list, default_type: Any = QuestionType.MULTICHOICE,
                       language: str = "en") -> List[QuizQuestion]:
    resolved_default = _default_type(default_type)
    validated = []
    for item in items:
        if not isinstance(item, dict):
            continue
        question = validate_question(item, resolved_default, language)
        if question is not None:
            validated.append(question)
    dropped = len(items) - len(validated)
    if dropped:
        logger.info(f"Dropped {dropped} invalid question candidate(s).")
    return validated


def parse_quiz_response(raw: str, default_type: Any = QuestionType.MULTICHOICE,
                        language: str = "en", max_questions: int = MAX_QUESTIONS) -> List[QuizQuestion]:
    """Runs all stages on a raw model response. Never raises on bad input."""
    text = strip_code_fences(raw)
    candidates = load_question_list(extract_json_array(text))
    if candidates is None:
        logger.info("Model response is not a JSON array, falling back to line parsing.")
        candidates = parse_fallback_lines(text)
    return validate_questions(candidates[:max_questions], default_type, language)
