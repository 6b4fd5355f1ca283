# Moodle XML export of generated questions, ready for import into a question bank
# aiplacement/services/question_bank.py
from typing import List, Optional

from lxml import etree as ET
from lxml.etree import CDATA

from aiplacement.models.enums import QuestionType
from aiplacement.models.question import QuizQuestion

NAME_PREFIX = "[AI] "
NAME_CHARS = 50
DEFAULT_GRADE = "1.0000000"
PENALTY = "0.3333333"


def make_question_name(question_text: str) -> str:
    text = " ".join(question_text.split())
    if len(text) > NAME_CHARS:
        return NAME_PREFIX + text[:NAME_CHARS] + "..."
    return NAME_PREFIX + text


def add_cdata_text(parent: ET._Element, tag: str, text: str, fmt: Optional[str] = None) -> ET._Element:
    """Creates <tag [format=fmt]><text><![CDATA[...]]></text></tag>."""
    el = ET.SubElement(parent, tag) if fmt is None else ET.SubElement(parent, tag, format=fmt)
    t = ET.SubElement(el, "text")
    t.text = CDATA(text or "")
    return el


def add_answer(parent: ET._Element, text: str, fraction: str, feedback: str = "") -> ET._Element:
    answer = ET.SubElement(parent, "answer", fraction=fraction, format="html")
    ET.SubElement(answer, "text").text = CDATA(text)
    add_cdata_text(answer, "feedback", feedback, fmt="html")
    return answer


def _add_category(quiz: ET._Element, category: str) -> None:
    q_el = ET.SubElement(quiz, "question", type="category")
    cat = ET.SubElement(q_el, "category")
    ET.SubElement(cat, "text").text = f"$course$/{category}"


def _add_question(quiz: ET._Element, question: QuizQuestion) -> None:
    q_el = ET.SubElement(quiz, "question", type=question.type.value)
    add_cdata_text(q_el, "name", make_question_name(question.question))
    add_cdata_text(q_el, "questiontext", question.question, fmt="html")
    add_cdata_text(q_el, "generalfeedback", question.explanation, fmt="html")
    ET.SubElement(q_el, "defaultgrade").text = DEFAULT_GRADE
    ET.SubElement(q_el, "penalty").text = PENALTY
    ET.SubElement(q_el, "hidden").text = "0"

    if question.type == QuestionType.MULTICHOICE:
        ET.SubElement(q_el, "single").text = "true"
        ET.SubElement(q_el, "shuffleanswers").text = "1"
        ET.SubElement(q_el, "answernumbering").text = "abc"
        for index, option in enumerate(question.options or []):
            add_answer(q_el, option, "100" if index == question.correct else "0")

    elif question.type == QuestionType.TRUEFALSE:
        # Moodle identifies the true/false answers by their English text.
        add_answer(q_el, "true", "100" if question.correct == 0 else "0")
        add_answer(q_el, "false", "100" if question.correct == 1 else "0")

    elif question.type == QuestionType.SHORTANSWER:
        ET.SubElement(q_el, "usecase").text = "0"
        add_answer(q_el, question.correctanswer or "", "100", question.explanation)

    elif question.type == QuestionType.ESSAY:
        ET.SubElement(q_el, "responseformat").text = "editor"
        ET.SubElement(q_el, "responserequired").text = "1"
        ET.SubElement(q_el, "responsefieldlines").text = "15"
        ET.SubElement(q_el, "attachments").text = "0"
        ET.SubElement(q_el, "attachmentsrequired").text = "0"
        add_cdata_text(q_el, "graderinfo", question.explanation, fmt="html")
        add_cdata_text(q_el, "responsetemplate", "", fmt="html")

    if question.tags:
        tags_el = ET.SubElement(q_el, "tags")
        for tag in question.tags:
            tag_el = ET.SubElement(tags_el, "tag")
            ET.SubElement(tag_el, "text").text = tag


def build_moodle_tree(questions: List[QuizQuestion], category: Optional[str] = None) -> ET._ElementTree:
    quiz = ET.Element("quiz")
    if category:
        _add_category(quiz, category)
    for question in questions:
        _add_question(quiz, question)
    return ET.ElementTree(quiz)


def build_moodle_xml(questions: List[QuizQuestion], category: Optional[str] = None) -> bytes:
    tree = build_moodle_tree(questions, category)
    return ET.tostring(tree.getroot(), encoding="UTF-8", xml_declaration=True, pretty_print=True)
