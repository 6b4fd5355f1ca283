# tests/test_quiz_parser.py
import json

import pytest

from aiplacement.models.enums import QuestionType, RequestedQuizType
from aiplacement.services.quiz_parser import (
    MAX_QUESTIONS,
    extract_json_array,
    find_correct_index,
    load_question_list,
    parse_fallback_lines,
    parse_quiz_response,
    strip_code_fences,
    validate_question,
    validate_questions,
)

MATH_QUESTION = ('[{"question":"2+2?","type":"multichoice","options":["3","4","5","6"],'
                 '"correct":1,"explanation":"basic math","tags":["math"]}]')

FRANCE_LINES = ("Question: What is the capital of France?\n"
                "A) Paris\n"
                "B) London\n"
                "Correct: A\n"
                "Explanation: Paris is the capital.\n")


class TestStages:

    def test_strip_code_fences(self):
        assert strip_code_fences("```json\n[1]\n```") == "[1]"
        assert strip_code_fences("```JSON\n[1]\n```") == "[1]"
        assert strip_code_fences("  [1]  ") == "[1]"
        assert strip_code_fences(None) == ""

    def test_extract_json_array_prefers_text_starting_with_bracket(self):
        assert extract_json_array("[1, 2]") == "[1, 2]"

    def test_extract_json_array_takes_first_to_last_bracket(self):
        text = 'Here you go: [{"question": "a"}] and [{"question": "b"}] done'
        assert extract_json_array(text) == '[{"question": "a"}] and [{"question": "b"}]'

    def test_extract_json_array_without_brackets(self):
        assert extract_json_array("no array here") is None

    def test_load_question_list(self):
        assert load_question_list('[{"question": "a"}]') == [{"question": "a"}]
        assert load_question_list("[]") == []
        assert load_question_list('{"question": "a"}') is None
        assert load_question_list("[not json") is None
        assert load_question_list(None) is None

    def test_fallback_lines_groups_blocks(self):
        text = ("Question: First?\nA) one\nB) two\nCorrect: B\n"
                "Question: Second?\n1) yes\n2) no\nExplanation: because\n")
        records = parse_fallback_lines(text)
        assert records == [
            {"question": "First?", "options": ["one", "two"], "correct": 1},
            {"question": "Second?", "options": ["yes", "no"], "explanation": "because"},
        ]

    def test_fallback_lines_russian_markers(self):
        text = "Вопрос: Столица Франции?\nA) Париж\nB) Лондон\nПравильный: Париж\nПояснение: Очевидно.\n"
        records = parse_fallback_lines(text)
        assert records[0]["question"] == "Столица Франции?"
        assert records[0]["correct"] == 0
        assert records[0]["explanation"] == "Очевидно."

    def test_fallback_lines_ignore_unrelated_text(self):
        assert parse_fallback_lines("I cannot help with that.") == []


class TestFindCorrectIndex:

    @pytest.mark.parametrize("answer, expected", [("A", 0), ("B", 1), ("c", 2), ("D) Rome", 3)])
    def test_leading_letter(self, answer, expected):
        assert find_correct_index(answer, ["w", "x", "y", "z"]) == expected

    def test_answer_text_matches_option(self):
        assert find_correct_index("london", ["Paris", "London"]) == 1

    def test_word_starting_with_letter_is_not_a_letter_answer(self):
        # "Berlin" starts with B but names an option, so the text match decides.
        assert find_correct_index("Berlin", ["Berlin", "Paris"]) == 0
        assert find_correct_index("Cat", ["Dog", "Cat"]) == 1

    def test_unmatched_answer_defaults_to_first_option(self):
        assert find_correct_index("Madrid", ["Paris", "London"]) == 0
        assert find_correct_index("", ["Paris", "London"]) == 0


class TestValidation:

    def test_multichoice_is_padded_and_clamped(self):
        question = validate_question({"question": "Q?", "options": ["a"], "correct": 9})
        assert question.options == ["a", "Option 2", "Option 3", "Option 4"]
        assert question.correct == 3

    def test_multichoice_extra_options_are_cut(self):
        question = validate_question({"question": "Q?", "options": list("abcdef"), "correct": -2})
        assert question.options == ["a", "b", "c", "d"]
        assert question.correct == 0

    def test_multichoice_russian_placeholders(self):
        question = validate_question({"question": "Q?", "options": []}, language="ru")
        assert question.options == ["Вариант 1", "Вариант 2", "Вариант 3", "Вариант 4"]

    @pytest.mark.parametrize("correct, expected", [
        (0, 0), (1, 1), (5, 1), (-1, 1), (True, 0), (False, 1), ("true", 0), ("False", 1), (None, 0),
    ])
    def test_truefalse_uses_fixed_pair(self, correct, expected):
        question = validate_question({"question": "Sky is blue?", "type": "truefalse",
                                      "options": ["x", "y", "z"], "correct": correct})
        assert question.options == ["True", "False"]
        assert question.correct == expected

    def test_shortanswer_uses_first_option_when_answer_missing(self):
        question = validate_question({"question": "Capital of France?", "type": "shortanswer",
                                      "options": ["Paris"]})
        assert question.correctanswer == "Paris"
        assert question.options is None

    def test_shortanswer_keeps_given_answer(self):
        question = validate_question({"question": "2+2?", "type": "shortanswer", "correctanswer": "4"})
        assert question.correctanswer == "4"

    def test_essay_has_no_options(self):
        question = validate_question({"question": "Discuss.", "type": "essay", "options": ["a"], "correct": 3})
        assert question.options == []
        assert question.correct == 0

    def test_html_is_stripped(self):
        question = validate_question({"question": "<b>Bold?</b>", "explanation": "<i>yes</i>"})
        assert question.question == "Bold?"
        assert question.explanation == "yes"

    def test_missing_type_uses_requested_type(self):
        questions = validate_questions([{"question": "Q?"}], default_type=RequestedQuizType.TRUEFALSE)
        assert questions[0].type == QuestionType.TRUEFALSE

    def test_combined_request_defaults_to_multichoice(self):
        questions = validate_questions([{"question": "Q?"}], default_type=RequestedQuizType.COMBINED)
        assert questions[0].type == QuestionType.MULTICHOICE

    def test_unknown_type_becomes_multichoice(self):
        question = validate_question({"question": "Q?", "type": "matching"})
        assert question.type == QuestionType.MULTICHOICE
        assert len(question.options) == 4

    def test_non_dicts_and_missing_questions_are_dropped(self):
        items = ["text", 3, None, {"options": ["a"]}, {"question": "   "}, {"question": "Kept?"}]
        questions = validate_questions(items)
        assert [q.question for q in questions] == ["Kept?"]

    def test_tags_accept_a_single_string(self):
        question = validate_question({"question": "Q?", "tags": "math"})
        assert question.tags == ["math"]


class TestParseQuizResponse:

    def test_json_array(self):
        questions = parse_quiz_response(MATH_QUESTION)
        assert len(questions) == 1
        assert questions[0].correct == 1
        assert questions[0].options == ["3", "4", "5", "6"]
        assert questions[0].explanation == "basic math"
        assert questions[0].tags == ["math"]

    def test_line_fallback(self):
        questions = parse_quiz_response(FRANCE_LINES)
        assert len(questions) == 1
        assert questions[0].options == ["Paris", "London", "Option 3", "Option 4"]
        assert questions[0].correct == 0
        assert questions[0].explanation == "Paris is the capital."

    def test_fenced_empty_array(self):
        assert parse_quiz_response("```json\n[]\n```") == []

    def test_truefalse_out_of_range(self):
        raw = json.dumps([{"question": "Water is wet?", "type": "truefalse", "correct": 5}])
        questions = parse_quiz_response(raw)
        assert questions[0].correct in (0, 1)

    def test_object_without_question_is_dropped(self):
        raw = json.dumps([{"options": ["a", "b"], "correct": 0}, {"question": "Real?"}])
        questions = parse_quiz_response(raw)
        assert [q.question for q in questions] == ["Real?"]

    def test_code_fences_do_not_change_the_result(self):
        plain = parse_quiz_response(MATH_QUESTION)
        fenced = parse_quiz_response("```json\n" + MATH_QUESTION + "\n```")
        assert [q.to_record() for q in plain] == [q.to_record() for q in fenced]

    def test_array_embedded_in_prose(self):
        questions = parse_quiz_response("Sure! Here are the questions:\n" + MATH_QUESTION + "\nGood luck.")
        assert len(questions) == 1

    def test_invalid_json_falls_back_to_lines(self):
        raw = "[broken\n" + FRANCE_LINES
        questions = parse_quiz_response(raw)
        assert [q.question for q in questions] == ["What is the capital of France?"]

    def test_output_is_capped(self):
        raw = json.dumps([{"question": f"Q{i}?"} for i in range(30)])
        questions = parse_quiz_response(raw)
        assert len(questions) == MAX_QUESTIONS
        assert questions[-1].question == "Q19?"

    @pytest.mark.parametrize("raw", ["", "   ", "Sorry, I can't do that.", "{}", "null"])
    def test_unusable_input_gives_empty_list(self, raw):
        assert parse_quiz_response(raw) == []

    def test_every_question_is_well_formed(self):
        raw = json.dumps([
            {"question": "A?", "type": "multichoice", "options": ["1", "2"], "correct": "B"},
            {"question": "B?", "type": "truefalse", "correct": "no"},
            {"question": "C?", "type": "shortanswer", "options": [42]},
            {"question": "D?", "type": "essay"},
            {"question": "E?", "type": "multichoice", "correct": 2.7},
        ])
        questions = parse_quiz_response(raw)
        assert len(questions) == 5
        for question in questions:
            assert question.question
            if question.type == QuestionType.MULTICHOICE:
                assert len(question.options) == 4
                assert 0 <= question.correct <= 3
            elif question.type == QuestionType.TRUEFALSE:
                assert len(question.options) == 2
                assert question.correct in (0, 1)
        assert questions[0].correct == 1
        assert questions[1].correct == 1
        assert questions[2].correctanswer == "42"
        assert questions[4].correct == 2

    def test_well_formed_input_is_returned_unchanged(self):
        records = [
            {"question": "2+2?", "type": "multichoice", "options": ["3", "4", "5", "6"], "correct": 1,
             "explanation": "basic math", "tags": ["math"]},
            {"question": "The sun is a star.", "type": "truefalse", "options": ["True", "False"], "correct": 0,
             "explanation": "It is.", "tags": []},
            {"question": "Chemical symbol of gold?", "type": "shortanswer", "correctanswer": "Au",
             "explanation": "From Latin aurum.", "tags": ["chemistry"]},
        ]
        questions = parse_quiz_response(json.dumps(records))
        assert [q.to_record() for q in questions] == records

    def test_comparison_signs_are_not_tags(self):
        records = [{"question": "Is 2 < 3 and 5 > 4?", "type": "truefalse", "options": ["True", "False"],
                    "correct": 0, "explanation": "a < b holds when b > a", "tags": []}]
        questions = parse_quiz_response(json.dumps(records))
        assert [q.to_record() for q in questions] == records

