import json
from types import SimpleNamespace

import pytest
from conftest import make_payload, make_question
from errors import ParseError, QuizValidationError
from utils import (
    extract_json,
    first_balanced_object,
    outer_brace_span,
    percentage,
    score_answers,
    validate_and_fix_quiz_data,
)


def test_extract_json_plain():
    payload = make_payload()
    assert extract_json(json.dumps(payload)) == payload


def test_extract_json_embedded_in_prose():
    payload = make_payload(title="T")
    text = f"Sure! {json.dumps(payload)} Hope that helps!"
    assert extract_json(text) == payload


def test_extract_json_code_fence():
    payload = make_payload()
    text = "```json\n" + json.dumps(payload, indent=2) + "\n```"
    assert extract_json(text) == payload


def test_extract_json_single_line_code_fence():
    payload = make_payload()
    assert extract_json("```json " + json.dumps(payload) + "```") == payload
    assert extract_json("```" + json.dumps(payload) + "```") == payload


def test_extract_json_ignores_later_brace_fragment():
    payload = make_payload()
    text = f"Here you go: {json.dumps(payload)}\nNote: use {{curly}} braces carefully."
    assert extract_json(text) == payload


def test_extract_json_without_braces_fails():
    with pytest.raises(ParseError, match="Failed to parse JSON"):
        extract_json("I cannot make a quiz about that.")


def test_extract_json_unparseable_span_fails():
    with pytest.raises(ParseError, match="Could not parse valid JSON"):
        extract_json("Here: {title: 'no quotes', questions: [}")


def test_first_balanced_object_skips_braces_in_strings():
    text = 'x {"a": "}{", "b": {"c": 1}} y {"d": 2}'
    assert first_balanced_object(text) == '{"a": "}{", "b": {"c": 1}}'
    assert outer_brace_span(text) == '{"a": "}{", "b": {"c": 1}} y {"d": 2}'
    assert first_balanced_object("no braces") is None
    assert outer_brace_span("} backwards {") is None


def test_valid_payload_unchanged():
    payload = make_payload(questions=[make_question(), make_question("Capital of France?", correct=2)])
    expected = json.loads(json.dumps(payload))
    assert validate_and_fix_quiz_data(payload, "Math") == expected


def test_missing_title_uses_topic():
    payload = make_payload()
    del payload["title"]
    assert validate_and_fix_quiz_data(payload, "World History")["title"] == "World History Quiz"


def test_empty_title_uses_topic():
    payload = make_payload(title="")
    assert validate_and_fix_quiz_data(payload, "Biology")["title"] == "Biology Quiz"


def test_whitespace_title_uses_topic():
    payload = make_payload(title="   ")
    assert validate_and_fix_quiz_data(payload, "Biology")["title"] == "Biology Quiz"


@pytest.mark.parametrize("text", ["", "   ", None, 42])
def test_blank_question_gets_placeholder(text):
    payload = make_payload(questions=[make_question(), make_question(text=text)])
    fixed = validate_and_fix_quiz_data(payload, "Rust")
    assert fixed["questions"][0]["question"] == "What is 2 + 2?"
    assert fixed["questions"][1]["question"] == "Question 2 about Rust"


@pytest.mark.parametrize("flags", [
    [False, False, False, False],
    [False, True, True, False],
    [True, True, True, True],
])
def test_miscounted_correct_flags_mark_first(flags):
    question = make_question()
    for opt, flag in zip(question["options"], flags):
        opt["isCorrect"] = flag
    fixed = validate_and_fix_quiz_data(make_payload(questions=[question]), "Math")
    assert [o["isCorrect"] for o in fixed["questions"][0]["options"]] == [True, False, False, False]


@pytest.mark.parametrize("extra", [1, "yes", "true", [1]])
def test_truthy_flag_next_to_single_true_is_cleared(extra):
    question = make_question(correct=2)
    question["options"][0]["isCorrect"] = extra
    fixed = validate_and_fix_quiz_data(make_payload(questions=[question]), "Math")
    assert [o["isCorrect"] for o in fixed["questions"][0]["options"]] == [False, False, True, False]


def test_truthy_non_boolean_flags_do_not_count():
    question = make_question(correct=None)
    question["options"][2]["isCorrect"] = "true"
    fixed = validate_and_fix_quiz_data(make_payload(questions=[question]), "Math")
    assert [o["isCorrect"] for o in fixed["questions"][0]["options"]] == [True, False, False, False]


@pytest.mark.parametrize("count", [3, 5])
def test_wrong_option_count_fails_with_index(count):
    payload = make_payload(questions=[make_question(), make_question(count=count)])
    with pytest.raises(QuizValidationError, match="Question 2 must have exactly 4 options"):
        validate_and_fix_quiz_data(payload, "Math")


def test_missing_options_fails():
    question = make_question()
    del question["options"]
    with pytest.raises(QuizValidationError, match="Question 1"):
        validate_and_fix_quiz_data(make_payload(questions=[question]), "Math")


@pytest.mark.parametrize("questions", [[], None, "not a list"])
def test_no_questions_fails(questions):
    payload = {"title": "Empty"}
    if questions is not None:
        payload["questions"] = questions
    with pytest.raises(QuizValidationError, match="at least one question"):
        validate_and_fix_quiz_data(payload, "Math")


def test_non_object_payload_fails():
    with pytest.raises(QuizValidationError, match="JSON object"):
        validate_and_fix_quiz_data([make_question()], "Math")


def test_non_object_option_fails():
    question = make_question()
    question["options"][3] = "Paris"
    with pytest.raises(QuizValidationError, match="Question 1 option 4"):
        validate_and_fix_quiz_data(make_payload(questions=[question]), "Math")


def _question(qid, option_ids, correct_id):
    return SimpleNamespace(
        id=qid,
        options=[SimpleNamespace(id=oid, is_correct=oid == correct_id) for oid in option_ids],
    )


def test_score_answers():
    questions = [_question(1, [10, 11, 12, 13], 11), _question(2, [20, 21, 22, 23], 20), _question(3, [30, 31, 32, 33], 33)]
    assert score_answers(questions, {1: 11, 2: 21}) == (1, 3)
    assert score_answers(questions, {1: 11, 2: 20, 3: 33}) == (3, 3)
    assert score_answers(questions, {}) == (0, 3)


def test_score_answers_rejects_foreign_ids():
    questions = [_question(1, [10, 11, 12, 13], 11)]
    with pytest.raises(ValueError, match="Question 9"):
        score_answers(questions, {9: 10})
    with pytest.raises(ValueError, match="Option 20"):
        score_answers(questions, {1: 20})


def test_percentage():
    assert percentage(0, 0) == 0
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(5, 5) == 100


def test_earlier_brace_group_wins_over_quiz():
    quiz = make_payload()
    text = 'Example: {"a": 1}. Quiz: ' + json.dumps(quiz)
    data = extract_json(text)
    assert data == {"a": 1}
    with pytest.raises(QuizValidationError, match="at least one question"):
        validate_and_fix_quiz_data(data, "Math")
