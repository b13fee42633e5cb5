# utils.py
import json
import logging

from errors import ParseError, QuizValidationError

logger = logging.getLogger(__name__)

OPTIONS_PER_QUESTION = 4


def _strip_fences(text: str) -> str:
    # Some models wrap JSON in ``` blocks; strip if present
    content = text.strip()
    if content.startswith("```"):
        # "```json\n{...}" drops the whole fence line, "```json {...}" only the backticks
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
        if content.rstrip().endswith("```"):
            content = content.rstrip()[:-3]
    return content.strip()


def first_balanced_object(text: str):
    """Return the first top-level ``{...}`` group in ``text``, or None.

    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def outer_brace_span(text: str):
    """First ``{`` through last ``}``, or None when there is no such pair."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def extract_json(text: str):
    """Parse a JSON value out of free-form model output.

    Tries the whole text first, then a brace span. Raises ParseError when nothing parses.
    """
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        logger.info("Direct JSON parsing failed, trying to extract JSON: %s", e)

    raw = text or ""
    content = _strip_fences(raw)
    candidates = []
    for source in (content, raw):
        for span in (first_balanced_object(source), outer_brace_span(source)):
            if span is not None and span not in candidates:
                candidates.append(span)

    if not candidates:
        raise ParseError("Failed to parse JSON from the Gemini response")

    for span in candidates:
        try:
            return json.loads(span)
        except ValueError as e:
            logger.info("Brace span did not parse: %s", e)
    raise ParseError("Could not parse valid JSON from the response")


def validate_and_fix_quiz_data(data, topic: str) -> dict:
    """Repair ``data`` in place into a valid quiz payload and return it.

    Missing title, blank question text and miscounted correct flags are fixed.
    An empty question list or a question without exactly four options raises
    QuizValidationError.
    """
    if not isinstance(data, dict):
        raise QuizValidationError("The quiz response must be a JSON object")

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        data["title"] = f"{topic} Quiz"

    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        raise QuizValidationError("The quiz must have at least one question")

    for i, q in enumerate(questions):
        n = i + 1
        if not isinstance(q, dict):
            raise QuizValidationError(f"Question {n} must be an object")

        text = q.get("question")
        if not text or not isinstance(text, str) or not text.strip():
            logger.warning("Question %d has no text, using a placeholder", n)
            q["question"] = f"Question {n} about {topic}"

        options = q.get("options")
        if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
            raise QuizValidationError(f"Question {n} must have exactly {OPTIONS_PER_QUESTION} options")
        for j, opt in enumerate(options):
            if not isinstance(opt, dict):
                raise QuizValidationError(f"Question {n} option {j + 1} must be an object")

        # only a JSON true counts; other truthy values become false
        for opt in options:
            opt["isCorrect"] = opt.get("isCorrect") is True
        correct = sum(1 for opt in options if opt["isCorrect"])
        if correct != 1:
            logger.warning("Question %d has %d correct options, marking the first one", n, correct)
            for j, opt in enumerate(options):
                opt["isCorrect"] = j == 0

    return data


def score_answers(questions, answers: dict) -> tuple:
    """Score a submission.

    ``questions`` are ORM Question rows with their options loaded; ``answers`` maps
    question id to the selected option id. Returns (score, max_score).
    Raises ValueError for an unknown question or an option from another question.
    """
    by_id = {q.id: q for q in questions}
    for qid, oid in answers.items():
        q = by_id.get(qid)
        if q is None:
            raise ValueError(f"Question {qid} is not part of this quiz")
        if oid not in {o.id for o in q.options}:
            raise ValueError(f"Option {oid} does not belong to question {qid}")

    score = 0
    for q in questions:
        selected = answers.get(q.id)
        correct = next((o for o in q.options if o.is_correct), None)
        if selected is not None and correct is not None and selected == correct.id:
            score += 1
    return score, len(questions)


def percentage(score: int, max_score: int) -> int:
    if not max_score:
        return 0
    # half up, like the web client
    return int(score * 100 / max_score + 0.5)
