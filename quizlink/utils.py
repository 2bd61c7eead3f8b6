from typing import Any, Optional, Sequence


def normalize_answer(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def grade_answers(questions: Sequence[Any], answers: Sequence[Optional[str]]) -> int:
    """
    Sum the score of every question whose submitted answer matches the key.

    Answers correspond to questions by position. A missing answer counts as
    an empty string, and answers past the end of the question list are ignored.
    Questions may be mappings or objects with ``answer`` and ``score``.
    """
    total = 0
    for index, question in enumerate(questions):
        if isinstance(question, dict):
            correct, score = question["answer"], question["score"]
        else:
            correct, score = question.answer, question.score

        submitted = answers[index] if index < len(answers) else ""
        if normalize_answer(submitted) == correct:
            total += score
    return total
