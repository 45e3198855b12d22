import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class SubmissionScore:
    """Score and timing statistics of one answer set."""
    score: int
    average_response_time: float
    fastest_response: float


def _questions_by_id(quiz: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {str(q.get("id")): q for q in quiz.get("questions", []) or []}


def _is_correct(question: Optional[Dict[str, Any]], selected_option: Any) -> bool:
    return question is not None and question.get("correct_answer") == selected_option


# PUBLIC_INTERFACE
def score_submission(quiz: Dict[str, Any], answers: List[Dict[str, Any]]) -> SubmissionScore:
    """
    Compute the raw score and timing metrics of an answer set.

    Rules:
        - An answer scores a point only when its question exists in the quiz
          and the selected option equals the question's correct answer.
          Unknown question ids are never credited.
        - Only non-zero response times enter the time total and the fastest
          response. A time of exactly 0 counts as "not provided".
        - The average divides that total by the number of answers submitted,
          including answers whose time was skipped.
        - With no non-zero time at all the fastest response is math.inf.

    Args:
        quiz: Quiz dict with a "questions" list.
        answers: Dicts with "question_id", "selected_option" and "response_time" (seconds).

    Returns:
        SubmissionScore: score, average_response_time (NaN for an empty list) and fastest_response.
    """
    questions = _questions_by_id(quiz)
    score = 0
    total_response_time = 0.0
    fastest_response = math.inf

    for answer in answers:
        question = questions.get(str(answer.get("question_id")))
        if _is_correct(question, answer.get("selected_option")):
            score += 1

        response_time = answer.get("response_time")
        if response_time:
            total_response_time += response_time
            fastest_response = min(fastest_response, response_time)

    # Empty answer sets are rejected before scoring; keep the result defined anyway.
    average_response_time = total_response_time / len(answers) if answers else math.nan

    return SubmissionScore(
        score=score,
        average_response_time=average_response_time,
        fastest_response=fastest_response,
    )


# PUBLIC_INTERFACE
def grade_answers(quiz: Dict[str, Any], answers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return copies of the answers with the derived "is_correct" flag attached."""
    questions = _questions_by_id(quiz)
    graded = []
    for answer in answers:
        question = questions.get(str(answer.get("question_id")))
        graded.append({**answer, "is_correct": _is_correct(question, answer.get("selected_option"))})
    return graded
