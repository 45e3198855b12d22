"""
Submission admission control.

Checks that a submission may be accepted (quiz and player exist, no earlier
response, well-formed answers), completes the answer set for quizzes, scores
it and stores the resulting response exactly once.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List

from src.core.exceptions import DuplicateSubmission, PlayerNotFound, QuizNotFound, ValidationError
from src.services.scoring import grade_answers, score_submission
from src.storage.json_store import DuplicateKeyError, QuizJsonStore

logger = logging.getLogger(__name__)

NOT_ANSWERED = -1
BACKFILL_OPTION = 0


def validate_answers(quiz: Dict[str, Any], answers: List[Dict[str, Any]]) -> None:
    """
    Reject malformed answer sets.

    Raises:
        ValidationError: On an empty list, a question answered twice, a
            selected option outside a known question's options, or a
            "not answered" marker in a quiz that is not a poll.
    """
    if not answers:
        raise ValidationError("At least one answer is required")

    questions = {str(q.get("id")): q for q in quiz.get("questions", [])}
    seen = set()
    for answer in answers:
        question_id = str(answer.get("question_id"))
        if question_id in seen:
            raise ValidationError(f"Question {question_id} answered more than once")
        seen.add(question_id)

        selected = answer.get("selected_option")
        if selected == NOT_ANSWERED:
            if quiz.get("type") != "poll":
                raise ValidationError("Every quiz answer must select an option")
            continue

        # Unknown question ids are tolerated; they just never score.
        question = questions.get(question_id)
        if question is not None and not 0 <= selected < len(question.get("options", [])):
            raise ValidationError(f"Selected option {selected} is out of range for question {question_id}")


def complete_answers(quiz: Dict[str, Any], answers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Return the answer set to score.

    Quizzes get every unanswered question appended as option 0 answered at
    the full question timer. Polls keep only what was answered: "not
    answered" markers are dropped and never enter the timing statistics.
    """
    if quiz.get("type") == "poll":
        return [dict(a) for a in answers if a.get("selected_option") != NOT_ANSWERED]

    completed = [dict(a) for a in answers]
    answered = {str(a.get("question_id")) for a in answers}
    for question in quiz.get("questions", []):
        if str(question.get("id")) not in answered:
            completed.append(
                {
                    "question_id": question.get("id"),
                    "selected_option": BACKFILL_OPTION,
                    "response_time": question.get("timer"),
                }
            )
    return completed


# PUBLIC_INTERFACE
def submit_answers(
    store: QuizJsonStore,
    quiz_id: str,
    player_id: str,
    answers: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Accept, score and store a player's answers for a quiz.

    Args:
        store: Persistence backend.
        quiz_id: Quiz being answered.
        player_id: Player submitting; must have joined this quiz.
        answers: Dicts with "question_id", "selected_option" and "response_time" (seconds).

    Returns:
        dict: The stored response, including "score".

    Raises:
        QuizNotFound, PlayerNotFound: If either entity is missing.
        ValidationError: If the answers are malformed.
        DuplicateSubmission: If the player already submitted for this quiz.
    """
    quiz = store.get_quiz(quiz_id)
    if quiz is None:
        raise QuizNotFound(quiz_id)

    player = store.get_player(player_id)
    if player is None or str(player.get("quiz_id")) != str(quiz_id):
        raise PlayerNotFound(player_id)

    validate_answers(quiz, answers)

    if store.find_response(player_id, quiz_id) is not None:
        logger.warning("Rejected second submission of player %s for quiz %s", player_id, quiz_id)
        raise DuplicateSubmission(player_id, quiz_id)

    completed = complete_answers(quiz, answers)
    if not completed:
        raise ValidationError("At least one question must be answered")
    result = score_submission(quiz, completed)

    response = {
        "player_id": player_id,
        "quiz_id": quiz_id,
        "answers": grade_answers(quiz, completed),
        "score": result.score,
        "average_response_time": result.average_response_time,
        # inf is not valid JSON; store "no timed answers" as null
        "fastest_response": None if math.isinf(result.fastest_response) else result.fastest_response,
        "submitted_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    }

    try:
        store.insert_scored_response(response)
    except DuplicateKeyError as e:
        logger.warning("Lost submission race for player %s on quiz %s", player_id, quiz_id)
        raise DuplicateSubmission(player_id, quiz_id) from e

    logger.info("Player %s scored %d on quiz %s", player_id, result.score, quiz_id)
    return response
