import logging
import math
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Accuracy weighs four times as much as speed in the combined score.
SCORE_WEIGHT = 0.8
TIME_WEIGHT = 0.2


def _fastest_or_none(value: Any) -> Optional[float]:
    """Map the "no timed answers" sentinel (inf or missing) to None."""
    if value is None:
        return None
    value = float(value)
    return None if math.isinf(value) or math.isnan(value) else value


# PUBLIC_INTERFACE
def time_efficiency(quiz: Dict[str, Any], average_response_time: float) -> float:
    """
    Return how much faster than the allotted time a player answered, in percent.

    Question timers are summed in milliseconds and the average response time
    (seconds) is converted to milliseconds before comparing against the mean
    allotted time per question. The result is 100 for an instant answer and
    is floored at 0.
    """
    questions = quiz.get("questions", []) or []
    max_score = len(questions)
    total_allowed_time_ms = sum(q.get("timer", 30) * 1000 for q in questions)
    if max_score == 0 or total_allowed_time_ms <= 0:
        return 0.0
    average_ms = average_response_time * 1000
    return max(0.0, 100 * (1 - average_ms / (total_allowed_time_ms / max_score)))


# PUBLIC_INTERFACE
def combined_score(score_percentage: float, efficiency: float) -> float:
    """Blend accuracy and time efficiency into the ranking score."""
    return score_percentage * SCORE_WEIGHT + efficiency * TIME_WEIGHT


# PUBLIC_INTERFACE
def rank_results(
    quiz: Dict[str, Any],
    responses: List[Dict[str, Any]],
    players: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Build the ranked leaderboard of a quiz.

    Responses whose player record cannot be found are left out of the
    leaderboard instead of failing the request. Entries are ordered by
    combined score, highest first; the sort is stable so equal scores keep
    the order in which responses were retrieved.

    Args:
        quiz: Quiz dict the responses belong to.
        responses: Stored response dicts, in retrieval order.
        players: Player dicts to resolve display data from.

    Returns:
        list[dict]: Leaderboard entries with keys player, score,
        average_response_time, fastest_response, total_questions,
        time_efficiency (e.g. "75.0%") and combined_score.
    """
    players_by_id = {str(p.get("id")): p for p in players}
    max_score = len(quiz.get("questions", []) or [])
    entries = []

    for response in responses:
        player = players_by_id.get(str(response.get("player_id")))
        if player is None:
            logger.warning(
                "Dropping response of unknown player %s from results of quiz %s",
                response.get("player_id"),
                quiz.get("id"),
            )
            continue

        score = int(response.get("score", 0))
        average = float(response.get("average_response_time") or 0.0)
        score_percentage = (score / max_score) * 100 if max_score else 0.0
        efficiency = time_efficiency(quiz, average)

        entries.append(
            {
                "player": player,
                "score": score,
                "average_response_time": average,
                "fastest_response": _fastest_or_none(response.get("fastest_response")),
                "total_questions": max_score,
                "time_efficiency": f"{efficiency:.1f}%",
                "combined_score": combined_score(score_percentage, efficiency),
            }
        )

    # sorted() is stable, reverse=True included
    return sorted(entries, key=lambda e: e["combined_score"], reverse=True)


# PUBLIC_INTERFACE
def question_report(quiz: Dict[str, Any], responses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Summarize how every question of a quiz was answered.

    For each question (in quiz order) the option distribution is counted over
    all responses. Selections of -1 ("not answered") or outside the option
    range are ignored. Quizzes also report how many answers were correct;
    polls have no correct answer and report None there.
    """
    is_poll = quiz.get("type") == "poll"
    report = []

    for question in quiz.get("questions", []) or []:
        options = question.get("options", []) or []
        counts = [0] * len(options)
        correct_count = 0

        for response in responses:
            answer = next(
                (a for a in response.get("answers", []) or [] if str(a.get("question_id")) == str(question.get("id"))),
                None,
            )
            if answer is None:
                continue
            selected = answer.get("selected_option")
            if not isinstance(selected, int) or not 0 <= selected < len(options):
                continue
            counts[selected] += 1
            if selected == question.get("correct_answer"):
                correct_count += 1

        answered = sum(counts)
        if is_poll:
            correct, percentage = None, None
        else:
            correct = correct_count
            percentage = round(correct_count / answered * 100, 1) if answered else None

        report.append(
            {
                "question_id": question.get("id"),
                "text": question.get("text"),
                "options": [{"index": i, "text": text, "count": counts[i]} for i, text in enumerate(options)],
                "answered": answered,
                "correct_count": correct,
                "correct_percentage": percentage,
            }
        )

    return report
