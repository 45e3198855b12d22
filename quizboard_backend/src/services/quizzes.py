import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.core.exceptions import QuizNotFound
from src.storage.json_store import QuizJsonStore

logger = logging.getLogger(__name__)

DEFAULT_TIMER_SECONDS = 30
MIN_TIMER_SECONDS = 5
MAX_TIMER_SECONDS = 300


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def clamp_timer(timer: Optional[int]) -> int:
    """Return the question timer in seconds, defaulted and clamped into [5, 300]."""
    return min(max(timer or DEFAULT_TIMER_SECONDS, MIN_TIMER_SECONDS), MAX_TIMER_SECONDS)


# PUBLIC_INTERFACE
def build_quiz(
    title: str,
    questions: List[Dict[str, Any]],
    quiz_type: str = "quiz",
    theme: str = "blue",
) -> Dict[str, Any]:
    """
    Create a quiz dict ready for storage.

    Quiz and question ids are freshly generated, timers are defaulted and
    clamped, and the creation time is stamped in UTC.
    """
    return {
        "id": uuid.uuid4().hex,
        "title": title.strip(),
        "type": quiz_type,
        "theme": theme,
        "created_at": _utc_now_iso(),
        "questions": [
            {
                "id": uuid.uuid4().hex,
                "text": q["text"].strip(),
                "options": [o.strip() for o in q["options"]],
                "correct_answer": int(q.get("correct_answer", 0)),
                "timer": clamp_timer(q.get("timer")),
            }
            for q in questions
        ],
    }


# PUBLIC_INTERFACE
def create_quiz(store: QuizJsonStore, title: str, questions: List[Dict[str, Any]], quiz_type: str = "quiz", theme: str = "blue") -> Dict[str, Any]:
    """Build and persist a new quiz, returning the stored dict."""
    quiz = build_quiz(title, questions, quiz_type=quiz_type, theme=theme)
    store.add_quiz(quiz)
    logger.info("Created %s %s with %d question(s)", quiz_type, quiz["id"], len(quiz["questions"]))
    return quiz


# PUBLIC_INTERFACE
def join_quiz(store: QuizJsonStore, quiz_id: str, name: str) -> Dict[str, Any]:
    """
    Register a new player for a quiz.

    Raises:
        QuizNotFound: If the quiz does not exist.
    """
    if store.get_quiz(quiz_id) is None:
        raise QuizNotFound(quiz_id)

    player = {
        "id": uuid.uuid4().hex,
        "name": name.strip(),
        "quiz_id": quiz_id,
        "score": 0,
        "joined_at": _utc_now_iso(),
    }
    store.add_player(player)
    logger.info("Player %s joined quiz %s", player["id"], quiz_id)
    return player
