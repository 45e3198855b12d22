import json
import logging
import os
import tempfile
import threading
from typing import Optional, Dict, Any, List


logger = logging.getLogger(__name__)

COLLECTIONS = ("quizzes", "players", "responses")


class DuplicateKeyError(Exception):
    """Raised when an insert violates a uniqueness constraint of the store."""

    def __init__(self, collection: str, key: Dict[str, Any]):
        self.collection = collection
        self.key = key
        super().__init__(f"Duplicate key in '{collection}': {key}")


def _default_data() -> Dict[str, Any]:
    return {name: [] for name in COLLECTIONS}


class QuizJsonStore:
    """
    A simple JSON file store for quizzes, players and responses with safe
    atomic write operations.

    Data model:
    {
        "quizzes": [ { ...quiz dict... }, ... ],
        "players": [ { ...player dict... }, ... ],
        "responses": [ { ...response dict... }, ... ]
    }

    Every read-modify-write runs under a process-local lock, so the
    (player_id, quiz_id) uniqueness check in insert_response cannot race
    with another insert from the same process.
    """

    # PUBLIC_INTERFACE
    def __init__(self, path: str) -> None:
        """
        Initialize the JSON store.

        - Resolves the storage path to an absolute path.
        - Ensures the parent directory exists.
        """
        self.path = os.path.abspath(path)
        self._lock = threading.RLock()

        # Ensure parent directory exists
        parent_dir = os.path.dirname(self.path) or "."
        os.makedirs(parent_dir, exist_ok=True)

    # PUBLIC_INTERFACE
    def load_all(self) -> Dict[str, Any]:
        """
        Load and return the entire data structure from the JSON file.
        If the file does not exist, it will be created with the default structure.

        Returns:
            dict: The data in the form {"quizzes": [...], "players": [...], "responses": [...]}.
        """
        with self._lock:
            if not os.path.exists(self.path):
                default_data = _default_data()
                self._atomic_write(default_data)
                return default_data

            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError:
                # If the file is corrupted, reset to default structure to keep service functioning.
                logger.warning("Data file %s is not valid JSON, resetting it", self.path)
                data = _default_data()
                self._atomic_write(data)

            if not isinstance(data, dict):
                logger.warning("Data file %s has an unexpected layout, resetting it", self.path)
                data = _default_data()
                self._atomic_write(data)

            # Normalize structure; older files may lack a collection
            for name in COLLECTIONS:
                if not isinstance(data.get(name), list):
                    data[name] = []

            return data

    # PUBLIC_INTERFACE
    def save_all(self, data: Dict[str, Any]) -> None:
        """
        Persist the provided data to the JSON file using an atomic write.

        Args:
            data (dict): The full data structure to persist.
        """
        # Basic validation
        if not isinstance(data, dict):
            raise ValueError("Data must be a dict")
        for name in COLLECTIONS:
            if name not in data or not isinstance(data[name], list):
                raise ValueError(f"Data must contain '{name}' as a list")

        with self._lock:
            self._atomic_write(data)

    # PUBLIC_INTERFACE
    def add_quiz(self, quiz: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a quiz to the store and persist.

        Raises:
            DuplicateKeyError: If a quiz with the same id is already stored.
        """
        with self._lock:
            data = self.load_all()
            if any(q.get("id") == quiz.get("id") for q in data["quizzes"]):
                raise DuplicateKeyError("quizzes", {"id": quiz.get("id")})
            data["quizzes"].append(quiz)
            self.save_all(data)
        return quiz

    # PUBLIC_INTERFACE
    def get_quiz(self, quiz_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a quiz by its identifier.

        Returns:
            dict | None: The quiz dict if found, otherwise None.
        """
        data = self.load_all()
        for q in data["quizzes"]:
            if isinstance(q, dict) and str(q.get("id")) == str(quiz_id):
                return q
        return None

    # PUBLIC_INTERFACE
    def list_quizzes(self) -> List[Dict[str, Any]]:
        """Return the list of all quizzes."""
        data = self.load_all()
        return [q for q in data["quizzes"] if isinstance(q, dict)]

    # PUBLIC_INTERFACE
    def delete_quiz(self, quiz_id: str) -> bool:
        """
        Delete a quiz together with its players and responses.

        Returns:
            bool: True if a quiz was removed, False if it did not exist.
        """
        with self._lock:
            data = self.load_all()
            remaining = [q for q in data["quizzes"] if str(q.get("id")) != str(quiz_id)]
            if len(remaining) == len(data["quizzes"]):
                return False
            data["quizzes"] = remaining
            data["players"] = [p for p in data["players"] if str(p.get("quiz_id")) != str(quiz_id)]
            data["responses"] = [r for r in data["responses"] if str(r.get("quiz_id")) != str(quiz_id)]
            self.save_all(data)
        return True

    # PUBLIC_INTERFACE
    def add_player(self, player: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a player to the store and persist.

        Raises:
            DuplicateKeyError: If a player with the same id is already stored.
        """
        with self._lock:
            data = self.load_all()
            if any(p.get("id") == player.get("id") for p in data["players"]):
                raise DuplicateKeyError("players", {"id": player.get("id")})
            data["players"].append(player)
            self.save_all(data)
        return player

    # PUBLIC_INTERFACE
    def get_player(self, player_id: str) -> Optional[Dict[str, Any]]:
        """Retrieve a player by identifier, or None."""
        data = self.load_all()
        for p in data["players"]:
            if isinstance(p, dict) and str(p.get("id")) == str(player_id):
                return p
        return None

    # PUBLIC_INTERFACE
    def find_players_by_quiz(self, quiz_id: str) -> List[Dict[str, Any]]:
        """Return the players registered for a quiz, in join order."""
        data = self.load_all()
        return [p for p in data["players"] if isinstance(p, dict) and str(p.get("quiz_id")) == str(quiz_id)]

    # PUBLIC_INTERFACE
    def find_response(self, player_id: str, quiz_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored response of a player for a quiz, or None."""
        data = self.load_all()
        for r in data["responses"]:
            if str(r.get("player_id")) == str(player_id) and str(r.get("quiz_id")) == str(quiz_id):
                return r
        return None

    # PUBLIC_INTERFACE
    def insert_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """
        Atomically insert a response.

        The uniqueness check and the write happen under the store lock, so of
        two concurrent inserts for the same (player_id, quiz_id) exactly one
        succeeds.

        Raises:
            DuplicateKeyError: If a response for the same pair already exists.
        """
        key = {"player_id": response.get("player_id"), "quiz_id": response.get("quiz_id")}
        with self._lock:
            if self.find_response(key["player_id"], key["quiz_id"]) is not None:
                raise DuplicateKeyError("responses", key)
            data = self.load_all()
            data["responses"].append(response)
            self.save_all(data)
        return response

    # PUBLIC_INTERFACE
    def insert_scored_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """
        Atomically insert a response and copy its score onto the player.

        Both changes land in a single write, so a stored response always has
        a player whose score matches it.

        Raises:
            DuplicateKeyError: If a response for the same pair already exists.
        """
        key = {"player_id": response.get("player_id"), "quiz_id": response.get("quiz_id")}
        with self._lock:
            data = self.load_all()
            for r in data["responses"]:
                if str(r.get("player_id")) == str(key["player_id"]) and str(r.get("quiz_id")) == str(key["quiz_id"]):
                    raise DuplicateKeyError("responses", key)
            data["responses"].append(response)
            for p in data["players"]:
                if str(p.get("id")) == str(key["player_id"]):
                    p["score"] = response.get("score", 0)
            self.save_all(data)
        return response

    # PUBLIC_INTERFACE
    def find_responses_by_quiz(self, quiz_id: str) -> List[Dict[str, Any]]:
        """Return all responses for a quiz in insertion order."""
        data = self.load_all()
        return [r for r in data["responses"] if isinstance(r, dict) and str(r.get("quiz_id")) == str(quiz_id)]

    # PUBLIC_INTERFACE
    def count_participants(self) -> Dict[str, int]:
        """Return, per quiz id, the number of distinct players that submitted a response."""
        data = self.load_all()
        players_by_quiz: Dict[str, set] = {}
        for r in data["responses"]:
            if isinstance(r, dict):
                players_by_quiz.setdefault(str(r.get("quiz_id")), set()).add(r.get("player_id"))
        return {quiz_id: len(players) for quiz_id, players in players_by_quiz.items()}

    def _atomic_write(self, data: Dict[str, Any]) -> None:
        """
        Write JSON to a temporary file and atomically replace the target.

        This ensures that readers never see a partially-written file.
        """
        directory = os.path.dirname(self.path) or "."
        fd, tmp_path = tempfile.mkstemp(prefix=".quizboard.", suffix=".tmp", dir=directory, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                json.dump(data, tmp_file, indent=2, ensure_ascii=False)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, self.path)
        finally:
            # If os.replace succeeded, tmp_path no longer exists; ignore errors
            try:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
            except OSError:
                pass
