import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from src.api.main import create_app
from src.core.config import AppConfig
from src.storage.json_store import QuizJsonStore


def make_quiz(quiz_id="quiz-1", quiz_type="quiz", timers=(30, 30), correct=(0, 1)):
    return {
        "id": quiz_id,
        "title": "Capitals",
        "type": quiz_type,
        "theme": "blue",
        "created_at": "2024-01-01T00:00:00Z",
        "questions": [
            {
                "id": f"q{i + 1}",
                "text": f"Question {i + 1}",
                "options": ["a", "b", "c"],
                "correct_answer": c,
                "timer": t,
            }
            for i, (t, c) in enumerate(zip(timers, correct))
        ],
    }


@pytest.fixture()
def quiz():
    return make_quiz()


@pytest.fixture()
def poll():
    return make_quiz(quiz_id="poll-1", quiz_type="poll")


@pytest.fixture()
def store(tmp_path):
    return QuizJsonStore(path=str(tmp_path / "data" / "quizboard.json"))


@pytest.fixture()
def config(tmp_path):
    return AppConfig(_env_file=None, data_file=str(tmp_path / "api" / "quizboard.json"))


@pytest.fixture()
def client(config):
    app = create_app(config)
    return TestClient(app)
