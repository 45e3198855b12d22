from fastapi.testclient import TestClient

from src.api.main import create_app


def _create_quiz(client, quiz_type="quiz"):
    r = client.post(
        "/quizzes",
        json={
            "title": "Capitals",
            "type": quiz_type,
            "questions": [
                {"text": "Capital of France?", "options": ["Paris", "Rome"], "correct_answer": 0, "timer": 30},
                {"text": "Capital of Italy?", "options": ["Paris", "Rome"], "correct_answer": 1},
            ],
        },
    )
    assert r.status_code == 201
    return r.json()


def _join(client, quiz_id, name):
    r = client.post(f"/quizzes/{quiz_id}/join", json={"name": name})
    assert r.status_code == 200
    return r.json()["player_id"]


def _answers(quiz, selections, times):
    return [
        {"question_id": q["id"], "selected_option": s, "response_time": t}
        for q, s, t in zip(quiz["questions"], selections, times)
    ]


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["message"] == "Healthy"


def test_create_quiz_assigns_ids_and_clamps_timers(client):
    r = client.post(
        "/quizzes",
        json={
            "title": "Timers",
            "questions": [
                {"text": "fast", "options": ["a", "b"], "timer": 1},
                {"text": "slow", "options": ["a", "b"], "timer": 999},
                {"text": "default", "options": ["a", "b"]},
            ],
        },
    )
    assert r.status_code == 201
    quiz = r.json()
    assert [q["timer"] for q in quiz["questions"]] == [5, 300, 30]
    assert len({q["id"] for q in quiz["questions"]}) == 3
    assert quiz["type"] == "quiz" and quiz["theme"] == "blue"

    r = client.get(f"/quizzes/{quiz['id']}")
    assert r.status_code == 200
    assert r.json() == quiz


def test_create_quiz_validation(client):
    assert client.post("/quizzes", json={"title": "Empty", "questions": []}).status_code == 422
    bad_index = {"title": "Bad", "questions": [{"text": "q", "options": ["a", "b"], "correct_answer": 2}]}
    assert client.post("/quizzes", json=bad_index).status_code == 422
    one_option = {"title": "Bad", "questions": [{"text": "q", "options": ["a"]}]}
    assert client.post("/quizzes", json=one_option).status_code == 422


def test_unknown_quiz_returns_404(client):
    assert client.get("/quizzes/nope").status_code == 404
    assert client.get("/quizzes/nope/results").status_code == 404
    assert client.get("/quizzes/nope/report").status_code == 404
    assert client.post("/quizzes/nope/join", json={"name": "Ada"}).status_code == 404
    r = client.post("/quizzes/nope/submit", json={"player_id": "x", "answers": []})
    assert r.status_code == 404
    assert r.json()["detail"] == "Quiz not found"


def test_play_flow_and_leaderboard(client):
    quiz = _create_quiz(client)
    ada = _join(client, quiz["id"], "Ada")
    bob = _join(client, quiz["id"], "Bob")

    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": bob, "answers": _answers(quiz, [1, 1], [20, 20])})
    assert r.status_code == 200
    assert r.json() == {"score": 1}

    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": ada, "answers": _answers(quiz, [0, 1], [5, 10])})
    assert r.json() == {"score": 2}

    r = client.get(f"/quizzes/{quiz['id']}/results")
    assert r.status_code == 200
    board = r.json()
    assert [e["player"]["name"] for e in board] == ["Ada", "Bob"]
    assert board[0]["time_efficiency"] == "75.0%"
    assert abs(board[0]["combined_score"] - 95.0) < 1e-9
    assert board[0]["fastest_response"] == 5
    assert board[0]["player"]["score"] == 2
    assert board[1]["total_questions"] == 2

    metas = client.get("/quizzes").json()
    assert metas[0]["participants"] == 2
    assert metas[0]["question_count"] == 2


def test_duplicate_submission_returns_409(client):
    quiz = _create_quiz(client)
    ada = _join(client, quiz["id"], "Ada")
    payload = {"player_id": ada, "answers": _answers(quiz, [0, 1], [5, 10])}

    assert client.post(f"/quizzes/{quiz['id']}/submit", json=payload).status_code == 200
    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": ada, "answers": _answers(quiz, [1, 0], [1, 1])})
    assert r.status_code == 409

    board = client.get(f"/quizzes/{quiz['id']}/results").json()
    assert len(board) == 1
    assert board[0]["score"] == 2


def test_bad_submissions(client):
    quiz = _create_quiz(client)
    ada = _join(client, quiz["id"], "Ada")

    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": ada, "answers": []})
    assert r.status_code == 400
    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": ada, "answers": _answers(quiz, [5, 0], [1, 1])})
    assert r.status_code == 400
    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": "ghost", "answers": _answers(quiz, [0, 0], [1, 1])})
    assert r.status_code == 404
    assert r.json()["detail"] == "Player not found"
    r = client.post(f"/quizzes/{quiz['id']}/submit", json={"player_id": ada, "answers": [{"question_id": "x", "selected_option": 0, "response_time": -1}]})
    assert r.status_code == 422


def test_poll_report(client):
    poll = _create_quiz(client, quiz_type="poll")
    for name, choice in (("Ada", 0), ("Bob", 1), ("Cy", 1)):
        pid = _join(client, poll["id"], name)
        answers = [{"question_id": poll["questions"][0]["id"], "selected_option": choice, "response_time": 2}]
        assert client.post(f"/quizzes/{poll['id']}/submit", json={"player_id": pid, "answers": answers}).status_code == 200

    report = client.get(f"/quizzes/{poll['id']}/report").json()
    assert [o["count"] for o in report[0]["options"]] == [1, 2]
    assert report[0]["correct_count"] is None
    assert report[1]["answered"] == 0


def test_delete_quiz(client):
    quiz = _create_quiz(client)
    assert client.delete(f"/quizzes/{quiz['id']}").status_code == 200
    assert client.get(f"/quizzes/{quiz['id']}").status_code == 404
    assert client.delete(f"/quizzes/{quiz['id']}").status_code == 404


def test_unexpected_errors_return_generic_500(config, monkeypatch):
    app = create_app(config)
    client = TestClient(app, raise_server_exceptions=False)

    def _boom(quiz_id):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(app.state.store, "get_quiz", _boom)

    r = client.get("/quizzes/anything")
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}


def test_poll_submission_with_nothing_answered_returns_400(client):
    poll = _create_quiz(client, quiz_type="poll")
    pid = _join(client, poll["id"], "Ada")
    answers = [{"question_id": q["id"], "selected_option": -1, "response_time": 0} for q in poll["questions"]]

    r = client.post(f"/quizzes/{poll['id']}/submit", json={"player_id": pid, "answers": answers})

    assert r.status_code == 400
    assert client.get(f"/quizzes/{poll['id']}/results").json() == []


def test_list_quizzes_counts_participants_per_quiz(client):
    first = _create_quiz(client)
    second = _create_quiz(client)
    for name in ("Ada", "Bob"):
        pid = _join(client, first["id"], name)
        client.post(f"/quizzes/{first['id']}/submit", json={"player_id": pid, "answers": _answers(first, [0, 1], [1, 1])})
    _join(client, second["id"], "Cy")

    counts = {m["id"]: m["participants"] for m in client.get("/quizzes").json()}

    assert counts == {first["id"]: 2, second["id"]: 0}
