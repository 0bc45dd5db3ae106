from bson import ObjectId
from pymongo.errors import PyMongoError

from prepbolt.core.config import config

QUESTIONS = [
    {"question": "Q1", "options": ["A", "B", "C", "D"], "correctAnswer": "A", "explanation": "first"},
    {"question": "Q2", "options": ["A", "B", "C", "D"], "correctAnswer": "B"},
    {"question": "Q3", "options": ["A", "B", "C", "D"], "correctAnswer": 2},
    {"question": "Q4", "options": ["A", "B", "C", "D"], "correctAnswer": "C"},
]


def create_quiz(client, subject, questions=QUESTIONS):
    response = client.post("/api/quiz", json={
        "title": "Normalization basics",
        "description": "Normal forms",
        "subject": str(subject["_id"]),
        "category": "DBMS",
        "questions": questions
    })
    assert response.status_code == 201
    return response.json()["quiz"]["id"]


def test_create_quiz_stores_answer_indices(client, db, subject):
    quiz_id = create_quiz(client, subject)

    stored = db.get_quiz(ObjectId(quiz_id))
    assert [q["correctAnswer"] for q in stored["questions"]] == [0, 1, 2, 2]
    assert stored["attemptCount"] == 0
    assert ObjectId(quiz_id) in db.get_subject(subject["_id"])["quizzes"]


def test_create_quiz_rejects_unknown_answer(client, subject):
    bad = [{"question": "Q", "options": ["A", "B"], "correctAnswer": "Z"}]
    response = client.post("/api/quiz", json={
        "title": "t", "description": "d", "subject": str(subject["_id"]),
        "category": "c", "questions": bad
    })
    assert response.status_code == 400
    assert response.json()["type"] == "validation_error"


def test_create_quiz_unknown_subject(client, db):
    response = client.post("/api/quiz", json={
        "title": "t", "description": "d", "subject": str(ObjectId()),
        "category": "c", "questions": QUESTIONS
    })
    assert response.status_code == 404


def test_get_quiz_withholds_answers(client, subject):
    quiz_id = create_quiz(client, subject)

    quiz = client.get(f"/api/quiz/{quiz_id}").json()

    assert quiz["id"] == quiz_id
    assert len(quiz["questions"]) == 4
    assert all("correctAnswer" not in q and "explanation" not in q for q in quiz["questions"])


def test_list_quizzes_omits_questions(client, subject):
    create_quiz(client, subject)
    quizzes = client.get("/api/quiz").json()
    assert len(quizzes) == 1
    assert "questions" not in quizzes[0]


def test_submit_quiz_scores_and_records_attempt(client, db, subject, make_user):
    quiz_id = create_quiz(client, subject)
    user_id = make_user()

    response = client.post(
        "/api/quiz/submit",
        json={"quizId": quiz_id, "answers": [0, 1, None, 3]},
        headers={"X-User-Id": str(user_id)}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 50
    assert body["correctAnswers"] == 2
    assert [r["isCorrect"] for r in body["results"]] == [True, True, False, False]
    assert body["results"][0]["explanation"] == "first"

    user = db.get_user(user_id)
    assert user["score"] == 50
    attempt = user["quizAttempts"][0]
    assert attempt["quizId"] == ObjectId(quiz_id)
    assert attempt["timeTaken"] == config.STANDARD_TIME_LIMIT
    assert user["subjects"][0]["quizzesCompleted"] == [ObjectId(quiz_id)]

    quiz = db.get_quiz(ObjectId(quiz_id))
    assert quiz["attemptCount"] == 1
    assert quiz["avgScore"] == 50


def test_quiz_negative_marks_are_not_applied(client, db, subject, make_user):
    questions = [
        {"question": f"Q{n}", "options": ["A", "B"], "correctAnswer": 0, "negativeMarks": 1}
        for n in range(4)
    ]
    quiz_id = create_quiz(client, subject, questions)
    user_id = make_user()

    response = client.post(
        "/api/quiz/submit",
        json={"quizId": quiz_id, "answers": [0, 0, 1, 1]},
        headers={"X-User-Id": str(user_id)}
    )

    assert response.status_code == 200
    assert response.json()["score"] == 50
    assert response.json()["correctAnswers"] == 2
    assert db.get_user(user_id)["score"] == 50


def test_running_average_across_users(client, db, subject, make_user):
    quiz_id = create_quiz(client, subject)

    for name, answers in [("Asha", [0, 1, 2, 2]), ("Ravi", [0, None, None, None]), ("Meera", [])]:
        client.post(
            "/api/quiz/submit",
            json={"quizId": quiz_id, "answers": answers, "timeTaken": 300},
            headers={"X-User-Id": str(make_user(name))}
        )

    quiz = db.get_quiz(ObjectId(quiz_id))
    assert quiz["attemptCount"] == 3
    assert abs(quiz["avgScore"] - (100 + 25 + 0) / 3) < 1e-9


def test_submit_requires_user_header(client, subject):
    quiz_id = create_quiz(client, subject)
    response = client.post("/api/quiz/submit", json={"quizId": quiz_id, "answers": []})
    assert response.status_code == 400


def test_submit_unknown_quiz_is_not_found(client, make_user):
    response = client.post(
        "/api/quiz/submit",
        json={"quizId": str(ObjectId()), "answers": [0]},
        headers={"X-User-Id": str(make_user())}
    )
    assert response.status_code == 404


def test_submit_missing_answers_is_validation_error(client, make_user, subject):
    quiz_id = create_quiz(client, subject)
    response = client.post(
        "/api/quiz/submit", json={"quizId": quiz_id},
        headers={"X-User-Id": str(make_user())}
    )
    assert response.status_code == 400


def test_generate_quiz_in_dummy_mode(client, db, subject):
    response = client.post("/api/quiz/generate", json={
        "subject": str(subject["_id"]), "numberOfQuestions": 3
    })

    assert response.status_code == 201
    quiz_id = response.json()["quiz"]["id"]
    stored = db.get_quiz(ObjectId(quiz_id))
    assert stored["isGeneratedByAI"] is True
    assert len(stored["questions"]) == 3
    assert all(isinstance(q["correctAnswer"], int) for q in stored["questions"])
    # "2NF" is option 1 of the first canned question
    assert stored["questions"][0]["correctAnswer"] == 1


def test_resubmitting_after_failed_save_counts_once(client, db, subject, make_user, monkeypatch):
    quiz_id = create_quiz(client, subject)
    user_id = make_user()
    headers = {"X-User-Id": str(user_id)}
    payload = {"quizId": quiz_id, "answers": [0, 1, 2, 2]}
    real = db.update_running_average

    def broken(*args, **kwargs):
        raise PyMongoError("write concern timeout")

    monkeypatch.setattr(db, "update_running_average", broken)
    failed = client.post("/api/quiz/submit", json=payload, headers=headers)
    assert failed.status_code == 500
    attempt_id = failed.json()["result"]["attemptId"]

    monkeypatch.setattr(db, "update_running_average", real)
    retried = client.post("/api/quiz/submit", json={**payload, "attemptId": attempt_id}, headers=headers)

    assert retried.status_code == 200
    assert retried.json()["score"] == 100
    user = db.get_user(user_id)
    assert user["score"] == 100
    assert len(user["quizAttempts"]) == 1
    assert user["subjects"][0]["quizzesCompleted"] == [ObjectId(quiz_id)]
    quiz = db.get_quiz(ObjectId(quiz_id))
    assert quiz["attemptCount"] == 1
    assert quiz["avgScore"] == 100
