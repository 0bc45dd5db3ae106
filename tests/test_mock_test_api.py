from bson import ObjectId
from pymongo.errors import PyMongoError

SECTION = {
    "title": "Aptitude",
    "questions": [
        {"question": "Q1", "options": ["A", "B", "C", "D"], "correctAnswer": 0},
        {"question": "Q2", "options": ["A", "B", "C", "D"], "correctAnswer": "B"},
    ]
}


def create_mock_test(client, sections=(SECTION,)):
    response = client.post("/api/mock-test", json={
        "title": "Placement mock",
        "description": "Two questions",
        "sections": list(sections)
    })
    assert response.status_code == 201
    return response.json()["mockTest"]["id"]


def submit(client, user_id, test_id, answers, **extra):
    return client.post(
        "/api/mock-test/submit",
        json={"testId": test_id, "answers": answers, **extra},
        headers={"X-User-Id": str(user_id)}
    )


def test_create_derives_section_marks(client, db):
    test_id = create_mock_test(client)

    stored = db.get_mock_test(ObjectId(test_id))
    section = stored["sections"][0]
    assert section["questionsCount"] == 2
    assert section["totalMarks"] == 8
    assert stored["totalMarks"] == 8
    assert section["questions"][1]["correctAnswer"] == 1


def test_get_mock_test_withholds_answers(client):
    test_id = create_mock_test(client)
    test = client.get(f"/api/mock-test/{test_id}").json()
    assert all("correctAnswer" not in q for q in test["sections"][0]["questions"])


def test_submit_with_negative_marking(client, db, make_user):
    test_id = create_mock_test(client)
    user_id = make_user()

    response = submit(client, user_id, test_id, [[0, 2]], timeTaken=900)

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 3
    assert body["percentage"] == 37.5
    assert body["correctAnswers"] == 1
    assert body["totalQuestions"] == 2
    assert body["results"][0]["sectionTitle"] == "Aptitude"
    assert [q["score"] for q in body["results"][0]["questions"]] == [4, -1]

    user = db.get_user(user_id)
    # mock tests count half towards the leaderboard
    assert user["score"] == 18.75
    attempt = user["mockTestAttempts"][0]
    assert attempt["scoreSource"] == "server"
    assert attempt["timeTaken"] == 900
    assert attempt["sections"] == [
        {"section": "Aptitude", "score": 3, "totalQuestions": 2, "correctAnswers": 1}
    ]

    stored = db.get_mock_test(ObjectId(test_id))
    assert stored["attemptCount"] == 1
    assert stored["avgScore"] == 37.5


def test_negative_raw_score_is_kept_but_not_ranked(client, db, make_user):
    test_id = create_mock_test(client)
    user_id = make_user()

    body = submit(client, user_id, test_id, [[3, 3]]).json()

    assert body["score"] == -2
    assert body["percentage"] == 0
    user = db.get_user(user_id)
    assert user["mockTestAttempts"][0]["score"] == -2
    assert user["score"] == 0


def test_custom_test_is_scored_on_the_server(client, db, make_user):
    response = client.post("/api/mock-test/custom", json={"sections": [SECTION]})
    assert response.status_code == 201
    custom = response.json()
    assert custom["id"].startswith("custom-")
    assert "correctAnswer" not in custom["sections"][0]["questions"][0]

    user_id = make_user()
    fake = {"score": 8, "correctAnswers": 2, "totalQuestions": 2, "percentage": 100}
    body = submit(client, user_id, custom["id"], [[0, 0]], scoreData=fake).json()

    # client figures are ignored while the test is stored
    assert body["score"] == 3
    assert body["percentage"] == 37.5
    user = db.get_user(user_id)
    assert user["score"] == 18.75
    assert user["mockTestAttempts"][0]["testId"] == custom["id"]


def test_expired_custom_test_falls_back_to_client_score(client, db, make_user):
    user_id = make_user()
    score_data = {"score": 12, "correctAnswers": 3, "totalQuestions": 4, "percentage": 75}

    response = submit(client, user_id, "custom-gone", [[0]], scoreData=score_data)

    assert response.status_code == 200
    assert response.json()["percentage"] == 75
    user = db.get_user(user_id)
    assert user["mockTestAttempts"][0]["scoreSource"] == "client"
    assert user["score"] == 0


def test_unknown_custom_test_without_score_data(client, make_user):
    response = submit(client, make_user(), "custom-gone", [[0]])
    assert response.status_code == 404


def test_unknown_user_is_not_found(client):
    test_id = create_mock_test(client)
    response = submit(client, ObjectId(), test_id, [[0, 1]])
    assert response.status_code == 404


def test_persistence_failure_returns_computed_result(client, db, make_user, monkeypatch):
    test_id = create_mock_test(client)
    user_id = make_user()

    def broken(*args, **kwargs):
        raise PyMongoError("primary stepped down")

    monkeypatch.setattr(db, "update_running_average", broken)

    response = submit(client, user_id, test_id, [[0, 1]])

    assert response.status_code == 500
    body = response.json()
    assert body["type"] == "persistence_error"
    assert body["result"]["score"] == 8
    assert body["result"]["percentage"] == 100


def test_resending_a_failed_attempt_counts_it_once(client, db, make_user, monkeypatch):
    test_id = create_mock_test(client)
    user_id = make_user()
    real = db.update_running_average

    def broken(*args, **kwargs):
        raise PyMongoError("primary stepped down")

    monkeypatch.setattr(db, "update_running_average", broken)
    failed = submit(client, user_id, test_id, [[0, 1]])
    assert failed.status_code == 500
    attempt_id = failed.json()["result"]["attemptId"]

    monkeypatch.setattr(db, "update_running_average", real)
    retried = submit(client, user_id, test_id, [[0, 1]], attemptId=attempt_id)
    repeated = submit(client, user_id, test_id, [[0, 1]], attemptId=attempt_id)

    assert retried.status_code == 200
    assert repeated.status_code == 200
    assert retried.json()["attemptId"] == attempt_id
    user = db.get_user(user_id)
    assert user["score"] == 50
    assert [a["attemptId"] for a in user["mockTestAttempts"]] == [attempt_id]
    assert user["pendingAverages"] == []
    stored = db.get_mock_test(ObjectId(test_id))
    assert stored["attemptCount"] == 1
    assert stored["avgScore"] == 100


def test_new_submissions_get_distinct_attempt_ids(client, db, make_user):
    test_id = create_mock_test(client)
    user_id = make_user()

    first = submit(client, user_id, test_id, [[0, 1]]).json()
    second = submit(client, user_id, test_id, [[0, 0]]).json()

    assert first["attemptId"] != second["attemptId"]
    assert len(db.get_user(user_id)["mockTestAttempts"]) == 2
    assert db.get_mock_test(ObjectId(test_id))["attemptCount"] == 2


def test_generate_mock_test_one_section_per_difficulty(client, db, subject):
    response = client.post("/api/mock-test/generate", json={
        "subject": str(subject["_id"]), "questionsPerSection": 2
    })

    assert response.status_code == 201
    stored = db.get_mock_test(ObjectId(response.json()["mockTest"]["id"]))
    assert [s["title"] for s in stored["sections"]] == ["Section 1", "Section 2", "Section 3"]
    assert all(s["questionsCount"] == 2 for s in stored["sections"])
    assert all("marks" not in q for s in stored["sections"] for q in s["questions"])
    assert stored["totalMarks"] == 24
