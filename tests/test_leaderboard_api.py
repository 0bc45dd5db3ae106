from bson import ObjectId


def add_quiz(db, subject):
    return db.insert_quiz({
        "title": "Quick check",
        "description": "",
        "subject": subject["_id"],
        "questions": [
            {"question": "Q1", "options": ["A", "B"], "correctAnswer": 0},
            {"question": "Q2", "options": ["A", "B"], "correctAnswer": 1},
        ]
    })


def submit(client, user_id, quiz_id, answers, time_taken=60):
    response = client.post(
        "/api/quiz/submit",
        json={"quizId": str(quiz_id), "answers": answers, "timeTaken": time_taken},
        headers={"X-User-Id": str(user_id)}
    )
    assert response.status_code == 200
    return response.json()


def test_global_leaderboard_orders_by_score(client, db, make_user):
    make_user("Low", score=10.0)
    make_user("High", score=90.0)
    make_user("Mid", score=50.0)

    board = client.get("/api/leaderboard").json()

    assert [e["name"] for e in board] == ["High", "Mid", "Low"]
    assert [e["rank"] for e in board] == [1, 2, 3]


def test_global_leaderboard_limit(client, db, make_user):
    for index in range(5):
        make_user(f"User{index}", score=float(index))
    assert len(client.get("/api/leaderboard", params={"limit": 2}).json()) == 2


def test_quiz_leaderboard_uses_best_attempt(client, db, subject, make_user):
    quiz_id = add_quiz(db, subject)
    asha = make_user("Asha")
    ravi = make_user("Ravi")

    submit(client, asha, quiz_id, [0, 0])
    submit(client, ravi, quiz_id, [0, 1], time_taken=120)
    # a second, better attempt by Asha; same score as Ravi but faster
    db.users.update_one({"_id": asha}, {"$push": {"quizAttempts": {
        "quizId": quiz_id, "score": 100.0, "timeTaken": 30, "date": None
    }}})

    board = client.get(f"/api/leaderboard/quiz/{quiz_id}").json()

    assert [(e["name"], e["score"]) for e in board] == [("Asha", 100), ("Ravi", 100)]
    assert board[0]["timeTaken"] == 30


def test_quiz_leaderboard_unknown_quiz(client, db):
    assert client.get(f"/api/leaderboard/quiz/{ObjectId()}").status_code == 404


def test_rank_counts_strictly_higher_scores(client, db, make_user):
    make_user("A", score=80.0)
    make_user("B", score=80.0)
    me = make_user("Me", score=40.0)

    response = client.get("/api/leaderboard/rank", headers={"X-User-Id": str(me)})

    assert response.json() == {"rank": 3, "score": 40.0}


def test_progress_summary(client, db, subject, make_user):
    quiz_id = add_quiz(db, subject)
    user_id = make_user()
    submit(client, user_id, quiz_id, [0, 1])

    progress = client.get("/api/user/progress", headers={"X-User-Id": str(user_id)}).json()

    assert progress["score"] == 100
    assert progress["quizzesAttempted"] == 1
    assert progress["recentQuizAttempts"][0]["quizId"] == str(quiz_id)
    assert progress["streak"] == {"current": 0, "longest": 0, "lastActiveDate": None}


def test_progress_unknown_user(client, db):
    response = client.get("/api/user/progress", headers={"X-User-Id": str(ObjectId())})
    assert response.status_code == 404


def test_create_user_and_subject(client, db):
    user = client.post("/api/user", json={"name": "Kiran", "email": "Kiran@Example.com"})
    assert user.status_code == 201
    assert user.json()["email"] == "kiran@example.com"
    assert client.post("/api/user", json={"name": "K2", "email": "kiran@example.com"}).status_code == 400

    subject = client.post("/api/subject", json={"name": "OS", "description": "Operating systems", "type": "core"})
    assert subject.status_code == 201
    topic = client.post(f"/api/subject/{subject.json()['id']}/topics", json={"title": "Paging", "content": "Pages"})
    assert topic.status_code == 201
    assert [s["name"] for s in client.get("/api/subject").json()] == ["OS"]
