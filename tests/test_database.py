import pytest
from bson import ObjectId

from prepbolt.core.config import config
from prepbolt.core.exceptions import NotFoundError, PersistenceError
from prepbolt.core.scoring import running_average


class RacingCollection:
    """Lands another attempt of 80% between a read and the write that follows it"""

    def __init__(self, collection, races):
        self.collection = collection
        self.races = races

    def find_one(self, *args, **kwargs):
        doc = self.collection.find_one(*args, **kwargs)
        if doc and self.races:
            self.races -= 1
            count = doc.get("attemptCount") or 0
            self.collection.update_one({"_id": doc["_id"]}, {"$set": {
                "attemptCount": count + 1,
                "avgScore": running_average(doc.get("avgScore") or 0.0, count, 80.0)
            }})
        return doc

    def __getattr__(self, name):
        return getattr(self.collection, name)


def race_quizzes(db, monkeypatch, races):
    racing = RacingCollection(db.quizzes, races)
    monkeypatch.setattr(db, "db", {config.QUIZZES_COLLECTION: racing})
    return racing


def test_running_average_folds_in_values(db):
    quiz_id = db.insert_quiz({"title": "q", "questions": []})

    db.update_running_average(config.QUIZZES_COLLECTION, quiz_id, 100.0)
    result = db.update_running_average(config.QUIZZES_COLLECTION, quiz_id, 50.0)

    assert result == {"avgScore": 75.0, "attemptCount": 2}


def test_running_average_retries_after_lost_race(db, monkeypatch):
    quiz_id = db.insert_quiz({"title": "q", "questions": []})
    racing = race_quizzes(db, monkeypatch, races=1)

    result = db.update_running_average(config.QUIZZES_COLLECTION, quiz_id, 40.0)

    assert racing.races == 0
    assert result == {"avgScore": 60.0, "attemptCount": 2}
    stored = db.get_quiz(quiz_id)
    assert stored["attemptCount"] == 2
    assert stored["avgScore"] == 60.0


def test_running_average_gives_up_after_retry_budget(db, monkeypatch):
    monkeypatch.setattr(config, "OPTIMISTIC_RETRIES", 3)
    quiz_id = db.insert_quiz({"title": "q", "questions": []})
    race_quizzes(db, monkeypatch, races=3)

    with pytest.raises(PersistenceError):
        db.update_running_average(config.QUIZZES_COLLECTION, quiz_id, 40.0)

    # only the three concurrent attempts landed
    stored = db.get_quiz(quiz_id)
    assert stored["attemptCount"] == 3
    assert stored["avgScore"] == 80.0


def test_running_average_unknown_document(db):
    with pytest.raises(NotFoundError):
        db.update_running_average(config.QUIZZES_COLLECTION, ObjectId(), 40.0)


def test_record_attempt_is_keyed_on_attempt_id(db, make_user):
    user_id = make_user()
    attempt = {"attemptId": "a1", "score": 40.0}

    first = db.record_attempt(user_id, "quizAttempts", attempt, 40.0, track_average=True)
    second = db.record_attempt(user_id, "quizAttempts", dict(attempt), 40.0, track_average=True)

    assert first == {"created": True, "averagePending": True}
    assert second == {"created": False, "averagePending": True}
    user = db.get_user(user_id)
    assert user["score"] == 40.0
    assert len(user["quizAttempts"]) == 1

    db.clear_pending_average(user_id, "a1")
    third = db.record_attempt(user_id, "quizAttempts", dict(attempt), 40.0, track_average=True)
    assert third == {"created": False, "averagePending": False}


def test_record_attempt_unknown_user(db):
    assert db.record_attempt(ObjectId(), "quizAttempts", {"attemptId": "a1"}, 10.0) is None
