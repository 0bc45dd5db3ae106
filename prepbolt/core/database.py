# prepbolt/core/database.py
import logging
import pymongo
from pymongo.errors import PyMongoError
from bson import ObjectId
from datetime import datetime
from typing import List, Dict, Any, Optional
from .config import config
from .exceptions import NotFoundError, PersistenceError
from .scoring import running_average

logger = logging.getLogger(__name__)

# attempt ids whose running-average update has not landed yet
PENDING_AVERAGES = "pendingAverages"

class DatabaseManager:
    """MongoDB access for users, content and attempt aggregates"""

    def __init__(self, client=None):
        """Initialize database connection; ``client`` overrides the real MongoClient"""
        logger.info("🔄 Initializing Database Manager")

        self.mongo_client = client
        self.db = None
        self._init_mongodb()

    def _init_mongodb(self):
        """Initialize MongoDB connection"""
        try:
            if self.mongo_client is None:
                self.mongo_client = pymongo.MongoClient(
                    config.MONGO_CONNECTION_STRING,
                    serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS,
                    maxPoolSize=config.MONGO_POOL_SIZE,
                    minPoolSize=1,
                    maxIdleTimeMS=30000,
                    waitQueueTimeoutMS=config.MONGO_TIMEOUT_MS
                )

                # Test connection
                self.mongo_client.admin.command('ping')

            self.db = self.mongo_client[config.MONGO_DB_NAME]
            self.users = self.db[config.USERS_COLLECTION]
            self.subjects = self.db[config.SUBJECTS_COLLECTION]
            self.topics = self.db[config.TOPICS_COLLECTION]
            self.quizzes = self.db[config.QUIZZES_COLLECTION]
            self.mock_tests = self.db[config.MOCK_TESTS_COLLECTION]
            self.custom_tests = self.db[config.CUSTOM_TESTS_COLLECTION]
            self.daily_topics = self.db[config.DAILY_TOPICS_COLLECTION]
            self.flashcards = self.db[config.FLASHCARDS_COLLECTION]

            self._create_indexes()

            logger.info(f"✅ MongoDB connection established ({config.MONGO_DB_NAME})")

        except Exception as e:
            logger.error(f"❌ MongoDB connection failed: {e}")
            raise Exception(f"MongoDB connection failure: {e}")

    def _create_indexes(self):
        """Create indexes for performance"""
        try:
            self.users.create_index([("score", pymongo.DESCENDING)])
            self.users.create_index("quizAttempts.quizId")
            self.daily_topics.create_index([("publishDate", pymongo.DESCENDING)])
            self.flashcards.create_index([("subject", 1), ("topic", 1)])
            # Expired custom tests are removed by MongoDB itself
            self.custom_tests.create_index("expiresAt", expireAfterSeconds=0)
            logger.info("✅ Database indexes created")
        except Exception as idx_error:
            logger.warning(f"⚠️ Index creation failed: {idx_error}")

    # ==================== Generic ====================

    def _insert(self, collection, document: Dict[str, Any]) -> Any:
        now = datetime.now()
        document.setdefault("createdAt", now)
        document.setdefault("updatedAt", now)
        result = collection.insert_one(document)
        if not result.inserted_id:
            raise PersistenceError("MongoDB insert operation failed")
        return result.inserted_id

    # ==================== Subjects & topics ====================

    def list_subjects(self) -> List[Dict[str, Any]]:
        return list(self.subjects.find({}, {"name": 1, "description": 1, "category": 1, "type": 1}))

    def get_subject(self, subject_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.subjects.find_one({"_id": subject_id})

    def insert_subject(self, subject: Dict[str, Any]) -> ObjectId:
        for field in ("topics", "quizzes", "mockTests", "flashcards"):
            subject.setdefault(field, [])
        return self._insert(self.subjects, subject)

    def add_to_subject(self, subject_id: ObjectId, field: str, *ids: ObjectId):
        """Append content ids to a subject's ``quizzes``/``mockTests``/``flashcards``"""
        self.subjects.update_one(
            {"_id": subject_id},
            {"$push": {field: {"$each": list(ids)}}}
        )

    def get_topic_in_subject(self, topic_id: ObjectId, subject_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.topics.find_one({"_id": topic_id, "subject": subject_id})

    def insert_topic(self, topic: Dict[str, Any]) -> ObjectId:
        return self._insert(self.topics, topic)

    # ==================== Quizzes & mock tests ====================

    def list_quizzes(self) -> List[Dict[str, Any]]:
        return list(self.quizzes.find(
            {},
            {"title": 1, "description": 1, "difficulty": 1, "category": 1,
             "type": 1, "timeLimit": 1, "subject": 1}
        ))

    def get_quiz(self, quiz_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.quizzes.find_one({"_id": quiz_id})

    def insert_quiz(self, quiz: Dict[str, Any]) -> ObjectId:
        quiz.setdefault("attemptCount", 0)
        quiz.setdefault("avgScore", 0.0)
        return self._insert(self.quizzes, quiz)

    def list_mock_tests(self) -> List[Dict[str, Any]]:
        return list(self.mock_tests.find(
            {},
            {"title": 1, "description": 1, "duration": 1, "totalMarks": 1,
             "difficulty": 1, "isGeneratedByAI": 1}
        ))

    def get_mock_test(self, test_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.mock_tests.find_one({"_id": test_id})

    def insert_mock_test(self, test: Dict[str, Any]) -> ObjectId:
        test.setdefault("attemptCount", 0)
        test.setdefault("avgScore", 0.0)
        return self._insert(self.mock_tests, test)

    def insert_custom_test(self, test: Dict[str, Any]) -> str:
        return self._insert(self.custom_tests, test)

    def get_custom_test(self, test_id: str, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """Custom test by id, ignoring ones past ``expiresAt`` the TTL monitor has not swept yet"""
        now = now or datetime.now()
        return self.custom_tests.find_one({"_id": test_id, "expiresAt": {"$gt": now}})

    def update_running_average(self, collection_name: str, doc_id: ObjectId,
                               value: float) -> Dict[str, Any]:
        """Fold ``value`` into a document's avgScore/attemptCount.

        Optimistic compare-and-swap on attemptCount; a lost race is re-read
        and retried up to OPTIMISTIC_RETRIES times.
        """
        collection = self.db[collection_name]

        for attempt in range(config.OPTIMISTIC_RETRIES):
            doc = collection.find_one({"_id": doc_id}, {"attemptCount": 1, "avgScore": 1})
            if not doc:
                raise NotFoundError(f"{collection_name} document {doc_id} not found")

            stored_count = doc.get("attemptCount")
            count = stored_count or 0
            new_average = running_average(doc.get("avgScore") or 0.0, count, value)

            result = collection.update_one(
                {"_id": doc_id, "attemptCount": stored_count},
                {"$set": {"avgScore": new_average, "attemptCount": count + 1,
                          "updatedAt": datetime.now()}}
            )
            if result.matched_count:
                return {"avgScore": new_average, "attemptCount": count + 1}

            logger.warning(f"⚠️ Average update lost a race on {collection_name}/{doc_id}, "
                           f"retry {attempt + 1}/{config.OPTIMISTIC_RETRIES}")

        raise PersistenceError(f"Average update on {collection_name}/{doc_id} kept conflicting")

    # ==================== Users ====================

    def insert_user(self, user: Dict[str, Any]) -> ObjectId:
        user.setdefault("score", 0.0)
        user.setdefault("streak", {"currentStreak": 0, "longestStreak": 0, "lastActiveDate": None})
        for field in ("quizAttempts", "mockTestAttempts", "subjects", "dailyTopicsCompleted"):
            user.setdefault(field, [])
        return self._insert(self.users, user)

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.users.find_one({"email": email}, {"_id": 1})

    def get_user(self, user_id: ObjectId, projection: Optional[Dict[str, int]] = None) -> Optional[Dict[str, Any]]:
        return self.users.find_one({"_id": user_id}, projection)

    def record_attempt(self, user_id: ObjectId, field: str, attempt: Dict[str, Any],
                       score_increment: float, track_average: bool = False) -> Optional[Dict[str, bool]]:
        """Append an attempt and bump the cumulative score in one atomic update.

        Keyed on ``attempt["attemptId"]``: an id already stored under ``field``
        is neither pushed nor counted again. With ``track_average`` the id is
        also parked in pendingAverages until ``clear_pending_average``.

        Returns None when the user does not exist, otherwise
        ``{"created": ..., "averagePending": ...}``.
        """
        attempt_id = attempt["attemptId"]
        update = {"$push": {field: attempt}, "$set": {"updatedAt": datetime.now()}}
        if track_average:
            update["$push"][PENDING_AVERAGES] = attempt_id
        if score_increment:
            update["$inc"] = {"score": score_increment}

        result = self.users.update_one({"_id": user_id, f"{field}.attemptId": {"$ne": attempt_id}}, update)
        if result.matched_count:
            return {"created": True, "averagePending": track_average}

        user = self.users.find_one({"_id": user_id}, {PENDING_AVERAGES: 1})
        if not user:
            return None
        return {"created": False, "averagePending": attempt_id in (user.get(PENDING_AVERAGES) or [])}

    def clear_pending_average(self, user_id: ObjectId, attempt_id: str):
        self.users.update_one({"_id": user_id}, {"$pull": {PENDING_AVERAGES: attempt_id}})

    def save_attempt(self, user_id: ObjectId, field: str, attempt: Dict[str, Any],
                     score_increment: float, average_on: Optional[tuple] = None) -> bool:
        """Record a scored attempt, then fold it into the test's running average.

        ``average_on`` is ``(collection_name, doc_id, value)``, or None for tests
        that keep no statistics. Resending an attempt id that is already stored
        writes nothing new except an average the first submission failed to
        apply. Returns True when the attempt was new.
        """
        outcome = self.record_attempt(user_id, field, attempt, score_increment,
                                      track_average=average_on is not None)
        if outcome is None:
            raise PersistenceError("User disappeared before the attempt was recorded")
        if not outcome["created"]:
            logger.info(f"ℹ️ Attempt {attempt['attemptId']} already recorded for user {user_id}")

        if average_on and outcome["averagePending"]:
            self.update_running_average(*average_on)
            self.clear_pending_average(user_id, attempt["attemptId"])

        return outcome["created"]

    def mark_quiz_completed(self, user_id: ObjectId, subject_id: ObjectId, quiz_id: ObjectId):
        """Record the quiz under the user's per-subject progress"""
        now = datetime.now()
        result = self.users.update_one(
            {"_id": user_id, "subjects.subjectId": subject_id},
            {"$addToSet": {"subjects.$.quizzesCompleted": quiz_id},
             "$set": {"subjects.$.lastActivity": now}}
        )
        if result.matched_count:
            return

        self.users.update_one(
            {"_id": user_id, "subjects.subjectId": {"$ne": subject_id}},
            {"$push": {"subjects": {
                "subjectId": subject_id,
                "progress": 0,
                "topicsCompleted": [],
                "quizzesCompleted": [quiz_id],
                "lastActivity": now
            }}}
        )

    def apply_daily_completion(self, user_id: ObjectId, topic_id: ObjectId,
                               expected_last_active: Optional[datetime],
                               streak: Dict[str, Any], completed_at: datetime) -> bool:
        """Push a completion and set the new streak if nothing changed since it was read.

        Matches only while the topic is not yet completed and the stored
        lastActiveDate still equals ``expected_last_active``.
        """
        result = self.users.update_one(
            {
                "_id": user_id,
                "dailyTopicsCompleted.topic": {"$ne": topic_id},
                "streak.lastActiveDate": expected_last_active
            },
            {
                "$push": {"dailyTopicsCompleted": {"topic": topic_id, "completedDate": completed_at}},
                "$set": {"streak": streak, "updatedAt": completed_at}
            }
        )
        return result.matched_count == 1

    def top_users(self, limit: int) -> List[Dict[str, Any]]:
        return list(self.users.find(
            {}, {"name": 1, "profilePicture": 1, "score": 1}
        ).sort("score", pymongo.DESCENDING).limit(limit))

    def users_with_quiz_attempts(self, quiz_id: ObjectId) -> List[Dict[str, Any]]:
        return list(self.users.find(
            {"quizAttempts.quizId": quiz_id},
            {"name": 1, "profilePicture": 1, "quizAttempts": 1}
        ))

    def count_users_above(self, score: float) -> int:
        return self.users.count_documents({"score": {"$gt": score}})

    # ==================== Daily topics ====================

    def find_daily_topic_between(self, start: datetime, end: datetime) -> Optional[Dict[str, Any]]:
        return self.daily_topics.find_one({"publishDate": {"$gte": start, "$lt": end}})

    def latest_daily_topic(self) -> Optional[Dict[str, Any]]:
        docs = list(self.daily_topics.find({}).sort("publishDate", pymongo.DESCENDING).limit(1))
        return docs[0] if docs else None

    def list_daily_topics(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Topics published in [start, end), oldest first"""
        return list(self.daily_topics.find(
            {"publishDate": {"$gte": start, "$lt": end}}
        ).sort("publishDate", pymongo.ASCENDING))

    def get_daily_topic(self, topic_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.daily_topics.find_one({"_id": topic_id})

    def insert_daily_topic(self, topic: Dict[str, Any]) -> ObjectId:
        topic.setdefault("viewCount", 0)
        topic.setdefault("completionCount", 0)
        return self._insert(self.daily_topics, topic)

    def update_daily_topic(self, topic_id: ObjectId, changes: Dict[str, Any]) -> bool:
        changes["updatedAt"] = datetime.now()
        result = self.daily_topics.update_one({"_id": topic_id}, {"$set": changes})
        return result.matched_count == 1

    def delete_daily_topic(self, topic_id: ObjectId) -> bool:
        return self.daily_topics.delete_one({"_id": topic_id}).deleted_count == 1

    def increment_daily_topic(self, topic_id: ObjectId, field: str) -> Optional[Dict[str, Any]]:
        """Atomically bump ``viewCount``/``completionCount``, returning the updated topic"""
        return self.daily_topics.find_one_and_update(
            {"_id": topic_id},
            {"$inc": {field: 1}},
            return_document=pymongo.ReturnDocument.AFTER
        )

    # ==================== Flashcards ====================

    def find_flashcards(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        return list(self.flashcards.find(query))

    def get_flashcard(self, card_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.flashcards.find_one({"_id": card_id})

    def insert_flashcard(self, card: Dict[str, Any]) -> ObjectId:
        card.setdefault("lastReviewed", None)
        card.setdefault("nextReviewDate", None)
        card.setdefault("repetitionLevel", 0)
        return self._insert(self.flashcards, card)

    def update_flashcard_review(self, card_id: ObjectId, expected_level: int,
                                level: int, reviewed_at: datetime, next_review: datetime) -> bool:
        result = self.flashcards.update_one(
            {"_id": card_id, "repetitionLevel": expected_level},
            {"$set": {"repetitionLevel": level, "lastReviewed": reviewed_at,
                      "nextReviewDate": next_review, "updatedAt": reviewed_at}}
        )
        return result.matched_count == 1

    # ==================== Health ====================

    def validate_connection(self) -> Dict[str, Any]:
        """Validate database connection"""
        status = {
            "mongodb": False,
            "collections_accessible": False,
            "overall": False
        }

        try:
            self.mongo_client.admin.command('ping')
            status["mongodb"] = True

            user_count = self.users.count_documents({}, limit=1)
            status["collections_accessible"] = True
            logger.info(f"✅ MongoDB accessible ({user_count} users sampled)")

        except PyMongoError as e:
            logger.error(f"❌ MongoDB validation failed: {e}")

        status["overall"] = status["mongodb"] and status["collections_accessible"]
        return status

    def close(self):
        """Close database connections"""
        if self.mongo_client:
            self.mongo_client.close()
            logger.info("✅ Database connections closed")

# Singleton pattern for database manager
_db_manager = None

def get_db_manager() -> DatabaseManager:
    """Get database manager instance (singleton)"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager

def set_db_manager(manager: Optional[DatabaseManager]):
    """Replace the singleton, e.g. with one built on a different client"""
    global _db_manager
    _db_manager = manager

def close_db_manager():
    """Close database manager instance"""
    global _db_manager
    if _db_manager:
        _db_manager.close()
        _db_manager = None
