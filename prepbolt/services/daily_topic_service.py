# prepbolt/services/daily_topic_service.py
import logging
import markdown
from datetime import timedelta
from typing import Dict, Any, List, Optional
from pymongo.errors import PyMongoError
from ..core.config import config
from ..core.database import get_db_manager
from ..core.ai_services import get_ai_service
from ..core.exceptions import NotFoundError, PersistenceError
from ..core.streaks import StreakState, advance_streak
from ..core.utils import ValidationUtils, DateTimeUtils, ResponseFormatter, require_document
from ..models.schemas import CreateDailyTopicRequest, UpdateDailyTopicRequest, GenerateDailyTopicRequest

logger = logging.getLogger(__name__)

def render_topic(topic: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize a topic and render its markdown content"""
    data = ResponseFormatter.serialize(topic)
    data["contentHtml"] = markdown.markdown(topic.get("content") or "", extensions=["fenced_code"])
    return data

def streak_response(state: StreakState) -> Dict[str, int]:
    return {"current": state.current_streak, "longest": state.longest_streak}

class DailyTopicService:
    """Daily learning topics and the completion streak"""

    def __init__(self):
        self.db_manager = get_db_manager()
        self.ai_service = get_ai_service()

    async def get_today(self) -> Dict[str, Any]:
        """Today's topic, or the most recent one when nothing is published today"""
        start, end = DateTimeUtils.day_bounds(DateTimeUtils.today())
        topic = self.db_manager.find_daily_topic_between(start, end)
        if not topic:
            topic = self.db_manager.latest_daily_topic()
        if not topic:
            raise NotFoundError("No daily topic available")

        return render_topic(self.db_manager.increment_daily_topic(topic["_id"], "viewCount") or topic)

    async def get_range(self, start_date: Optional[str], end_date: Optional[str]) -> List[Dict[str, Any]]:
        if not start_date or not end_date:
            raise ValueError("startDate and endDate are required")

        start = DateTimeUtils.parse_date(start_date)
        end = DateTimeUtils.parse_date(end_date)
        if start is None or end is None:
            raise ValueError("Invalid date format")
        if start > end:
            raise ValueError("startDate must not be after endDate")

        topics = self.db_manager.list_daily_topics(
            DateTimeUtils.start_of_day(start),
            DateTimeUtils.start_of_day(end) + timedelta(days=1)
        )
        return [render_topic(t) for t in topics]

    async def get_topic(self, topic_id: str) -> Dict[str, Any]:
        topic = require_document(
            lambda oid: self.db_manager.increment_daily_topic(oid, "viewCount"),
            topic_id, "Daily topic"
        )
        return render_topic(topic)

    def _subject_id(self, subject_id: str):
        return require_document(self.db_manager.get_subject, subject_id, "Subject")["_id"]

    async def create_topic(self, request: CreateDailyTopicRequest) -> Dict[str, Any]:
        topic = {
            "title": request.title,
            "content": request.content,
            "subject": self._subject_id(request.subject),
            "publishDate": request.publishDate or DateTimeUtils.now(),
            "readTime": request.readTime,
            "difficulty": request.difficulty,
            "tags": request.tags,
            "relatedQuiz": ValidationUtils.to_object_id(request.relatedQuiz) if request.relatedQuiz else None,
            "relatedTopics": [t for t in map(ValidationUtils.to_object_id, request.relatedTopics) if t]
        }
        topic_id = self.db_manager.insert_daily_topic(topic)
        logger.info(f"✅ Daily topic created: {topic_id}")
        return render_topic(topic)

    async def update_topic(self, topic_id: str, request: UpdateDailyTopicRequest) -> Dict[str, Any]:
        changes = request.model_dump(exclude_unset=True)
        if "relatedQuiz" in changes:
            changes["relatedQuiz"] = ValidationUtils.to_object_id(changes["relatedQuiz"]) if changes["relatedQuiz"] else None
        if changes.get("relatedTopics") is not None:
            changes["relatedTopics"] = [t for t in map(ValidationUtils.to_object_id, changes["relatedTopics"]) if t]

        object_id = ValidationUtils.to_object_id(topic_id)
        if not object_id or not self.db_manager.update_daily_topic(object_id, changes):
            raise NotFoundError("Daily topic not found")

        return render_topic(self.db_manager.get_daily_topic(object_id))

    async def delete_topic(self, topic_id: str) -> Dict[str, str]:
        object_id = ValidationUtils.to_object_id(topic_id)
        if not object_id or not self.db_manager.delete_daily_topic(object_id):
            raise NotFoundError("Daily topic not found")

        logger.info(f"🗑️ Daily topic deleted: {topic_id}")
        return {"message": "Daily topic deleted successfully"}

    async def generate_topic(self, request: GenerateDailyTopicRequest) -> Dict[str, Any]:
        subject = require_document(self.db_manager.get_subject, request.subject, "Subject")
        generated = self.ai_service.generate_daily_topic(subject.get("name", ""), request.difficulty)

        topic = {
            "title": generated["title"],
            "content": generated["content"],
            "subject": subject["_id"],
            "publishDate": request.publishDate or DateTimeUtils.start_of_day(DateTimeUtils.today()),
            "readTime": generated.get("readTime") or 2,
            "difficulty": request.difficulty,
            "tags": generated.get("tags") or [],
            "relatedTopics": [],
            "isGeneratedByAI": True
        }
        topic_id = self.db_manager.insert_daily_topic(topic)
        logger.info(f"✅ Generated daily topic stored: {topic_id}")
        return render_topic(topic)

    async def record_view(self, topic_id: str) -> Dict[str, str]:
        require_document(self.db_manager.get_daily_topic, topic_id, "Daily topic")
        return {"message": "Topic view recorded"}

    async def complete_topic(self, user_id: str, topic_id: str) -> Dict[str, Any]:
        """Mark a topic completed for a user and advance their streak.

        Idempotent: a topic already in the user's completions returns the
        stored streak untouched. The write is conditional on the completion
        still being absent and lastActiveDate being the value that was read,
        so a concurrent completion makes it re-read and retry.
        """
        topic = require_document(self.db_manager.get_daily_topic, topic_id, "Daily topic")
        user_oid = ValidationUtils.to_object_id(user_id)
        if not user_oid:
            raise NotFoundError("User not found")

        try:
            for attempt in range(config.OPTIMISTIC_RETRIES):
                user = self.db_manager.get_user(user_oid, {"streak": 1, "dailyTopicsCompleted": 1})
                if not user:
                    raise NotFoundError("User not found")

                stored_streak = user.get("streak") or {}
                state = StreakState.from_document(stored_streak)

                completed = user.get("dailyTopicsCompleted") or []
                if any(entry.get("topic") == topic["_id"] for entry in completed):
                    logger.info(f"ℹ️ Topic {topic['_id']} already completed by user {user_oid}")
                    return {"message": "Topic already completed",
                            "streak": streak_response(state), "alreadyCompleted": True}

                new_state = advance_streak(DateTimeUtils.today(), state)
                applied = self.db_manager.apply_daily_completion(
                    user_oid, topic["_id"], stored_streak.get("lastActiveDate"),
                    new_state.to_document(), DateTimeUtils.now()
                )
                if applied:
                    self.db_manager.increment_daily_topic(topic["_id"], "completionCount")
                    logger.info(f"🔥 User {user_oid} completed topic {topic['_id']}, "
                                f"streak {new_state.current_streak} (longest {new_state.longest_streak})")
                    return {"message": "Topic marked as completed",
                            "streak": streak_response(new_state), "alreadyCompleted": False}

                logger.warning(f"⚠️ Completion for user {user_oid} lost a race, "
                               f"retry {attempt + 1}/{config.OPTIMISTIC_RETRIES}")

        except PyMongoError as e:
            logger.error(f"❌ Saving topic completion failed: {e}")
            raise PersistenceError(f"Topic completion could not be saved: {e}") from e

        raise PersistenceError("Topic completion kept conflicting with concurrent updates")

# Singleton pattern for daily topic service
_daily_topic_service = None

def get_daily_topic_service() -> DailyTopicService:
    """Get daily topic service instance (singleton)"""
    global _daily_topic_service
    if _daily_topic_service is None:
        _daily_topic_service = DailyTopicService()
    return _daily_topic_service

def close_daily_topic_service():
    global _daily_topic_service
    _daily_topic_service = None
