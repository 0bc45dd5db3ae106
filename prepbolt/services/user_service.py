# prepbolt/services/user_service.py
import logging
from typing import Dict, Any, List
from ..core.database import get_db_manager
from ..core.streaks import StreakState
from ..core.utils import ResponseFormatter, require_document
from ..models.schemas import CreateUserRequest, CreateSubjectRequest, CreateTopicRequest

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS = 5

class UserService:
    """Users, their progress, and the subjects content hangs off"""

    def __init__(self):
        self.db_manager = get_db_manager()

    async def create_user(self, request: CreateUserRequest) -> Dict[str, Any]:
        email = request.email.strip().lower()
        if not email:
            raise ValueError("Email is required")
        if self.db_manager.find_user_by_email(email):
            raise ValueError("A user with this email already exists")

        user_id = self.db_manager.insert_user({
            "name": request.name,
            "email": email,
            "profilePicture": request.profilePicture
        })
        logger.info(f"✅ User created: {user_id}")
        return {"id": str(user_id), "name": request.name, "email": email}

    async def get_progress(self, user_id: str) -> Dict[str, Any]:
        """Cumulative score, streak and attempt history summary"""
        user = require_document(self.db_manager.get_user, user_id, "User")
        streak = StreakState.from_document(user.get("streak"))
        quiz_attempts = user.get("quizAttempts") or []
        mock_attempts = user.get("mockTestAttempts") or []

        return ResponseFormatter.serialize({
            "id": user["_id"],
            "name": user.get("name", ""),
            "score": user.get("score", 0),
            "streak": {
                "current": streak.current_streak,
                "longest": streak.longest_streak,
                "lastActiveDate": streak.last_active_date.isoformat() if streak.last_active_date else None
            },
            "quizzesAttempted": len(quiz_attempts),
            "mockTestsAttempted": len(mock_attempts),
            "dailyTopicsCompleted": len(user.get("dailyTopicsCompleted") or []),
            "subjects": user.get("subjects") or [],
            "recentQuizAttempts": list(reversed(quiz_attempts[-RECENT_ATTEMPTS:])),
            "recentMockTestAttempts": list(reversed(mock_attempts[-RECENT_ATTEMPTS:]))
        })

    # ==================== Subjects ====================

    async def list_subjects(self) -> List[Dict[str, Any]]:
        return ResponseFormatter.serialize(self.db_manager.list_subjects())

    async def create_subject(self, request: CreateSubjectRequest) -> Dict[str, Any]:
        subject = request.model_dump()
        subject_id = self.db_manager.insert_subject(subject)
        logger.info(f"✅ Subject created: {subject_id} ({request.name})")
        return ResponseFormatter.serialize(subject)

    async def create_topic(self, subject_id: str, request: CreateTopicRequest) -> Dict[str, Any]:
        subject = require_document(self.db_manager.get_subject, subject_id, "Subject")
        topic = {**request.model_dump(), "subject": subject["_id"]}
        topic_id = self.db_manager.insert_topic(topic)
        self.db_manager.add_to_subject(subject["_id"], "topics", topic_id)
        logger.info(f"✅ Topic created: {topic_id} in subject {subject['_id']}")
        return ResponseFormatter.serialize(topic)

# Singleton pattern for user service
_user_service = None

def get_user_service() -> UserService:
    """Get user service instance (singleton)"""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service

def close_user_service():
    global _user_service
    _user_service = None
