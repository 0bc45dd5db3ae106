# prepbolt/services/leaderboard_service.py
import logging
from typing import Dict, Any, List, Optional
from ..core.config import config
from ..core.database import get_db_manager
from ..core.utils import require_document

logger = logging.getLogger(__name__)

class LeaderboardService:
    """Rankings by cumulative score and by best attempt on a quiz"""

    def __init__(self):
        self.db_manager = get_db_manager()

    async def get_global(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        users = self.db_manager.top_users(limit or config.LEADERBOARD_LIMIT)
        return [
            {
                "rank": position,
                "id": str(user["_id"]),
                "name": user.get("name", ""),
                "profilePicture": user.get("profilePicture", ""),
                "score": user.get("score", 0)
            }
            for position, user in enumerate(users, start=1)
        ]

    async def get_quiz_leaderboard(self, quiz_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Best attempt per user on one quiz; ties go to the faster attempt"""
        quiz = require_document(self.db_manager.get_quiz, quiz_id, "Quiz")

        entries = []
        for user in self.db_manager.users_with_quiz_attempts(quiz["_id"]):
            attempts = [a for a in user.get("quizAttempts") or [] if a.get("quizId") == quiz["_id"]]
            if not attempts:
                continue
            best = max(attempts, key=lambda a: (a.get("score", 0), -(a.get("timeTaken") or 0)))
            entries.append({
                "id": str(user["_id"]),
                "name": user.get("name", ""),
                "profilePicture": user.get("profilePicture", ""),
                "score": best.get("score", 0),
                "timeTaken": best.get("timeTaken"),
                "date": best["date"].isoformat() if best.get("date") else None
            })

        entries.sort(key=lambda e: (-e["score"], e["timeTaken"] or 0))
        entries = entries[:limit or config.LEADERBOARD_LIMIT]
        for position, entry in enumerate(entries, start=1):
            entry["rank"] = position
        return entries

    async def get_rank(self, user_id: str) -> Dict[str, Any]:
        """1 + the number of users with a strictly higher score"""
        user = require_document(lambda oid: self.db_manager.get_user(oid, {"score": 1}), user_id, "User")
        score = user.get("score", 0)
        return {"rank": self.db_manager.count_users_above(score) + 1, "score": score}

# Singleton pattern for leaderboard service
_leaderboard_service = None

def get_leaderboard_service() -> LeaderboardService:
    """Get leaderboard service instance (singleton)"""
    global _leaderboard_service
    if _leaderboard_service is None:
        _leaderboard_service = LeaderboardService()
    return _leaderboard_service

def close_leaderboard_service():
    global _leaderboard_service
    _leaderboard_service = None
