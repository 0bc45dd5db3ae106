"""
Business logic services for quizzes, mock tests, daily topics, flashcards, leaderboards and users
"""

from .quiz_service import get_quiz_service, close_quiz_service
from .mock_test_service import get_mock_test_service, close_mock_test_service
from .daily_topic_service import get_daily_topic_service, close_daily_topic_service
from .flashcard_service import get_flashcard_service, close_flashcard_service
from .leaderboard_service import get_leaderboard_service, close_leaderboard_service
from .user_service import get_user_service, close_user_service

def close_services():
    """Drop every service singleton so the next call rebuilds it"""
    close_quiz_service()
    close_mock_test_service()
    close_daily_topic_service()
    close_flashcard_service()
    close_leaderboard_service()
    close_user_service()

__all__ = [
    "get_quiz_service",
    "get_mock_test_service",
    "get_daily_topic_service",
    "get_flashcard_service",
    "get_leaderboard_service",
    "get_user_service",
    "close_services"
]
