"""
PrepBolt - exam preparation API
Quizzes, negatively-marked mock tests, daily topics with streaks, flashcards and leaderboards
"""

__version__ = "1.0.0"
__description__ = "Exam preparation API with AI-generated practice content"

from .core.config import config

__all__ = ["config"]
