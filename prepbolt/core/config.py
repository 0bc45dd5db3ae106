# prepbolt/core/config.py
import os
from typing import Dict, Any
from urllib.parse import quote_plus
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = os.getenv("API_TITLE", "PrepBolt API")
    API_DESCRIPTION = os.getenv(
        "API_DESCRIPTION",
        "Exam preparation platform: quizzes, mock tests, daily topics, flashcards and leaderboards"
    )
    API_VERSION = os.getenv("API_VERSION", "1.0.0")
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "3000"))
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

    # ==================== Database Configuration ====================
    MONGO_URI = os.getenv("MONGO_URI", "")
    MONGO_USER = os.getenv("MONGO_USER", "")
    MONGO_PASS = os.getenv("MONGO_PASS", "")
    MONGO_HOST = os.getenv("MONGO_HOST", "localhost:27017")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "prepbolt")
    MONGO_AUTH_SOURCE = os.getenv("MONGO_AUTH_SOURCE", "admin")
    MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))
    MONGO_POOL_SIZE = int(os.getenv("MONGO_POOL_SIZE", "10"))

    @property
    def MONGO_CONNECTION_STRING(self) -> str:
        if self.MONGO_URI:
            return self.MONGO_URI
        if not self.MONGO_USER:
            return f"mongodb://{self.MONGO_HOST}/{self.MONGO_DB_NAME}"
        return (
            f"mongodb://{quote_plus(self.MONGO_USER)}:"
            f"{quote_plus(self.MONGO_PASS)}@{self.MONGO_HOST}/"
            f"{self.MONGO_DB_NAME}?authSource={self.MONGO_AUTH_SOURCE}"
        )

    # Collections
    USERS_COLLECTION = "users"
    SUBJECTS_COLLECTION = "subjects"
    TOPICS_COLLECTION = "topics"
    QUIZZES_COLLECTION = "quizzes"
    MOCK_TESTS_COLLECTION = "mocktests"
    CUSTOM_TESTS_COLLECTION = "customtests"
    DAILY_TOPICS_COLLECTION = "dailytopics"
    FLASHCARDS_COLLECTION = "flashcards"

    # ==================== Development Settings ====================
    USE_DUMMY_DATA = os.getenv("USE_DUMMY_DATA", "true").lower() == "true"

    # ==================== Marking Configuration ====================
    # Defaults apply only when a question carries no marks of its own
    MOCK_TEST_MARKS = float(os.getenv("MOCK_TEST_MARKS", "4"))
    MOCK_TEST_NEGATIVE_MARKS = float(os.getenv("MOCK_TEST_NEGATIVE_MARKS", "1"))
    QUIZ_MARKS = float(os.getenv("QUIZ_MARKS", "1"))

    # Leaderboard contribution of one attempt's percentage
    QUIZ_SCORE_WEIGHT = float(os.getenv("QUIZ_SCORE_WEIGHT", "1.0"))
    MOCK_TEST_SCORE_WEIGHT = float(os.getenv("MOCK_TEST_SCORE_WEIGHT", "0.5"))
    LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "20"))

    # ==================== Test Configuration ====================
    STANDARD_TIME_LIMIT = int(os.getenv("STANDARD_TIME_LIMIT", "1200"))  # 20 minutes
    MOCK_TEST_DURATION = int(os.getenv("MOCK_TEST_DURATION", "3600"))  # 1 hour
    MOCK_TEST_SECTIONS = int(os.getenv("MOCK_TEST_SECTIONS", "3"))
    QUESTIONS_PER_SECTION = int(os.getenv("QUESTIONS_PER_SECTION", "5"))
    QUESTIONS_PER_QUIZ = int(os.getenv("QUESTIONS_PER_QUIZ", "5"))
    CUSTOM_TEST_TTL_SECONDS = int(os.getenv("CUSTOM_TEST_TTL_SECONDS", "86400"))  # 1 day
    OPTIMISTIC_RETRIES = int(os.getenv("OPTIMISTIC_RETRIES", "5"))
    MAX_REVIEW_INTERVAL_DAYS = int(os.getenv("MAX_REVIEW_INTERVAL_DAYS", "365"))

    # ==================== AI Service Configuration ====================
    # Groq settings
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_TIMEOUT = int(os.getenv("GROQ_TIMEOUT", "30"))
    GROQ_TEMPERATURE = float(os.getenv("GROQ_TEMPERATURE", "0.7"))
    GROQ_MAX_TOKENS = int(os.getenv("GROQ_MAX_TOKENS", "4000"))
    GROQ_TOP_P = float(os.getenv("GROQ_TOP_P", "0.9"))
    GENERATION_RETRIES = int(os.getenv("GENERATION_RETRIES", "3"))

    # ==================== Environment Overrides ====================
    @classmethod
    def from_env(cls) -> 'Config':
        """Create config with environment variable overrides"""
        return cls()

    def cors_origins(self):
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # ==================== Validation ====================
    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        issues = []

        if self.MOCK_TEST_MARKS <= 0 or self.QUIZ_MARKS <= 0:
            issues.append("MOCK_TEST_MARKS and QUIZ_MARKS must be positive")

        if self.MOCK_TEST_NEGATIVE_MARKS < 0:
            issues.append("MOCK_TEST_NEGATIVE_MARKS must not be below 0")

        if self.QUIZ_SCORE_WEIGHT < 0 or self.MOCK_TEST_SCORE_WEIGHT < 0:
            issues.append("Score weights must not be below 0")

        if self.OPTIMISTIC_RETRIES < 1:
            issues.append("OPTIMISTIC_RETRIES must be at least 1")

        if self.MAX_REVIEW_INTERVAL_DAYS < 1:
            issues.append("MAX_REVIEW_INTERVAL_DAYS must be at least 1")

        if not self.USE_DUMMY_DATA and not self.GROQ_API_KEY:
            issues.append("GROQ_API_KEY is required when not using dummy data")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "config_loaded": True,
            "using_dummy_data": self.USE_DUMMY_DATA
        }

# Global configuration instance
config = Config.from_env()

# Validate on import
validation_result = config.validate()
if not validation_result["valid"]:
    import logging
    logger = logging.getLogger(__name__)
    logger.warning(f"Configuration issues: {validation_result['issues']}")
