# prepbolt/core/exceptions.py
from typing import Any, Dict, Optional


class NotFoundError(Exception):
    """Referenced quiz, test, topic, subject or user does not exist"""


class PersistenceError(Exception):
    """Storage write failed after the result was computed"""

    def __init__(self, message: str, result: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.result = result


class GenerationError(Exception):
    """LLM call failed or returned content that could not be parsed"""
