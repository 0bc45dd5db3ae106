# prepbolt/core/utils.py
import uuid
from typing import Dict, Any, List, Optional
from datetime import date, datetime, timedelta

from bson import ObjectId
from bson.errors import InvalidId

from .exceptions import NotFoundError
from .streaks import start_of_day


CUSTOM_TEST_PREFIX = "custom-"

class ValidationUtils:
    """Utility functions for data validation"""

    @staticmethod
    def to_object_id(value: Any) -> Optional[ObjectId]:
        """Parse an ObjectId, None when the value is not one"""
        if isinstance(value, ObjectId):
            return value
        try:
            return ObjectId(str(value))
        except (InvalidId, TypeError):
            return None

    @staticmethod
    def is_custom_test_id(test_id: Any) -> bool:
        return isinstance(test_id, str) and test_id.startswith(CUSTOM_TEST_PREFIX)

    @staticmethod
    def to_option_index(options: List[str], correct_answer: Any) -> Optional[int]:
        """Canonical correct answer: an index into ``options``.

        Accepts an index or the exact option text. Returns None when neither
        resolves to a valid option.
        """
        if isinstance(correct_answer, bool):
            return None
        if isinstance(correct_answer, int):
            return correct_answer if 0 <= correct_answer < len(options) else None
        if isinstance(correct_answer, str):
            try:
                return options.index(correct_answer)
            except ValueError:
                return None
        return None

    @staticmethod
    def normalize_question(question: Dict[str, Any], position: int) -> Dict[str, Any]:
        """Validate one question for storage and convert its answer to an index"""
        text = (question.get("question") or "").strip()
        options = question.get("options") or []

        if not text:
            raise ValueError(f"Question {position}: question text is required")
        if len(options) < 2 or not all(isinstance(o, str) for o in options):
            raise ValueError(f"Question {position}: at least 2 text options are required")

        index = ValidationUtils.to_option_index(options, question.get("correctAnswer"))
        if index is None:
            raise ValueError(f"Question {position}: correctAnswer must be an option or option index")

        normalized = dict(question)
        normalized["question"] = text
        normalized["options"] = list(options)
        normalized["correctAnswer"] = index
        normalized.setdefault("explanation", "")
        for field in ("marks", "negativeMarks"):
            if normalized.get(field) is None:
                normalized.pop(field, None)
        return normalized

    @staticmethod
    def normalize_questions(questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not questions:
            raise ValueError("At least one question is required")
        return [
            ValidationUtils.normalize_question(q, i)
            for i, q in enumerate(questions, 1)
        ]

class DateTimeUtils:
    """Utility functions for date/time operations"""

    @staticmethod
    def now() -> datetime:
        return datetime.now()

    @staticmethod
    def today() -> date:
        return datetime.now().date()

    start_of_day = staticmethod(start_of_day)

    @staticmethod
    def day_bounds(day: date):
        """[midnight, next midnight) of ``day``"""
        start = DateTimeUtils.start_of_day(day)
        return start, start + timedelta(days=1)

    @staticmethod
    def parse_date(value: Optional[str]) -> Optional[date]:
        """Parse an ISO date or datetime string, None when invalid"""
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None

class ResponseFormatter:
    """Utility functions for formatting API responses"""

    @staticmethod
    def serialize(value: Any) -> Any:
        """Make a MongoDB document JSON friendly: ObjectId -> str, _id -> id"""
        if isinstance(value, ObjectId):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, list):
            return [ResponseFormatter.serialize(v) for v in value]
        if isinstance(value, dict):
            out = {}
            for key, item in value.items():
                out["id" if key == "_id" else key] = ResponseFormatter.serialize(item)
            return out
        return value

def require_document(fetch, raw_id: Any, label: str) -> Dict[str, Any]:
    """Look a document up by its string id, raising NotFoundError when absent"""
    object_id = ValidationUtils.to_object_id(raw_id)
    document = fetch(object_id) if object_id else None
    if not document:
        raise NotFoundError(f"{label} not found")
    return document

def generate_custom_test_id() -> str:
    """Generate id for an ephemeral custom test"""
    return f"{CUSTOM_TEST_PREFIX}{uuid.uuid4().hex}"

def generate_attempt_id() -> str:
    return uuid.uuid4().hex
