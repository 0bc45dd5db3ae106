# prepbolt/services/flashcard_service.py
import logging
from typing import Dict, Any, List, Optional
from ..core.config import config
from ..core.database import get_db_manager
from ..core.ai_services import get_ai_service
from ..core.exceptions import NotFoundError, PersistenceError
from ..core.spaced_repetition import clamp_rating, schedule_review
from ..core.utils import ValidationUtils, DateTimeUtils, ResponseFormatter, require_document
from ..models.schemas import CreateFlashcardRequest, GenerateFlashcardsRequest, ReviewFlashcardRequest

logger = logging.getLogger(__name__)

class FlashcardService:
    """Flashcards with spaced-repetition review scheduling"""

    def __init__(self):
        self.db_manager = get_db_manager()
        self.ai_service = get_ai_service()

    async def list_flashcards(self, subject: Optional[str] = None, topic: Optional[str] = None,
                              difficulty: Optional[str] = None,
                              tags: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        query = {}
        for field, value in (("subject", subject), ("topic", topic)):
            if value:
                object_id = ValidationUtils.to_object_id(value)
                if not object_id:
                    raise ValueError(f"Invalid {field} id")
                query[field] = object_id
        if difficulty:
            query["difficulty"] = difficulty
        if tags:
            query["tags"] = {"$in": tags}

        return ResponseFormatter.serialize(self.db_manager.find_flashcards(query))

    async def get_flashcard(self, card_id: str) -> Dict[str, Any]:
        return ResponseFormatter.serialize(require_document(self.db_manager.get_flashcard, card_id, "Flashcard"))

    async def create_flashcard(self, request: CreateFlashcardRequest, user_id: Optional[str] = None) -> Dict[str, Any]:
        subject = require_document(self.db_manager.get_subject, request.subject, "Subject")
        topic = require_document(
            lambda oid: self.db_manager.get_topic_in_subject(oid, subject["_id"]),
            request.topic, "Topic in this subject"
        )

        card = {
            "front": request.front,
            "back": request.back,
            "subject": subject["_id"],
            "topic": topic["_id"],
            "difficulty": request.difficulty,
            "tags": request.tags,
            "createdBy": ValidationUtils.to_object_id(user_id) if user_id else None,
            "isGeneratedByAI": False
        }
        card_id = self.db_manager.insert_flashcard(card)
        self.db_manager.add_to_subject(subject["_id"], "flashcards", card_id)

        logger.info(f"✅ Flashcard created: {card_id}")
        return ResponseFormatter.serialize(card)

    async def generate_flashcards(self, request: GenerateFlashcardsRequest,
                                  user_id: Optional[str] = None) -> Dict[str, Any]:
        subject = require_document(self.db_manager.get_subject, request.subject, "Subject")
        topic = None
        if request.topic:
            topic = require_document(
                lambda oid: self.db_manager.get_topic_in_subject(oid, subject["_id"]),
                request.topic, "Topic in this subject"
            )

        generated = self.ai_service.generate_flashcards(
            subject.get("name", ""), topic.get("title") if topic else None, request.numberOfCards
        )

        cards = []
        for item in generated:
            card = {
                "front": item["front"],
                "back": item["back"],
                "subject": subject["_id"],
                "topic": topic["_id"] if topic else None,
                "difficulty": "medium",
                "tags": [],
                "createdBy": ValidationUtils.to_object_id(user_id) if user_id else None,
                "isGeneratedByAI": True
            }
            self.db_manager.insert_flashcard(card)
            cards.append(card)

        self.db_manager.add_to_subject(subject["_id"], "flashcards", *[c["_id"] for c in cards])
        logger.info(f"✅ Generated {len(cards)} flashcards for subject {subject['_id']}")
        return {"message": "Flashcards generated successfully", "flashcards": ResponseFormatter.serialize(cards)}

    async def review_flashcard(self, card_id: str, request: ReviewFlashcardRequest) -> Dict[str, Any]:
        """Apply a 1-5 rating and schedule the next review"""
        card = require_document(self.db_manager.get_flashcard, card_id, "Flashcard")
        rating = clamp_rating(request.difficulty)

        for attempt in range(config.OPTIMISTIC_RETRIES):
            level = card.get("repetitionLevel") or 0
            now = DateTimeUtils.now()
            new_level, next_review = schedule_review(level, rating, now)

            if self.db_manager.update_flashcard_review(card["_id"], card.get("repetitionLevel"),
                                                       new_level, now, next_review):
                logger.info(f"🔁 Flashcard {card['_id']} rated {rating}: level {new_level}, next {next_review.date()}")
                return {
                    "message": "Flashcard reviewed successfully",
                    "flashcard": {
                        "id": str(card["_id"]),
                        "repetitionLevel": new_level,
                        "lastReviewed": now.isoformat(),
                        "nextReviewDate": next_review.isoformat()
                    }
                }

            logger.warning(f"⚠️ Review of flashcard {card['_id']} lost a race, "
                           f"retry {attempt + 1}/{config.OPTIMISTIC_RETRIES}")
            card = self.db_manager.get_flashcard(card["_id"])
            if not card:
                raise NotFoundError("Flashcard not found")

        raise PersistenceError("Flashcard review kept conflicting with concurrent reviews")

# Singleton pattern for flashcard service
_flashcard_service = None

def get_flashcard_service() -> FlashcardService:
    """Get flashcard service instance (singleton)"""
    global _flashcard_service
    if _flashcard_service is None:
        _flashcard_service = FlashcardService()
    return _flashcard_service

def close_flashcard_service():
    global _flashcard_service
    _flashcard_service = None
