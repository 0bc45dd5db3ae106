# prepbolt/services/quiz_service.py
import logging
from typing import Dict, Any, List, Optional
from pymongo.errors import PyMongoError
from ..core.config import config
from ..core.database import get_db_manager
from ..core.ai_services import get_ai_service
from ..core.exceptions import NotFoundError, PersistenceError
from ..core.scoring import score_quiz, leaderboard_contribution, strip_answers
from ..core.utils import ValidationUtils, DateTimeUtils, ResponseFormatter, require_document, generate_attempt_id
from ..models.schemas import CreateQuizRequest, GenerateQuizRequest, SubmitQuizRequest

logger = logging.getLogger(__name__)

class QuizService:
    """Quiz authoring, generation and submission"""

    def __init__(self):
        self.db_manager = get_db_manager()
        self.ai_service = get_ai_service()

    async def list_quizzes(self) -> List[Dict[str, Any]]:
        return ResponseFormatter.serialize(self.db_manager.list_quizzes())

    async def get_quiz(self, quiz_id: str) -> Dict[str, Any]:
        """Quiz for taking: questions without correct answers or explanations"""
        quiz = require_document(self.db_manager.get_quiz, quiz_id, "Quiz")
        quiz["questions"] = strip_answers(quiz.get("questions") or [])
        return ResponseFormatter.serialize(quiz)

    def _resolve_subject_and_topic(self, subject_id: str, topic_id: Optional[str]):
        subject = require_document(self.db_manager.get_subject, subject_id, "Subject")

        topic = None
        if topic_id:
            topic = require_document(
                lambda oid: self.db_manager.get_topic_in_subject(oid, subject["_id"]),
                topic_id, "Topic in this subject"
            )
        return subject, topic

    async def create_quiz(self, request: CreateQuizRequest, user_id: Optional[str] = None) -> Dict[str, Any]:
        subject, topic = self._resolve_subject_and_topic(request.subject, request.topic)

        questions = ValidationUtils.normalize_questions(
            [q.model_dump(exclude_none=True) for q in request.questions]
        )

        quiz = {
            "title": request.title,
            "description": request.description,
            "subject": subject["_id"],
            "topic": topic["_id"] if topic else None,
            "category": request.category,
            "type": request.type,
            "difficulty": request.difficulty,
            "timeLimit": request.timeLimit,
            "questions": questions,
            "createdBy": ValidationUtils.to_object_id(user_id) if user_id else None,
            "isGeneratedByAI": False
        }
        quiz_id = self.db_manager.insert_quiz(quiz)
        self.db_manager.add_to_subject(subject["_id"], "quizzes", quiz_id)

        logger.info(f"✅ Quiz created: {quiz_id} ({len(questions)} questions)")
        return {"message": "Quiz created successfully", "quiz": {"id": str(quiz_id), "title": request.title}}

    async def generate_quiz(self, request: GenerateQuizRequest, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Generate a quiz with the AI service and store it"""
        subject, topic = self._resolve_subject_and_topic(request.subject, request.topic)
        question_count = request.numberOfQuestions or config.QUESTIONS_PER_QUIZ

        generated = self.ai_service.generate_quiz(
            subject.get("name", ""),
            topic.get("title") if topic else None,
            request.category,
            request.difficulty,
            question_count
        )

        quiz = {
            "title": generated.get("title") or f"{subject.get('name', 'Generated')} Quiz",
            "description": generated.get("description") or "",
            "subject": subject["_id"],
            "topic": topic["_id"] if topic else None,
            "category": request.category,
            "type": request.quizType,
            "difficulty": request.difficulty,
            "timeLimit": len(generated["questions"]) * 60,
            "questions": generated["questions"],
            "createdBy": ValidationUtils.to_object_id(user_id) if user_id else None,
            "isGeneratedByAI": True
        }
        quiz_id = self.db_manager.insert_quiz(quiz)
        self.db_manager.add_to_subject(subject["_id"], "quizzes", quiz_id)

        logger.info(f"✅ Generated quiz stored: {quiz_id}")
        return {
            "message": "Quiz generated successfully",
            "quiz": {"id": str(quiz_id), "title": quiz["title"], "questionCount": len(quiz["questions"])}
        }

    async def submit_quiz(self, user_id: str, request: SubmitQuizRequest) -> Dict[str, Any]:
        """Score a quiz submission and record the attempt.

        The quiz and user must both exist before anything is scored. When a
        write fails after scoring, PersistenceError carries the computed
        response, attemptId included, so the caller still gets its result
        and can resend the submission with that id.
        """
        quiz = require_document(self.db_manager.get_quiz, request.quizId, "Quiz")
        user = require_document(lambda oid: self.db_manager.get_user(oid, {"_id": 1}), user_id, "User")

        report = score_quiz(quiz, request.answers)
        percentage = report["percentage"]
        logger.info(f"📝 Quiz {quiz['_id']} scored for user {user['_id']}: "
                    f"{report['correctAnswers']}/{report['totalQuestions']} ({percentage:.1f}%)")

        attempt_id = request.attemptId or generate_attempt_id()
        response = {
            "attemptId": attempt_id,
            "score": percentage,
            "correctAnswers": report["correctAnswers"],
            "totalQuestions": report["totalQuestions"],
            "results": report["results"]
        }

        attempt = {
            "attemptId": attempt_id,
            "quizId": quiz["_id"],
            "score": percentage,
            "totalQuestions": report["totalQuestions"],
            "correctAnswers": report["correctAnswers"],
            "timeTaken": request.timeTaken if request.timeTaken is not None else config.STANDARD_TIME_LIMIT,
            "completed": True,
            "date": DateTimeUtils.now()
        }

        try:
            self.db_manager.save_attempt(
                user["_id"], "quizAttempts", attempt,
                leaderboard_contribution(percentage, config.QUIZ_SCORE_WEIGHT),
                average_on=(config.QUIZZES_COLLECTION, quiz["_id"], percentage)
            )

            if quiz.get("subject"):
                self.db_manager.mark_quiz_completed(user["_id"], quiz["subject"], quiz["_id"])

        except (PyMongoError, PersistenceError, NotFoundError) as e:
            logger.error(f"❌ Saving quiz attempt failed: {e}")
            raise PersistenceError(f"Quiz attempt could not be saved: {e}", result=response) from e

        return response

# Singleton pattern for quiz service
_quiz_service = None

def get_quiz_service() -> QuizService:
    """Get quiz service instance (singleton)"""
    global _quiz_service
    if _quiz_service is None:
        _quiz_service = QuizService()
    return _quiz_service

def close_quiz_service():
    global _quiz_service
    _quiz_service = None
