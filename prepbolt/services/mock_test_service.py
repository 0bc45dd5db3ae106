# prepbolt/services/mock_test_service.py
import logging
from datetime import timedelta
from typing import Dict, Any, List, Optional
from pymongo.errors import PyMongoError
from ..core.config import config
from ..core.database import get_db_manager
from ..core.ai_services import get_ai_service
from ..core.exceptions import NotFoundError, PersistenceError
from ..core.scoring import (
    MOCK_TEST, default_marking, resolve_marking, score_mock_test,
    section_summaries, leaderboard_contribution, strip_answers
)
from ..core.utils import (
    ValidationUtils, DateTimeUtils, ResponseFormatter,
    require_document, generate_custom_test_id, generate_attempt_id
)
from ..models.schemas import (
    SectionData, CreateMockTestRequest, GenerateMockTestRequest,
    CustomMockTestRequest, SubmitMockTestRequest
)

logger = logging.getLogger(__name__)

SECTION_DIFFICULTIES = ["easy", "medium", "hard"]

def build_section(title: str, description: str, questions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Section document with questionsCount and totalMarks derived from its questions"""
    default = default_marking(MOCK_TEST)
    return {
        "title": title,
        "description": description,
        "questions": questions,
        "questionsCount": len(questions),
        "totalMarks": sum(resolve_marking(q, default).marks for q in questions)
    }

def normalize_sections(sections: List[SectionData]) -> List[Dict[str, Any]]:
    if not sections:
        raise ValueError("At least one section is required")

    normalized = []
    for section in sections:
        questions = ValidationUtils.normalize_questions(
            [q.model_dump(exclude_none=True) for q in section.questions]
        )
        normalized.append(build_section(section.title, section.description, questions))
    return normalized

def public_sections(sections: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sections as shown to a test taker"""
    return [
        {**section, "questions": strip_answers(section.get("questions") or [])}
        for section in sections
    ]

class MockTestService:
    """Mock test authoring, generation, custom tests and submission"""

    def __init__(self):
        self.db_manager = get_db_manager()
        self.ai_service = get_ai_service()

    async def list_mock_tests(self) -> List[Dict[str, Any]]:
        return ResponseFormatter.serialize(self.db_manager.list_mock_tests())

    async def get_mock_test(self, test_id: str) -> Dict[str, Any]:
        if ValidationUtils.is_custom_test_id(test_id):
            test = self.db_manager.get_custom_test(test_id)
            if not test:
                raise NotFoundError("Mock test not found")
        else:
            test = require_document(self.db_manager.get_mock_test, test_id, "Mock test")

        test["sections"] = public_sections(test.get("sections") or [])
        return ResponseFormatter.serialize(test)

    async def create_mock_test(self, request: CreateMockTestRequest, user_id: Optional[str] = None) -> Dict[str, Any]:
        subject = None
        if request.subject:
            subject = require_document(self.db_manager.get_subject, request.subject, "Subject")

        sections = normalize_sections(request.sections)
        test = {
            "title": request.title,
            "description": request.description,
            "subject": subject["_id"] if subject else None,
            "duration": request.duration,
            "difficulty": request.difficulty,
            "passingMarks": request.passingMarks,
            "totalMarks": sum(s["totalMarks"] for s in sections),
            "sections": sections,
            "createdBy": ValidationUtils.to_object_id(user_id) if user_id else None,
            "isGeneratedByAI": False
        }
        test_id = self.db_manager.insert_mock_test(test)
        if subject:
            self.db_manager.add_to_subject(subject["_id"], "mockTests", test_id)

        logger.info(f"✅ Mock test created: {test_id} ({len(sections)} sections)")
        return {"message": "Mock test created successfully", "mockTest": {"id": str(test_id), "title": request.title}}

    async def generate_mock_test(self, request: GenerateMockTestRequest, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Generate one section per AI call; difficulty rises with section position"""
        subject = require_document(self.db_manager.get_subject, request.subject, "Subject")
        subject_name = subject.get("name", "")
        section_count = request.numberOfSections or config.MOCK_TEST_SECTIONS
        per_section = request.questionsPerSection or config.QUESTIONS_PER_SECTION

        sections = []
        for index in range(section_count):
            title = f"Section {index + 1}"
            difficulty = SECTION_DIFFICULTIES[min(index, len(SECTION_DIFFICULTIES) - 1)]
            generated = self.ai_service.generate_quiz(subject_name, title, "mock test", difficulty, per_section)
            sections.append(build_section(title, f"{difficulty.capitalize()} questions", generated["questions"]))
            logger.info(f"✅ Generated {title} ({difficulty}, {len(generated['questions'])} questions)")

        test = {
            "title": f"{subject_name} Mock Test",
            "description": f"AI-generated mock test for {subject_name}",
            "subject": subject["_id"],
            "duration": request.duration or config.MOCK_TEST_DURATION,
            "difficulty": "mixed",
            "totalMarks": sum(s["totalMarks"] for s in sections),
            "sections": sections,
            "createdBy": ValidationUtils.to_object_id(user_id) if user_id else None,
            "isGeneratedByAI": True
        }
        test_id = self.db_manager.insert_mock_test(test)
        self.db_manager.add_to_subject(subject["_id"], "mockTests", test_id)

        return {"message": "Mock test generated successfully", "mockTest": {"id": str(test_id), "title": test["title"]}}

    async def create_custom_test(self, request: CustomMockTestRequest) -> Dict[str, Any]:
        """Store an assembled question set for a limited time so its submission can be scored"""
        sections = normalize_sections(request.sections)
        now = DateTimeUtils.now()

        test = {
            "_id": generate_custom_test_id(),
            "title": request.title,
            "description": request.description,
            "duration": request.duration or config.MOCK_TEST_DURATION,
            "totalMarks": sum(s["totalMarks"] for s in sections),
            "sections": sections,
            "expiresAt": now + timedelta(seconds=config.CUSTOM_TEST_TTL_SECONDS)
        }
        self.db_manager.insert_custom_test(test)
        logger.info(f"✅ Custom test registered: {test['_id']}")

        test["sections"] = public_sections(sections)
        return ResponseFormatter.serialize(test)

    async def submit_mock_test(self, user_id: str, request: SubmitMockTestRequest) -> Dict[str, Any]:
        """Score a mock test submission and record the attempt.

        Stored tests (persisted or custom) are always scored on the server.
        A custom test that is no longer stored falls back to the client's
        scoreData, which is recorded but never added to the user's score.
        Every response carries an attemptId; resending it after a failed
        save records the attempt at most once.
        """
        is_custom = ValidationUtils.is_custom_test_id(request.testId)

        if is_custom:
            test = self.db_manager.get_custom_test(request.testId)
            if not test and request.scoreData is None:
                raise NotFoundError("Mock test not found")
        else:
            test = require_document(self.db_manager.get_mock_test, request.testId, "Mock test")

        user = require_document(lambda oid: self.db_manager.get_user(oid, {"_id": 1}), user_id, "User")

        if test:
            report = score_mock_test(test, request.answers)
            response = {
                "score": report["score"],
                "percentage": report["percentage"],
                "correctAnswers": report["correctAnswers"],
                "totalQuestions": report["totalQuestions"],
                "results": [
                    {"sectionTitle": s["sectionTitle"], "questions": s["questions"]}
                    for s in report["results"]
                ]
            }
            sections = section_summaries(report)
            score_source = "server"
            increment = leaderboard_contribution(report["percentage"], config.MOCK_TEST_SCORE_WEIGHT)
        else:
            client = request.scoreData
            response = {
                "score": client.score,
                "percentage": client.percentage,
                "correctAnswers": client.correctAnswers,
                "totalQuestions": client.totalQuestions,
                "results": []
            }
            sections = []
            score_source = "client"
            increment = 0.0
            logger.warning(f"⚠️ Custom test {request.testId} not stored, recording client score without ranking it")

        logger.info(f"📝 Mock test {request.testId} scored for user {user['_id']}: "
                    f"{response['score']} ({response['percentage']:.1f}%, source: {score_source})")

        attempt_id = request.attemptId or generate_attempt_id()
        response = {"attemptId": attempt_id, **response}

        attempt = {
            "attemptId": attempt_id,
            "testId": request.testId if is_custom else test["_id"],
            "score": response["score"],
            "percentage": response["percentage"],
            "correctAnswers": response["correctAnswers"],
            "totalQuestions": response["totalQuestions"],
            "sections": sections,
            "timeTaken": request.timeTaken if request.timeTaken is not None else config.STANDARD_TIME_LIMIT,
            "scoreSource": score_source,
            "completed": True,
            "date": DateTimeUtils.now()
        }

        # custom tests keep no statistics
        average_on = None if is_custom else (config.MOCK_TESTS_COLLECTION, test["_id"], response["percentage"])

        try:
            self.db_manager.save_attempt(user["_id"], "mockTestAttempts", attempt, increment, average_on=average_on)
        except (PyMongoError, PersistenceError, NotFoundError) as e:
            logger.error(f"❌ Saving mock test attempt failed: {e}")
            raise PersistenceError(f"Mock test attempt could not be saved: {e}", result=response) from e

        return {"message": "Mock test submitted successfully", **response}

# Singleton pattern for mock test service
_mock_test_service = None

def get_mock_test_service() -> MockTestService:
    """Get mock test service instance (singleton)"""
    global _mock_test_service
    if _mock_test_service is None:
        _mock_test_service = MockTestService()
    return _mock_test_service

def close_mock_test_service():
    global _mock_test_service
    _mock_test_service = None
