# prepbolt/api/routes.py
import logging
from typing import List, Optional
from fastapi import APIRouter, Header, Query

from ..services.quiz_service import get_quiz_service
from ..services.mock_test_service import get_mock_test_service
from ..services.daily_topic_service import get_daily_topic_service
from ..services.flashcard_service import get_flashcard_service
from ..services.leaderboard_service import get_leaderboard_service
from ..services.user_service import get_user_service
from ..models.schemas import (
    CreateQuizRequest, GenerateQuizRequest, SubmitQuizRequest,
    CreateMockTestRequest, GenerateMockTestRequest, CustomMockTestRequest, SubmitMockTestRequest,
    CreateDailyTopicRequest, UpdateDailyTopicRequest, GenerateDailyTopicRequest,
    CreateFlashcardRequest, GenerateFlashcardsRequest, ReviewFlashcardRequest,
    CreateUserRequest, CreateSubjectRequest, CreateTopicRequest
)

logger = logging.getLogger(__name__)

router = APIRouter()

def require_user_id(x_user_id: Optional[str]) -> str:
    """Caller identity comes from the X-User-Id header"""
    if not x_user_id:
        raise ValueError("X-User-Id header is required")
    return x_user_id

@router.get("/")
async def home():
    """Home endpoint"""
    return {
        "service": "PrepBolt API",
        "status": "operational"
    }

# ==================== Quizzes ====================

@router.get("/api/quiz")
async def list_quizzes():
    return await get_quiz_service().list_quizzes()

@router.post("/api/quiz", status_code=201)
async def create_quiz(request: CreateQuizRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_quiz_service().create_quiz(request, x_user_id)

@router.post("/api/quiz/generate", status_code=201)
async def generate_quiz(request: GenerateQuizRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_quiz_service().generate_quiz(request, x_user_id)

@router.post("/api/quiz/submit")
async def submit_quiz(request: SubmitQuizRequest, x_user_id: Optional[str] = Header(default=None)):
    """Score a quiz; the response score is a percentage"""
    return await get_quiz_service().submit_quiz(require_user_id(x_user_id), request)

@router.get("/api/quiz/{quiz_id}")
async def get_quiz(quiz_id: str):
    return await get_quiz_service().get_quiz(quiz_id)

# ==================== Mock tests ====================

@router.get("/api/mock-test")
async def list_mock_tests():
    return await get_mock_test_service().list_mock_tests()

@router.post("/api/mock-test", status_code=201)
async def create_mock_test(request: CreateMockTestRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_mock_test_service().create_mock_test(request, x_user_id)

@router.post("/api/mock-test/generate", status_code=201)
async def generate_mock_test(request: GenerateMockTestRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_mock_test_service().generate_mock_test(request, x_user_id)

@router.post("/api/mock-test/custom", status_code=201)
async def create_custom_test(request: CustomMockTestRequest):
    """Register an assembled test so its submission can be scored server-side"""
    return await get_mock_test_service().create_custom_test(request)

@router.post("/api/mock-test/submit")
async def submit_mock_test(request: SubmitMockTestRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_mock_test_service().submit_mock_test(require_user_id(x_user_id), request)

@router.get("/api/mock-test/{test_id}")
async def get_mock_test(test_id: str):
    return await get_mock_test_service().get_mock_test(test_id)

# ==================== Daily topics ====================

@router.get("/api/daily-topic/today")
async def get_today_topic():
    return await get_daily_topic_service().get_today()

@router.get("/api/daily-topic/range")
async def get_topics_in_range(startDate: Optional[str] = None, endDate: Optional[str] = None):
    """Topics published between two calendar days, both inclusive"""
    return await get_daily_topic_service().get_range(startDate, endDate)

@router.post("/api/daily-topic", status_code=201)
async def create_daily_topic(request: CreateDailyTopicRequest):
    return await get_daily_topic_service().create_topic(request)

@router.post("/api/daily-topic/generate", status_code=201)
async def generate_daily_topic(request: GenerateDailyTopicRequest):
    return await get_daily_topic_service().generate_topic(request)

@router.get("/api/daily-topic/{topic_id}")
async def get_daily_topic(topic_id: str):
    return await get_daily_topic_service().get_topic(topic_id)

@router.put("/api/daily-topic/{topic_id}")
async def update_daily_topic(topic_id: str, request: UpdateDailyTopicRequest):
    return await get_daily_topic_service().update_topic(topic_id, request)

@router.delete("/api/daily-topic/{topic_id}")
async def delete_daily_topic(topic_id: str):
    return await get_daily_topic_service().delete_topic(topic_id)

@router.post("/api/daily-topic/{topic_id}/view")
async def view_daily_topic(topic_id: str):
    return await get_daily_topic_service().record_view(topic_id)

@router.post("/api/daily-topic/{topic_id}/complete")
async def complete_daily_topic(topic_id: str, x_user_id: Optional[str] = Header(default=None)):
    """Mark a topic completed; safe to repeat"""
    return await get_daily_topic_service().complete_topic(require_user_id(x_user_id), topic_id)

# ==================== Flashcards ====================

@router.get("/api/flashcards")
async def list_flashcards(subject: Optional[str] = None, topic: Optional[str] = None,
                          difficulty: Optional[str] = None, tags: Optional[List[str]] = Query(default=None)):
    return await get_flashcard_service().list_flashcards(subject, topic, difficulty, tags)

@router.post("/api/flashcards", status_code=201)
async def create_flashcard(request: CreateFlashcardRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_flashcard_service().create_flashcard(request, x_user_id)

@router.post("/api/flashcards/generate", status_code=201)
async def generate_flashcards(request: GenerateFlashcardsRequest, x_user_id: Optional[str] = Header(default=None)):
    return await get_flashcard_service().generate_flashcards(request, x_user_id)

@router.get("/api/flashcards/{card_id}")
async def get_flashcard(card_id: str):
    return await get_flashcard_service().get_flashcard(card_id)

@router.post("/api/flashcards/{card_id}/review")
async def review_flashcard(card_id: str, request: ReviewFlashcardRequest):
    return await get_flashcard_service().review_flashcard(card_id, request)

# ==================== Leaderboard ====================

@router.get("/api/leaderboard")
async def get_leaderboard(limit: Optional[int] = Query(default=None, ge=1, le=100)):
    return await get_leaderboard_service().get_global(limit)

@router.get("/api/leaderboard/rank")
async def get_rank(x_user_id: Optional[str] = Header(default=None)):
    return await get_leaderboard_service().get_rank(require_user_id(x_user_id))

@router.get("/api/leaderboard/quiz/{quiz_id}")
async def get_quiz_leaderboard(quiz_id: str, limit: Optional[int] = Query(default=None, ge=1, le=100)):
    return await get_leaderboard_service().get_quiz_leaderboard(quiz_id, limit)

# ==================== Users & subjects ====================

@router.post("/api/user", status_code=201)
async def create_user(request: CreateUserRequest):
    return await get_user_service().create_user(request)

@router.get("/api/user/progress")
async def get_progress(x_user_id: Optional[str] = Header(default=None)):
    return await get_user_service().get_progress(require_user_id(x_user_id))

@router.get("/api/subject")
async def list_subjects():
    return await get_user_service().list_subjects()

@router.post("/api/subject", status_code=201)
async def create_subject(request: CreateSubjectRequest):
    return await get_user_service().create_subject(request)

@router.post("/api/subject/{subject_id}/topics", status_code=201)
async def create_topic(subject_id: str, request: CreateTopicRequest):
    return await get_user_service().create_topic(subject_id, request)
