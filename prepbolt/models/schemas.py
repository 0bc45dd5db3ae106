# prepbolt/models/schemas.py
"""
Pydantic models for request validation.

Field names follow the JSON the frontend already sends (camelCase).
"""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr


# ==================== Questions ====================

class QuestionData(BaseModel):
    question: str
    options: List[str]
    # option index, or the exact option text (converted to an index on save)
    correctAnswer: Union[StrictInt, StrictStr]
    marks: Optional[float] = Field(default=None, gt=0)
    negativeMarks: Optional[float] = Field(default=None, ge=0)
    explanation: str = ""
    difficulty: Optional[str] = None


class SectionData(BaseModel):
    title: str
    description: str = ""
    questions: List[QuestionData]


# ==================== Quizzes ====================

class CreateQuizRequest(BaseModel):
    title: str
    description: str
    subject: str
    topic: Optional[str] = None
    category: str
    type: str = "practice"
    difficulty: str = "medium"
    timeLimit: int = 600
    questions: List[QuestionData]


class GenerateQuizRequest(BaseModel):
    subject: str
    topic: Optional[str] = None
    category: str = "general"
    difficulty: str = "medium"
    numberOfQuestions: Optional[int] = Field(default=None, ge=1, le=50)
    quizType: str = "practice"


class SubmitQuizRequest(BaseModel):
    quizId: str
    # one entry per question, null when unanswered
    answers: List[Any]
    timeTaken: Optional[int] = Field(default=None, ge=0)
    # id returned by an earlier submission; resending it never double counts
    attemptId: Optional[str] = Field(default=None, min_length=1, max_length=64)


# ==================== Mock tests ====================

class CreateMockTestRequest(BaseModel):
    title: str
    description: str
    subject: Optional[str] = None
    duration: int = 3600
    difficulty: str = "medium"
    passingMarks: float = 40
    sections: List[SectionData]


class GenerateMockTestRequest(BaseModel):
    subject: str
    numberOfSections: Optional[int] = Field(default=None, ge=1, le=10)
    questionsPerSection: Optional[int] = Field(default=None, ge=1, le=50)
    duration: Optional[int] = None


class CustomMockTestRequest(BaseModel):
    title: str = "Custom Mock Test"
    description: str = ""
    duration: Optional[int] = None
    sections: List[SectionData]


class ScoreData(BaseModel):
    score: float
    correctAnswers: int
    totalQuestions: int
    percentage: float


class SubmitMockTestRequest(BaseModel):
    testId: str
    # one list per section, each with one entry per question
    answers: List[Any]
    timeTaken: Optional[int] = Field(default=None, ge=0)
    # id returned by an earlier submission; resending it never double counts
    attemptId: Optional[str] = Field(default=None, min_length=1, max_length=64)
    scoreData: Optional[ScoreData] = None


# ==================== Daily topics ====================

class CreateDailyTopicRequest(BaseModel):
    title: str
    content: str
    subject: str
    publishDate: Optional[datetime] = None
    readTime: int = 2
    difficulty: str = "intermediate"
    tags: List[str] = []
    relatedQuiz: Optional[str] = None
    relatedTopics: List[str] = []


class UpdateDailyTopicRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    publishDate: Optional[datetime] = None
    readTime: Optional[int] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    relatedQuiz: Optional[str] = None
    relatedTopics: Optional[List[str]] = None


class GenerateDailyTopicRequest(BaseModel):
    subject: str
    publishDate: Optional[datetime] = None
    difficulty: str = "intermediate"


# ==================== Flashcards ====================

class CreateFlashcardRequest(BaseModel):
    front: str
    back: str
    subject: str
    topic: str
    difficulty: str = "medium"
    tags: List[str] = []


class GenerateFlashcardsRequest(BaseModel):
    subject: str
    topic: Optional[str] = None
    numberOfCards: int = Field(default=5, ge=1, le=50)


class ReviewFlashcardRequest(BaseModel):
    # 1 = hard ... 5 = easy; clamped into range
    difficulty: Optional[int] = None


# ==================== Users & subjects ====================

class CreateUserRequest(BaseModel):
    name: str
    email: str
    profilePicture: str = ""


class CreateSubjectRequest(BaseModel):
    name: str
    description: str
    category: str = "Technical"
    type: str


class CreateTopicRequest(BaseModel):
    title: str
    content: str
    order: int = 0
