# prepbolt/core/ai_services.py
import json
import logging
import re
import time
from typing import List, Dict, Any, Optional
from groq import Groq
from .config import config
from .exceptions import GenerationError
from .prompts import PromptTemplates
from .dummy_data import DUMMY_QUESTIONS, DUMMY_DAILY_TOPIC, DUMMY_FLASHCARDS
from .utils import ValidationUtils

logger = logging.getLogger(__name__)

JSON_BLOCK_PATTERNS = [
    re.compile(r"```json\s*\n([\s\S]*?)```"),
    re.compile(r"```\s*\n([\s\S]*?)```"),
    re.compile(r"\{[\s\S]*\}"),
]

def extract_json(text: str) -> Dict[str, Any]:
    """Pull the JSON object out of an LLM reply, fenced or bare"""
    candidate = text
    for pattern in JSON_BLOCK_PATTERNS:
        match = pattern.search(text)
        if match:
            candidate = match.group(1) if match.groups() else match.group(0)
            break

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Generated content is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise GenerationError("Generated content is not a JSON object")
    return data

class AIService:
    """Service for content generation: quizzes, mock test sections, daily topics, flashcards"""

    def __init__(self):
        """Initialize Groq client"""
        self.client = None
        self.use_dummy = config.USE_DUMMY_DATA

        if not self.use_dummy:
            self._init_groq_client()
        else:
            logger.info("🔧 AI Service in dummy mode - using canned content")

    def _init_groq_client(self):
        """Initialize Groq client"""
        if not config.GROQ_API_KEY:
            raise GenerationError("GROQ_API_KEY not provided")

        self.client = Groq(api_key=config.GROQ_API_KEY, timeout=config.GROQ_TIMEOUT)
        logger.info("✅ Groq client initialized")

    def generate_quiz(self, subject: str, topic: Optional[str], category: str,
                      difficulty: str, question_count: int) -> Dict[str, Any]:
        """Generate a multiple-choice quiz with correctAnswer resolved to an option index"""
        logger.info(f"🤖 Generating {question_count} {difficulty} questions on {subject} (dummy: {self.use_dummy})")

        if self.use_dummy:
            data = {
                "title": f"{subject} Quiz",
                "description": f"A {difficulty} quiz on {subject}",
                "questions": [dict(DUMMY_QUESTIONS[i % len(DUMMY_QUESTIONS)]) for i in range(question_count)]
            }
        else:
            prompt = PromptTemplates.create_quiz_prompt(subject, topic, category, difficulty, question_count)
            data = extract_json(self._call_llm_with_retries(prompt))

        questions = self._normalize_questions(data.get("questions"))
        if not questions:
            raise GenerationError("Generated quiz has no usable questions")
        data["questions"] = questions

        logger.info(f"✅ Generated {len(questions)} questions")
        return data

    def generate_daily_topic(self, subject: str, difficulty: str) -> Dict[str, Any]:
        logger.info(f"🤖 Generating daily topic for {subject} (dummy: {self.use_dummy})")

        if self.use_dummy:
            return dict(DUMMY_DAILY_TOPIC)

        prompt = PromptTemplates.create_daily_topic_prompt(subject, difficulty)
        data = extract_json(self._call_llm_with_retries(prompt))

        if not data.get("title") or not data.get("content"):
            raise GenerationError("Generated topic is missing title or content")
        return data

    def generate_flashcards(self, subject: str, topic: Optional[str], count: int) -> List[Dict[str, str]]:
        logger.info(f"🤖 Generating {count} flashcards for {subject} (dummy: {self.use_dummy})")

        if self.use_dummy:
            return [dict(DUMMY_FLASHCARDS[i % len(DUMMY_FLASHCARDS)]) for i in range(count)]

        prompt = PromptTemplates.create_flashcards_prompt(subject, topic, count)
        data = extract_json(self._call_llm_with_retries(prompt))

        cards = [
            card for card in data.get("flashcards") or []
            if isinstance(card, dict) and card.get("front") and card.get("back")
        ]
        if not cards:
            raise GenerationError("Generated content has no usable flashcards")
        return cards

    def _normalize_questions(self, questions: Any) -> List[Dict[str, Any]]:
        """Resolve correctAnswer to an option index, dropping questions that can't be resolved"""
        if not isinstance(questions, list):
            return []

        normalized = []
        for position, question in enumerate(questions, start=1):
            if not isinstance(question, dict):
                logger.warning(f"⚠️ Dropping generated question {position}: not an object")
                continue
            try:
                normalized.append(ValidationUtils.normalize_question(question, position))
            except ValueError as e:
                logger.warning(f"⚠️ Dropping generated question {position}: {e}")
        return normalized

    def _call_llm_with_retries(self, prompt: str, max_tokens: int = None,
                               temperature: float = None, retries: int = None) -> str:
        """Call LLM with retry logic"""
        if not self.client:
            raise GenerationError("AI service not available")
        if max_tokens is None:
            max_tokens = config.GROQ_MAX_TOKENS
        if temperature is None:
            temperature = config.GROQ_TEMPERATURE
        if retries is None:
            retries = config.GENERATION_RETRIES

        last_error = None

        for attempt in range(retries):
            try:
                logger.debug(f"LLM call attempt {attempt + 1}/{retries}")

                completion = self.client.chat.completions.create(
                    model=config.GROQ_MODEL,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=temperature,
                    max_completion_tokens=max_tokens,
                    top_p=config.GROQ_TOP_P
                )

                if not completion.choices:
                    raise GenerationError("LLM returned no response")

                response = (completion.choices[0].message.content or "").strip()
                if not response:
                    raise GenerationError("LLM returned empty content")

                return response

            except Exception as e:
                last_error = e
                logger.warning(f"LLM call attempt {attempt + 1} failed: {e}")
                if attempt < retries - 1:
                    time.sleep(2 ** attempt)

        raise GenerationError(f"LLM call failed after {retries} attempts: {last_error}")

    def health_check(self) -> Dict[str, Any]:
        """Check AI service health"""
        if self.use_dummy:
            return {
                "status": "healthy",
                "mode": "dummy",
                "client_ready": True
            }

        return {
            "status": "healthy" if self.client else "error",
            "mode": "live",
            "model": config.GROQ_MODEL,
            "client_ready": self.client is not None
        }

# Singleton pattern for AI service
_ai_service = None

def get_ai_service() -> AIService:
    """Get AI service instance (singleton)"""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service

def close_ai_service():
    """Close AI service instance"""
    global _ai_service
    _ai_service = None
