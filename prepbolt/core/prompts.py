# prepbolt/core/prompts.py
from typing import Optional

class PromptTemplates:
    """Centralized prompt template management"""

    @staticmethod
    def create_quiz_prompt(subject: str, topic: Optional[str], category: str,
                           difficulty: str, question_count: int) -> str:
        """Multiple-choice quiz generation prompt"""
        focus = f" focusing on {topic}" if topic else ""
        return f"""Generate a quiz about {subject}{focus} with {question_count} questions.
The quiz should be {difficulty} difficulty level and in the category of {category}.

REQUIREMENTS:
- Generate exactly {question_count} questions
- Each question has exactly 4 options with only 1 correct answer
- The correct answer must be copied verbatim from the options
- Include a short explanation of why the answer is correct

Respond with JSON only, using this structure:
{{
  "title": "Quiz title",
  "description": "A brief description of the quiz",
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
      "correctAnswer": "The correct option",
      "explanation": "Explanation of why this is the correct answer"
    }}
  ]
}}"""

    @staticmethod
    def create_daily_topic_prompt(subject: str, difficulty: str) -> str:
        """Daily topic article prompt"""
        return f"""Write a short daily learning topic for a student preparing for placement exams in {subject}.
The topic should be {difficulty} level and readable in 2-5 minutes.

Respond with JSON only, using this structure:
{{
  "title": "Topic title",
  "content": "Markdown article with headings, paragraphs and a short example",
  "readTime": 3,
  "tags": ["tag1", "tag2"]
}}"""

    @staticmethod
    def create_flashcards_prompt(subject: str, topic: Optional[str], count: int) -> str:
        """Flashcard generation prompt"""
        focus = f" on the topic {topic}" if topic else ""
        return f"""Create {count} revision flashcards for {subject}{focus}.
The front is a short question or term, the back a concise answer or definition.

Respond with JSON only, using this structure:
{{
  "flashcards": [
    {{"front": "Question or term", "back": "Answer or definition"}}
  ]
}}"""
