# prepbolt/core/scoring.py
"""
Scoring engine for quizzes and mock tests.

Pure functions only: nothing here touches the database. A question is a dict
with ``question``, ``options``, ``correctAnswer`` (option index) and optional
``marks`` / ``negativeMarks`` / ``explanation``. Answers mirror the test shape:
a flat list for quizzes, a list of per-section lists for mock tests. Missing
trailing entries are treated as unanswered.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .config import config

QUIZ = "quiz"
MOCK_TEST = "mock_test"


@dataclass(frozen=True)
class Marking:
    marks: float
    negative_marks: float


def default_marking(kind: str) -> Marking:
    if kind == MOCK_TEST:
        return Marking(config.MOCK_TEST_MARKS, config.MOCK_TEST_NEGATIVE_MARKS)
    # quizzes are never negatively marked
    return Marking(config.QUIZ_MARKS, 0.0)


def resolve_marking(question: Dict[str, Any], default: Marking) -> Marking:
    """Per-question marks win when present, otherwise the configured default."""
    marks = question.get("marks")
    negative = question.get("negativeMarks")
    return Marking(
        marks=default.marks if marks is None else float(marks),
        negative_marks=default.negative_marks if negative is None else float(negative),
    )


def is_correct_answer(answer: Any, correct_answer: Any) -> bool:
    # bool is an int subclass; True must never match option 1
    if isinstance(answer, bool) or isinstance(correct_answer, bool):
        return False
    return answer == correct_answer


def answer_at(answers: Any, index: int) -> Any:
    if not isinstance(answers, (list, tuple)) or index >= len(answers):
        return None
    return answers[index]


def score_question(question: Dict[str, Any], answer: Any, marking: Marking) -> Dict[str, Any]:
    """Score one question. Unanswered scores 0, wrong costs the negative marks."""
    correct_answer = question.get("correctAnswer")

    if answer is None:
        is_correct = False
        points = 0.0
    elif is_correct_answer(answer, correct_answer):
        is_correct = True
        points = marking.marks
    else:
        is_correct = False
        points = -marking.negative_marks

    return {
        "question": question.get("question", ""),
        "userAnswer": answer,
        "correctAnswer": correct_answer,
        "isCorrect": is_correct,
        "score": points,
        "explanation": question.get("explanation", ""),
    }


def calculate_percentage(score: float, max_score: float) -> float:
    """score / max * 100, floored at 0; 0 when there is nothing to score."""
    if max_score <= 0:
        return 0.0
    return max(0.0, (score / max_score) * 100)


def score_section(questions: Sequence[Dict[str, Any]], answers: Any,
                  default: Marking, title: str = "",
                  question_marks: bool = True) -> Dict[str, Any]:
    """Score a run of questions. With ``question_marks`` off every question uses ``default``."""
    results = []
    score = 0.0
    max_score = 0.0
    correct = 0

    for index, question in enumerate(questions):
        marking = resolve_marking(question, default) if question_marks else default
        result = score_question(question, answer_at(answers, index), marking)
        results.append(result)
        score += result["score"]
        max_score += marking.marks
        if result["isCorrect"]:
            correct += 1

    return {
        "sectionTitle": title,
        "score": score,
        "maxScore": max_score,
        "correctAnswers": correct,
        "totalQuestions": len(questions),
        "questions": results,
    }


def score_quiz(quiz: Dict[str, Any], answers: Any) -> Dict[str, Any]:
    """Score a flat quiz.

    Quizzes are not negatively marked: per-question marks are ignored and the
    percentage is questions correct over total questions.
    """
    questions = quiz.get("questions") or []
    section = score_section(questions, answers, default_marking(QUIZ), question_marks=False)

    return {
        "score": section["score"],
        "maxScore": section["maxScore"],
        "percentage": calculate_percentage(section["correctAnswers"], section["totalQuestions"]),
        "correctAnswers": section["correctAnswers"],
        "totalQuestions": section["totalQuestions"],
        "results": section["questions"],
    }


def score_mock_test(test: Dict[str, Any], answers: Any) -> Dict[str, Any]:
    """Score a sectioned mock test with negative marking."""
    default = default_marking(MOCK_TEST)
    sections = []
    total_score = 0.0
    max_score = 0.0
    correct = 0
    total_questions = 0

    for index, section in enumerate(test.get("sections") or []):
        section_result = score_section(
            section.get("questions") or [],
            answer_at(answers, index),
            default,
            title=section.get("title", f"Section {index + 1}"),
        )
        sections.append(section_result)
        total_score += section_result["score"]
        max_score += section_result["maxScore"]
        correct += section_result["correctAnswers"]
        total_questions += section_result["totalQuestions"]

    return {
        "score": total_score,
        "maxScore": max_score,
        "percentage": calculate_percentage(total_score, max_score),
        "correctAnswers": correct,
        "totalQuestions": total_questions,
        "results": sections,
    }


def running_average(old_average: float, old_count: int, new_value: float) -> float:
    """Incremental mean: (avg * n + x) / (n + 1)."""
    return ((old_average or 0.0) * old_count + new_value) / (old_count + 1)


def leaderboard_contribution(percentage: float, weight: float) -> float:
    return max(0.0, percentage) * weight


def section_summaries(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Per-section figures stored on a mock test attempt."""
    return [
        {
            "section": section["sectionTitle"],
            "score": section["score"],
            "totalQuestions": section["totalQuestions"],
            "correctAnswers": section["correctAnswers"],
        }
        for section in report.get("results", [])
    ]


def strip_answers(questions: Sequence[Dict[str, Any]],
                  hidden: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
    """Copy questions for a client, without the fields that give answers away."""
    hidden = hidden or ("correctAnswer", "explanation")
    return [{k: v for k, v in q.items() if k not in hidden} for q in questions]
