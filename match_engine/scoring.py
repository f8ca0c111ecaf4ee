"""
Answer scoring and streak tracking for match sessions.
"""
import logging
from typing import Optional

from .models import AnswerResult, Question

logger = logging.getLogger(__name__)


def score_answer(
    question: Question,
    selected_option: Optional[int],
    prior_streak: int,
    streak_bonus_per_level: int
) -> AnswerResult:
    """
    Score one resolved question.

    The streak bonus uses the streak held before this answer, so the first
    correct answer in a run earns only the question's base points.

    Args:
        question: The question being resolved
        selected_option: Chosen option index, or None on timeout
        prior_streak: Consecutive correct answers before this one
        streak_bonus_per_level: Bonus points per streak level

    Returns:
        AnswerResult with the points awarded and the new streak
    """
    timed_out = selected_option is None

    if question.is_correct(selected_option):
        points = question.points + prior_streak * streak_bonus_per_level
        result = AnswerResult(
            correct=True,
            points_awarded=points,
            streak=prior_streak + 1,
            timed_out=False
        )
    else:
        result = AnswerResult(
            correct=False,
            points_awarded=0,
            streak=0,
            timed_out=timed_out
        )

    logger.debug(
        f"Scored question {question.id}: correct={result.correct}, "
        f"points={result.points_awarded}, streak {prior_streak} -> {result.streak}",
        extra={
            'event_type': 'answer_scored',
            'question_id': question.id,
            'timed_out': timed_out,
            'points_awarded': result.points_awarded
        }
    )
    return result


def advance_progress(progress: float, step: float) -> float:
    """Move a progress signal forward by one step, capped at 100."""
    return min(progress + step, 100.0)
