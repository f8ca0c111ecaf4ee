"""
Reward translation from finished match sessions to player progression.
"""
import logging
from dataclasses import replace

from .models import Outcome, PlayerProfile, SessionState

logger = logging.getLogger(__name__)

COINS_PER_SCORE_DIVISOR = 10
XP_PER_STREAK_LEVEL = 5


def compute_outcome(state: SessionState) -> Outcome:
    """
    Compute the terminal Outcome of a session.

    Pure function of the given state; calling it twice on the same frozen
    state yields equal values.

    Args:
        state: Final session state

    Returns:
        Outcome with score, best streak and reward deltas
    """
    final_score = state.score
    best_streak = max(state.best_streak, state.streak)
    return Outcome(
        final_score=final_score,
        best_streak=best_streak,
        coins_earned=final_score // COINS_PER_SCORE_DIVISOR,
        xp_earned=final_score + best_streak * XP_PER_STREAK_LEVEL,
        correct_answers=state.correct_count,
        total_questions=state.total_questions
    )


def apply_outcome(profile: PlayerProfile, outcome: Outcome) -> PlayerProfile:
    """
    Apply an Outcome to a player's progression totals.

    Args:
        profile: Profile before the match
        outcome: Terminal result of the match

    Returns:
        New PlayerProfile with coins, xp and match counters updated
    """
    updated = replace(
        profile,
        coins=profile.coins + outcome.coins_earned,
        xp=profile.xp + outcome.xp_earned,
        total_matches=profile.total_matches + 1,
        wins=profile.wins + 1
    )
    logger.info(
        f"Applied match rewards to {profile.display_name}: "
        f"+{outcome.coins_earned} coins, +{outcome.xp_earned} xp"
    )
    return updated


def format_outcome_summary(outcome: Outcome) -> str:
    """Get a human-readable summary of a match outcome."""
    return (
        f"Match Complete!\n"
        f"• Final Score: {outcome.final_score}\n"
        f"• Correct: {outcome.correct_answers}/{outcome.total_questions}\n"
        f"• Best Streak: {outcome.best_streak}\n"
        f"• Coins Earned: {outcome.coins_earned}\n"
        f"• XP Earned: {outcome.xp_earned}"
    )
