"""
Simulated opponent progress for match sessions.
"""
import logging
import random
from typing import Optional

logger = logging.getLogger(__name__)


class OpponentSimulator:
    """
    Produces the opponent's display-only progress signal.

    Each step adds a random amount up to ``max_step`` and clamps the result to
    a ceiling derived from how far the session is through its questions, plus
    a random jitter allowance. Progress never decreases and never exceeds 100.
    """

    def __init__(self, max_step: float = 3.0, jitter: float = 10.0, rng: Optional[random.Random] = None):
        self.max_step = max_step
        self.jitter = jitter
        self._rng = rng or random.Random()

    def ceiling(self, current_index: int, total_questions: int) -> float:
        """Upper bound for opponent progress at the given point of the session."""
        if total_questions <= 0:
            return 0.0
        return (current_index / total_questions) * 100 + self._rng.random() * self.jitter

    def step(self, progress: float, current_index: int, total_questions: int) -> float:
        """
        Compute the next opponent progress value.

        Args:
            progress: Current opponent progress
            current_index: Player's current question index
            total_questions: Number of questions in the session

        Returns:
            New progress in [progress, 100]
        """
        candidate = progress + self._rng.random() * self.max_step
        bounded = min(candidate, self.ceiling(current_index, total_questions), 100.0)
        # A ceiling below the current value holds progress in place
        new_progress = max(progress, bounded)

        logger.debug(
            f"Opponent progress {progress:.1f} -> {new_progress:.1f}",
            extra={
                'event_type': 'opponent_step',
                'current_index': current_index,
                'total_questions': total_questions
            }
        )
        return new_progress
