"""
Match session state machine.

The engine is synchronous and owns one SessionState. Every event (clock tick,
answer selection, reveal timeout, opponent tick) is a single transition method
that mutates the state atomically. Scheduling lives in MatchController.
"""
import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from .models import (
    AnswerResult, MatchSettings, Outcome, Question, SessionPhase,
    SessionSnapshot, SessionState
)
from .opponent import OpponentSimulator
from .rewards import compute_outcome
from .scoring import advance_progress, score_answer

logger = logging.getLogger(__name__)

PhaseListener = Callable[[SessionPhase, SessionPhase], None]


class MatchSessionError(Exception):
    """Base exception for match session errors."""
    pass


class InvalidConfiguration(MatchSessionError):
    """Raised when a session is started with malformed parameters."""
    pass


class InvalidOption(MatchSessionError):
    """Raised when an answer index is outside the current question's options."""
    pass


class SessionNotFoundError(MatchSessionError):
    """Raised when operating on an unknown or finished session."""
    pass


def validate_configuration(questions: Sequence[Question], settings: MatchSettings) -> None:
    """
    Check start parameters before any session state is created.

    Raises:
        InvalidConfiguration: If the questions or settings are unusable
    """
    if not questions:
        raise InvalidConfiguration("Cannot start a session with no questions")
    for position, question in enumerate(questions):
        if not isinstance(question, Question):
            raise InvalidConfiguration(
                f"Entry {position} is {type(question).__name__}, expected Question"
            )
    if not isinstance(settings.budget_seconds, int) or settings.budget_seconds <= 0:
        raise InvalidConfiguration(
            f"budget_seconds must be a positive integer, got {settings.budget_seconds!r}"
        )
    if not isinstance(settings.streak_bonus_per_level, int) or settings.streak_bonus_per_level < 0:
        raise InvalidConfiguration(
            f"streak_bonus_per_level must be a non-negative integer, got {settings.streak_bonus_per_level!r}"
        )
    if settings.reveal_window_seconds <= 0:
        raise InvalidConfiguration(
            f"reveal_window_seconds must be positive, got {settings.reveal_window_seconds!r}"
        )


class MatchSessionEngine:
    """
    State machine for one match: Active(i) -> Revealing(i) -> Active(i+1) ... -> Completed.

    Out-of-order or duplicate events are no-ops rather than errors, so late
    timer deliveries after a state change are harmless.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        settings: Optional[MatchSettings] = None,
        opponent: Optional[OpponentSimulator] = None,
        session_id: str = "local"
    ):
        """
        Create the engine in Active(0).

        Args:
            questions: Ordered questions for this session
            settings: Match settings, defaults if None
            opponent: Opponent simulator, built from settings if None
            session_id: Identifier used in log records

        Raises:
            InvalidConfiguration: If questions is empty or settings are invalid
        """
        settings = settings or MatchSettings()
        validate_configuration(questions, settings)
        # Settings are fixed for the lifetime of the session
        settings = replace(settings, subjects=list(settings.subjects))

        self.session_id = session_id
        self._state = SessionState(
            questions=tuple(questions),
            settings=settings,
            time_remaining=settings.budget_seconds
        )
        self._opponent = opponent or OpponentSimulator(
            max_step=settings.opponent_max_step,
            jitter=settings.opponent_jitter
        )
        self._pending_answer: Optional[int] = None
        self._listeners: List[PhaseListener] = []

        logger.info(
            f"Session {session_id} started with {len(questions)} questions, "
            f"budget {settings.budget_seconds}s",
            extra={
                'event_type': 'session_started',
                'session_id': session_id,
                'question_count': len(questions),
                'timestamp': time.time()
            }
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def state(self) -> SessionState:
        """Live session state. Callers must treat it as read-only."""
        return self._state

    @property
    def outcome(self) -> Optional[Outcome]:
        return self._state.outcome

    @property
    def is_completed(self) -> bool:
        return self._state.phase is SessionPhase.COMPLETED

    @property
    def has_pending_answer(self) -> bool:
        return self._pending_answer is not None

    def add_phase_listener(self, listener: PhaseListener) -> None:
        """Register a callback invoked as listener(old_phase, new_phase) on every phase change."""
        self._listeners.append(listener)

    def snapshot(self) -> SessionSnapshot:
        """
        Get a read-only view of the session for rendering.

        The correct option is only exposed while the answer is being revealed.
        """
        state = self._state
        question = state.current_question if state.phase is not SessionPhase.COMPLETED else None
        revealing = state.phase is SessionPhase.REVEALING

        return SessionSnapshot(
            phase=state.phase,
            current_index=state.current_index,
            total_questions=state.total_questions,
            time_remaining=state.time_remaining,
            score=state.score,
            streak=state.streak,
            player_progress=state.player_progress,
            opponent_progress=state.opponent_progress,
            selected_option=state.selected_option,
            correct_option_index=question.correct_index if (revealing and question) else None,
            question_text=question.text if question else None,
            options=question.options if question else (),
            subject=question.subject if question else None,
            difficulty=question.difficulty if question else None,
            points=question.points if question else None,
            last_answer_correct=state.history[-1].correct if (revealing and state.history) else None
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def advance_clock(self, question_index: Optional[int] = None) -> bool:
        """
        Apply one Session Clock tick.

        A queued answer is resolved before the tick, so an answer in flight
        wins over a countdown reaching zero in the same step.

        Args:
            question_index: Question the tick was scheduled for; ticks for any
                other question are ignored

        Returns:
            True if the tick changed the countdown, False if it was a no-op
        """
        if self._pending_answer is not None:
            pending, self._pending_answer = self._pending_answer, None
            self.select_answer(pending)

        state = self._state
        if state.phase is not SessionPhase.ACTIVE:
            logger.debug(f"Session {self.session_id}: tick ignored in phase {state.phase.value}")
            return False
        if question_index is not None and question_index != state.current_index:
            logger.debug(
                f"Session {self.session_id}: stale tick for question {question_index}, "
                f"current is {state.current_index}"
            )
            return False

        state.time_remaining = max(state.time_remaining - 1, 0)
        if state.time_remaining == 0:
            logger.info(
                f"Session {self.session_id}: time expired on question {state.current_index}",
                extra={
                    'event_type': 'question_timeout',
                    'session_id': self.session_id,
                    'question_index': state.current_index,
                    'timestamp': time.time()
                }
            )
            self._resolve(None)
        return True

    def queue_answer(self, option_index: int) -> bool:
        """
        Queue an answer to be applied before the next clock tick.

        Returns:
            True if queued, False if ignored (not Active or answer already queued)

        Raises:
            InvalidOption: If option_index is out of range for the current question
        """
        if self._state.phase is not SessionPhase.ACTIVE or self._pending_answer is not None:
            return False
        self._validate_option(option_index)
        self._pending_answer = option_index
        return True

    def select_answer(self, option_index: int) -> Optional[AnswerResult]:
        """
        Lock in an answer for the current question.

        Args:
            option_index: Index into the current question's options

        Returns:
            AnswerResult, or None if the call was a no-op (not Active)

        Raises:
            InvalidOption: If option_index is out of range; state is unchanged
        """
        if self._state.phase is not SessionPhase.ACTIVE:
            logger.debug(
                f"Session {self.session_id}: answer {option_index} ignored in phase {self._state.phase.value}"
            )
            return None
        self._validate_option(option_index)
        self._pending_answer = None
        return self._resolve(option_index)

    def reveal_timeout(self) -> SessionPhase:
        """
        End the reveal window and move to the next question or complete.

        Returns:
            Phase after the transition
        """
        state = self._state
        if state.phase is not SessionPhase.REVEALING:
            logger.debug(f"Session {self.session_id}: reveal timeout ignored in phase {state.phase.value}")
            return state.phase

        if state.current_index + 1 < state.total_questions:
            state.current_index += 1
            state.selected_option = None
            state.time_remaining = state.settings.budget_seconds
            self._set_phase(SessionPhase.ACTIVE, f"question {state.current_index} live")
        else:
            state.current_index = state.total_questions
            state.selected_option = None
            state.outcome = compute_outcome(state)
            self._set_phase(SessionPhase.COMPLETED, "all questions processed")
            logger.info(
                f"Session {self.session_id} completed: score={state.outcome.final_score}, "
                f"best_streak={state.outcome.best_streak}",
                extra={
                    'event_type': 'session_completed',
                    'session_id': self.session_id,
                    'final_score': state.outcome.final_score,
                    'timestamp': time.time()
                }
            )
        return state.phase

    def opponent_tick(self) -> float:
        """
        Advance the opponent's progress signal by one simulator step.

        Only opponent_progress is written. No-op after completion.

        Returns:
            Current opponent progress
        """
        state = self._state
        if state.phase is SessionPhase.COMPLETED:
            return state.opponent_progress
        state.opponent_progress = self._opponent.step(
            state.opponent_progress, state.current_index, state.total_questions
        )
        return state.opponent_progress

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate_option(self, option_index: int) -> None:
        question = self._state.current_question
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise InvalidOption(f"Option index must be an integer, got {type(option_index).__name__}")
        if not 0 <= option_index < len(question.options):
            raise InvalidOption(
                f"Option {option_index} is out of range for question {question.id} "
                f"with {len(question.options)} options"
            )

    def _resolve(self, option_index: Optional[int]) -> AnswerResult:
        state = self._state
        question = state.current_question
        result = score_answer(
            question, option_index, state.streak, state.settings.streak_bonus_per_level
        )

        state.selected_option = option_index
        state.score += result.points_awarded
        state.streak = result.streak
        state.best_streak = max(state.best_streak, state.streak)
        state.answered_count += 1
        if result.correct:
            state.correct_count += 1
            state.player_progress = advance_progress(state.player_progress, state.settings.progress_step)
        state.history.append(result)

        self._set_phase(
            SessionPhase.REVEALING,
            "timed out" if result.timed_out else f"answered {'correctly' if result.correct else 'incorrectly'}"
        )
        return result

    def _set_phase(self, new_phase: SessionPhase, reason: str) -> None:
        old_phase = self._state.phase
        self._state.phase = new_phase
        logger.info(
            f"Session {self.session_id}: {old_phase.value} -> {new_phase.value} "
            f"(question {self._state.current_index}, {reason})",
            extra={
                'event_type': 'session_phase_transition',
                'session_id': self.session_id,
                'from_phase': old_phase.value,
                'to_phase': new_phase.value,
                'reason': reason,
                'timestamp': time.time()
            }
        )
        for listener in list(self._listeners):
            listener(old_phase, new_phase)
