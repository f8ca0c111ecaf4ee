"""
Match session controller.
Owns running match sessions and the timers that drive them.
"""
import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from .config_manager import ConfigManager
from .models import AnswerResult, MatchSettings, Outcome, Question, SessionPhase, SessionSnapshot
from .question_bank import QuestionBank
from .session_engine import MatchSessionEngine, SessionNotFoundError
from .timers import MatchTimer

CompletionCallback = Callable[[Outcome], Any]


@dataclass(frozen=True)
class SessionHandle:
    """Opaque reference to a running match session."""
    session_id: str
    total_questions: int


@dataclass
class _RunningMatch:
    engine: MatchSessionEngine
    on_complete: Optional[CompletionCallback]
    completion: asyncio.Future
    clock: Optional[MatchTimer] = None
    opponent: Optional[MatchTimer] = None
    reveal: Optional[MatchTimer] = None
    settle: Optional[MatchTimer] = None
    paused: bool = False
    started_at: float = field(default_factory=time.time)

    def timers(self) -> List[MatchTimer]:
        return [t for t in (self.clock, self.opponent, self.reveal, self.settle) if t is not None]


class MatchController:
    """
    Orchestrates match sessions on the running asyncio event loop.

    Each session gets a Session Clock ticking once per clock unit, an Opponent
    Simulator ticking on its own cadence, and one-shot timers for the reveal
    window and the settle delay. Timers are started and stopped in step with
    the engine's phase changes.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None,
                 question_bank: Optional[QuestionBank] = None):
        """
        Initialize the match controller.

        Args:
            config_manager: Source of default match settings
            question_bank: Source of questions for start_bank_session
        """
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager or ConfigManager()
        self.question_bank = question_bank

        self._active_sessions: Dict[str, _RunningMatch] = {}
        self._finished_sessions: Set[str] = set()

        self.logger.info("MatchController initialized")

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(
        self,
        questions: Sequence[Question],
        settings: Optional[MatchSettings] = None,
        on_complete: Optional[CompletionCallback] = None
    ) -> SessionHandle:
        """
        Start a new match and its timers.

        Must be called from inside a running event loop.

        Args:
            questions: Ordered questions for the match
            settings: Match settings, uses the config manager's if None
            on_complete: Called once with the Outcome after the settle delay

        Returns:
            Handle for the new session

        Raises:
            InvalidConfiguration: If questions is empty or settings are invalid
        """
        if settings is None:
            settings = self.config_manager.build_settings()

        session_id = uuid.uuid4().hex
        engine = MatchSessionEngine(questions, settings, session_id=session_id)

        match = _RunningMatch(
            engine=engine,
            on_complete=on_complete,
            completion=asyncio.get_running_loop().create_future()
        )
        self._active_sessions[session_id] = match
        engine.add_phase_listener(
            lambda old, new: self._on_phase_change(session_id, old, new)
        )

        if not settings.external_clock:
            self._start_clock(session_id, match)
        match.opponent = MatchTimer("opponent_simulator", session_id)
        match.opponent.start_periodic(settings.opponent_tick_interval, engine.opponent_tick)

        self.logger.info(f"Created match session {session_id}: questions={len(questions)}")
        return SessionHandle(session_id=session_id, total_questions=len(questions))

    def start_bank_session(
        self,
        bank_name: str,
        on_complete: Optional[CompletionCallback] = None
    ) -> SessionHandle:
        """
        Start a match with questions drawn from a named question bank.

        Raises:
            ValueError: If no question bank is configured or the bank is unknown
            InvalidConfiguration: If no questions remain after selection
        """
        if self.question_bank is None:
            raise ValueError("No question bank configured")

        questions = self.question_bank.get_questions(bank_name)
        if not questions:
            raise ValueError(f"No questions found for bank: {bank_name}")

        settings = self.config_manager.build_settings()
        selected = self.question_bank.select_questions(questions, settings)
        return self.start_session(selected, settings, on_complete)

    async def stop_session(self, handle: SessionHandle) -> bool:
        """
        Abort a running session without delivering an Outcome.

        Returns:
            True if a session was stopped, False if it was not running
        """
        match = self._active_sessions.pop(handle.session_id, None)
        if match is None:
            self.logger.warning(f"Attempted to stop non-running session {handle.session_id}")
            return False

        tasks = []
        for timer in match.timers():
            timer.cancel()
            if timer.task is not None:
                tasks.append(timer.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if not match.completion.done():
            match.completion.cancel()
        self._finished_sessions.add(handle.session_id)

        self.logger.info(f"Stopped match session {handle.session_id}")
        return True

    async def shutdown(self) -> None:
        """Stop every running session."""
        for session_id in list(self._active_sessions):
            match = self._active_sessions[session_id]
            await self.stop_session(SessionHandle(session_id, match.engine.state.total_questions))

    def pause_session(self, handle: SessionHandle) -> bool:
        """
        Pause the countdown and opponent simulation of a session.

        Returns:
            True if paused, False if already paused or completed
        """
        match = self._get_match(handle)
        if match is None or match.paused or match.engine.is_completed:
            return False
        match.paused = True
        for timer in match.timers():
            timer.pause()
        self.logger.info(f"Paused match session {handle.session_id}")
        return True

    def resume_session(self, handle: SessionHandle) -> bool:
        """
        Resume a paused session.

        Returns:
            True if resumed, False if it was not paused
        """
        match = self._get_match(handle)
        if match is None or not match.paused:
            return False
        match.paused = False
        for timer in match.timers():
            timer.resume()
        self.logger.info(f"Resumed match session {handle.session_id}")
        return True

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def advance_clock(self, handle: SessionHandle) -> bool:
        """
        Deliver one Session Clock tick from an external scheduler.

        Sessions started with ``external_clock`` get no internal clock, so
        these calls are the only ticks they receive. Ticks delivered while
        the session is paused are dropped.

        Returns:
            True if the countdown changed, False for a no-op
        """
        match = self._get_match(handle)
        if match is None or match.paused:
            return False
        return match.engine.advance_clock()

    def select_answer(self, handle: SessionHandle, option_index: int) -> Optional[AnswerResult]:
        """
        Lock in the player's answer for the current question.

        Returns:
            AnswerResult, or None if the question is not accepting answers

        Raises:
            InvalidOption: If option_index is out of range for the current question
        """
        match = self._get_match(handle)
        if match is None:
            return None
        return match.engine.select_answer(option_index)

    def queue_answer(self, handle: SessionHandle, option_index: int) -> bool:
        """
        Queue an answer that arrived while a clock tick may be due.

        The answer is resolved before the next tick is applied.

        Raises:
            InvalidOption: If option_index is out of range for the current question
        """
        match = self._get_match(handle)
        if match is None:
            return False
        return match.engine.queue_answer(option_index)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def get_snapshot(self, handle: SessionHandle) -> SessionSnapshot:
        """
        Get the read-only view of a running session.

        Raises:
            SessionNotFoundError: If the session is not running
        """
        match = self._active_sessions.get(handle.session_id)
        if match is None:
            raise SessionNotFoundError(f"No running session {handle.session_id}")
        return match.engine.snapshot()

    async def wait_for_outcome(self, handle: SessionHandle) -> Outcome:
        """
        Wait until the session's Outcome has been delivered.

        Raises:
            SessionNotFoundError: If the session is not running
            asyncio.CancelledError: If the session is stopped before completing
        """
        match = self._active_sessions.get(handle.session_id)
        if match is None:
            raise SessionNotFoundError(f"No running session {handle.session_id}")
        return await asyncio.shield(match.completion)

    def has_active_session(self, handle: SessionHandle) -> bool:
        return handle.session_id in self._active_sessions

    def get_active_session_ids(self) -> List[str]:
        return list(self._active_sessions)

    def get_session_progress(self, handle: SessionHandle) -> Optional[Dict[str, Any]]:
        """
        Get progress information for a session.

        Returns:
            Dictionary with progress details, or None if not running
        """
        match = self._active_sessions.get(handle.session_id)
        if match is None:
            return None
        state = match.engine.state
        return {
            'session_id': handle.session_id,
            'phase': state.phase.value,
            'current_question': min(state.current_index + 1, state.total_questions),
            'total_questions': state.total_questions,
            'answered': state.answered_count,
            'correct': state.correct_count,
            'progress_percent': (state.answered_count / state.total_questions) * 100,
            'paused': match.paused,
            'elapsed_seconds': time.time() - match.started_at
        }

    # ------------------------------------------------------------------
    # Timer orchestration
    # ------------------------------------------------------------------

    def _get_match(self, handle: SessionHandle) -> Optional[_RunningMatch]:
        match = self._active_sessions.get(handle.session_id)
        if match is not None:
            return match
        if handle.session_id in self._finished_sessions:
            self.logger.debug(f"Ignoring call for finished session {handle.session_id}")
            return None
        raise SessionNotFoundError(f"Unknown session {handle.session_id}")

    def _start_clock(self, session_id: str, match: _RunningMatch) -> None:
        engine = match.engine
        question_index = engine.state.current_index
        match.clock = MatchTimer(f"session_clock_q{question_index}", session_id)
        match.clock.start_periodic(
            engine.state.settings.tick_interval,
            lambda: engine.advance_clock(question_index)
        )
        if match.paused:
            match.clock.pause()

    def _on_phase_change(self, session_id: str, old: SessionPhase, new: SessionPhase) -> None:
        match = self._active_sessions.get(session_id)
        if match is None:
            return
        settings = match.engine.state.settings

        if new is SessionPhase.REVEALING:
            if match.clock is not None:
                match.clock.cancel()
            match.reveal = MatchTimer("reveal_window", session_id)
            match.reveal.start_once(
                settings.reveal_window_seconds * settings.tick_interval,
                match.engine.reveal_timeout
            )
            if match.paused:
                match.reveal.pause()
        elif new is SessionPhase.ACTIVE:
            if not settings.external_clock:
                self._start_clock(session_id, match)
        elif new is SessionPhase.COMPLETED:
            for timer in (match.clock, match.opponent):
                if timer is not None:
                    timer.cancel()
            match.settle = MatchTimer("settle_delay", session_id)
            match.settle.start_once(
                settings.settle_delay_seconds * settings.tick_interval,
                lambda: self._deliver_outcome(session_id)
            )
            if match.paused:
                match.settle.pause()

    async def _deliver_outcome(self, session_id: str) -> None:
        match = self._active_sessions.pop(session_id, None)
        if match is None:
            return
        self._finished_sessions.add(session_id)
        outcome = match.engine.outcome

        if match.on_complete is not None:
            try:
                result = match.on_complete(outcome)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(f"Completion callback failed for session {session_id}: {e}", exc_info=True)

        if not match.completion.done():
            match.completion.set_result(outcome)
        self.logger.info(f"Delivered outcome for session {session_id}: {outcome}")
