"""
Core data models for the quiz match engine.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Question:
    """Represents a single multiple-choice question."""
    id: int
    text: str
    options: Tuple[str, ...]
    correct_index: int
    subject: str = "General"
    difficulty: str = "Easy"
    points: int = 100

    def __post_init__(self):
        # Lists are accepted for convenience but stored as tuples
        object.__setattr__(self, 'options', tuple(self.options))
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id} needs at least 2 options, got {len(self.options)}")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"Question {self.id} correct index {self.correct_index} "
                f"is outside 0..{len(self.options) - 1}"
            )
        if self.points <= 0:
            raise ValueError(f"Question {self.id} points must be positive, got {self.points}")

    def is_correct(self, option_index: Optional[int]) -> bool:
        """Check whether the given option index is the correct answer."""
        return option_index is not None and option_index == self.correct_index


@dataclass
class MatchSettings:
    """Configuration settings for a match session."""
    budget_seconds: int = 30
    streak_bonus_per_level: int = 10
    reveal_window_seconds: int = 2
    progress_step: float = 20.0
    settle_delay_seconds: float = 3
    tick_interval: float = 1.0
    external_clock: bool = False
    opponent_tick_interval: float = 1.0
    opponent_max_step: float = 3.0
    opponent_jitter: float = 10.0
    question_count: Optional[int] = None
    random_order: bool = False
    subjects: List[str] = field(default_factory=list)


class SessionPhase(Enum):
    """Enumeration of match session phases."""
    ACTIVE = "active"
    REVEALING = "revealing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AnswerResult:
    """Result of resolving a single question."""
    correct: bool
    points_awarded: int
    streak: int
    timed_out: bool = False


@dataclass(frozen=True)
class Outcome:
    """Immutable terminal result of a match session."""
    final_score: int
    best_streak: int
    coins_earned: int
    xp_earned: int
    correct_answers: int = 0
    total_questions: int = 0


@dataclass
class SessionState:
    """Mutable state of a running match, owned by MatchSessionEngine."""
    questions: Tuple[Question, ...]
    settings: MatchSettings
    current_index: int = 0
    phase: SessionPhase = SessionPhase.ACTIVE
    selected_option: Optional[int] = None
    score: int = 0
    streak: int = 0
    best_streak: int = 0
    time_remaining: int = 0
    player_progress: float = 0.0
    opponent_progress: float = 0.0
    correct_count: int = 0
    answered_count: int = 0
    history: List[AnswerResult] = field(default_factory=list)
    outcome: Optional[Outcome] = None

    @property
    def current_question(self) -> Optional[Question]:
        if self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def total_questions(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for rendering."""
    phase: SessionPhase
    current_index: int
    total_questions: int
    time_remaining: int
    score: int
    streak: int
    player_progress: float
    opponent_progress: float
    selected_option: Optional[int]
    correct_option_index: Optional[int]
    question_text: Optional[str] = None
    options: Tuple[str, ...] = ()
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    points: Optional[int] = None
    last_answer_correct: Optional[bool] = None


@dataclass(frozen=True)
class PlayerProfile:
    """Progression totals of a player, updated from match outcomes."""
    display_name: str = "Player"
    coins: int = 0
    xp: int = 0
    total_matches: int = 0
    wins: int = 0
