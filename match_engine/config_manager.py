"""
Configuration manager for match settings and question bank location.
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .models import MatchSettings


class ConfigManager:
    """Manages match configuration settings with validation."""

    # Default configuration values
    DEFAULT_BUDGET_SECONDS = 30
    DEFAULT_STREAK_BONUS = 10
    DEFAULT_REVEAL_WINDOW = 2
    DEFAULT_QUESTION_DIRECTORY = "./questions/"

    # Validation limits
    MIN_BUDGET_SECONDS = 1
    MAX_BUDGET_SECONDS = 300  # 5 minutes
    MIN_STREAK_BONUS = 0
    MAX_STREAK_BONUS = 1000
    MIN_REVEAL_WINDOW = 1
    MAX_REVEAL_WINDOW = 30
    MIN_QUESTION_COUNT = 1
    MAX_QUESTION_COUNT = 100

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = MatchSettings()
        self._question_directory = self.DEFAULT_QUESTION_DIRECTORY

    def build_settings(self) -> MatchSettings:
        """
        Get a snapshot of the current match settings.

        Returns:
            MatchSettings copy safe to hand to a session
        """
        return replace(self._settings, subjects=list(self._settings.subjects))

    def _set_int_setting(self, name: str, label: str, value: Any,
                         minimum: int, maximum: int, unit: str = "") -> Dict[str, Any]:
        suffix = f" {unit}" if unit else ""
        if isinstance(value, bool) or not isinstance(value, int):
            error_msg = f"{label} must be an integer, got {type(value).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(value).__name__}"
            }

        if value < minimum:
            error_msg = f"{label} must be at least {minimum}{suffix}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ {label} too small: Minimum is {minimum}{suffix}"
            }

        if value > maximum:
            error_msg = f"{label} cannot exceed {maximum}{suffix}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ {label} too large: Maximum is {maximum}{suffix}"
            }

        setattr(self._settings, name, value)
        self.logger.info(f"{label} set to {value}{suffix}")
        return {
            'success': True,
            'message': f"{label} set to {value}{suffix}",
            'user_message': f"✅ {label} set to {value}{suffix}"
        }

    def set_budget_seconds(self, seconds: int) -> Dict[str, Any]:
        """
        Set the per-question countdown budget.

        Args:
            seconds: Countdown length in clock units

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        return self._set_int_setting(
            'budget_seconds', "Question timer", seconds,
            self.MIN_BUDGET_SECONDS, self.MAX_BUDGET_SECONDS, "seconds"
        )

    def get_budget_seconds(self) -> int:
        return self._settings.budget_seconds

    def set_streak_bonus(self, bonus: int) -> Dict[str, Any]:
        """Set the bonus points added per streak level."""
        return self._set_int_setting(
            'streak_bonus_per_level', "Streak bonus", bonus,
            self.MIN_STREAK_BONUS, self.MAX_STREAK_BONUS, "points"
        )

    def get_streak_bonus(self) -> int:
        return self._settings.streak_bonus_per_level

    def set_reveal_window(self, seconds: int) -> Dict[str, Any]:
        """Set how long the correct answer is shown before advancing."""
        return self._set_int_setting(
            'reveal_window_seconds', "Reveal window", seconds,
            self.MIN_REVEAL_WINDOW, self.MAX_REVEAL_WINDOW, "seconds"
        )

    def get_reveal_window(self) -> int:
        return self._settings.reveal_window_seconds

    def set_question_count(self, count: Optional[int]) -> Dict[str, Any]:
        """
        Set the number of questions per match.

        Args:
            count: Number of questions, or None to use all questions

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if count is None:
            self._settings.question_count = None
            self.logger.info("Question count set to use all available questions")
            return {
                'success': True,
                'message': "Question count set to use all available questions",
                'user_message': "✅ Will use all available questions from each bank"
            }
        return self._set_int_setting(
            'question_count', "Question count", count,
            self.MIN_QUESTION_COUNT, self.MAX_QUESTION_COUNT
        )

    def get_question_count(self) -> Optional[int]:
        return self._settings.question_count

    def set_random_order(self, random_order: bool) -> Dict[str, Any]:
        """Set whether questions are shuffled before a match."""
        if not isinstance(random_order, bool):
            error_msg = f"Random order must be a boolean, got {type(random_order).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected true/false, got {type(random_order).__name__}"
            }

        self._settings.random_order = random_order
        order_type = "random" if random_order else "sequential"
        self.logger.info(f"Question order set to {order_type}")
        return {
            'success': True,
            'message': f"Question order set to {order_type}",
            'user_message': f"✅ Questions will be presented in {order_type} order"
        }

    def get_random_order(self) -> bool:
        return self._settings.random_order

    def set_subjects(self, subjects: List[str]) -> Dict[str, Any]:
        """
        Restrict matches to the given subjects.

        Args:
            subjects: Subject names; an empty list allows every subject
        """
        if not isinstance(subjects, (list, tuple)) or not all(isinstance(s, str) for s in subjects):
            error_msg = "Subjects must be a list of strings"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Invalid input: Expected a list of subject names"
            }

        self._settings.subjects = [s.strip() for s in subjects if s.strip()]
        label = ", ".join(self._settings.subjects) or "all subjects"
        self.logger.info(f"Subjects set to {label}")
        return {
            'success': True,
            'message': f"Subjects set to {label}",
            'user_message': f"✅ Questions will be drawn from {label}"
        }

    def get_subjects(self) -> List[str]:
        return list(self._settings.subjects)

    def set_tick_interval(self, seconds: float) -> Dict[str, Any]:
        """Set the real-time length of one clock unit."""
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds <= 0:
            error_msg = f"Tick interval must be a positive number, got {seconds!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Invalid input: Tick interval must be a positive number"
            }
        self._settings.tick_interval = float(seconds)
        self._settings.opponent_tick_interval = float(seconds)
        self.logger.info(f"Tick interval set to {seconds}s")
        return {
            'success': True,
            'message': f"Tick interval set to {seconds}s",
            'user_message': f"✅ Clock ticks every {seconds} seconds"
        }

    def set_external_clock(self, external: bool) -> Dict[str, Any]:
        """Set whether clock ticks come only from MatchController.advance_clock."""
        if not isinstance(external, bool):
            error_msg = f"External clock must be a boolean, got {type(external).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected true/false, got {type(external).__name__}"
            }

        self._settings.external_clock = external
        source = "external scheduler" if external else "internal timer"
        self.logger.info(f"Session clock driven by {source}")
        return {
            'success': True,
            'message': f"Session clock driven by {source}",
            'user_message': f"✅ Session clock driven by {source}"
        }

    def get_external_clock(self) -> bool:
        return self._settings.external_clock

    def set_question_directory(self, directory: str) -> Dict[str, Any]:
        """Set the directory question banks are loaded from."""
        if not isinstance(directory, str) or not directory.strip():
            error_msg = "Question directory must be a non-empty string"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Invalid input: Directory path cannot be empty"
            }
        self._question_directory = directory.strip()
        self.logger.info(f"Question directory set to {self._question_directory}")
        return {
            'success': True,
            'message': f"Question directory set to {self._question_directory}",
            'user_message': f"✅ Question directory set to {self._question_directory}"
        }

    def get_question_directory(self) -> str:
        return self._question_directory

    def load_from_dict(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the ``match`` and ``questions`` sections of a config dictionary.

        Invalid values are skipped and reported.

        Returns:
            List of error messages for rejected values
        """
        errors = []
        match_config = config.get('match', {}) or {}
        setters = {
            'budget_seconds': self.set_budget_seconds,
            'streak_bonus_per_level': self.set_streak_bonus,
            'reveal_window_seconds': self.set_reveal_window,
            'question_count': self.set_question_count,
            'random_order': self.set_random_order,
            'subjects': self.set_subjects,
            'tick_interval': self.set_tick_interval,
            'external_clock': self.set_external_clock,
        }
        for key, value in match_config.items():
            setter = setters.get(key)
            if setter is None:
                self.logger.warning(f"Ignoring unknown match setting: {key}")
                continue
            result = setter(value)
            if not result['success']:
                errors.append(f"{key}: {result['error']}")

        directory = (config.get('questions', {}) or {}).get('directory')
        if directory is not None:
            result = self.set_question_directory(directory)
            if not result['success']:
                errors.append(f"questions.directory: {result['error']}")

        return errors

    def reset_to_defaults(self) -> None:
        """Reset all settings to default values."""
        self._settings = MatchSettings()
        self._question_directory = self.DEFAULT_QUESTION_DIRECTORY
        self.logger.info("Configuration reset to defaults")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings.

        Returns:
            Dictionary with validation results and any issues found
        """
        issues = []
        s = self._settings

        if not self.MIN_BUDGET_SECONDS <= s.budget_seconds <= self.MAX_BUDGET_SECONDS:
            issues.append(f"Invalid question timer: {s.budget_seconds}")
        if not self.MIN_STREAK_BONUS <= s.streak_bonus_per_level <= self.MAX_STREAK_BONUS:
            issues.append(f"Invalid streak bonus: {s.streak_bonus_per_level}")
        if not self.MIN_REVEAL_WINDOW <= s.reveal_window_seconds <= self.MAX_REVEAL_WINDOW:
            issues.append(f"Invalid reveal window: {s.reveal_window_seconds}")
        if s.question_count is not None and not (
            self.MIN_QUESTION_COUNT <= s.question_count <= self.MAX_QUESTION_COUNT
        ):
            issues.append(f"Invalid question count: {s.question_count}")
        if s.tick_interval <= 0:
            issues.append(f"Invalid tick interval: {s.tick_interval}")

        return {
            "valid": len(issues) == 0,
            "issues": issues
        }

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        s = self._settings
        question_count_str = str(s.question_count) if s.question_count is not None else "all available"
        order_str = "random" if s.random_order else "sequential"
        subjects_str = ", ".join(s.subjects) if s.subjects else "all"

        return (
            f"Match Settings:\n"
            f"• Questions: {question_count_str}\n"
            f"• Order: {order_str}\n"
            f"• Subjects: {subjects_str}\n"
            f"• Timer: {s.budget_seconds} seconds\n"
            f"• Streak Bonus: {s.streak_bonus_per_level} points per level\n"
            f"• Reveal Window: {s.reveal_window_seconds} seconds\n"
            f"• Question Directory: {self._question_directory}"
        )
