"""
Unit tests for ConfigManager class.
"""
import logging
import unittest

from match_engine.config_manager import ConfigManager
from match_engine.models import MatchSettings


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager functionality."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.config_manager = ConfigManager()

        # Suppress logging during tests
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        """Clean up after each test method."""
        logging.disable(logging.NOTSET)

    def test_initialization_with_defaults(self):
        settings = self.config_manager.build_settings()

        self.assertIsInstance(settings, MatchSettings)
        self.assertEqual(settings.budget_seconds, 30)
        self.assertEqual(settings.streak_bonus_per_level, 10)
        self.assertEqual(settings.reveal_window_seconds, 2)
        self.assertIsNone(settings.question_count)
        self.assertFalse(settings.random_order)
        self.assertEqual(settings.subjects, [])
        self.assertEqual(self.config_manager.get_question_directory(), "./questions/")

    def test_build_settings_returns_independent_copy(self):
        self.config_manager.set_subjects(["Physics"])
        settings = self.config_manager.build_settings()
        settings.subjects.append("Biology")
        settings.budget_seconds = 99

        self.assertEqual(self.config_manager.get_subjects(), ["Physics"])
        self.assertEqual(self.config_manager.get_budget_seconds(), 30)

    def test_set_budget_seconds(self):
        result = self.config_manager.set_budget_seconds(45)
        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_budget_seconds(), 45)

        for bad in (0, -3, 301, "30", 2.5, True):
            result = self.config_manager.set_budget_seconds(bad)
            self.assertFalse(result['success'], bad)
            self.assertIn('user_message', result)
        self.assertEqual(self.config_manager.get_budget_seconds(), 45)

    def test_set_streak_bonus(self):
        self.assertTrue(self.config_manager.set_streak_bonus(0)['success'])
        self.assertEqual(self.config_manager.get_streak_bonus(), 0)
        self.assertFalse(self.config_manager.set_streak_bonus(-1)['success'])

    def test_set_reveal_window(self):
        self.assertTrue(self.config_manager.set_reveal_window(5)['success'])
        self.assertEqual(self.config_manager.get_reveal_window(), 5)
        self.assertFalse(self.config_manager.set_reveal_window(0)['success'])
        self.assertFalse(self.config_manager.set_reveal_window(31)['success'])

    def test_set_question_count(self):
        self.assertTrue(self.config_manager.set_question_count(5)['success'])
        self.assertEqual(self.config_manager.get_question_count(), 5)
        self.assertTrue(self.config_manager.set_question_count(None)['success'])
        self.assertIsNone(self.config_manager.get_question_count())

        for bad in ("5", 0, 101):
            self.assertFalse(self.config_manager.set_question_count(bad)['success'])

    def test_set_random_order(self):
        self.assertTrue(self.config_manager.set_random_order(True)['success'])
        self.assertTrue(self.config_manager.get_random_order())

        for bad in ("true", 1, None):
            self.assertFalse(self.config_manager.set_random_order(bad)['success'])

    def test_set_subjects(self):
        result = self.config_manager.set_subjects([" Physics ", "", "Biology"])
        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_subjects(), ["Physics", "Biology"])

        self.assertFalse(self.config_manager.set_subjects("Physics")['success'])
        self.assertFalse(self.config_manager.set_subjects([1, 2])['success'])

    def test_set_tick_interval(self):
        self.assertTrue(self.config_manager.set_tick_interval(0.5)['success'])
        settings = self.config_manager.build_settings()
        self.assertEqual(settings.tick_interval, 0.5)
        self.assertEqual(settings.opponent_tick_interval, 0.5)

        self.assertFalse(self.config_manager.set_tick_interval(0)['success'])
        self.assertFalse(self.config_manager.set_tick_interval("fast")['success'])

    def test_set_external_clock(self):
        self.assertFalse(self.config_manager.get_external_clock())
        self.assertTrue(self.config_manager.set_external_clock(True)['success'])
        self.assertTrue(self.config_manager.build_settings().external_clock)
        self.assertFalse(self.config_manager.set_external_clock("yes")['success'])

        self.assertEqual(self.config_manager.load_from_dict({'match': {'external_clock': False}}), [])
        self.assertFalse(self.config_manager.get_external_clock())

    def test_set_question_directory(self):
        self.assertTrue(self.config_manager.set_question_directory("/tmp/banks")['success'])
        self.assertEqual(self.config_manager.get_question_directory(), "/tmp/banks")
        self.assertFalse(self.config_manager.set_question_directory("  ")['success'])

    def test_load_from_dict(self):
        errors = self.config_manager.load_from_dict({
            'match': {
                'budget_seconds': 20,
                'random_order': True,
                'reveal_window_seconds': 0,
                'unknown_key': 1
            },
            'questions': {'directory': './banks/'}
        })

        self.assertEqual(len(errors), 1)
        self.assertIn('reveal_window_seconds', errors[0])
        self.assertEqual(self.config_manager.get_budget_seconds(), 20)
        self.assertTrue(self.config_manager.get_random_order())
        self.assertEqual(self.config_manager.get_reveal_window(), 2)
        self.assertEqual(self.config_manager.get_question_directory(), "./banks/")

    def test_load_from_empty_dict(self):
        self.assertEqual(self.config_manager.load_from_dict({}), [])

    def test_reset_to_defaults(self):
        self.config_manager.set_budget_seconds(60)
        self.config_manager.set_question_directory("/tmp")
        self.config_manager.reset_to_defaults()

        self.assertEqual(self.config_manager.get_budget_seconds(), 30)
        self.assertEqual(self.config_manager.get_question_directory(), "./questions/")

    def test_validate_settings(self):
        self.assertEqual(self.config_manager.validate_settings(), {'valid': True, 'issues': []})

        # Bypass the setters to simulate a corrupted configuration
        self.config_manager._settings.budget_seconds = 0
        self.config_manager._settings.question_count = 500
        validation = self.config_manager.validate_settings()

        self.assertFalse(validation['valid'])
        self.assertEqual(len(validation['issues']), 2)

    def test_settings_summary(self):
        self.config_manager.set_question_count(5)
        self.config_manager.set_random_order(True)
        self.config_manager.set_subjects(["Physics"])
        summary = self.config_manager.get_settings_summary()

        self.assertIn("Questions: 5", summary)
        self.assertIn("random", summary)
        self.assertIn("Physics", summary)
        self.assertIn("30 seconds", summary)


if __name__ == '__main__':
    unittest.main()
