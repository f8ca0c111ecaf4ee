"""
Unit tests for scoring, rewards and opponent progress.
"""
import unittest

from match_engine.models import MatchSettings, Outcome, PlayerProfile, SessionState
from match_engine.opponent import OpponentSimulator
from match_engine.rewards import apply_outcome, compute_outcome, format_outcome_summary
from match_engine.scoring import advance_progress, score_answer
from tests.test_fixtures import TestFixtures


class TestScoreAnswer(unittest.TestCase):
    """Test cases for the scoring and streak algorithm."""

    def setUp(self):
        self.question = TestFixtures.create_question(1, points=150, correct_index=1)

    def test_correct_answer_without_streak(self):
        result = score_answer(self.question, 1, 0, 10)
        self.assertTrue(result.correct)
        self.assertEqual(result.points_awarded, 150)
        self.assertEqual(result.streak, 1)

    def test_correct_answer_with_streak_bonus(self):
        result = score_answer(self.question, 1, 3, 10)
        self.assertEqual(result.points_awarded, 180)
        self.assertEqual(result.streak, 4)

    def test_zero_bonus_per_level(self):
        result = score_answer(self.question, 1, 5, 0)
        self.assertEqual(result.points_awarded, 150)

    def test_incorrect_answer(self):
        result = score_answer(self.question, 0, 4, 10)
        self.assertFalse(result.correct)
        self.assertFalse(result.timed_out)
        self.assertEqual(result.points_awarded, 0)
        self.assertEqual(result.streak, 0)

    def test_timeout(self):
        result = score_answer(self.question, None, 2, 10)
        self.assertFalse(result.correct)
        self.assertTrue(result.timed_out)
        self.assertEqual(result.streak, 0)

    def test_deterministic(self):
        self.assertEqual(score_answer(self.question, 1, 2, 10), score_answer(self.question, 1, 2, 10))

    def test_advance_progress_caps(self):
        self.assertEqual(advance_progress(0.0, 20.0), 20.0)
        self.assertEqual(advance_progress(90.0, 20.0), 100.0)


class TestRewards(unittest.TestCase):
    """Test cases for outcome computation and progression."""

    def _state(self, score, streak, best_streak):
        return SessionState(
            questions=tuple(TestFixtures.create_sample_questions(5)),
            settings=MatchSettings(),
            score=score,
            streak=streak,
            best_streak=best_streak,
            correct_count=3
        )

    def test_compute_outcome(self):
        outcome = compute_outcome(self._state(score=459, streak=0, best_streak=3))
        self.assertEqual(outcome, Outcome(
            final_score=459, best_streak=3, coins_earned=45, xp_earned=474,
            correct_answers=3, total_questions=5
        ))

    def test_best_streak_never_below_terminal_streak(self):
        outcome = compute_outcome(self._state(score=100, streak=2, best_streak=1))
        self.assertEqual(outcome.best_streak, 2)

    def test_zero_score(self):
        outcome = compute_outcome(self._state(score=0, streak=0, best_streak=0))
        self.assertEqual((outcome.coins_earned, outcome.xp_earned), (0, 0))

    def test_apply_outcome_returns_new_profile(self):
        profile = PlayerProfile(display_name="Sam", coins=250, xp=150, total_matches=15, wins=12)
        outcome = Outcome(final_score=100, best_streak=1, coins_earned=10, xp_earned=105)

        updated = apply_outcome(profile, outcome)

        self.assertEqual(updated, PlayerProfile("Sam", coins=260, xp=255, total_matches=16, wins=13))
        self.assertEqual(profile.coins, 250)

    def test_summary_mentions_rewards(self):
        summary = format_outcome_summary(
            Outcome(final_score=100, best_streak=1, coins_earned=10, xp_earned=105,
                    correct_answers=1, total_questions=2)
        )
        self.assertIn("Final Score: 100", summary)
        self.assertIn("Correct: 1/2", summary)
        self.assertIn("XP Earned: 105", summary)


class TestOpponentSimulator(unittest.TestCase):
    """Test cases for the opponent progress simulation."""

    def test_progress_monotonic_and_bounded(self):
        simulator = OpponentSimulator(max_step=3.0, jitter=10.0, rng=TestFixtures.seeded_rng(7))
        progress = 0.0
        for index in range(5):
            for _ in range(30):
                new_progress = simulator.step(progress, index, 5)
                self.assertGreaterEqual(new_progress, progress)
                self.assertLessEqual(new_progress - progress, 3.0)
                self.assertLessEqual(new_progress, index / 5 * 100 + 10.0)
                progress = new_progress
        self.assertLessEqual(progress, 100.0)

    def test_first_question_ceiling_is_jitter(self):
        simulator = OpponentSimulator(max_step=3.0, jitter=10.0, rng=TestFixtures.seeded_rng(3))
        progress = 0.0
        for _ in range(100):
            progress = simulator.step(progress, 0, 5)
        self.assertLessEqual(progress, 10.0)

    def test_never_exceeds_100(self):
        simulator = OpponentSimulator(max_step=50.0, jitter=50.0, rng=TestFixtures.seeded_rng(9))
        progress = 0.0
        for _ in range(50):
            progress = simulator.step(progress, 5, 5)
        self.assertLessEqual(progress, 100.0)

    def test_zero_questions_ceiling(self):
        simulator = OpponentSimulator(rng=TestFixtures.seeded_rng())
        self.assertEqual(simulator.ceiling(0, 0), 0.0)


class TestQuestionModel(unittest.TestCase):
    """Test cases for Question validation."""

    def test_options_stored_as_tuple(self):
        question = TestFixtures.create_question()
        self.assertIsInstance(question.options, tuple)

    def test_invalid_questions_rejected(self):
        from match_engine.models import Question
        with self.assertRaises(ValueError):
            Question(id=1, text="Q?", options=["only"], correct_index=0)
        with self.assertRaises(ValueError):
            Question(id=1, text="Q?", options=["a", "b"], correct_index=2)
        with self.assertRaises(ValueError):
            Question(id=1, text="Q?", options=["a", "b"], correct_index=0, points=0)


if __name__ == '__main__':
    unittest.main()
