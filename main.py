#!/usr/bin/env python3
"""
Quiz Match - Console Entry Point

Plays one timed quiz match against a simulated opponent in the terminal.
Settings are read from config.json when present; environment variables (or a
.env file) override them.

Usage:
    python main.py [bank_name]

Environment Variables:
    MATCH_BUDGET_SECONDS: Seconds per question (overrides config.json)
    MATCH_REVEAL_SECONDS: Seconds the correct answer is shown
    MATCH_QUESTION_DIRECTORY: Directory holding question bank JSON files
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from match_engine.config_manager import ConfigManager
from match_engine.match_controller import MatchController
from match_engine.models import PlayerProfile, SessionPhase
from match_engine.question_bank import QuestionBank
from match_engine.rewards import apply_outcome, format_outcome_summary
from match_engine.session_engine import InvalidConfiguration, InvalidOption, SessionNotFoundError

ENV_OVERRIDES = {
    'MATCH_BUDGET_SECONDS': ('match', 'budget_seconds', int),
    'MATCH_REVEAL_SECONDS': ('match', 'reveal_window_seconds', int),
    'MATCH_QUESTION_DIRECTORY': ('questions', 'directory', str),
}


def load_config():
    """Load configuration from config.json, if present."""
    config_path = Path("config.json")

    if not config_path.exists():
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        print(f"❌ Error: Invalid JSON in config.json: {e}")
        sys.exit(1)


def apply_env_overrides(config):
    """Overlay MATCH_* environment variables onto the config dictionary."""
    load_dotenv()
    for env_name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        try:
            config.setdefault(section, {})[key] = cast(raw)
        except ValueError:
            print(f"⚠️ Ignoring {env_name}={raw!r}: expected {cast.__name__}")
    return config


def setup_logging_from_config(config):
    """Set up logging based on configuration."""
    log_config = config.get('logging', {})
    log_level = getattr(logging, log_config.get('level', 'WARNING').upper())
    log_directory = Path(log_config.get('log_directory', './logs/'))

    log_directory.mkdir(exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_directory / "match.log", encoding='utf-8')
        ]
    )


def render_question(snapshot):
    print(
        f"\nQuestion {snapshot.current_index + 1}/{snapshot.total_questions} "
        f"[{snapshot.subject}, {snapshot.difficulty}, {snapshot.points} pts] "
        f"- {snapshot.time_remaining}s"
    )
    print(snapshot.question_text)
    for number, option in enumerate(snapshot.options, start=1):
        print(f"  {number}. {option}")
    print(
        f"Score {snapshot.score} | Streak {snapshot.streak} | "
        f"You {snapshot.player_progress:.0f}% vs Opponent {snapshot.opponent_progress:.0f}%"
    )


def live_snapshot(controller, handle):
    """Get the session snapshot, or None once the session has finished."""
    # The session is dropped just before its outcome is resolved
    try:
        return controller.get_snapshot(handle)
    except SessionNotFoundError:
        return None


async def play_match(config):
    """Run one interactive match."""
    config_manager = ConfigManager()
    for error in config_manager.load_from_dict(config):
        print(f"⚠️ {error}")

    bank = QuestionBank(config_manager.get_question_directory())
    bank.load_banks()
    bank_name = sys.argv[1] if len(sys.argv) > 1 else bank.get_available_banks()[0]

    controller = MatchController(config_manager, bank)
    try:
        handle = controller.start_bank_session(bank_name)
    except (ValueError, InvalidConfiguration) as e:
        print(f"❌ Cannot start match: {e}")
        return

    loop = asyncio.get_running_loop()
    outcome_task = asyncio.ensure_future(controller.wait_for_outcome(handle))

    while not outcome_task.done():
        snapshot = live_snapshot(controller, handle)
        if snapshot is None or snapshot.phase is not SessionPhase.ACTIVE:
            await asyncio.sleep(0.1)
            continue

        render_question(snapshot)
        raw = await loop.run_in_executor(None, input, "Your answer: ")
        if outcome_task.done():
            break

        current = live_snapshot(controller, handle)
        if (current is None or current.phase is not SessionPhase.ACTIVE
                or current.current_index != snapshot.current_index):
            print("⏰ Too late, time ran out for that question.")
            continue

        try:
            result = controller.select_answer(handle, int(raw.strip()) - 1)
        except (ValueError, InvalidOption):
            print("Please enter one of the option numbers.")
            continue

        if result is not None:
            revealed = controller.get_snapshot(handle)
            answer = revealed.options[revealed.correct_option_index]
            if result.correct:
                print(f"✅ Correct! +{result.points_awarded} points (streak {result.streak})")
            else:
                print(f"❌ Wrong. The answer was: {answer}")

    outcome = await outcome_task
    print("\n" + format_outcome_summary(outcome))

    profile = apply_outcome(PlayerProfile(display_name="Player"), outcome)
    print(f"Profile: {profile.coins} coins, {profile.xp} xp, {profile.total_matches} matches")


if __name__ == "__main__":
    try:
        config = apply_env_overrides(load_config())
        setup_logging_from_config(config)
        asyncio.run(play_match(config))
    except KeyboardInterrupt:
        print("\n👋 Match abandoned")
