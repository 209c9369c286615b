#!/usr/bin/env python3
"""
Trivia Rounds - Main Entry Point

Runs the trivia game in the terminal. Settings and logging are read from
config.json when it exists; built-in defaults are used otherwise.

Usage:
    python main.py

Environment Variables:
    TRIVIA_CONFIG: Path to an alternative configuration file
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from trivia.bank_loader import BankLoader
from trivia.console import ConsoleFrontend
from trivia.navigation import TriviaApp
from trivia.question_bank import QuestionBank
from trivia.round_engine import RoundEngine
from trivia.settings_manager import SettingsManager


def load_config():
    """Load configuration from the config file, or return an empty config."""
    config_path = Path(os.getenv('TRIVIA_CONFIG', 'config.json'))

    if not config_path.exists():
        print(f"No {config_path} found, using default settings.")
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {config_path}: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"Error loading {config_path}: {e}")
        sys.exit(1)


def setup_logging_from_config(config):
    """Set up logging based on configuration."""
    log_config = config.get('logging', {})
    log_level = getattr(logging, log_config.get('level', 'INFO').upper())
    log_directory = Path(log_config.get('log_directory', './logs/'))

    # Create logs directory
    log_directory.mkdir(exist_ok=True)

    # Keep the terminal for the game; only warnings go to stderr
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            stream_handler,
            logging.FileHandler(log_directory / "trivia.log", encoding='utf-8')
        ]
    )


def build_app(config):
    """Create the application from the ``game`` section of the configuration."""
    game_config = config.get('game', {})

    question_bank = QuestionBank()
    bank_file = game_config.get('question_bank_file')
    if bank_file:
        questions = BankLoader().load(bank_file)
        if questions is not None:
            question_bank = QuestionBank(questions)
        else:
            print(f"Could not load {bank_file}, using the built-in questions.")

    settings = SettingsManager()
    for message in settings.load_from_dict(game_config):
        print(message)

    engine = RoundEngine(
        question_bank=question_bank,
        tick_interval=game_config.get('tick_interval') or 1.0
    )
    return TriviaApp(settings=settings, engine=engine)


async def run_game_with_config():
    """Run the game with configuration."""
    config = load_config()
    setup_logging_from_config(config)
    app = build_app(config)
    await ConsoleFrontend(app).run()


if __name__ == "__main__":
    try:
        asyncio.run(run_game_with_config())
    except KeyboardInterrupt:
        print("\nGame stopped by user")
