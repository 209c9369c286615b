"""
Settings manager for the trivia game's difficulty, round count and timer.
"""
import logging
from typing import Any, Dict, List, Optional

from .models import Difficulty, SessionConfig


class SettingsManager:
    """Holds the values chosen on the settings screen."""

    # Default configuration values
    DEFAULT_DIFFICULTY = Difficulty.NORMAL.value
    DEFAULT_ROUND_COUNT = 10
    DEFAULT_SECONDS_PER_ROUND = 10

    # Offered on the settings screen; any count within the limits is accepted
    ROUND_COUNT_CHOICES = (5, 10, 15)

    # Validation limits
    MIN_ROUND_COUNT = 1
    MAX_ROUND_COUNT = 100
    MIN_SECONDS_PER_ROUND = 5
    MAX_SECONDS_PER_ROUND = 30

    def __init__(self):
        """Initialize SettingsManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._difficulty = self.DEFAULT_DIFFICULTY
        self._round_count = self.DEFAULT_ROUND_COUNT
        self._seconds_per_round = self.DEFAULT_SECONDS_PER_ROUND

    def get_session_config(self) -> SessionConfig:
        """
        Get an immutable snapshot of the current settings.

        Returns:
            SessionConfig to start a game session with
        """
        return SessionConfig(
            difficulty=self._difficulty,
            round_count=self._round_count,
            seconds_per_round=self._seconds_per_round
        )

    def set_difficulty(self, difficulty: Any) -> Dict[str, Any]:
        """
        Set the difficulty level.

        Args:
            difficulty: A Difficulty or its string value

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        try:
            value = Difficulty(difficulty).value
        except ValueError:
            choices = ", ".join(d.value for d in Difficulty)
            error_msg = f"Unknown difficulty: {difficulty!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid difficulty: choose one of {choices}"
            }

        self._difficulty = value
        self.logger.info(f"Difficulty set to {value}")
        return {
            'success': True,
            'message': f"Difficulty set to {value}",
            'user_message': f"Difficulty: {value}"
        }

    def get_difficulty(self) -> str:
        return self._difficulty

    def set_round_count(self, count: Any) -> Dict[str, Any]:
        """
        Set the number of rounds per game.

        Args:
            count: Number of rounds

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(count, bool) or not isinstance(count, int):
            error_msg = f"Round count must be an integer, got {type(count).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid input: expected a number, got {type(count).__name__}"
            }

        if count < self.MIN_ROUND_COUNT:
            error_msg = f"Round count must be at least {self.MIN_ROUND_COUNT}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Too few rounds: minimum is {self.MIN_ROUND_COUNT}"
            }

        if count > self.MAX_ROUND_COUNT:
            error_msg = f"Round count cannot exceed {self.MAX_ROUND_COUNT}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Too many rounds: maximum is {self.MAX_ROUND_COUNT}"
            }

        self._round_count = count
        self.logger.info(f"Round count set to {count}")
        return {
            'success': True,
            'message': f"Round count set to {count}",
            'user_message': f"Questions per game: {count}"
        }

    def get_round_count(self) -> int:
        return self._round_count

    def set_seconds_per_round(self, seconds: Any) -> Dict[str, Any]:
        """
        Set the time limit for each round.

        Args:
            seconds: Time limit in seconds

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            error_msg = f"Seconds per round must be an integer, got {type(seconds).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid input: expected a number, got {type(seconds).__name__}"
            }

        if seconds < self.MIN_SECONDS_PER_ROUND:
            error_msg = f"Seconds per round must be at least {self.MIN_SECONDS_PER_ROUND}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Timer too short: minimum is {self.MIN_SECONDS_PER_ROUND} seconds"
            }

        if seconds > self.MAX_SECONDS_PER_ROUND:
            error_msg = f"Seconds per round cannot exceed {self.MAX_SECONDS_PER_ROUND}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Timer too long: maximum is {self.MAX_SECONDS_PER_ROUND} seconds"
            }

        self._seconds_per_round = seconds
        self.logger.info(f"Seconds per round set to {seconds}")
        return {
            'success': True,
            'message': f"Seconds per round set to {seconds}",
            'user_message': f"Time per round: {seconds} seconds"
        }

    def get_seconds_per_round(self) -> int:
        return self._seconds_per_round

    def load_from_dict(self, game_config: Optional[Dict[str, Any]]) -> List[str]:
        """
        Apply the ``game`` section of the configuration file.

        Invalid values are skipped and keep their current setting.

        Returns:
            List of user-friendly messages for the values that were rejected
        """
        rejected = []
        if not game_config:
            return rejected

        setters = {
            'difficulty': self.set_difficulty,
            'round_count': self.set_round_count,
            'seconds_per_round': self.set_seconds_per_round,
        }
        for key, setter in setters.items():
            if key in game_config:
                result = setter(game_config[key])
                if not result['success']:
                    rejected.append(result['user_message'])
        return rejected

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._difficulty = self.DEFAULT_DIFFICULTY
        self._round_count = self.DEFAULT_ROUND_COUNT
        self._seconds_per_round = self.DEFAULT_SECONDS_PER_ROUND
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        if self._difficulty not in {d.value for d in Difficulty}:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid difficulty: {self._difficulty}")

        if not self.MIN_ROUND_COUNT <= self._round_count <= self.MAX_ROUND_COUNT:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid round count: {self._round_count}")

        if not self.MIN_SECONDS_PER_ROUND <= self._seconds_per_round <= self.MAX_SECONDS_PER_ROUND:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid seconds per round: {self._seconds_per_round}")

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        return (
            f"Game Settings:\n"
            f"• Difficulty: {self._difficulty}\n"
            f"• Questions: {self._round_count}\n"
            f"• Time per round: {self._seconds_per_round} seconds"
        )
