"""
Core data models for the trivia game.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class ConfigurationError(ValueError):
    """Raised when a session is started with an invalid configuration."""
    pass


class Difficulty(str, Enum):
    """Difficulty levels offered on the settings screen."""
    EASY = "Easy"
    NORMAL = "Normal"
    HARD = "Hard"


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question."""
    text: str
    options: Tuple[str, ...]
    correct_answer: str

    def is_correct(self, option: str) -> bool:
        """Exact string comparison against the correct answer."""
        return option == self.correct_answer


@dataclass(frozen=True)
class SessionConfig:
    """Settings captured when a game session starts."""
    difficulty: str = Difficulty.NORMAL.value
    round_count: int = 10
    seconds_per_round: int = 10

    def validate(self) -> None:
        """
        Check the configuration before a session begins.

        Raises:
            ConfigurationError: If the round count or the per-round time
                is not a positive integer
        """
        for name in ("round_count", "seconds_per_round"):
            value = getattr(self, name)
            # bool is an int subclass but never a meaningful count
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"{name} must be an integer, got {type(value).__name__}"
                )
            if value < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {value}")


@dataclass
class RoundState:
    """Mutable state of the session in progress, owned by the round engine."""
    questions: List[Question]
    seconds_per_round: int
    current_index: int = 0
    seconds_remaining: int = 0
    answered: bool = False
    score: int = 0

    @property
    def is_finished(self) -> bool:
        return self.current_index >= len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    def enter_round(self, index: int) -> None:
        """Move to round ``index`` and reset the per-round fields."""
        self.current_index = index
        self.seconds_remaining = self.seconds_per_round
        self.answered = False


@dataclass(frozen=True)
class RoundSnapshot:
    """Read-only view of the current round handed to the presentation layer."""
    round_number: int
    total_rounds: int
    question_text: str
    options: Tuple[str, ...]
    seconds_remaining: int
    current_score: int
    seconds_per_round: int = 0

    @property
    def progress(self) -> float:
        """Fraction of the round's time still left, for a progress bar."""
        if self.seconds_per_round <= 0:
            return 0.0
        return self.seconds_remaining / self.seconds_per_round

    @classmethod
    def from_state(cls, state: RoundState) -> "RoundSnapshot":
        question = state.current_question
        return cls(
            round_number=state.current_index + 1,
            total_rounds=len(state.questions),
            question_text=question.text,
            options=question.options,
            seconds_remaining=state.seconds_remaining,
            current_score=state.score,
            seconds_per_round=state.seconds_per_round,
        )


@dataclass(frozen=True)
class SessionResult:
    """Message emitted once when a session ends, consumed by navigation."""
    final_score: int
    total_rounds: int
