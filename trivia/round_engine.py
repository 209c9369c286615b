"""
Round engine for trivia sessions.

Runs one game session at a time: samples the questions, races a per-round
countdown against the player's answer, keeps the score and reports the
final result. Ticks and answers are pushed into a single asyncio queue and
applied one at a time by ``RoundStateMachine``, so a round can only be
resolved once no matter how the two stimuli interleave.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Callable, List, Optional, Union

from .models import (
    ConfigurationError,
    Question,
    RoundSnapshot,
    RoundState,
    SessionConfig,
    SessionResult,
)
from .question_bank import QuestionBank
from .round_timer import RoundTimer

logger = logging.getLogger(__name__)


class EnginePhase(Enum):
    """Enumeration of round engine states."""
    INITIALIZING = "initializing"
    ROUND_ACTIVE = "round_active"
    ROUND_RESOLVED = "round_resolved"
    SESSION_ENDED = "session_ended"


class Resolution(Enum):
    """How a round ended."""
    TIMEOUT = "timeout"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class RoundEngineError(Exception):
    """Base exception for round engine errors."""
    pass


class SessionInProgressError(RoundEngineError):
    """Raised when starting a session while another one is still running."""
    pass


@dataclass(frozen=True)
class TickEvent:
    round_index: int


@dataclass(frozen=True)
class AnswerEvent:
    option: str
    round_index: int


@dataclass(frozen=True)
class AbandonEvent:
    pass


EngineEvent = Union[TickEvent, AnswerEvent, AbandonEvent]


@dataclass
class StepOutcome:
    """Result of applying one stimulus to the state machine."""
    snapshots: List[RoundSnapshot] = field(default_factory=list)
    resolution: Optional[Resolution] = None
    round_started: bool = False
    ended: bool = False

    @property
    def ignored(self) -> bool:
        return not self.snapshots and self.resolution is None and not self.ended


class RoundStateMachine:
    """
    Synchronous transition function over a session's ``RoundState``.

    Every stimulus names the round it was produced for. Stimuli for a round
    that is no longer active, or for a round that has already been resolved,
    are ignored and reported as an empty ``StepOutcome``.
    """

    def __init__(self, config: SessionConfig, questions: List[Question]):
        self.config = config
        self._questions = list(questions)
        self._state: Optional[RoundState] = None
        self._phase = EnginePhase.INITIALIZING
        self._result: Optional[SessionResult] = None
        self._abandoned = False

    @property
    def phase(self) -> EnginePhase:
        return self._phase

    @property
    def state(self) -> Optional[RoundState]:
        return self._state

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def is_ended(self) -> bool:
        return self._phase is EnginePhase.SESSION_ENDED

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    @property
    def current_index(self) -> Optional[int]:
        return self._state.current_index if self._state is not None else None

    def snapshot(self) -> Optional[RoundSnapshot]:
        if self._phase is not EnginePhase.ROUND_ACTIVE:
            return None
        return RoundSnapshot.from_state(self._state)

    def begin(self) -> StepOutcome:
        """Enter the first round, or end at once when there are no questions."""
        if self._phase is not EnginePhase.INITIALIZING:
            raise RoundEngineError(f"Cannot begin a session in phase {self._phase.value}")

        if not self._questions:
            logger.info("No questions available, ending session with score 0")
            self._phase = EnginePhase.SESSION_ENDED
            self._result = SessionResult(final_score=0, total_rounds=0)
            return StepOutcome(ended=True)

        self._state = RoundState(
            questions=self._questions,
            seconds_per_round=self.config.seconds_per_round,
        )
        self._state.enter_round(0)
        self._phase = EnginePhase.ROUND_ACTIVE
        return StepOutcome(snapshots=[RoundSnapshot.from_state(self._state)], round_started=True)

    def tick(self, round_index: int) -> StepOutcome:
        """Apply one second of countdown to ``round_index``."""
        if not self._accepts(round_index):
            logger.debug(f"Ignoring stale tick for round {round_index + 1}")
            return StepOutcome()

        state = self._state
        state.seconds_remaining -= 1
        outcome = StepOutcome(snapshots=[RoundSnapshot.from_state(state)])
        if state.seconds_remaining == 0:
            logger.debug(f"Round {state.current_index + 1} timed out")
            self._resolve(Resolution.TIMEOUT, outcome)
        return outcome

    def answer(self, option: str, round_index: Optional[int] = None) -> StepOutcome:
        """
        Apply the player's answer.

        Args:
            option: Option text the player selected
            round_index: Round the answer was given for; defaults to the
                current round

        Returns:
            Outcome of the step; empty when the answer was ignored
        """
        if round_index is None:
            round_index = self.current_index if self.current_index is not None else -1
        if not self._accepts(round_index):
            logger.debug(f"Ignoring stale answer {option!r} for round {round_index + 1}")
            return StepOutcome()

        state = self._state
        state.answered = True
        correct = state.current_question.is_correct(option)
        if correct:
            state.score += 1

        outcome = StepOutcome()
        self._resolve(Resolution.CORRECT if correct else Resolution.INCORRECT, outcome)
        return outcome

    def abandon(self) -> None:
        """Discard the session without committing a result."""
        if self.is_ended:
            return
        self._abandoned = True
        self._phase = EnginePhase.SESSION_ENDED
        self._state = None

    def _accepts(self, round_index: int) -> bool:
        return (
            self._phase is EnginePhase.ROUND_ACTIVE
            and round_index == self._state.current_index
            and not self._state.answered
            and self._state.seconds_remaining > 0
        )

    def _resolve(self, resolution: Resolution, outcome: StepOutcome) -> None:
        state = self._state
        self._phase = EnginePhase.ROUND_RESOLVED
        outcome.resolution = resolution
        logger.debug(
            f"Round {state.current_index + 1}/{len(state.questions)} resolved: {resolution.value}, score {state.score}"
        )

        next_index = state.current_index + 1
        if next_index < len(state.questions):
            state.enter_round(next_index)
            self._phase = EnginePhase.ROUND_ACTIVE
            outcome.round_started = True
            outcome.snapshots.append(RoundSnapshot.from_state(state))
        else:
            state.current_index = len(state.questions)
            self._phase = EnginePhase.SESSION_ENDED
            self._result = SessionResult(final_score=state.score, total_rounds=len(state.questions))
            outcome.ended = True


class RoundEngine:
    """
    Drives game sessions on the asyncio event loop.

    ``start_session`` returns an async iterator of ``RoundSnapshot`` values.
    Iterating it runs the session; it finishes when the session ends or is
    abandoned. Session end listeners receive the ``SessionResult`` exactly
    once per completed session and never for an abandoned one.
    """

    def __init__(
        self,
        question_bank: Optional[QuestionBank] = None,
        tick_interval: float = 1.0,
        on_session_end: Optional[Callable[[SessionResult], Any]] = None
    ):
        """
        Initialize the round engine.

        Args:
            question_bank: Bank to sample from, the built-in bank by default
            tick_interval: Seconds between countdown ticks
            on_session_end: Optional listener for the session result

        Raises:
            ConfigurationError: If ``tick_interval`` is not positive
        """
        if tick_interval <= 0:
            raise ConfigurationError(f"tick_interval must be positive, got {tick_interval}")

        self.question_bank = question_bank or QuestionBank()
        self.tick_interval = tick_interval
        self._listeners: List[Callable[[SessionResult], Any]] = []
        if on_session_end is not None:
            self._listeners.append(on_session_end)

        self._machine: Optional[RoundStateMachine] = None
        self._events: Optional[asyncio.Queue] = None
        self._timer: Optional[RoundTimer] = None
        self._running = False
        self._drain_started = False
        self._shown_index: Optional[int] = None
        self._notified = False

    def add_session_end_listener(self, listener: Callable[[SessionResult], Any]) -> None:
        self._listeners.append(listener)

    @property
    def phase(self) -> EnginePhase:
        if self._machine is None:
            return EnginePhase.INITIALIZING
        return self._machine.phase

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def result(self) -> Optional[SessionResult]:
        """Result of the last completed session, None if abandoned or not finished."""
        return self._machine.result if self._machine is not None else None

    @property
    def snapshot(self) -> Optional[RoundSnapshot]:
        return self._machine.snapshot() if self._machine is not None else None

    @property
    def timer(self) -> Optional[RoundTimer]:
        return self._timer

    def start_session(self, config: SessionConfig) -> AsyncIterator[RoundSnapshot]:
        """
        Validate the configuration, sample questions and prepare a session.

        Validation happens immediately, before any snapshot is requested.

        Args:
            config: Session settings

        Returns:
            Async iterator of round snapshots

        Raises:
            ConfigurationError: If the configuration is invalid
            SessionInProgressError: If a session is already running
        """
        if self._running:
            raise SessionInProgressError("A session is already in progress")

        config.validate()
        questions = self.question_bank.select_questions(config.difficulty, config.round_count)

        self._machine = RoundStateMachine(config, questions)
        self._events = asyncio.Queue()
        self._timer = None
        self._running = True
        self._drain_started = False
        self._shown_index = None
        self._notified = False

        logger.info(
            f"Starting session: difficulty={config.difficulty!r}, rounds={len(questions)} "
            f"(requested {config.round_count}), seconds_per_round={config.seconds_per_round}",
            extra={
                'event_type': 'session_started',
                'difficulty': str(config.difficulty),
                'total_rounds': len(questions),
                'timestamp': time.time()
            }
        )
        return self._drain(self._machine)

    def submit_answer(self, selected_option: str, round_number: Optional[int] = None) -> None:
        """
        Queue the player's answer for the round currently on screen.

        The answer is tagged with the round of the last snapshot handed out,
        so an answer to a round that has already timed out cannot resolve
        the round that replaced it.

        Args:
            selected_option: Option text the player picked
            round_number: 1-based round the answer belongs to, defaults to
                the round of the last yielded snapshot
        """
        machine = self._machine
        if not self._running or machine is None or machine.phase is not EnginePhase.ROUND_ACTIVE:
            logger.debug(f"Ignoring answer {selected_option!r}: no active round")
            return
        round_index = round_number - 1 if round_number is not None else self._shown_index
        if round_index is None:
            logger.debug(f"Ignoring answer {selected_option!r}: no round shown yet")
            return
        self._events.put_nowait(AnswerEvent(selected_option, round_index))

    def abandon(self) -> bool:
        """
        Tear down the running session without recording a result.

        Returns:
            True if a session was abandoned, False if none was running
        """
        if not self._running or self._machine is None or self._machine.is_ended:
            return False

        self._stop_timer()
        self._machine.abandon()
        if self._drain_started:
            self._events.put_nowait(AbandonEvent())
        else:
            # the snapshot stream was never iterated, so nothing else clears the flag
            self._running = False
        logger.info(
            "Session abandoned",
            extra={'event_type': 'session_abandoned', 'timestamp': time.time()}
        )
        return True

    async def play(
        self,
        config: SessionConfig,
        on_snapshot: Optional[Callable[[RoundSnapshot], Any]] = None
    ) -> Optional[SessionResult]:
        """Run a whole session and return its result."""
        async for snapshot in self.start_session(config):
            if on_snapshot is not None:
                on_snapshot(snapshot)
        return self.result

    async def _drain(self, machine: RoundStateMachine) -> AsyncIterator[RoundSnapshot]:
        if machine.is_ended:
            # abandoned before the first snapshot was requested
            return
        self._drain_started = True
        try:
            outcome = machine.begin()
            self._apply(outcome)
            for snapshot in outcome.snapshots:
                self._shown_index = snapshot.round_number - 1
                yield snapshot

            while not machine.is_ended:
                event = await self._events.get()
                outcome = self._dispatch(machine, event)
                self._apply(outcome)
                for snapshot in outcome.snapshots:
                    self._shown_index = snapshot.round_number - 1
                    yield snapshot
        finally:
            self._stop_timer()
            if not machine.is_ended:
                machine.abandon()
            self._running = False
            self._notify_session_end(machine)

    def _dispatch(self, machine: RoundStateMachine, event: EngineEvent) -> StepOutcome:
        if isinstance(event, TickEvent):
            return machine.tick(event.round_index)
        if isinstance(event, AnswerEvent):
            return machine.answer(event.option, event.round_index)
        return StepOutcome()

    def _apply(self, outcome: StepOutcome) -> None:
        if outcome.resolution is not None or outcome.ended:
            self._stop_timer()
        if outcome.round_started:
            self._start_timer(self._machine.current_index)

    def _start_timer(self, round_index: int) -> None:
        self._stop_timer()
        events = self._events
        self._timer = RoundTimer(
            round_index,
            self._machine.config.seconds_per_round,
            lambda index: events.put_nowait(TickEvent(index)),
            interval=self.tick_interval
        )
        self._timer.start()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _notify_session_end(self, machine: RoundStateMachine) -> None:
        if self._notified or machine.result is None:
            return
        self._notified = True
        result = machine.result
        logger.info(
            f"Session ended with score {result.final_score}/{result.total_rounds}",
            extra={
                'event_type': 'session_ended',
                'final_score': result.final_score,
                'total_rounds': result.total_rounds,
                'timestamp': time.time()
            }
        )
        for listener in list(self._listeners):
            listener(result)
