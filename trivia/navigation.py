"""
Screen navigation and the application controller tying settings, the round
engine and navigation together.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, List, Optional, Union

from .models import RoundSnapshot, SessionResult
from .round_engine import RoundEngine
from .settings_manager import SettingsManager

logger = logging.getLogger(__name__)


class Screen(Enum):
    """Named screens of the application."""
    MENU = "menu"
    SETTINGS = "settings"
    GAME = "game"
    RESULT = "result"


@dataclass(frozen=True)
class Route:
    """A screen plus the state carried into it (only the result screen has any)."""
    screen: Screen
    score: Optional[int] = None

    def __post_init__(self):
        if self.screen is Screen.RESULT and self.score is None:
            raise ValueError("The result route requires a score")
        if self.screen is not Screen.RESULT and self.score is not None:
            raise ValueError(f"The {self.screen.value} route takes no score")

    @property
    def path(self) -> str:
        if self.screen is Screen.RESULT:
            return f"{self.screen.value}/{self.score}"
        return self.screen.value

    @classmethod
    def parse(cls, path: str) -> "Route":
        """
        Build a route from a path such as ``"settings"`` or ``"result/7"``.

        Raises:
            ValueError: If the screen name or score is invalid
        """
        name, _, argument = path.strip("/").partition("/")
        screen = Screen(name)
        if screen is Screen.RESULT:
            return cls(screen, int(argument))
        if argument:
            raise ValueError(f"Unexpected argument in route {path!r}")
        return cls(screen)


class Navigator:
    """Back stack of routes with change listeners."""

    def __init__(self, start: Optional[Route] = None):
        self._stack: List[Route] = [start or Route(Screen.MENU)]
        self._listeners: List[Callable[[Route], Any]] = []

    @property
    def current(self) -> Route:
        return self._stack[-1]

    @property
    def back_stack(self) -> List[Route]:
        return list(self._stack)

    def add_listener(self, listener: Callable[[Route], Any]) -> None:
        self._listeners.append(listener)

    def navigate(self, route: Union[Route, str]) -> Route:
        if isinstance(route, str):
            route = Route.parse(route)
        self._stack.append(route)
        logger.debug(f"Navigated to {route.path}")
        self._notify()
        return route

    def pop_back_stack(self) -> bool:
        """
        Return to the previous screen.

        Returns:
            False if already at the root screen
        """
        if len(self._stack) == 1:
            return False
        popped = self._stack.pop()
        logger.debug(f"Left {popped.path}, back on {self.current.path}")
        self._notify()
        return True

    def reset(self, route: Optional[Route] = None) -> Route:
        """Clear the back stack and show ``route`` (the menu by default)."""
        self._stack = [route or Route(Screen.MENU)]
        self._notify()
        return self.current

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.current)


class TriviaApp:
    """
    Orchestrates the menu, settings, game and result screens.

    The round engine only reports that a session ended; this controller
    turns that report into navigation to the result screen.
    """

    def __init__(
        self,
        settings: Optional[SettingsManager] = None,
        engine: Optional[RoundEngine] = None,
        navigator: Optional[Navigator] = None
    ):
        self.settings = settings or SettingsManager()
        self.engine = engine or RoundEngine()
        self.navigator = navigator or Navigator()
        self.last_result: Optional[SessionResult] = None
        self.engine.add_session_end_listener(self._on_session_end)

    @property
    def screen(self) -> Screen:
        return self.navigator.current.screen

    def open_settings(self) -> None:
        self.navigator.navigate(Route(Screen.SETTINGS))

    def close_settings(self) -> None:
        if self.screen is Screen.SETTINGS:
            self.navigator.pop_back_stack()

    def start_game(self) -> AsyncIterator[RoundSnapshot]:
        """
        Start a session with the current settings and show the game screen.

        Returns:
            The engine's snapshot stream for the game screen to render

        Raises:
            ConfigurationError: If the current settings cannot start a session
        """
        config = self.settings.get_session_config()
        stream = self.engine.start_session(config)
        self.last_result = None
        self.navigator.navigate(Route(Screen.GAME))
        logger.info(
            f"Game started from {self.settings.get_settings_summary()!r}",
            extra={'event_type': 'game_started', 'timestamp': time.time()}
        )
        return stream

    def submit_answer(self, option: str, round_number: Optional[int] = None) -> None:
        self.engine.submit_answer(option, round_number)

    def leave_game(self) -> None:
        """Back out of a running game; nothing is recorded."""
        self.engine.abandon()
        if self.screen is Screen.GAME:
            self.navigator.pop_back_stack()

    def return_to_menu(self) -> None:
        self.navigator.reset(Route(Screen.MENU))

    def _on_session_end(self, result: SessionResult) -> None:
        self.last_result = result
        self.navigator.navigate(Route(Screen.RESULT, result.final_score))
