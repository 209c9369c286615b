"""
Terminal front-end: renders the menu, settings, game and result screens and
feeds the player's choices back to ``TriviaApp``.
"""
import asyncio
import logging
import sys
import threading
from typing import Callable, Optional, TextIO

from .models import Difficulty, RoundSnapshot
from .navigation import Screen, TriviaApp

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"q", "quit", "exit"}


def render_progress_bar(progress: float, width: int = 20) -> str:
    """Draw ``progress`` (0.0 to 1.0) as a fixed-width text bar."""
    progress = min(max(progress, 0.0), 1.0)
    filled = round(progress * width)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def format_question(snapshot: RoundSnapshot) -> str:
    lines = [
        f"Round {snapshot.round_number}/{snapshot.total_rounds}",
        "",
        snapshot.question_text,
    ]
    lines.extend(f"  {i}) {option}" for i, option in enumerate(snapshot.options, start=1))
    return "\n".join(lines)


def format_tick(snapshot: RoundSnapshot) -> str:
    return (
        f"{render_progress_bar(snapshot.progress)} "
        f"{snapshot.seconds_remaining:>2}s  score {snapshot.current_score}"
    )


def parse_option(line: str, options) -> Optional[str]:
    """Map the player's input, a 1-based number or the option text, to an option."""
    text = line.strip()
    if text.isdigit():
        index = int(text) - 1
        if 0 <= index < len(options):
            return options[index]
        return None
    for option in options:
        if option.lower() == text.lower():
            return option
    return None


class LineReader:
    """Reads lines from a blocking stream on a daemon thread into an asyncio queue."""

    def __init__(self, stream: TextIO = sys.stdin):
        self._stream = stream
        self._lines: Optional[asyncio.Queue] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._lines = asyncio.Queue()

        def pump():
            while True:
                line = self._stream.readline()
                loop.call_soon_threadsafe(self._lines.put_nowait, line)
                if not line:
                    break

        self._thread = threading.Thread(target=pump, name="trivia-input", daemon=True)
        self._thread.start()

    async def readline(self) -> str:
        """Next line without its newline; raises EOFError at end of input."""
        line = await self._lines.get()
        if not line:
            # keep reporting EOF to later readers
            self._lines.put_nowait(line)
            raise EOFError
        return line.rstrip("\n")


class ConsoleFrontend:
    """Drives ``TriviaApp`` from a text terminal."""

    def __init__(
        self,
        app: TriviaApp,
        reader: Optional[LineReader] = None,
        write: Callable[[str], None] = print
    ):
        self.app = app
        self.reader = reader or LineReader()
        self.write = write
        self.shown: Optional[RoundSnapshot] = None

    async def run(self) -> None:
        self.reader.start()
        try:
            while True:
                screen = self.app.screen
                if screen is Screen.MENU:
                    if not await self._menu():
                        break
                elif screen is Screen.SETTINGS:
                    await self._settings()
                elif screen is Screen.GAME:
                    # a game screen without a running session, e.g. after an error
                    self.app.return_to_menu()
                elif screen is Screen.RESULT:
                    await self._result()
        except EOFError:
            self.app.leave_game()
        self.write("Goodbye!")

    async def _ask(self, prompt: str) -> str:
        self.write(prompt)
        return (await self.reader.readline()).strip()

    async def _menu(self) -> bool:
        choice = await self._ask("\n== Menu ==\n  1) Start game\n  2) Settings\n  q) Quit")
        if choice == "1":
            await self._game()
        elif choice == "2":
            self.app.open_settings()
        elif choice.lower() in QUIT_COMMANDS:
            return False
        return True

    async def _settings(self) -> None:
        settings = self.app.settings
        self.write("\n== Settings ==\n" + settings.get_settings_summary())

        difficulties = [d.value for d in Difficulty]
        choice = await self._ask(f"Difficulty ({'/'.join(difficulties)}), blank to keep:")
        if choice:
            self.write(settings.set_difficulty(choice.capitalize())['user_message'])

        counts = "/".join(str(c) for c in settings.ROUND_COUNT_CHOICES)
        choice = await self._ask(f"Number of questions ({counts}), blank to keep:")
        if choice:
            value = int(choice) if choice.isdigit() else choice
            self.write(settings.set_round_count(value)['user_message'])

        choice = await self._ask(
            f"Time per round ({settings.MIN_SECONDS_PER_ROUND}-{settings.MAX_SECONDS_PER_ROUND} seconds), blank to keep:"
        )
        if choice:
            value = int(choice) if choice.isdigit() else choice
            self.write(settings.set_seconds_per_round(value)['user_message'])

        self.app.close_settings()

    async def _game(self) -> None:
        stream = self.app.start_game()
        self.shown = None
        answers = asyncio.create_task(self._collect_answers())
        try:
            async for snapshot in stream:
                if snapshot.seconds_remaining == snapshot.seconds_per_round:
                    self.write("\n" + format_question(snapshot))
                self.write(format_tick(snapshot))
                self.shown = snapshot
        finally:
            answers.cancel()
            self.shown = None

    async def _collect_answers(self) -> None:
        while self.app.engine.is_running:
            try:
                line = await self.reader.readline()
            except EOFError:
                self.app.leave_game()
                return
            if line.strip().lower() in QUIT_COMMANDS:
                self.app.leave_game()
                return
            # answer the question the player is looking at, even if it just timed out
            snapshot = self.shown
            if snapshot is None:
                continue
            option = parse_option(line, snapshot.options)
            if option is None:
                logger.debug(f"Unrecognized answer input {line!r}")
                self.write(f"Type a number from 1 to {len(snapshot.options)}")
                continue
            self.app.submit_answer(option, snapshot.round_number)

    async def _result(self) -> None:
        result = self.app.last_result
        total = f"/{result.total_rounds}" if result is not None else ""
        await self._ask(f"\nYour score: {self.app.navigator.current.score}{total}\nPress Enter to return to the menu")
        self.app.return_to_menu()
