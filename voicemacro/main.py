"""Console entry point for VoiceMacro: record one phrase and print its transcription."""

import sys
import asyncio
import argparse
import logging
import threading
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import Progress, TextColumn, BarColumn

from .cancellation import CancellationToken
from .config import VoiceMacroConfig
from .models import status
from .models.transcription import OutcomeKind, RecordingOutcome
from .services.orchestrator import RecordingOrchestrator
from .transcription.selector import select_backend_kind

logger = logging.getLogger(__name__)


class CaptureRunner:
    """Drives one capture-and-transcribe attempt from the terminal."""

    def __init__(self, config: VoiceMacroConfig, console: Optional[Console] = None,
                 orchestrator: Optional[RecordingOrchestrator] = None):
        self.config = config
        self.console = console or Console()
        self.orchestrator = orchestrator or RecordingOrchestrator(config)
        self.progress: Optional[Progress] = None
        self.level_task = None

    def on_status(self, status: str) -> None:
        if self.progress is not None:
            self.progress.update(self.level_task, description=status)

    def on_level(self, level: int) -> None:
        if self.progress is not None:
            self.progress.update(self.level_task, completed=level)

    def run(self, duration: Optional[float] = None) -> RecordingOutcome:
        token = CancellationToken()
        self.orchestrator.subscribe_status(self.on_status)
        self.orchestrator.subscribe_level(self.on_level)

        kind = select_backend_kind(self.config)
        self.console.print(f"Backend: [bold]{kind.value}[/bold]  "
                           f"Language: [bold]{self.config.whisper_language or 'auto'}[/bold]")
        self.console.print("Speak now. Press Enter to stop recording.")

        stop_thread = threading.Thread(target=self._wait_for_enter, args=(token,), daemon=True)
        stop_thread.start()

        try:
            with Progress(TextColumn("{task.description:<22}"), BarColumn(),
                          TextColumn("{task.completed:>3.0f}%"),
                          console=self.console, transient=True) as progress:
                self.progress = progress
                self.level_task = progress.add_task(status.STATUS_READY, total=100)
                outcome = asyncio.run(self._capture(token, duration))
                self.orchestrator.publisher.flush()
        finally:
            self.progress = None
            self.orchestrator.close()

        return outcome

    async def _capture(self, token: CancellationToken, duration: Optional[float]) -> RecordingOutcome:
        if duration:
            asyncio.get_running_loop().call_later(duration, token.cancel)
        return await self.orchestrator.capture_and_transcribe(token)

    @staticmethod
    def _wait_for_enter(token: CancellationToken) -> None:
        try:
            line = sys.stdin.readline()
        except (OSError, ValueError) as e:
            logger.debug(f"Stdin unavailable for stop key: {e}")
            return
        if line == "":
            logger.debug("Stdin closed, stop key disabled")
            return
        token.cancel()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/voicemacro.log')
    console_output = config.get_bool('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("VoiceMacro starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def print_outcome(console: Console, outcome: RecordingOutcome) -> int:
    """Show the outcome and return the process exit code."""
    if outcome.kind is OutcomeKind.OK:
        console.print(f"[green]Recognised:[/green] {outcome.text}")
        return 0
    if outcome.kind is OutcomeKind.EMPTY:
        console.print(f"[yellow]Nothing recognised[/yellow] ({outcome.reason})")
        return 0
    console.print(f"[red]{outcome.error_kind.value}:[/red] {outcome.message}")
    return 1


def main() -> None:
    """Main entry point for VoiceMacro."""
    parser = argparse.ArgumentParser(
        description="VoiceMacro - record a voice command and transcribe it"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        help="Stop recording after this many seconds"
    )

    parser.add_argument(
        "--cloud",
        action="store_true",
        help="Use the OpenAI API for this run (requires an API key)"
    )

    parser.add_argument(
        "--language",
        type=str,
        help="Language hint, e.g. 'ko' or 'en' (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="VoiceMacro v0.1.0"
    )

    args = parser.parse_args()
    console = Console()

    try:
        config = VoiceMacroConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    if args.cloud:
        config.set('transcription.use_openai_api', True)
    if args.language is not None:
        config.set('transcription.whisper_language', args.language)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    runner = CaptureRunner(config, console)
    try:
        outcome = runner.run(args.duration)
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        sys.exit(130)

    sys.exit(print_outcome(console, outcome))


if __name__ == "__main__":
    main()
