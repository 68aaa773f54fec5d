# arch_plan/utils/logger.py
import logging
import os
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text
from rich.theme import Theme

from arch_plan.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from arch_plan.plan.diagnostics import Diagnostics

# --- 1. Custom Log Levels and Subclassed Logger ---
# SECTION marks a phase header, EXECUTE the start and outcome of one step.
SECTION_LEVEL_NUM = 25
EXECUTE_LEVEL_NUM = 26
logging.addLevelName(SECTION_LEVEL_NUM, 'SECTION')
logging.addLevelName(EXECUTE_LEVEL_NUM, 'EXECUTE')


class AppLogger(logging.Logger):
    """logging.Logger with one method per custom level."""

    def _log_at(self, level: int, msg, args, kwargs):
        if self.isEnabledFor(level):
            self._log(level, msg, args, **kwargs)

    def section(self, msg, *args, **kwargs):
        self._log_at(SECTION_LEVEL_NUM, msg, args, kwargs)

    def execute(self, msg, *args, **kwargs):
        self._log_at(EXECUTE_LEVEL_NUM, msg, args, kwargs)


logging.setLoggerClass(AppLogger)


# --- 2. Log File Layout ---
# Padded columns keep the file readable with plain `less`.
FILE_LOG_FORMAT = '%(asctime)s - %(levelname)-9s - %(name)-15s - %(filename)-20s:%(lineno)-5d - %(message)s'


# --- 3. RichAppLogger Wrapper ---
class RichAppLogger:
    """
    Manages terminal output via a Rich Console and wraps the AppLogger instance.
    """

    def __init__(self, console: Console, logger: AppLogger):
        self.console = console
        self.logger: AppLogger = logger
        self.console.push_theme(Theme({"section": "bold yellow on black"}))

    def section(self, message: str, *args, **kwargs):
        """Logs a message with the custom SECTION level and prints a styled header."""
        self.console.print(Text(f"SECTION: {message}", style="section"))
        self.logger.section(f"SECTION: {message}", *args, **kwargs)

    @contextmanager
    def execution_step(self, message: str):
        """
        Wraps one unit of work with a live status spinner, replaced on exit by a
        permanent [COMPLETED], [REJECTED] or [FAILED] line.

        Configuration errors are expected outcomes: they are reported without a
        traceback. Anything else is printed with a rich traceback. The exception
        is always re-raised.
        """
        with self.console.status(f"[bold green]...[/] [RUNNING] {message}", spinner="dots") as status:
            self.logger.execute(f"[RUNNING] {message}")

            try:
                yield status

                self.console.print(f"[green]✔ [COMPLETED][/green] {message}")
                self.logger.execute(f"[COMPLETED] {message}")

            except ConfigurationError as e:
                self.console.print(f"[bold red]✘ [REJECTED][/bold red] {message}")
                self.logger.execute(f"[REJECTED] {message}: {e}")
                raise

            except Exception:
                self.console.print(f"[bold red]✘ [FAILED][/bold red] {message}")
                self.logger.execute(f"[FAILED] {message}")
                self.logger.exception(f"Exception during execution step: {message}")
                self.console.print("\n[bold red]Traceback (most recent call last):[/bold red]")
                self.console.print_exception(show_locals=True)
                raise

    def report_diagnostics(self, diagnostics: "Diagnostics") -> int:
        """Logs every collected warning and returns how many there were."""
        for warning in diagnostics:
            self.logger.warning(str(warning))
        return len(diagnostics)

    # --- Standard Logging Wrappers ---

    def info(self, message, *args, **kwargs):
        self.logger.info(message, *args, **kwargs)

    def warning(self, message, *args, **kwargs):
        self.logger.warning(message, *args, **kwargs)

    def error(self, message, *args, **kwargs):
        self.logger.error(message, *args, **kwargs)

    def debug(self, message, *args, **kwargs):
        self.logger.debug(message, *args, **kwargs)

    def critical(self, message, *args, **kwargs):
        self.logger.critical(message, *args, **kwargs)

    def exception(self, message, *args, **kwargs):
        """Logs an ERROR to file with traceback and prints a rich traceback to the console."""
        self.logger.exception(message, *args, **kwargs)
        self.console.print(f"[bold red]FATAL ERROR: {message}[/bold red]")
        self.console.print_exception(show_locals=True)


# --- 4. Console Filter ---

def hide_execute_records(record: logging.LogRecord) -> bool:
    """execution_step prints its own outcome line, so EXECUTE records stay in the file."""
    return record.levelno != EXECUTE_LEVEL_NUM


# --- 5. Initialization Routine ---
def initialize_app_logger(
    app_name: str,
    log_directory: str = "logs",
    log_file_name: str = "arch-plan.log",
    file_log_level: int = logging.DEBUG,
    console_log_level: int = logging.INFO,
) -> RichAppLogger:
    """
    Initializes and configures the AppLogger for file output and a Rich Console on stderr.
    """
    logger: AppLogger = logging.getLogger(app_name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # 1. File Handler Setup
    os.makedirs(log_directory, exist_ok=True)
    log_file_path = os.path.join(log_directory, log_file_name)

    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    logger.addHandler(file_handler)

    # 2. Rich Console Setup (stderr, so a script printed to stdout stays clean)
    console = Console(file=sys.stderr, soft_wrap=True)

    # 3. Rich Handler Setup
    stream_handler = RichHandler(
        console=console,
        show_time=False,
        show_level=True,
        show_path=False,
        keywords=[],
        level=console_log_level
    )
    stream_handler.addFilter(hide_execute_records)
    logger.addHandler(stream_handler)

    return RichAppLogger(console, logger)
