# squall/logging_config.py
import logging
import sys

from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

# third-party loggers that only matter when debugging a run
NOISY_LOGGERS = ("aiohttp", "asyncio")


def _console_handler(rich_console: bool) -> logging.Handler:
    if rich_console:
        # shares the terminal with the progress bar without tearing it
        handler = RichHandler(show_path=False, log_time_format="[%X]")
        handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
        return handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATEFMT))
    return handler


def setup_logging(
    level: str = "INFO", log_file: str | None = None, rich_console: bool = False
) -> logging.Logger:
    """Route squall's module loggers to the console and an optional log file.

    Worker lines carry a ``[W<id>]`` prefix, so one shared root logger is
    enough; aiohttp and asyncio are held at WARNING unless running at DEBUG.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()
    root.addHandler(_console_handler(rich_console))

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATEFMT))
        root.addHandler(file_handler)
        root.info(f"Logging to file: {log_file}")

    noisy_level = logging.DEBUG if root.level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    def log_uncaught(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        root.critical("Uncaught exception, run aborted", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = log_uncaught
    return root
