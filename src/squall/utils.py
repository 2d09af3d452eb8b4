import logging
import signal
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# ────────────────────────────────
# Time Helpers
# ────────────────────────────────


def now() -> float:
    return time.perf_counter()


def ns_to_s(ns: int | float) -> float:
    return ns / 1_000_000_000


# ────────────────────────────────
# Signal Handling
# ────────────────────────────────


class GracefulKiller:
    """Routes SIGINT/SIGTERM to ``on_signal`` until ``restore`` is called."""

    def __init__(self, on_signal: Callable[[], None] | None = None):
        self.on_signal = on_signal
        self._previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            self._previous[sig] = signal.signal(sig, self.exit_gracefully)

    def exit_gracefully(self, signum, frame):
        logger.warning(f"Received signal {signum}. Stopping workers...")
        if self.on_signal is not None:
            self.on_signal()

    def restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()
