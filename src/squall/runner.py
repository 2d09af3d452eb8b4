import asyncio
import contextlib
import logging

from .issuer import RequestIssuer
from .models import Phase, RunConfig, WorkerStats
from .utils import now, ns_to_s
from .variates import VariateSource

logger = logging.getLogger(__name__)


class StopSignal:
    """One-shot broadcast flag shared by all workers of a run.

    Only the orchestrator sets it; workers only read it or wait on it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def set(self, reason: str = "stopped") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait until set or ``timeout`` elapses; True if the signal fired."""
        if timeout is None:
            await self._event.wait()
            return True
        if timeout <= 0:
            return self._event.is_set()
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self._event.is_set()


class PhaseRunner:
    """Drives one worker through ON -> OFF -> ON ... until the stop signal."""

    def __init__(
        self,
        worker_id: int,
        config: RunConfig,
        issuer: RequestIssuer,
        variates: VariateSource,
        stop: StopSignal,
        stats: WorkerStats | None = None,
        t0: float | None = None,
        record_timeline: bool = False,
    ) -> None:
        self.worker_id = worker_id
        self.config = config
        self.issuer = issuer
        self.variates = variates
        self.stop = stop
        self.stats = stats or WorkerStats(worker_id=worker_id)
        self.phase = Phase.ON
        self._t0 = now() if t0 is None else t0
        self.record_timeline = record_timeline
        self._stop_waiter: asyncio.Future | None = None

    async def run(self) -> WorkerStats:
        logger.debug(f"[W{self.worker_id}] started")
        self._stop_waiter = asyncio.ensure_future(self.stop.wait())
        try:
            while self.phase is not Phase.DONE:
                if self.stop.is_set():
                    self.phase = Phase.DONE
                elif self.phase is Phase.ON:
                    self.phase = await self._on()
                else:
                    self.phase = await self._off()
        finally:
            self._stop_waiter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._stop_waiter
        logger.debug(
            f"[W{self.worker_id}] done: {self.stats.request_count} requests, "
            f"on={ns_to_s(self.stats.on_time_ns):.2f}s off={ns_to_s(self.stats.off_time_ns):.2f}s"
        )
        return self.stats

    async def _on(self) -> Phase:
        duration_ns = self.variates.draw_on(self.config)
        start = now()
        deadline = start + ns_to_s(duration_ns)
        requests = 0

        while now() < deadline and not self.stop.is_set():
            elapsed_ms = await self._issue()
            if elapsed_ms is None:
                break
            self.stats.record_request(elapsed_ms)
            requests += 1
            # a zero-latency issuer must not starve the other workers
            await asyncio.sleep(0)

        self.stats.record_on(duration_ns)
        self._segment(start, Phase.ON)
        logger.debug(
            f"[W{self.worker_id}] burst of {ns_to_s(duration_ns):.3f}s: {requests} requests"
        )
        return Phase.DONE if self.stop.is_set() else Phase.OFF

    async def _off(self) -> Phase:
        duration_ns = self.variates.draw_off(self.config)
        self.stats.record_off(duration_ns)
        start = now()
        stopped = await self.stop.wait(ns_to_s(duration_ns))
        self._segment(start, Phase.OFF)
        return Phase.DONE if stopped else Phase.ON

    async def _issue(self) -> int | None:
        """Race one request against the stop signal.

        Returns elapsed milliseconds, or None if the run stopped first; an
        abandoned request is not counted. Transport errors propagate.
        """
        request = asyncio.ensure_future(self.issuer.issue(self.config.url))
        try:
            await asyncio.wait(
                {request, self._stop_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if not request.done():
                request.cancel()
                await asyncio.gather(request, return_exceptions=True)
        if request.cancelled():
            return None
        return request.result()

    def _segment(self, start: float, phase: Phase) -> None:
        if not self.record_timeline:
            return
        self.stats.timeline.append((start - self._t0, now() - self._t0, phase))
