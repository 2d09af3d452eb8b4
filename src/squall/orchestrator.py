import asyncio
import logging
import random
from collections.abc import Callable

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .errors import RunFailedError, WorkerError
from .issuer import HttpIssuer, RequestIssuer
from .metrics import aggregate
from .models import AggregateStats, MetricsCallback, RunConfig, WorkerStats
from .runner import PhaseRunner, StopSignal
from .utils import now
from .variates import VariateSource, spawn_rngs

logger = logging.getLogger(__name__)

IssuerFactory = Callable[[RunConfig], RequestIssuer]
RngFactory = Callable[[int, int | None], list[random.Random]]


class Orchestrator:
    """Runs ``config.workers`` ON/OFF workers until the deadline and sums their stats."""

    def __init__(
        self,
        config: RunConfig,
        issuer_factory: IssuerFactory = HttpIssuer.from_config,
        rng_factory: RngFactory = spawn_rngs,
        metrics_callback: MetricsCallback | None = None,
        use_progress_bar: bool = False,
        record_timeline: bool = False,
    ) -> None:
        self.config = config
        self.issuer_factory = issuer_factory
        self.rng_factory = rng_factory
        self.metrics_callback = metrics_callback
        self.use_progress_bar = use_progress_bar
        self.record_timeline = record_timeline

        # Runtime state
        self.records: list[WorkerStats] = []
        self.elapsed_s: float | None = None
        self._stop: StopSignal | None = None
        self._early_stop: str | None = None

        logger.info(
            f"Initialized run against {config.url} with {config.workers} workers, "
            f"on={config.rate_on}, off={config.rate_off}, duration={config.duration_s}s"
        )

    @property
    def stop_reason(self) -> str | None:
        return self._stop.reason if self._stop else self._early_stop

    def request_stop(self, reason: str = "interrupted") -> None:
        """Ask all workers to stop at their next suspension point."""
        if self._stop is None:
            self._early_stop = reason
        else:
            self._stop.set(reason)

    async def run(self) -> AggregateStats:
        cfg = self.config
        stop = self._stop = StopSignal()
        if self._early_stop:
            stop.set(self._early_stop)

        rngs = self.rng_factory(cfg.workers, cfg.seed)
        self.records = [WorkerStats(worker_id=i) for i in range(cfg.workers)]
        issuers = [self.issuer_factory(cfg) for _ in range(cfg.workers)]

        t0 = now()
        runners = [
            PhaseRunner(
                worker_id=i,
                config=cfg,
                issuer=issuers[i],
                variates=VariateSource(rngs[i], cfg.variate_scale_ns),
                stop=stop,
                stats=self.records[i],
                t0=t0,
                record_timeline=self.record_timeline,
            )
            for i in range(cfg.workers)
        ]

        loop = asyncio.get_running_loop()
        if cfg.duration_s <= 0:
            stop.set("deadline")
        deadline = loop.call_later(cfg.duration_s, stop.set, "deadline")

        def _on_worker_done(task: asyncio.Task) -> None:
            if task.cancelled() or task.exception() is not None:
                stop.set("worker failed")

        tasks = []
        for runner in runners:
            task = asyncio.create_task(runner.run(), name=f"squall-worker-{runner.worker_id}")
            task.add_done_callback(_on_worker_done)
            tasks.append(task)
        logger.info(
            f"Started {len(tasks)} workers (expected duty cycle {cfg.duty_cycle:.3f})"
        )

        progress_task = None
        if self.use_progress_bar:
            progress_task = asyncio.create_task(self._show_progress(stop, t0))

        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            deadline.cancel()
            stop.set("finished")
            if progress_task is not None:
                await progress_task
            await asyncio.gather(*[i.close() for i in issuers], return_exceptions=True)

        self.elapsed_s = now() - t0
        logger.info(
            f"All workers stopped after {self.elapsed_s:.2f}s ({stop.reason})"
        )

        failures = [
            WorkerError(worker_id, result)
            for worker_id, result in enumerate(results)
            if isinstance(result, BaseException)
        ]
        if failures:
            for f in failures:
                logger.error(f"Worker {f.worker_id} failed: {f.cause}")
            raise RunFailedError(failures)

        return aggregate(self.records, self.elapsed_s, self.metrics_callback)

    async def _show_progress(self, stop: StopSignal, t0: float) -> None:
        total = max(self.config.duration_s, 0.001)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[requests]} requests"),
            transient=True,
        ) as progress:
            task_id = progress.add_task("[cyan]Squalling...", total=total, requests=0)
            while True:
                stopped = await stop.wait(0.25)
                # display only; totals are summed after all workers stop
                progress.update(
                    task_id,
                    completed=min(total, now() - t0),
                    requests=sum(r.request_count for r in self.records),
                )
                if stopped:
                    break


async def run_load(config: RunConfig, **kwargs) -> AggregateStats:
    return await Orchestrator(config, **kwargs).run()
