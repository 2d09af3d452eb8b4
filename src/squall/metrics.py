import logging
from collections.abc import Sequence
from dataclasses import asdict

from .models import AggregateStats, MetricsCallback, WorkerStats
from .utils import ns_to_s

logger = logging.getLogger(__name__)


def aggregate(
    records: Sequence[WorkerStats],
    elapsed_s: float,
    metrics_callback: MetricsCallback | None = None,
) -> AggregateStats:
    """Sum per-worker counters into run totals.

    Must only be called once every worker has stopped. Derived metrics are
    None when there is nothing to divide by. The result depends only on
    ``records`` and ``elapsed_s``; invoking ``metrics_callback`` with a copy
    of it is the only side effect.
    """
    workers = len(records)
    on_time_ns = sum(r.on_time_ns for r in records)
    off_time_ns = sum(r.off_time_ns for r in records)
    request_count = sum(r.request_count for r in records)
    request_time_ms = sum(r.request_time_ms for r in records)
    logger.debug(
        f"Aggregating {workers} workers: requests={request_count}, elapsed={elapsed_s:.3f}s"
    )

    mean_latency_ms = None
    throughput_rps = None
    if request_count:
        mean_latency_ms = request_time_ms / request_count
        if elapsed_s > 0:
            throughput_rps = request_count / elapsed_s

    mean_on_time_s = None
    mean_off_time_s = None
    if workers:
        mean_on_time_s = ns_to_s(on_time_ns) / workers
        mean_off_time_s = ns_to_s(off_time_ns) / workers

    stats = AggregateStats(
        workers=workers,
        elapsed_s=elapsed_s,
        on_time_ns=on_time_ns,
        off_time_ns=off_time_ns,
        request_count=request_count,
        request_time_ms=request_time_ms,
        mean_latency_ms=mean_latency_ms,
        throughput_rps=throughput_rps,
        mean_on_time_s=mean_on_time_s,
        mean_off_time_s=mean_off_time_s,
    )

    if metrics_callback:
        metrics_callback(asdict(stats))

    if not stats.has_data:
        logger.info("No requests recorded. Returning empty stats.")
    else:
        logger.info(
            f"Stats computed: requests={request_count}, "
            f"mean={mean_latency_ms:.3f}ms, workers={workers}"
        )
    return stats
