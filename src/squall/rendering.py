from collections.abc import Sequence

from .models import AggregateStats, Phase, WorkerStats


def render_summary(stats: AggregateStats) -> str:
    if not stats.has_data:
        lines = [
            "Average API latency: no data (0 requests)",
            f"Total Requests: {stats.request_count}",
            "Total Rate of API calls: no data",
        ]
    else:
        rate = (
            f"{stats.throughput_rps:.2f} req/s"
            if stats.throughput_rps is not None
            else "no data"
        )
        lines = [
            f"Average API latency: {stats.mean_latency_ms:.3f}ms",
            f"Total Requests: {stats.request_count}",
            f"Total Rate of API calls: {rate}",
        ]
    if stats.mean_on_time_s is None:
        lines.append("Average On Time: no data")
        lines.append("Average Off Time: no data")
    else:
        lines.append(f"Average On Time: {stats.mean_on_time_s:.3f}s")
        lines.append(f"Average Off Time: {stats.mean_off_time_s:.3f}s")
    return "\n".join(lines)


def render_timeline(records: Sequence[WorkerStats], width: int = 80) -> str:
    if not any(r.timeline for r in records):
        return "No timeline data."

    max_t = max((end for r in records for _, end, _ in r.timeline), default=0.0)
    if max_t <= 0:
        max_t = 1.0

    lines = ["Phase Timeline (# = ON, . = OFF)"]
    for record in sorted(records, key=lambda r: r.worker_id):
        buf = [" "] * width
        for start_rel, end_rel, phase in record.timeline:
            a = int(start_rel / max_t * (width - 1))
            b = int(end_rel / max_t * (width - 1))
            a, b = max(0, a), max(a, b)
            mark = "#" if phase is Phase.ON else "."
            for k in range(a, min(b, width - 1) + 1):
                buf[k] = mark
        lines.append(f"W{record.worker_id:02d} |{''.join(buf)}|")
    lines.append(f"0s{' ' * (width - 6)}~ {max_t:.2f}s")
    return "\n".join(lines)
