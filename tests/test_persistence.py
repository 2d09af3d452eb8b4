from squall.metrics import aggregate
from squall.models import RunConfig, WorkerStats
from squall.persistence import ReportWriter


def test_report_round_trip(tmp_path):
    cfg = RunConfig(workers=2, seed=4)
    records = [WorkerStats(0, request_count=3, request_time_ms=30), WorkerStats(1, request_count=1, request_time_ms=5)]
    stats = aggregate(records, elapsed_s=1.0)

    writer = ReportWriter(str(tmp_path / "report.json"))
    assert writer.save(cfg, stats, records)

    report = writer.load()
    assert report["config"]["workers"] == 2
    assert report["aggregate"]["request_count"] == 4
    assert [w["request_count"] for w in report["workers"]] == [3, 1]


def test_load_missing_report(tmp_path):
    assert ReportWriter(str(tmp_path / "missing.json")).load() is None


def test_unwritable_report_is_not_fatal(tmp_path):
    writer = ReportWriter(str(tmp_path / "no-such-dir" / "report.json"))
    assert writer.save(RunConfig(), aggregate([], 0.0)) is False
