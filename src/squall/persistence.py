import json
import logging
import os
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from .models import AggregateStats, RunConfig, WorkerStats

logger = logging.getLogger(__name__)


class ReportWriter:
    def __init__(self, report_file: str = "squall_report.json"):
        self.report_file = report_file

    def save(
        self,
        config: RunConfig,
        stats: AggregateStats,
        records: Sequence[WorkerStats] = (),
    ) -> bool:
        report = {
            "config": config.model_dump(),
            "aggregate": asdict(stats),
            "workers": [r.to_dict() for r in records],
        }
        try:
            with open(self.report_file, "w") as f:
                json.dump(report, f, indent=2)
            logger.info(f"Report saved to {self.report_file}")
            return True
        except OSError as e:
            logger.error(f"Failed to save report: {e}")
            return False

    def load(self) -> dict[str, Any] | None:
        if not os.path.exists(self.report_file):
            logger.info(f"No report found at {self.report_file}")
            return None
        with open(self.report_file, "r") as f:
            return json.load(f)
