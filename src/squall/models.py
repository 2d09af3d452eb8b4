import enum
from dataclasses import dataclass, field
from typing import Any, Optional
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError


DEFAULT_URL = "http://localhost:80/admin/test"

# Raw exponential samples are read in units of 10ms.
DEFAULT_VARIATE_SCALE_NS = 10_000_000


class Phase(str, enum.Enum):
    ON = "on"
    OFF = "off"
    DONE = "done"


class RunConfig(BaseModel):
    """Immutable settings shared by every worker of one run."""

    model_config = ConfigDict(frozen=True)

    url: str = DEFAULT_URL
    workers: int = Field(default=1, ge=1)
    rate_on: float = Field(default=0.3, gt=0)
    rate_off: float = Field(default=0.8, gt=0)
    duration_s: float = Field(default=30.0, ge=0)
    request_timeout_s: float = Field(default=120.0, gt=0)
    variate_scale_ns: int = Field(default=DEFAULT_VARIATE_SCALE_NS, gt=0)
    seed: int | None = None
    max_connections: int = Field(default=100, ge=1)
    headers: dict[str, str] | None = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"unsupported URL scheme: {v!r}")
        return v

    @classmethod
    def create(cls, **options: Any) -> "RunConfig":
        """Build a config, reporting invalid values as ConfigurationError."""
        try:
            return cls(**options)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(problems) from e

    @property
    def duty_cycle(self) -> float:
        # expected fraction of time a worker spends ON
        mean_on = 1.0 / self.rate_on
        mean_off = 1.0 / self.rate_off
        return mean_on / (mean_on + mean_off)


# Timeline segment: (start, end, phase), seconds relative to run start
PhaseSegment = tuple[float, float, Phase]


@dataclass
class WorkerStats:
    """Counters owned and written by a single worker."""

    worker_id: int = 0
    on_time_ns: int = 0
    off_time_ns: int = 0
    request_count: int = 0
    request_time_ms: int = 0
    timeline: list[PhaseSegment] = field(default_factory=list)

    def record_request(self, elapsed_ms: int) -> None:
        self.request_count += 1
        self.request_time_ms += max(0, elapsed_ms)

    def record_on(self, duration_ns: int) -> None:
        self.on_time_ns += max(0, duration_ns)

    def record_off(self, duration_ns: int) -> None:
        self.off_time_ns += max(0, duration_ns)

    def to_dict(self) -> dict[str, int]:
        return {
            "worker_id": self.worker_id,
            "on_time_ns": self.on_time_ns,
            "off_time_ns": self.off_time_ns,
            "request_count": self.request_count,
            "request_time_ms": self.request_time_ms,
        }


@dataclass(frozen=True)
class AggregateStats:
    workers: int
    elapsed_s: float
    on_time_ns: int
    off_time_ns: int
    request_count: int
    request_time_ms: int
    mean_latency_ms: Optional[float]
    throughput_rps: Optional[float]
    mean_on_time_s: Optional[float]
    mean_off_time_s: Optional[float]

    @property
    def has_data(self) -> bool:
        return self.mean_latency_ms is not None


# Metrics callback: callable accepting the aggregate as a dict
MetricsCallback = Callable[[dict[str, Any]], None]
