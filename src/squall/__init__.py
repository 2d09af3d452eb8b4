__version__ = "0.1.0"

__all__ = [
    "Orchestrator",
    "run_load",
    "PhaseRunner",
    "StopSignal",
    "VariateSource",
    "HttpIssuer",
    "aggregate",
    "RunConfig",
    "WorkerStats",
    "AggregateStats",
    "render_summary",
    "render_timeline",
    "SquallError",
    "ConfigurationError",
    "TransportError",
    "RunFailedError",
]


from .errors import SquallError, ConfigurationError, TransportError, RunFailedError
from .models import RunConfig, WorkerStats, AggregateStats
from .variates import VariateSource
from .issuer import HttpIssuer
from .runner import PhaseRunner, StopSignal
from .metrics import aggregate
from .orchestrator import Orchestrator, run_load
from .rendering import render_summary, render_timeline
