class SquallError(Exception):
    """Base class for all squall errors."""


class ConfigurationError(SquallError):
    """Invalid run settings, detected before any worker starts."""


class TransportError(SquallError):
    """A request could not be completed at the connection level."""

    def __init__(self, url: str, cause: BaseException | None = None):
        self.url = url
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause else "unknown failure"
        super().__init__(f"request to {url} failed ({detail})")


class WorkerError(SquallError):
    def __init__(self, worker_id: int, cause: BaseException):
        self.worker_id = worker_id
        self.cause = cause
        super().__init__(f"worker {worker_id}: {cause}")


class RunFailedError(SquallError):
    """Raised once every worker has stopped, if any of them failed."""

    def __init__(self, failures: list[WorkerError]):
        self.failures = sorted(failures, key=lambda f: f.worker_id)
        lines = "; ".join(str(f) for f in self.failures)
        super().__init__(f"{len(self.failures)} worker(s) failed: {lines}")
