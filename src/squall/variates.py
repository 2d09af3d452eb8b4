import logging
import random

from .models import RunConfig, DEFAULT_VARIATE_SCALE_NS

logger = logging.getLogger(__name__)


class VariateSource:
    """Exponential phase durations for one worker.

    Each worker gets its own instance; the wrapped ``random.Random`` is not
    shared across workers. A raw sample ``x`` with rate ``λ`` (mean ``1/λ``)
    becomes ``int(x * scale_ns)`` nanoseconds.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        scale_ns: int = DEFAULT_VARIATE_SCALE_NS,
    ) -> None:
        assert scale_ns > 0
        self.rng = rng or random.Random()
        self.scale_ns = scale_ns

    def draw(self, rate: float) -> int:
        if rate <= 0:
            raise ValueError(f"rate must be > 0, got {rate}")
        sample = self.rng.expovariate(rate)
        return max(0, int(sample * self.scale_ns))

    def draw_on(self, config: RunConfig) -> int:
        return self.draw(config.rate_on)

    def draw_off(self, config: RunConfig) -> int:
        return self.draw(config.rate_off)


def spawn_rngs(count: int, seed: int | None = None) -> list[random.Random]:
    if seed is None:
        return [random.Random() for _ in range(count)]
    logger.debug(f"Seeding {count} generators from base seed {seed}")
    return [random.Random(seed + i) for i in range(count)]
