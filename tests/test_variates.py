import random
import statistics

import pytest

from squall.models import RunConfig
from squall.variates import VariateSource, spawn_rngs
from fakes import ScriptedRng


def test_draw_scales_raw_sample():
    source = VariateSource(ScriptedRng([1.5]), scale_ns=10_000_000)
    assert source.draw(0.3) == 15_000_000


def test_negative_samples_are_clamped():
    source = VariateSource(ScriptedRng([-2.0]), scale_ns=1000)
    assert source.draw(1.0) == 0


def test_draws_are_non_negative():
    source = VariateSource(random.Random(7))
    assert all(source.draw(2.0) >= 0 for _ in range(5000))


def test_mean_follows_rate():
    source = VariateSource(random.Random(42), scale_ns=1_000_000)
    samples = [source.draw(0.5) for _ in range(20000)]
    # mean 1/λ = 2 units of 1ms
    assert statistics.mean(samples) == pytest.approx(2_000_000, rel=0.05)


def test_on_and_off_use_their_own_rates():
    rng = ScriptedRng([1.0, 1.0])
    source = VariateSource(rng)
    cfg = RunConfig(rate_on=0.25, rate_off=4.0)
    source.draw_on(cfg)
    source.draw_off(cfg)
    assert rng.rates == [0.25, 4.0]


def test_rate_must_be_positive():
    with pytest.raises(ValueError):
        VariateSource().draw(0)


def test_spawn_rngs_gives_private_generators():
    rngs = spawn_rngs(4)
    assert len({id(r) for r in rngs}) == 4


def test_spawn_rngs_with_seed_is_reproducible_and_distinct():
    first = [r.random() for r in spawn_rngs(3, seed=11)]
    second = [r.random() for r in spawn_rngs(3, seed=11)]
    assert first == second
    assert len(set(first)) == 3
