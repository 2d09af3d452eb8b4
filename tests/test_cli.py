import functools
import os
import signal
import threading
import time

import pytest

from squall import cli
from squall.errors import ConfigurationError
from squall.orchestrator import Orchestrator
from fakes import InstantIssuer


def test_defaults(monkeypatch):
    for name in ("URL", "WORKERS", "THREADS", "ON", "OFF", "DURATION"):
        monkeypatch.delenv(f"SQUALL_{name}", raising=False)
    args = cli.parse_args([])
    cfg = cli.build_config(args)
    assert cfg.workers == 1
    assert cfg.rate_on == 0.3
    assert cfg.rate_off == 0.8
    assert cfg.duration_s == 30.0
    assert cfg.request_timeout_s == 120.0


def test_environment_fallbacks(monkeypatch):
    monkeypatch.setenv("SQUALL_THREADS", "4")
    monkeypatch.setenv("SQUALL_ON", "1.5")
    monkeypatch.setenv("SQUALL_URL", "http://target:8080/")
    args = cli.parse_args([])
    assert args.workers == 4
    assert args.on == 1.5
    assert args.url == "http://target:8080/"


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("SQUALL_WORKERS", "4")
    args = cli.parse_args(["--workers", "2", "--threads", "3"])
    assert args.workers == 3


def test_bad_environment_value(monkeypatch):
    monkeypatch.setenv("SQUALL_WORKERS", "many")
    with pytest.raises(ConfigurationError):
        cli.parse_args([])


def test_invalid_rate_exits_with_config_error(monkeypatch):
    monkeypatch.delenv("SQUALL_LOG_FILE", raising=False)
    with pytest.raises(SystemExit) as info:
        cli.main(["--on", "0", "--no-progress"])
    assert info.value.code == cli.EXIT_BAD_CONFIG


def test_zero_duration_run_prints_summary(capsys):
    with pytest.raises(SystemExit) as info:
        cli.main(["--duration", "0", "--no-progress", "--timeline"])
    assert info.value.code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "Running at rate per thread of" in out
    assert "Total Requests: 0" in out


def test_failed_run_exits_non_zero(capsys):
    from aiohttp.test_utils import unused_port

    url = f"http://127.0.0.1:{unused_port()}/"
    with pytest.raises(SystemExit) as info:
        cli.main(["--url", url, "--duration", "5", "--on", "0.01", "--no-progress"])
    assert info.value.code == cli.EXIT_RUN_FAILED
    assert "worker 0" in capsys.readouterr().out


def _send_sigint_after(delay_s: float) -> threading.Timer:
    timer = threading.Timer(delay_s, os.kill, (os.getpid(), signal.SIGINT))
    timer.start()
    return timer


@pytest.fixture
def offline_orchestrator(monkeypatch):
    monkeypatch.setattr(
        cli,
        "Orchestrator",
        functools.partial(Orchestrator, issuer_factory=lambda config: InstantIssuer()),
    )


def test_sigint_stops_run_and_prints_summary(offline_orchestrator, capsys):
    timer = _send_sigint_after(0.5)
    start = time.perf_counter()
    try:
        with pytest.raises(SystemExit) as info:
            cli.main(["--duration", "60", "--on", "1", "--off", "1", "--no-progress"])
    finally:
        timer.cancel()

    assert info.value.code == cli.EXIT_OK
    assert time.perf_counter() - start < 10
    out = capsys.readouterr().out
    assert "Total Requests" in out


def test_linger_returns_on_signal(offline_orchestrator, capsys):
    timer = _send_sigint_after(0.5)
    start = time.perf_counter()
    try:
        with pytest.raises(SystemExit) as info:
            cli.main(["--duration", "0", "--linger", "--no-progress"])
    finally:
        timer.cancel()

    assert info.value.code == cli.EXIT_OK
    assert 0.4 <= time.perf_counter() - start < 10
    assert "Total Requests: 0" in capsys.readouterr().out


def test_timeline_flag_prints_worker_rows(offline_orchestrator, capsys):
    with pytest.raises(SystemExit) as info:
        cli.main(["--duration", "0.3", "--on", "1", "--off", "1", "--timeline", "--no-progress"])
    assert info.value.code == cli.EXIT_OK
    assert "W00 |" in capsys.readouterr().out
