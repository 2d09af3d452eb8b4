import os
import signal

from squall.utils import GracefulKiller, ns_to_s


def test_ns_to_s():
    assert ns_to_s(1_500_000_000) == 1.5


def test_graceful_killer_routes_signal_and_restores():
    calls = []
    previous = signal.getsignal(signal.SIGINT)
    killer = GracefulKiller(on_signal=lambda: calls.append("stop"))
    try:
        os.kill(os.getpid(), signal.SIGINT)
        # handler runs in the main thread between bytecodes
        for _ in range(1000):
            if calls:
                break
    finally:
        killer.restore()

    assert calls == ["stop"]
    assert signal.getsignal(signal.SIGINT) is previous
