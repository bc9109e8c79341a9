import threading
import time

import pytest

from sound_trigger.ticker import IntervalTicker, ManualTicker


def test_manual_ticker_only_fires_while_started():
    calls = []
    ticker = ManualTicker()
    ticker.tick()
    ticker.start(lambda: calls.append(1))
    ticker.tick(3)
    ticker.stop()
    ticker.tick()
    assert calls == [1, 1, 1]
    assert not ticker.running


def test_interval_ticker_rejects_bad_rate():
    with pytest.raises(ValueError):
        IntervalTicker(0)


def test_interval_ticker_stops_cleanly():
    calls = []
    fired = threading.Event()

    def _cb():
        calls.append(1)
        if len(calls) >= 3:
            fired.set()

    ticker = IntervalTicker(rate_hz=200)
    ticker.start(_cb)
    assert fired.wait(2.0)
    ticker.stop()
    count = len(calls)
    time.sleep(0.05)
    assert len(calls) == count
    assert not ticker.running
    ticker.stop()


def test_interval_ticker_stop_from_callback():
    calls = []
    ticker = IntervalTicker(rate_hz=200)

    def _cb():
        calls.append(1)
        ticker.stop()

    ticker.start(_cb)
    deadline = time.monotonic() + 2.0
    while not calls and time.monotonic() < deadline:
        time.sleep(0.005)
    time.sleep(0.05)
    assert calls == [1]
    assert not ticker.running
