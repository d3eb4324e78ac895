import pytest

import core
import settings as settings_store


class SteppedMonotonic:
    """Fake monotonic clock. Time only moves when advance() is called."""

    def __init__(self, start=1000.0):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, seconds):
        self.current += seconds
        return self.current


def make_settings(**overrides):
    settings = settings_store.default_settings()
    settings.update({
        'num_games': 2,
        'play_times': [1, 1],
        'break_times': [1],
        'down_time': 2,
        'warn_bell_time': 0.5,
    })
    settings.update(overrides)
    return settings


@pytest.fixture
def monotonic():
    return SteppedMonotonic()


@pytest.fixture
def clock(monotonic):
    return core.SegmentClock(make_settings(), now_fn=monotonic)


@pytest.fixture
def received(clock):
    """Every signal the clock emits, in order."""
    signals_seen = []
    clock.subscribe(signals_seen.append)
    return signals_seen
