import pytest

import main
from rate_limit import FixedWindowLimiter


class Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_fixed_window_counts_per_key():
    clock = Clock(1000.0)
    limiter = FixedWindowLimiter(2, 60, clock=clock)
    assert limiter.hit("1.2.3.4") is None
    assert limiter.hit("1.2.3.4") is None
    assert limiter.hit("5.6.7.8") is None
    assert limiter.hit("1.2.3.4") == 20  # window is [960, 1020)


def test_window_rollover_resets_counts():
    clock = Clock(0.0)
    limiter = FixedWindowLimiter(1, 60, clock=clock)
    assert limiter.hit("a") is None
    assert limiter.hit("a") is not None
    clock.now = 60.0
    assert limiter.hit("a") is None


def test_middleware_returns_429(client, monkeypatch):
    monkeypatch.setattr(main.rate_limiter, "max_requests", 2)
    assert client.get("/").status_code == 200
    assert client.get("/food").status_code == 200
    resp = client.get("/")
    assert resp.status_code == 429
    assert resp.json() == {"detail": "Too many requests, please try again later."}
    assert int(resp.headers["retry-after"]) >= 1


@pytest.mark.parametrize("window", [0, -60])
def test_window_must_be_positive(window):
    with pytest.raises(ValueError):
        FixedWindowLimiter(10, window)
