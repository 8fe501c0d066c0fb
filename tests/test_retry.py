import pytest

from gateway.utils import retry
from gateway.utils.retry import with_retry


def test_backoff_doubles(monkeypatch):
    delays = []
    monkeypatch.setattr(retry.time, "sleep", delays.append)
    attempts = {"n": 0}

    def flaky():
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise ConnectionError("blip")
        return "ok"

    assert with_retry(flaky, max_retries=3, initial_delay=0.5) == "ok"
    assert delays == [0.5, 1.0]


def test_last_error_is_reraised(monkeypatch):
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: None)

    def broken():
        raise TimeoutError("still down")

    with pytest.raises(TimeoutError):
        with_retry(broken, max_retries=2)
