from __future__ import annotations

import threading

from aresauth.telemetry import RetryTelemetry, get_default_telemetry

####################################
#     Tests for RetryTelemetry     #
####################################


def test_retry_telemetry_starts_at_zero() -> None:
    assert RetryTelemetry().count == 0


def test_retry_telemetry_increment_and_reset() -> None:
    telemetry = RetryTelemetry()
    assert telemetry.increment() == 1
    assert telemetry.increment() == 2
    assert telemetry.count == 2
    telemetry.reset()
    assert telemetry.count == 0


def test_retry_telemetry_repr() -> None:
    telemetry = RetryTelemetry()
    telemetry.increment()
    assert repr(telemetry) == "RetryTelemetry(count=1)"


def test_retry_telemetry_concurrent_increments() -> None:
    telemetry = RetryTelemetry()

    def work() -> None:
        for _ in range(1000):
            telemetry.increment()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert telemetry.count == 8000


def test_get_default_telemetry_is_shared() -> None:
    assert get_default_telemetry() is get_default_telemetry()
