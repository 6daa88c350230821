from __future__ import annotations

import pytest

from aresauth.backoff import ExponentialBackoff

########################################
#     Tests for ExponentialBackoff     #
########################################


def test_exponential_backoff_doubles_delay() -> None:
    backoff = ExponentialBackoff(base_delay=1.0)
    assert [backoff.calculate(i) for i in range(4)] == [1.0, 2.0, 4.0, 8.0]


def test_exponential_backoff_custom_multiplier() -> None:
    backoff = ExponentialBackoff(base_delay=1.0, multiplier=3.0)
    assert backoff.calculate(2) == 9.0


def test_exponential_backoff_max_delay() -> None:
    backoff = ExponentialBackoff(base_delay=1.0, max_delay=5.0)
    assert backoff.calculate(2) == 4.0
    assert backoff.calculate(10) == 5.0


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"base_delay": -1.0}, r"base_delay must be >= 0"),
        ({"multiplier": 0.5}, r"multiplier must be >= 1"),
        ({"max_delay": 0.0}, r"max_delay must be > 0"),
    ],
)
def test_exponential_backoff_invalid(kwargs: dict, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        ExponentialBackoff(**kwargs)
