"""Tests for the abandonment window."""

from datetime import UTC, datetime, timedelta

import pytest

from app.services.recovery_window import as_utc, compute_window

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
MIN_AGE = timedelta(hours=2)
MAX_AGE = timedelta(hours=24)


class TestComputeWindow:
    def test_bounds(self) -> None:
        window = compute_window(NOW, MIN_AGE, MAX_AGE)
        assert window.start == NOW - MAX_AGE
        assert window.end == NOW - MIN_AGE

    def test_naive_now_treated_as_utc(self) -> None:
        window = compute_window(NOW.replace(tzinfo=None), MIN_AGE, MAX_AGE)
        assert window.end == NOW - MIN_AGE
        assert window.end.tzinfo is not None

    @pytest.mark.parametrize(
        ("min_age", "max_age"),
        [
            (timedelta(0), MAX_AGE),
            (timedelta(hours=-1), MAX_AGE),
            (MAX_AGE, MAX_AGE),
            (MAX_AGE, MIN_AGE),
        ],
    )
    def test_rejects_invalid_ages(self, min_age: timedelta, max_age: timedelta) -> None:
        with pytest.raises(ValueError):
            compute_window(NOW, min_age, max_age)


def test_as_utc_converts_offsets() -> None:
    from datetime import timezone

    plus_two = datetime(2026, 10, 19, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc(plus_two) == NOW
    assert as_utc(plus_two).tzinfo == UTC
