"""Tests for validated runtime constants."""

import pytest

from qacbatch.config.settings import (
    DEFAULT_CLEANING_TIMEOUT_SECONDS,
    DEFAULT_PROCESS_SLOTS,
    resolve_cleaning_timeout,
    resolve_process_slots,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (120, 120.0),
        (2.5, 2.5),
        (0, float(DEFAULT_CLEANING_TIMEOUT_SECONDS)),
        (-5, float(DEFAULT_CLEANING_TIMEOUT_SECONDS)),
        (None, float(DEFAULT_CLEANING_TIMEOUT_SECONDS)),
        (True, float(DEFAULT_CLEANING_TIMEOUT_SECONDS)),
    ],
)
def test_resolve_cleaning_timeout(value: int | float | None, expected: float) -> None:
    assert resolve_cleaning_timeout(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, 1), (3, 3), (0, DEFAULT_PROCESS_SLOTS), (None, DEFAULT_PROCESS_SLOTS)],
)
def test_resolve_process_slots(value: int | None, expected: int) -> None:
    assert resolve_process_slots(value) == expected


def test_production_slot_count_is_one() -> None:
    """xEdit is single-instance; the default pool must serialise runs."""

    assert DEFAULT_PROCESS_SLOTS == 1
