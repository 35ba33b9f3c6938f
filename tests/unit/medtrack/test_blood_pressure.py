"""Tests for blood-pressure category classification."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from medtrack.domain.blood_pressure import (
    CATEGORY_DISPLAY,
    BloodPressureCategory,
    category_color,
    category_label,
    classify,
    classify_reading,
)
from medtrack.domain.models import BloodPressureReading


@pytest.mark.parametrize(
    "systolic,diastolic,expected",
    [
        (119, 79, BloodPressureCategory.NORMAL),
        (120, 79, BloodPressureCategory.ELEVATED),
        (129, 79, BloodPressureCategory.ELEVATED),
        (130, 79, BloodPressureCategory.STAGE_1_HYPERTENSION),
        (119, 80, BloodPressureCategory.STAGE_1_HYPERTENSION),
        (139, 89, BloodPressureCategory.STAGE_1_HYPERTENSION),
        (140, 70, BloodPressureCategory.STAGE_2_HYPERTENSION),
        (110, 90, BloodPressureCategory.STAGE_2_HYPERTENSION),
        (180, 120, BloodPressureCategory.STAGE_2_HYPERTENSION),
        (181, 70, BloodPressureCategory.SEVERE_HYPERTENSION),
        (170, 121, BloodPressureCategory.SEVERE_HYPERTENSION),
    ],
)
def test_classification_boundaries(
    systolic: int, diastolic: int, expected: BloodPressureCategory
) -> None:
    assert classify(systolic, diastolic) is expected


def test_diastolic_stage_1_band_wins_over_high_systolic() -> None:
    # Bands are checked in order, so a stage 1 diastolic is reported as stage 1
    assert classify(185, 85) is BloodPressureCategory.STAGE_1_HYPERTENSION


@given(
    systolic=st.floats(min_value=0, max_value=300, allow_nan=False),
    diastolic=st.floats(min_value=0, max_value=200, allow_nan=False),
)
def test_classify_is_total(systolic: float, diastolic: float) -> None:
    """Every reading, including fractional ones, maps to a known category."""
    assert classify(systolic, diastolic) in set(BloodPressureCategory)


@given(systolic=st.integers(min_value=0, max_value=119), diastolic=st.integers(0, 79))
def test_low_readings_are_normal(systolic: int, diastolic: int) -> None:
    assert classify(systolic, diastolic) is BloodPressureCategory.NORMAL


def test_every_category_has_display_entry() -> None:
    assert set(CATEGORY_DISPLAY) == set(BloodPressureCategory)
    for category in BloodPressureCategory:
        assert category_color(category).startswith("#")
        assert category_label(category)


def test_classify_reading_uses_both_values() -> None:
    reading = BloodPressureReading(id="bp", systolic=125, diastolic=78)

    assert classify_reading(reading) is BloodPressureCategory.ELEVATED
    assert category_label(classify_reading(reading)) == "Elevated"
    assert category_color(BloodPressureCategory.NORMAL) == "#10b981"
