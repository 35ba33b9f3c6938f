"""
Blood-pressure category classification.

Thresholds follow the usual clinical bands and are evaluated in order, first
match wins. Ranges are half-open so every (systolic, diastolic) pair lands in
exactly one category, including fractional readings.
"""

from enum import Enum
from typing import NamedTuple

from medtrack.domain.models import BloodPressureReading


class BloodPressureCategory(str, Enum):
    NORMAL = "normal"
    ELEVATED = "elevated"
    STAGE_1_HYPERTENSION = "stage_1_hypertension"
    STAGE_2_HYPERTENSION = "stage_2_hypertension"
    SEVERE_HYPERTENSION = "severe_hypertension"


class CategoryDisplay(NamedTuple):
    label: str
    color: str


CATEGORY_DISPLAY: dict[BloodPressureCategory, CategoryDisplay] = {
    BloodPressureCategory.NORMAL: CategoryDisplay("Normal", "#10b981"),
    BloodPressureCategory.ELEVATED: CategoryDisplay("Elevated", "#f59e0b"),
    BloodPressureCategory.STAGE_1_HYPERTENSION: CategoryDisplay("High Stage 1", "#f97316"),
    BloodPressureCategory.STAGE_2_HYPERTENSION: CategoryDisplay("High Stage 2", "#ef4444"),
    BloodPressureCategory.SEVERE_HYPERTENSION: CategoryDisplay("Severe Hypertension", "#dc2626"),
}


def classify(systolic: float, diastolic: float) -> BloodPressureCategory:
    """Map a systolic/diastolic pair (mmHg) to its clinical category."""
    if systolic < 120 and diastolic < 80:
        return BloodPressureCategory.NORMAL
    if 120 <= systolic < 130 and diastolic < 80:
        return BloodPressureCategory.ELEVATED
    if 130 <= systolic < 140 or 80 <= diastolic < 90:
        return BloodPressureCategory.STAGE_1_HYPERTENSION
    # Only systolic >= 140 or diastolic >= 90 reaches this point
    if systolic > 180 or diastolic > 120:
        return BloodPressureCategory.SEVERE_HYPERTENSION
    return BloodPressureCategory.STAGE_2_HYPERTENSION


def classify_reading(reading: BloodPressureReading) -> BloodPressureCategory:
    return classify(reading.systolic, reading.diastolic)


def category_label(category: BloodPressureCategory) -> str:
    return CATEGORY_DISPLAY[category].label


def category_color(category: BloodPressureCategory) -> str:
    return CATEGORY_DISPLAY[category].color
