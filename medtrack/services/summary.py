"""
Derived summaries over the health document.

Everything here is a pure function of its inputs: callers pass the document
(or a list of readings) and the current time, nothing is read from storage.
Collections keep insertion order, newest first, and the calculations rely on
that order rather than on timestamp values.
"""

import math
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from medtrack.config import SummaryConfig
from medtrack.domain.models import (
    BloodPressureAverage,
    BloodPressureReading,
    BloodPressureStats,
    BloodPressureSummary,
    DatabaseSchema,
    HealthSummary,
    Medication,
    MedicationSummary,
    NextDose,
    TherapySummary,
    Trend,
    ensure_aware,
)
from medtrack.services.scheduler import format_clock

MINUTES_PER_DAY = 24 * 60


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _round_half_up(value: float) -> int:
    # Match the UI's rounding: .5 always rounds toward +infinity
    return math.floor(value + 0.5)


def compute_trend(
    readings: Sequence[BloodPressureReading],
    min_readings: int = 4,
    stable_threshold: float = 5.0,
) -> Trend:
    """
    Compare mean systolic of the second half of the list against the first.

    The split is at ``len // 2`` in list order. With the newest-first ordering
    of the store, "increasing" therefore means the older half reads higher.
    """
    if len(readings) < min_readings:
        return Trend.UNKNOWN

    midpoint = len(readings) // 2
    first_half = _mean([r.systolic for r in readings[:midpoint]])
    second_half = _mean([r.systolic for r in readings[midpoint:]])

    difference = second_half - first_half
    if abs(difference) < stable_threshold:
        return Trend.STABLE
    if difference > 0:
        return Trend.INCREASING
    return Trend.DECREASING


def find_next_dose(medications: Sequence[Medication], now: datetime) -> NextDose | None:
    """Earliest upcoming active reminder; ties keep the first one encountered."""
    current = now.hour * 60 + now.minute
    best: NextDose | None = None

    for medication in medications:
        if not medication.is_active:
            continue
        for reminder in medication.reminders:
            if not reminder.is_active:
                continue
            minutes_until = (reminder.minutes_of_day - current) % MINUTES_PER_DAY
            if best is None or minutes_until < best.minutes_until:
                best = NextDose(
                    medication=medication.name,
                    time=format_clock(reminder.hour, reminder.minute),
                    minutes_until=minutes_until,
                )

    return best


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Midnight today and midnight tomorrow in the zone of ``now``.

    Fixed offsets matching the system zone (what ``astimezone()`` produces)
    are resolved through local rules, so a DST change between midnight and
    ``now`` shifts the offset of midnight accordingly.
    """
    midnight = now.replace(tzinfo=None, hour=0, minute=0, second=0, microsecond=0)
    next_midnight = midnight + timedelta(days=1)

    if isinstance(now.tzinfo, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        return midnight.astimezone(), next_midnight.astimezone()
    return midnight.replace(tzinfo=now.tzinfo), next_midnight.replace(tzinfo=now.tzinfo)


def _adherence_rate(medications: Sequence[Medication]) -> float | None:
    rates = [
        med.adherence_data.rate
        for med in medications
        if med.adherence_data is not None and med.adherence_data.rate is not None
    ]
    if not rates:
        return None
    return _mean(rates)


def compute_health_summary(
    document: DatabaseSchema, now: datetime, config: SummaryConfig | None = None
) -> HealthSummary:
    """Build the home-screen summary from the document as of ``now``.

    A naive ``now`` is taken as local time. Mutable records in the result are
    copies, so editing the summary never touches the document.
    """
    config = config or SummaryConfig()
    now = ensure_aware(now)

    active_medications = [med for med in document.medications if med.is_active]

    window_start = now - timedelta(days=config.average_window_days)
    recent = [bp for bp in document.blood_pressure_readings if bp.timestamp >= window_start]

    average: BloodPressureAverage | None = None
    if recent:
        average = BloodPressureAverage(
            systolic=_round_half_up(_mean([bp.systolic for bp in recent])),
            diastolic=_round_half_up(_mean([bp.diastolic for bp in recent])),
        )

    today, tomorrow = day_bounds(now)
    today_sessions = [s for s in document.therapy_sessions if today <= s.timestamp < tomorrow]

    readings = document.blood_pressure_readings
    sessions = document.therapy_sessions

    return HealthSummary(
        medications=MedicationSummary(
            total=len(document.medications),
            active=len(active_medications),
            next_dose=find_next_dose(active_medications, now),
            adherence_7d=_adherence_rate(active_medications),
        ),
        blood_pressure=BloodPressureSummary(
            last_reading=readings[0] if readings else None,
            average_7d=average,
            trend=compute_trend(
                recent, config.trend_min_readings, config.trend_stable_threshold_mmhg
            ),
        ),
        therapy=TherapySummary(
            today_sessions=len(today_sessions),
            last_session=sessions[0].model_copy(deep=True) if sessions else None,
            weekly_goal=config.weekly_therapy_goal,
        ),
    )


def compute_blood_pressure_stats(
    readings: Sequence[BloodPressureReading], config: SummaryConfig | None = None
) -> BloodPressureStats:
    """Averages and trend over every reading passed in, no time window."""
    config = config or SummaryConfig()

    if not readings:
        return BloodPressureStats()

    pulses = [r.pulse for r in readings if r.pulse is not None]

    return BloodPressureStats(
        average_systolic=_round_half_up(_mean([r.systolic for r in readings])),
        average_diastolic=_round_half_up(_mean([r.diastolic for r in readings])),
        average_pulse=_round_half_up(_mean(pulses)) if pulses else None,
        readings_count=len(readings),
        last_reading=readings[0],
        trend=compute_trend(readings, config.trend_min_readings, config.trend_stable_threshold_mmhg),
    )
