"""
End-to-end walkthrough of the health store.

This script exercises:
1. Configuration loading
2. Legacy medication migration
3. Reminder scheduling with a local scheduler
4. Blood-pressure and therapy logging
5. Summary calculation and recovery from a corrupt document

Run with: uv run python demo_system.py
"""

import asyncio
import tempfile
from datetime import timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from medtrack.config import AppConfig, StorageConfig, get_config
from medtrack.domain.blood_pressure import category_color, category_label, classify_reading
from medtrack.domain.models import (
    BloodPressureReading,
    BloodPressureStats,
    HealthSummary,
    Medication,
    TherapySession,
    TherapyType,
    generate_record_id,
    local_now,
)
from medtrack.observability import configure_logging
from medtrack.services import (
    HealthDatabase,
    InMemoryNotificationScheduler,
    JsonFileStorage,
    ReminderService,
    default_times_for,
)

console = Console()

LEGACY_MEDICATIONS = """[
  {"id": "legacy-1", "name": "Lisinopril", "usage": "with breakfast", "dosagePerIntake": 1,
   "timesPerDay": 1, "reminders": [{"notificationId": "old-handle", "hour": 8, "minute": 30}]}
]"""


async def seed(db: HealthDatabase, reminders: ReminderService) -> None:
    """Add a medication with reminders, a week of readings and a session."""
    now = local_now()

    result = await reminders.schedule_medication_reminders("Metformin", 2, default_times_for(2))
    await db.add_medication(
        Medication(
            id=generate_record_id(now),
            name="Metformin",
            usage="after meals",
            dosage_per_intake=2,
            times_per_day=2,
            reminders=result.unwrap_or([]),
        )
    )

    for days_ago, (systolic, diastolic, pulse) in enumerate(
        [(118, 76, 70), (124, 79, 72), (133, 84, None), (142, 91, 80), (128, 82, 75)]
    ):
        # Oldest first so the newest ends up at index 0
        await db.add_blood_pressure_reading(
            BloodPressureReading(
                id=generate_record_id(),
                systolic=systolic,
                diastolic=diastolic,
                pulse=pulse,
                timestamp=now - timedelta(days=4 - days_ago),
            )
        )

    await db.add_therapy_session(
        TherapySession(
            id=generate_record_id(now),
            type=TherapyType.EXERCISE,
            title="Morning walk",
            description="30 minutes around the park",
            duration=30,
            timestamp=now,
        )
    )


def render(
    db_summary: HealthSummary,
    stats: BloodPressureStats,
    readings: list[BloodPressureReading],
) -> None:
    table = Table(title="Blood Pressure Readings")
    table.add_column("When", style="cyan")
    table.add_column("Reading", style="white")
    table.add_column("Category")
    for reading in readings:
        category = classify_reading(reading)
        table.add_row(
            reading.timestamp.strftime("%Y-%m-%d %H:%M"),
            f"{reading.systolic}/{reading.diastolic}",
            f"[{category_color(category)}]{category_label(category)}[/]",
        )
    console.print(table)

    summary = Table(title="Health Summary")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="white")
    next_dose = db_summary.medications.next_dose
    summary.add_row(
        "Medications", f"{db_summary.medications.active}/{db_summary.medications.total} active"
    )
    summary.add_row(
        "Next dose", f"{next_dose.medication} at {next_dose.time}" if next_dose else "none"
    )
    average = db_summary.blood_pressure.average_7d
    summary.add_row("7-day average", f"{average.systolic}/{average.diastolic}" if average else "-")
    summary.add_row("Trend", db_summary.blood_pressure.trend.value)
    summary.add_row("Average pulse", str(stats.average_pulse or "-"))
    summary.add_row(
        "Therapy today",
        f"{db_summary.therapy.today_sessions} (goal {db_summary.therapy.weekly_goal}/week)",
    )
    console.print(summary)


async def run_demo() -> None:
    console.print(Panel("Health Store Walkthrough", style="bold blue"))

    base = get_config()
    configure_logging(base.logging)

    with tempfile.TemporaryDirectory() as data_dir:
        config = AppConfig(
            environment=base.environment,
            debug=base.debug,
            storage=StorageConfig(backend="file", data_dir=data_dir),
            summary=base.summary,
            logging=base.logging,
        )
        db = HealthDatabase.from_config(config)
        await db.storage.set_item(config.storage.legacy_medications_key, LEGACY_MEDICATIONS)

        reminders = ReminderService(InMemoryNotificationScheduler())
        async with db.session():
            await seed(db, reminders)
            render(
                await db.get_health_summary(),
                await db.get_blood_pressure_stats(),
                await db.get_blood_pressure_readings(),
            )

        # A corrupt document falls back to an empty default
        await JsonFileStorage(data_dir).set_item(config.storage.database_key, "{not json")
        recovered = HealthDatabase.from_config(config)
        await recovered.initialize()
        count = len(await recovered.get_medications())
        console.print(f"After corrupting storage: {count} medications (default document)")


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\nDemo stopped by user", style="yellow")
