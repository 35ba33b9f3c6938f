"""
Domain models for the local health-data document.

Every entity is a pydantic model with snake_case attributes and camelCase
aliases, so the on-disk JSON keeps the document layout the app has always
written. Timestamps are timezone-aware; parsing a stored document converts
ISO-8601 strings back into datetimes during validation.
"""

import random
import string
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def local_now() -> datetime:
    """Current wall-clock time as an aware datetime in the local zone."""
    return datetime.now().astimezone()


def generate_record_id(now: datetime | None = None) -> str:
    """Build a caller-side record id: epoch milliseconds plus a random suffix."""
    moment = now or local_now()
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(random.choices(alphabet, k=8))
    return f"{int(moment.timestamp() * 1000)}-{suffix}"


class DocumentModel(BaseModel):
    """Base for persisted records: camelCase on disk, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def ensure_aware(value: datetime) -> datetime:
    # Older documents may carry naive timestamps; treat them as local time
    if value.tzinfo is None:
        return value.astimezone()
    return value


LocalizedDatetime = Annotated[datetime, AfterValidator(ensure_aware)]


class TherapyType(str, Enum):
    """Kinds of therapy session a user can log."""

    EXERCISE = "exercise"
    DIET = "diet"
    OTHER = "other"


class ReminderFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class Trend(str, Enum):
    """Coarse direction of a metric across a split window."""

    STABLE = "stable"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    UNKNOWN = "unknown"


class Reminder(DocumentModel):
    """A daily medication reminder linked to an external notification handle."""

    notification_id: str = Field(description="Opaque handle issued by the notification scheduler")
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    is_active: bool = True

    @property
    def minutes_of_day(self) -> int:
        return self.hour * 60 + self.minute


class AdherenceData(DocumentModel):
    total_doses: int = Field(default=0, ge=0)
    taken_doses: int = Field(default=0, ge=0)
    missed_doses: int = Field(default=0, ge=0)
    last_taken: LocalizedDatetime | None = None
    streak_days: int = Field(default=0, ge=0)

    @property
    def rate(self) -> float | None:
        """Fraction of scheduled doses actually taken, if any were scheduled."""
        if self.total_doses == 0:
            return None
        return self.taken_doses / self.total_doses


class Medication(DocumentModel):
    id: str
    name: str
    usage: str = ""
    dosage_per_intake: int = Field(gt=0)
    times_per_day: int = Field(gt=0)
    reminders: list[Reminder] = Field(default_factory=list)
    created_at: LocalizedDatetime = Field(default_factory=local_now)
    updated_at: LocalizedDatetime = Field(default_factory=local_now)
    is_active: bool = True
    adherence_data: AdherenceData | None = None


class BloodPressureReading(DocumentModel):
    """A single blood-pressure measurement. Readings are never edited."""

    model_config = ConfigDict(frozen=True)

    id: str
    systolic: int = Field(description="Top number in mmHg")
    diastolic: int = Field(description="Bottom number in mmHg")
    pulse: int | None = Field(default=None, description="Heart rate in bpm")
    timestamp: LocalizedDatetime = Field(default_factory=local_now)
    notes: str | None = None


class TherapyReminder(DocumentModel):
    notification_id: str
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    is_active: bool = True
    frequency: ReminderFrequency = ReminderFrequency.DAILY
    custom_days: list[int] | None = Field(
        default=None, description="Weekdays for custom frequency, 0=Sunday"
    )

    @field_validator("custom_days")
    @classmethod
    def validate_custom_days(cls, v: list[int] | None) -> list[int] | None:
        if v is not None and any(day < 0 or day > 6 for day in v):
            raise ValueError("custom days must be between 0 (Sunday) and 6 (Saturday)")
        return v


class TherapySession(DocumentModel):
    id: str
    type: TherapyType
    title: str
    description: str = ""
    duration: int | None = Field(default=None, ge=0, description="Length in minutes")
    timestamp: LocalizedDatetime = Field(default_factory=local_now)
    notes: str | None = None
    reminder: TherapyReminder | None = None


class Units(DocumentModel):
    blood_pressure: Literal["mmHg"] = "mmHg"
    weight: Literal["kg", "lbs"] = "kg"
    temperature: Literal["celsius", "fahrenheit"] = "celsius"


class PrivacySettings(DocumentModel):
    data_sharing: bool = False
    analytics: bool = True


class AppSettings(DocumentModel):
    """Process-wide preferences; exactly one instance lives in the document."""

    notifications_enabled: bool = True
    reminder_sound: str = "default"
    theme: Theme = Theme.AUTO
    units: Units = Field(default_factory=Units)
    privacy_settings: PrivacySettings = Field(default_factory=PrivacySettings)


class DatabaseSchema(DocumentModel):
    """The root document: the single unit of persistence."""

    medications: list[Medication] = Field(default_factory=list)
    blood_pressure_readings: list[BloodPressureReading] = Field(default_factory=list)
    therapy_sessions: list[TherapySession] = Field(default_factory=list)
    settings: AppSettings = Field(default_factory=AppSettings)
    last_updated: LocalizedDatetime = Field(default_factory=local_now)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# Legacy medication format, kept only for one-time migration


class LegacyReminder(DocumentModel):
    notification_id: str
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)


class LegacyMedication(DocumentModel):
    """Medication record as written by the pre-document storage format."""

    id: str
    name: str
    usage: str = ""
    dosage_per_intake: int = Field(gt=0)
    times_per_day: int = Field(gt=0)
    reminders: list[LegacyReminder] = Field(default_factory=list)

    def to_medication(self, now: datetime) -> Medication:
        return Medication(
            id=self.id,
            name=self.name,
            usage=self.usage,
            dosage_per_intake=self.dosage_per_intake,
            times_per_day=self.times_per_day,
            reminders=[
                Reminder(
                    notification_id=rem.notification_id,
                    hour=rem.hour,
                    minute=rem.minute,
                    is_active=True,
                )
                for rem in self.reminders
            ],
            created_at=now,
            updated_at=now,
            is_active=True,
        )

    @classmethod
    def from_medication(cls, medication: Medication) -> "LegacyMedication":
        """Project a medication onto the flat shape the medication list renders."""
        return cls(
            id=medication.id,
            name=medication.name,
            usage=medication.usage,
            dosage_per_intake=medication.dosage_per_intake,
            times_per_day=medication.times_per_day,
            reminders=[
                LegacyReminder(notification_id=rem.notification_id, hour=rem.hour, minute=rem.minute)
                for rem in medication.reminders
            ],
        )


# Derived view models (never persisted)


class NextDose(BaseModel):
    medication: str
    time: str = Field(description="HH:MM of the next reminder")
    minutes_until: int = Field(ge=0, lt=1440)


class BloodPressureAverage(BaseModel):
    systolic: int
    diastolic: int


class MedicationSummary(BaseModel):
    total: int = 0
    active: int = 0
    next_dose: NextDose | None = None
    adherence_7d: float | None = None


class BloodPressureSummary(BaseModel):
    last_reading: BloodPressureReading | None = None
    average_7d: BloodPressureAverage | None = None
    trend: Trend = Trend.UNKNOWN


class TherapySummary(BaseModel):
    today_sessions: int = 0
    last_session: TherapySession | None = None
    weekly_goal: int | None = None


class HealthSummary(BaseModel):
    """Home-screen overview derived from the document."""

    medications: MedicationSummary
    blood_pressure: BloodPressureSummary
    therapy: TherapySummary


class BloodPressureStats(BaseModel):
    """Aggregate view over a list of readings for the blood-pressure screen."""

    average_systolic: int = 0
    average_diastolic: int = 0
    average_pulse: int | None = None
    readings_count: int = 0
    last_reading: BloodPressureReading | None = None
    trend: Trend = Trend.UNKNOWN
