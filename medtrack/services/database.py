"""
Local health-data store.

The whole health record lives in one JSON document under a fixed storage
key. It is loaded once into memory, and every mutation rewrites the entire
document before the call returns.

Design principles:
- Never brick the app: unreadable or corrupt storage degrades to the default
  document, logged but never raised to the caller
- Explicit dependencies: storage, clock and configuration are injected so
  each test can build an isolated instance
- Single writer: callers are expected to await each mutation before issuing
  the next one; concurrent unawaited writes may lose updates
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from medtrack.config import AppConfig, SummaryConfig, get_config
from medtrack.domain.models import (
    AppSettings,
    BloodPressureReading,
    BloodPressureStats,
    DatabaseSchema,
    HealthSummary,
    LegacyMedication,
    Medication,
    TherapySession,
    local_now,
)
from medtrack.services.scheduler import ReminderService
from medtrack.services.storage import KeyValueStorage, StorageError, build_storage
from medtrack.services.summary import compute_blood_pressure_stats, compute_health_summary

logger = structlog.get_logger(__name__)

DATABASE_KEY = "health_database"
LEGACY_MEDICATIONS_KEY = "medications"

_legacy_medications = TypeAdapter(list[LegacyMedication])


class HealthDatabase:
    """
    CRUD over medications, blood-pressure readings, therapy sessions and settings.

    Medications are appended; readings and sessions are prepended so index 0
    is always the most recently inserted record. Getters hand out deep copies,
    so changes only land through the mutating methods.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        database_key: str = DATABASE_KEY,
        legacy_medications_key: str = LEGACY_MEDICATIONS_KEY,
        summary_config: SummaryConfig | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.storage = storage
        self.database_key = database_key
        self.legacy_medications_key = legacy_medications_key
        self.summary_config = summary_config or SummaryConfig()
        self.clock = clock
        self.logger = logger.bind(component="health_database")

        self._document: DatabaseSchema | None = None
        # Set when the in-memory document holds changes the last write failed to persist
        self.storage_stale: bool = False

    @classmethod
    def from_config(cls, config: AppConfig | None = None) -> "HealthDatabase":
        config = config or get_config()
        return cls(
            storage=build_storage(config.storage),
            database_key=config.storage.database_key,
            legacy_medications_key=config.storage.legacy_medications_key,
            summary_config=config.summary,
        )

    def _default_document(self) -> DatabaseSchema:
        return DatabaseSchema(last_updated=self.clock())

    async def initialize(self) -> None:
        """Load the document, creating and persisting the default on first run.

        Only the first call does I/O. A storage or parse failure leaves the
        store holding an unsaved default document, so collections may read
        back empty after a corrupt load.
        """
        if self._document is not None:
            return

        try:
            stored = await self.storage.get_item(self.database_key)
            if stored:
                self._document = DatabaseSchema.model_validate_json(stored)
                self.logger.info(
                    "database_loaded",
                    medications=len(self._document.medications),
                    blood_pressure_readings=len(self._document.blood_pressure_readings),
                    therapy_sessions=len(self._document.therapy_sessions),
                )
            else:
                self._document = self._default_document()
                await self.save()
                self.logger.info("database_created", key=self.database_key)
        except (StorageError, ValidationError, ValueError) as e:
            self.logger.error("database_load_failed", key=self.database_key, error=str(e))
            self._document = self._default_document()

    async def _get_document(self) -> DatabaseSchema:
        if self._document is None:
            await self.initialize()
        assert self._document is not None
        return self._document

    async def save(self) -> None:
        """Stamp ``last_updated`` and write the whole document.

        A failed write is logged and flags ``storage_stale``; the in-memory
        document keeps the change and the next successful save persists it.
        """
        if self._document is None:
            return

        self._document.last_updated = self.clock()
        try:
            await self.storage.set_item(self.database_key, self._document.to_json())
        except StorageError as e:
            self.storage_stale = True
            self.logger.error("database_save_failed", key=self.database_key, error=str(e))
            return

        if self.storage_stale:
            self.logger.info("database_storage_resynced", key=self.database_key)
        self.storage_stale = False

    @property
    def last_updated(self) -> datetime | None:
        return self._document.last_updated if self._document else None

    # Medications

    async def get_medications(self) -> list[Medication]:
        document = await self._get_document()
        return [med.model_copy(deep=True) for med in document.medications]

    async def add_medication(self, medication: Medication) -> None:
        document = await self._get_document()
        document.medications.append(medication.model_copy(deep=True))
        await self.save()

    async def update_medication(self, medication_id: str, updates: dict[str, Any]) -> None:
        """Merge ``updates`` into the matching medication. Unknown ids are ignored."""
        document = await self._get_document()
        for index, medication in enumerate(document.medications):
            if medication.id == medication_id:
                merged = {**medication.model_dump(), **updates, "updated_at": self.clock()}
                document.medications[index] = Medication.model_validate(merged)
                await self.save()
                return

    async def delete_medication(
        self, medication_id: str, reminders: ReminderService | None = None
    ) -> None:
        """Remove a medication, releasing its reminder handles first when possible."""
        document = await self._get_document()
        if reminders is not None:
            for medication in document.medications:
                if medication.id == medication_id:
                    await reminders.cancel_many(
                        [rem.notification_id for rem in medication.reminders]
                    )
        document.medications = [med for med in document.medications if med.id != medication_id]
        await self.save()

    # Blood pressure

    async def get_blood_pressure_readings(self) -> list[BloodPressureReading]:
        document = await self._get_document()
        # Readings are frozen, a shallow list copy is enough
        return list(document.blood_pressure_readings)

    async def add_blood_pressure_reading(self, reading: BloodPressureReading) -> None:
        document = await self._get_document()
        document.blood_pressure_readings.insert(0, reading)
        await self.save()

    async def delete_blood_pressure_reading(self, reading_id: str) -> None:
        document = await self._get_document()
        document.blood_pressure_readings = [
            bp for bp in document.blood_pressure_readings if bp.id != reading_id
        ]
        await self.save()

    async def get_blood_pressure_stats(self) -> BloodPressureStats:
        readings = await self.get_blood_pressure_readings()
        return compute_blood_pressure_stats(readings, self.summary_config)

    # Therapy sessions

    async def get_therapy_sessions(self) -> list[TherapySession]:
        document = await self._get_document()
        return [session.model_copy(deep=True) for session in document.therapy_sessions]

    async def add_therapy_session(self, session: TherapySession) -> None:
        document = await self._get_document()
        document.therapy_sessions.insert(0, session.model_copy(deep=True))
        await self.save()

    async def delete_therapy_session(self, session_id: str) -> None:
        document = await self._get_document()
        document.therapy_sessions = [s for s in document.therapy_sessions if s.id != session_id]
        await self.save()

    # Settings

    async def get_settings(self) -> AppSettings:
        document = await self._get_document()
        return document.settings.model_copy(deep=True)

    async def update_settings(self, updates: dict[str, Any]) -> None:
        """Shallow-merge top-level settings fields, like the app always has."""
        document = await self._get_document()
        merged = {**document.settings.model_dump(), **updates}
        document.settings = AppSettings.model_validate(merged)
        await self.save()

    # Summary

    async def get_health_summary(self) -> HealthSummary:
        document = await self._get_document()
        return compute_health_summary(document, self.clock(), self.summary_config)

    # Migration

    async def migrate_from_old_storage(self) -> None:
        """Import the pre-document medication list once, then drop its key.

        Safe to call on every start: once the legacy key is gone this is a
        no-op. Legacy records whose id is already in the document are skipped.
        Any failure is logged and leaves both the legacy data and the document
        untouched.
        """
        document = await self._get_document()
        try:
            stored = await self.storage.get_item(self.legacy_medications_key)
            if not stored:
                return

            now = self.clock()
            existing_ids = {med.id for med in document.medications}
            migrated = [
                legacy.to_medication(now)
                for legacy in _legacy_medications.validate_json(stored)
                if legacy.id not in existing_ids
            ]

            candidate = document.model_copy(
                update={"medications": [*document.medications, *migrated], "last_updated": now}
            )
            await self.storage.set_item(self.database_key, candidate.to_json())
            self._document = candidate
            self.storage_stale = False

            await self.storage.remove_item(self.legacy_medications_key)
            self.logger.info("legacy_migration_completed", medications=len(migrated))
        except (StorageError, ValidationError, ValueError) as e:
            self.logger.error("legacy_migration_failed", error=str(e))

    @asynccontextmanager
    async def session(self) -> AsyncIterator["HealthDatabase"]:
        """
        Async context manager for the app's startup sequence.

        Initializes the store and runs the legacy migration before yielding.
        """
        await self.initialize()
        await self.migrate_from_old_storage()
        try:
            yield self
        finally:
            if self.storage_stale:
                self.logger.warning("database_closed_with_unsaved_changes", key=self.database_key)
