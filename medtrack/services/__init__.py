"""
Core services for the application.

This package contains the document store, the summary calculations and the
storage and notification seams the store is built on.
"""

from .database import HealthDatabase
from .result import Result
from .scheduler import (
    InMemoryNotificationScheduler,
    NotificationScheduler,
    ReminderService,
    default_times_for,
)
from .storage import InMemoryStorage, JsonFileStorage, KeyValueStorage, StorageError
from .summary import compute_blood_pressure_stats, compute_health_summary

__all__ = [
    "HealthDatabase",
    "Result",
    "NotificationScheduler",
    "InMemoryNotificationScheduler",
    "ReminderService",
    "default_times_for",
    "KeyValueStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
    "compute_health_summary",
    "compute_blood_pressure_stats",
]
