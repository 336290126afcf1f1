"""Enums for alert severity and prediction confidence."""

from enum import Enum


class Severity(Enum):
    """Alert severity levels. Lower value = more urgent."""

    CRITICAL = 1  # Expired document, overdue service
    DANGER = 2
    WARNING = 3
    INFO = 4


class Confidence(Enum):
    """How regular the refuel intervals are."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
