from __future__ import annotations

from enum import Enum

from .exceptions import StorageError


class Role(str, Enum):
    """Actor role used for permission checks."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"

    def to_db(self) -> str:
        return self.value

    @classmethod
    def from_db(cls, value: str) -> "AttendanceStatus":
        for member in cls:
            if member.value == value:
                return member
        raise StorageError(f"Unknown attendance status in storage: {value!r}")


class HolidayReason(str, Enum):
    """Which rule source decided a day."""

    PUBLIC_HOLIDAY = "public_holiday"
    WEEKLY_HOLIDAY = "weekly_holiday"
    EXCEPTION_OVERRIDE = "exception_override"
    NONE = "none"

    @property
    def label(self) -> str:
        return _HOLIDAY_REASON_LABELS[self]


_HOLIDAY_REASON_LABELS = {
    HolidayReason.PUBLIC_HOLIDAY: "public holiday",
    HolidayReason.WEEKLY_HOLIDAY: "weekly holiday",
    HolidayReason.EXCEPTION_OVERRIDE: "forced holiday",
    HolidayReason.NONE: "working day",
}


class CorrectionStatus(str, Enum):
    """Attendance correction request workflow state.

    Only PENDING may transition; every other state is terminal.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    CONFLICT = "conflict"

    @property
    def is_terminal(self) -> bool:
        return self is not CorrectionStatus.PENDING

    def to_db(self) -> str:
        return self.value

    @classmethod
    def from_db(cls, value: str) -> "CorrectionStatus":
        for member in cls:
            if member.value == value:
                return member
        raise StorageError(f"Unknown correction status in storage: {value!r}")
