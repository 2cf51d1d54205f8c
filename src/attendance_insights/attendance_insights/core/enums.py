from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for route-level authorization."""

    ADMIN = "admin"
    LEADER = "leader"
    MEMBER = "member"


class UserStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class DayGroup(str, Enum):
    """Weekday a member is scheduled to attend. ``adminDay`` is reserved for admins."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    ADMIN_DAY = "adminDay"


WORKDAY_GROUPS = (
    DayGroup.MONDAY,
    DayGroup.TUESDAY,
    DayGroup.WEDNESDAY,
    DayGroup.THURSDAY,
    DayGroup.FRIDAY,
)


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    SYSTEM_ABSENT = "system-absent"

    @property
    def is_absence(self) -> bool:
        return self is not AttendanceStatus.PRESENT


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class DayPattern(str, Enum):
    FREQUENTLY_PRESENT = "frequently_present"
    FREQUENTLY_ABSENT = "frequently_absent"


class StreakType(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"


class RiskFactor(str, Enum):
    CONSECUTIVE_ABSENCES = "consecutive_absences"
    LOW_ATTENDANCE_RATE = "low_attendance_rate"
    HIGH_VOLATILITY = "high_volatility"
    INSUFFICIENT_DATA = "insufficient_data"


class InterventionAction(str, Enum):
    DIRECT_CONTACT = "direct_contact"
    PERFORMANCE_REVIEW = "performance_review"
    ATTENDANCE_MONITORING = "attendance_monitoring"
    FORMAL_WARNING = "formal_warning"


class InterventionPriority(str, Enum):
    IMMEDIATE = "immediate"
    SCHEDULED = "scheduled"
