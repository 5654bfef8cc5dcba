# hrm/models/enums.py
import enum


class Role(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class PeriodStatus(str, enum.Enum):
    OPEN = "OPEN"
    LOCKED = "LOCKED"


class Tier(str, enum.Enum):
    BONUS = "BONUS"
    APPRECIATION = "APPRECIATION"
    IMPROVEMENT = "IMPROVEMENT"
    FINE = "FINE"


class ActionType(str, enum.Enum):
    BONUS = "BONUS"
    APPRECIATION = "APPRECIATION"
    SHOW_CAUSE = "SHOW_CAUSE"
    FINE = "FINE"


class FundEntryType(str, enum.Enum):
    FINE = "FINE"
    BONUS = "BONUS"


class FundStatus(str, enum.Enum):
    DUE = "DUE"
    COLLECTED = "COLLECTED"
    PAID = "PAID"


class ComplianceStatus(str, enum.Enum):
    OK = "OK"
    MISSED = "MISSED"


class EmailType(str, enum.Enum):
    MARKSHEET = "MARKSHEET"
    REMINDER = "REMINDER"


class DeliveryStatus(str, enum.Enum):
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationType(str, enum.Enum):
    ADMIN_PENDING_MARKING = "ADMIN_PENDING_MARKING"
    ADMIN_MISSED_MARKING = "ADMIN_MISSED_MARKING"
    MONTH_RESULT_READY = "MONTH_RESULT_READY"
