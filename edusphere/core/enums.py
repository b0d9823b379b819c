from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    STUDENT = "student"


class NotificationCategory(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    ASSIGNMENT = "assignment"
    GRADE = "grade"
    ATTENDANCE = "attendance"
    NOTICE = "notice"


class FeeStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    overdue = "overdue"


class HolidayType(str, Enum):
    NATIONAL = "national"
    RELIGIOUS = "religious"
    SCHOOL = "school"
    EMERGENCY = "emergency"


HOLIDAY_TYPE_LABELS = {
    HolidayType.NATIONAL: "National Holiday",
    HolidayType.RELIGIOUS: "Religious Holiday",
    HolidayType.SCHOOL: "School Holiday",
    HolidayType.EMERGENCY: "Emergency Holiday",
}


class AttendanceStatus(str, Enum):
    present = "present"
    absent = "absent"
    late = "late"


class NoticePriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class CertificateType(str, Enum):
    BONAFIDE = "bonafide"
    CHARACTER = "character"
    TRANSFER = "transfer"
    CONDUCT = "conduct"
    STUDY = "study"
    MIGRATION = "migration"


class CertificateStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    generated = "generated"
