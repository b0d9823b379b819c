from edusphere.core.models.school import School
from edusphere.core.models.class_model import SchoolClass
from edusphere.core.models.notification import Notification
from edusphere.core.models.fee_record import FeeRecord
from edusphere.core.models.holiday import Holiday
from edusphere.core.models.grade import Grade
from edusphere.core.models.attendance_record import AttendanceRecord
from edusphere.core.models.notice import Notice
from edusphere.core.models.assignment import Assignment
from edusphere.core.models.certificate_request import CertificateRequest

__all__ = [
    "School",
    "SchoolClass",
    "Notification",
    "FeeRecord",
    "Holiday",
    "Grade",
    "AttendanceRecord",
    "Notice",
    "Assignment",
    "CertificateRequest",
]
