from schoolportal.models.attendance import UserAttendance
from schoolportal.models.device_session import DeviceSession
from schoolportal.models.enums import AttendanceStatus, RegistrationStatus, Role
from schoolportal.models.user import User

__all__ = [
    "AttendanceStatus",
    "DeviceSession",
    "RegistrationStatus",
    "Role",
    "User",
    "UserAttendance",
]
