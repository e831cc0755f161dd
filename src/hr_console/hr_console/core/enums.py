from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    SUPER_ADMIN = "SuperAdmin"
    HR = "HR"
    MANAGER = "manager"
    NORMAL = "normal"


ADMIN_ROLES = frozenset({Role.SUPER_ADMIN, Role.HR})
APPROVER_ROLES = frozenset({Role.SUPER_ADMIN, Role.HR, Role.MANAGER})


class JobStatus(str, Enum):
    PROBATION = "Probation"
    PERMANENT = "Permanent"


class AttendanceType(str, Enum):
    """Time log types as stored in the database."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE_IN = "Late IN"
    HALF_DAY = "Half Day"
    EARLY_OUT = "Early Out"
    LATE_IN_EARLY_OUT = "Late IN and Early Out"
    CASUAL_LEAVE = "Casual Leave"
    SICK_LEAVE = "Sick Leave"
    ANNUAL_LEAVE = "Annual Leave"
    HAJJ_LEAVE = "Hajj Leave"
    MATERNITY_LEAVE = "Maternity Leave"
    PATERNITY_LEAVE = "Paternity Leave"
    BEREAVEMENT_LEAVE = "Bereavement Leave"
    ABSENCE_WITHOUT_PAY = "Absence Without Pay"
    UNAUTHORIZED_LEAVE = "Unauthorized Leave"
    PUBLIC_HOLIDAY = "Public Holiday"


WORKED_TYPES = frozenset(
    {
        AttendanceType.PRESENT,
        AttendanceType.LATE_IN,
        AttendanceType.EARLY_OUT,
        AttendanceType.LATE_IN_EARLY_OUT,
    }
)
LATE_TYPES = frozenset({AttendanceType.LATE_IN, AttendanceType.LATE_IN_EARLY_OUT})
UNPAID_TYPES = frozenset({AttendanceType.ABSENCE_WITHOUT_PAY, AttendanceType.UNAUTHORIZED_LEAVE})


class LeaveType(str, Enum):
    ANNUAL = "Annual Leave"
    CASUAL = "Casual Leave"
    SICK = "Sick Leave"
    HAJJ = "Hajj Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"
    BEREAVEMENT = "Bereavement Leave"
    WITHOUT_PAY = "Absence Without Pay"

    @property
    def attendance_type(self) -> AttendanceType:
        return AttendanceType(self.value)


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class TicketKind(str, Enum):
    HR = "HR"
    NETWORK = "NETWORK"
    ADMIN = "ADMIN"


class TicketStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"
    REJECTED = "Rejected"


class AttendanceTicketStatus(str, Enum):
    OPEN = "Open"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class PayrollStatus(str, Enum):
    DRAFT = "Draft"
    PROCESSED = "Processed"
    PAID = "Paid"


class ActivityAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    STATUS_CHANGE = "STATUS_CHANGE"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PAYROLL_GENERATE = "PAYROLL_GENERATE"
    PAYROLL_PROCESS = "PAYROLL_PROCESS"
    PAYROLL_UPDATE = "PAYROLL_UPDATE"
    ATTENDANCE_MARK = "ATTENDANCE_MARK"
    ATTENDANCE_UPDATE = "ATTENDANCE_UPDATE"
    ATTENDANCE_DELETE = "ATTENDANCE_DELETE"
    LEAVE_APPLY = "LEAVE_APPLY"
    LEAVE_APPROVE = "LEAVE_APPROVE"
    LEAVE_REJECT = "LEAVE_REJECT"
    TICKET_CREATE = "TICKET_CREATE"
    TICKET_UPDATE = "TICKET_UPDATE"
    VEHICLE_CREATE = "VEHICLE_CREATE"
    VEHICLE_UPDATE = "VEHICLE_UPDATE"
    OTHER = "OTHER"


class ActivityModule(str, Enum):
    USER = "USER"
    PAYROLL = "PAYROLL"
    ATTENDANCE = "ATTENDANCE"
    LEAVE = "LEAVE"
    TICKET = "TICKET"
    VEHICLE = "VEHICLE"
    AUTH = "AUTH"
    OTHER = "OTHER"
