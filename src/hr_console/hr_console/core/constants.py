"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import LeaveType

DEFAULT_SESSION_DAYS = 7
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_HALF_DAY_MINUTES = 240
DEFAULT_UPCOMING_DAYS = 30
MIN_PASSWORD_LENGTH = 6

# Payroll
DEFAULT_EOBI_EMPLOYEE_CONTRIBUTION = "370"
DEFAULT_PF_RATE = "0.05"
DEFAULT_TAX_RATE = "0"
LATE_INS_PER_HALF_DAY = 4

# Yearly entitlements for standard leaves
LEAVE_ENTITLEMENTS = {
    LeaveType.SICK: 8,
    LeaveType.CASUAL: 10,
    LeaveType.ANNUAL: 14,
}

# Uploads
MAX_DOCUMENT_BYTES = 5 * 1024 * 1024
MAX_VEHICLE_DOCUMENT_BYTES = 10 * 1024 * 1024
DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
PDF_OR_IMAGE_MIME_TYPES = IMAGE_MIME_TYPES | {"application/pdf"}

HR_TICKET_CATEGORIES = ("Leave Request", "Salary Issue", "Grievance", "Other")
NETWORK_TICKET_DEPARTMENTS = ("IT Support", "Network Operations", "Infrastructure Team", "Security Team")

# Profile documents, keyed as the console names them
DOCUMENT_TYPES = ("NIC", "experienceLetter", "salarySlip", "academicDocuments", "NDA")
MIN_EDUCATION_YEAR = 1950
MAX_EDUCATION_YEARS_AHEAD = 6
MAX_IBAN_LENGTH = 34
