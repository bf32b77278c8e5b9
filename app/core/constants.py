"""
Application-wide constants
"""

SERVICE_NAME = "fieldops-backend"

# SystemConfiguration keys
CONFIG_KEY_OFFICE_LOCATION = "office_location"
DEFAULT_OFFICE_LOCATION_NAME = "Main Office"

# Notification types
NOTIFICATION_ATTENDANCE_APPROVAL_REQUEST = "ATTENDANCE_APPROVAL_REQUEST"
NOTIFICATION_ATTENDANCE_CLOCK_OUT = "ATTENDANCE_CLOCK_OUT"

# Employee code prefixes by role
EMPLOYEE_CODE_PREFIXES = {
    "FIELD_ENGINEER": "FE",
    "IN_OFFICE": "IO",
    "ADMIN": "ADM",
}

LOCKED_REASON_MAX_ATTEMPTS = "Maximum check-in attempts exceeded"
