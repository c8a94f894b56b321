from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    TEAM_LEAD = "TEAM_LEAD"
    EMPLOYEE = "EMPLOYEE"


# Lower number = more privileged
ROLE_HIERARCHY = {
    UserRole.ADMIN: 0,
    UserRole.HR: 1,
    UserRole.MANAGER: 2,
    UserRole.TEAM_LEAD: 3,
    UserRole.EMPLOYEE: 4,
}


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class RequestType(str, Enum):
    ASSET = "ASSET"
    DOCUMENT = "DOCUMENT"
    GENERAL = "GENERAL"


class NoticeType(str, Enum):
    GENERAL = "GENERAL"
    IMPORTANT = "IMPORTANT"
    URGENT = "URGENT"


class NotificationType(str, Enum):
    LEAVE_REQUEST_SUBMITTED = "LEAVE_REQUEST_SUBMITTED"
    LEAVE_REQUEST_APPROVED = "LEAVE_REQUEST_APPROVED"
    LEAVE_REQUEST_REJECTED = "LEAVE_REQUEST_REJECTED"
    LEAVE_REQUEST_CANCELLED = "LEAVE_REQUEST_CANCELLED"
    LEAVE_PENDING_APPROVAL = "LEAVE_PENDING_APPROVAL"
    REQUEST_SUBMITTED = "REQUEST_SUBMITTED"
    REQUEST_APPROVED = "REQUEST_APPROVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    ANNOUNCEMENT_PUBLISHED = "ANNOUNCEMENT_PUBLISHED"
    BIRTHDAY_REMINDER = "BIRTHDAY_REMINDER"
    WORK_ANNIVERSARY = "WORK_ANNIVERSARY"
    ASSET_ASSIGNED = "ASSET_ASSIGNED"
    ASSET_RETURNED = "ASSET_RETURNED"
    WELCOME_EMAIL = "WELCOME_EMAIL"
    PASSWORD_RESET = "PASSWORD_RESET"
    APPRECIATION = "APPRECIATION"
    CUSTOM = "CUSTOM"


class EmailStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SENT = "SENT"
    FAILED = "FAILED"


class EmailPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    LOGIN = "LOGIN"
    PASSWORD_RESET = "PASSWORD_RESET"
    ASSIGN = "ASSIGN"
    RETURN = "RETURN"


class HolidayType(str, Enum):
    PUBLIC = "PUBLIC"
    OPTIONAL = "OPTIONAL"
    RESTRICTED = "RESTRICTED"


class AssetCategory(str, Enum):
    LAPTOP = "LAPTOP"
    DESKTOP = "DESKTOP"
    MOBILE = "MOBILE"
    TABLET = "TABLET"
    MONITOR = "MONITOR"
    KEYBOARD = "KEYBOARD"
    MOUSE = "MOUSE"
    HEADSET = "HEADSET"
    FURNITURE = "FURNITURE"
    VEHICLE = "VEHICLE"
    ID_CARD = "ID_CARD"
    ACCESS_CARD = "ACCESS_CARD"
    SOFTWARE_LICENSE = "SOFTWARE_LICENSE"
    OTHER = "OTHER"


class AssetStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"
    MAINTENANCE = "MAINTENANCE"
    RETIRED = "RETIRED"
    LOST = "LOST"
    DAMAGED = "DAMAGED"


class AssetCondition(str, Enum):
    NEW = "NEW"
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
