from app.models.auth.user import User
from app.models.auth.audit_log import AuditLog
from app.models.auth.password_reset_token import PasswordResetToken
from app.models.organization.branch import Branch
from app.models.organization.department import Department
from app.models.organization.team import Team
from app.models.organization.organization_settings import OrganizationSettings
from app.models.leave.leave_type import LeaveType
from app.models.leave.leave_allocation import LeaveAllocation
from app.models.leave.leave_request import LeaveRequest
from app.models.hr.attendance import Attendance
from app.models.hr.holiday import Holiday
from app.models.assets.asset import Asset
from app.models.assets.asset_assignment import AssetAssignment
from app.models.requests.employee_request import EmployeeRequest
from app.models.notices.notice import Notice
from app.models.notification.notification_rule import NotificationRule
from app.models.notification.email_template import EmailTemplate
from app.models.notification.notification_preference import NotificationPreference
from app.models.communication.email_log import EmailLog
