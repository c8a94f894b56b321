from typing import Any, Dict
from app.models.shared.enums import NotificationType

NT = NotificationType

DEFAULT_TEMPLATES: Dict[NotificationType, Dict[str, Any]] = {
    NT.LEAVE_REQUEST_SUBMITTED: {
        "name": "Leave Request Submitted",
        "subject": "Leave Request Submitted - {{leaveType}}",
        "html_body": """
      <h2 class="title">Leave Request Submitted</h2>
      <p class="subtitle">Your leave request has been submitted and is pending approval.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Leave Type</span><span class="info-value">{{leaveType}}</span></div>
        <div class="info-row"><span class="info-label">Duration</span><span class="info-value">{{startDate}} - {{endDate}} ({{days}} day(s))</span></div>
        <div class="info-row"><span class="info-label">Reason</span><span class="info-value">{{reason}}</span></div>
        <div style="margin-top: 16px;"><span class="badge badge-pending">Pending Approval</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/leaves" class="button">View My Leaves</a>
""",
        "variables": {
            "leaveType": "Type of leave",
            "startDate": "Start date",
            "endDate": "End date",
            "days": "Number of days",
            "reason": "Reason for leave",
        },
    },
    NT.LEAVE_REQUEST_APPROVED: {
        "name": "Leave Request Approved",
        "subject": "Leave Request Approved - {{leaveType}}",
        "html_body": """
      <h2 class="title">Leave Request Approved</h2>
      <p class="subtitle">Your leave request has been approved by {{approverName}}.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Leave Type</span><span class="info-value">{{leaveType}}</span></div>
        <div class="info-row"><span class="info-label">Duration</span><span class="info-value">{{startDate}} - {{endDate}} ({{days}} day(s))</span></div>
        <div style="margin-top: 16px;"><span class="badge badge-approved">Approved</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/leaves" class="button">View My Leaves</a>
""",
        "variables": {
            "leaveType": "Type of leave",
            "startDate": "Start date",
            "endDate": "End date",
            "days": "Number of days",
            "approverName": "Name of approver",
        },
    },
    NT.LEAVE_REQUEST_REJECTED: {
        "name": "Leave Request Rejected",
        "subject": "Leave Request Rejected - {{leaveType}}",
        "html_body": """
      <h2 class="title">Leave Request Rejected</h2>
      <p class="subtitle">Your leave request has been rejected by {{approverName}}.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Leave Type</span><span class="info-value">{{leaveType}}</span></div>
        <div class="info-row"><span class="info-label">Duration</span><span class="info-value">{{startDate}} - {{endDate}} ({{days}} day(s))</span></div>
        <div class="info-row"><span class="info-label">Reason for Rejection</span><span class="info-value">{{rejectionReason}}</span></div>
        <div style="margin-top: 16px;"><span class="badge badge-rejected">Rejected</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/leaves" class="button">View My Leaves</a>
""",
        "variables": {
            "leaveType": "Type of leave",
            "startDate": "Start date",
            "endDate": "End date",
            "days": "Number of days",
            "approverName": "Name of approver",
            "rejectionReason": "Reason for rejection",
        },
    },
    NT.LEAVE_REQUEST_CANCELLED: {
        "name": "Leave Request Cancelled",
        "subject": "Leave Request Cancelled - {{leaveType}}",
        "html_body": """
      <h2 class="title">Leave Request Cancelled</h2>
      <p class="subtitle">A leave request has been cancelled.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Employee</span><span class="info-value">{{employeeName}}</span></div>
        <div class="info-row"><span class="info-label">Leave Type</span><span class="info-value">{{leaveType}}</span></div>
        <div class="info-row"><span class="info-label">Duration</span><span class="info-value">{{startDate}} - {{endDate}}</span></div>
      </div>
""",
        "variables": {
            "employeeName": "Employee name",
            "leaveType": "Type of leave",
            "startDate": "Start date",
            "endDate": "End date",
        },
    },
    NT.LEAVE_PENDING_APPROVAL: {
        "name": "Leave Pending Approval",
        "subject": "New Leave Request from {{employeeName}}",
        "html_body": """
      <h2 class="title">New Leave Request</h2>
      <p class="subtitle">{{employeeName}} has submitted a leave request requiring your approval.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Employee</span><span class="info-value">{{employeeName}}</span></div>
        <div class="info-row"><span class="info-label">Leave Type</span><span class="info-value">{{leaveType}}</span></div>
        <div class="info-row"><span class="info-label">Duration</span><span class="info-value">{{startDate}} - {{endDate}} ({{days}} day(s))</span></div>
        <div class="info-row"><span class="info-label">Reason</span><span class="info-value">{{reason}}</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/leaves/requests" class="button">Review Requests</a>
""",
        "variables": {
            "employeeName": "Employee name",
            "leaveType": "Type of leave",
            "startDate": "Start date",
            "endDate": "End date",
            "days": "Number of days",
            "reason": "Reason for leave",
        },
    },
    NT.REQUEST_SUBMITTED: {
        "name": "Request Submitted",
        "subject": "Request Submitted - {{subject}}",
        "html_body": """
      <h2 class="title">Request Submitted</h2>
      <p class="subtitle">Your {{requestType}} request has been submitted.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Type</span><span class="info-value">{{requestType}}</span></div>
        <div class="info-row"><span class="info-label">Subject</span><span class="info-value">{{subject}}</span></div>
        <div style="margin-top: 16px;"><span class="badge badge-pending">Pending</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/requests" class="button">View My Requests</a>
""",
        "variables": {
            "requestType": "Type of request",
            "subject": "Request subject",
        },
    },
    NT.REQUEST_APPROVED: {
        "name": "Request Approved",
        "subject": "Request Approved - {{subject}}",
        "html_body": """
      <h2 class="title">Request Approved</h2>
      <p class="subtitle">Your {{requestType}} request has been approved.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Subject</span><span class="info-value">{{subject}}</span></div>
        <div class="info-row"><span class="info-label">Handled by</span><span class="info-value">{{approverName}}</span></div>
        <div class="info-row"><span class="info-label">Response</span><span class="info-value">{{response}}</span></div>
        <div style="margin-top: 16px;"><span class="badge badge-approved">Approved</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/requests" class="button">View My Requests</a>
""",
        "variables": {
            "requestType": "Type of request",
            "subject": "Request subject",
            "approverName": "Name of approver",
            "response": "Approver response",
        },
    },
    NT.REQUEST_REJECTED: {
        "name": "Request Rejected",
        "subject": "Request Rejected - {{subject}}",
        "html_body": """
      <h2 class="title">Request Rejected</h2>
      <p class="subtitle">Your {{requestType}} request has been rejected.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Subject</span><span class="info-value">{{subject}}</span></div>
        <div class="info-row"><span class="info-label">Handled by</span><span class="info-value">{{approverName}}</span></div>
        <div class="info-row"><span class="info-label">Response</span><span class="info-value">{{response}}</span></div>
        <div style="margin-top: 16px;"><span class="badge badge-rejected">Rejected</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/requests" class="button">View My Requests</a>
""",
        "variables": {
            "requestType": "Type of request",
            "subject": "Request subject",
            "approverName": "Name of approver",
            "response": "Rejection reason",
        },
    },
    NT.ANNOUNCEMENT_PUBLISHED: {
        "name": "Announcement Published",
        "subject": "{{typeLabel}}: {{title}}",
        "html_body": """
      <h2 class="title">{{typeLabel}} Announcement</h2>
      <p class="subtitle">A new announcement has been posted.</p>
      <div class="content">
        <h3 style="font-size: 16px; margin-bottom: 12px;">{{title}}</h3>
        <p style="color: #666; margin-bottom: 16px;">{{preview}}</p>
        <p style="font-size: 12px; color: #999;">Posted by {{publishedBy}}</p>
      </div>
      <a href="{{appUrl}}/dashboard/announcements" class="button">Read Full Announcement</a>
""",
        "variables": {
            "typeLabel": "Announcement type label",
            "title": "Announcement title",
            "preview": "Content preview",
            "publishedBy": "Publisher name",
        },
    },
    NT.BIRTHDAY_REMINDER: {
        "name": "Birthday Reminder",
        "subject": "Birthday Today: {{birthdayPerson}}",
        "html_body": """
      <h2 class="title">Birthday Reminder</h2>
      <p class="subtitle">Don't forget to wish your colleague!</p>
      <div class="content" style="text-align: center; padding: 20px 0;">
        <p style="font-size: 18px; margin-bottom: 8px;"><strong>{{birthdayPerson}}</strong></p>
        <p style="color: #666;">{{department}}</p>
        <p style="margin-top: 16px;">is celebrating their birthday today!</p>
      </div>
      <a href="{{appUrl}}/dashboard" class="button">View Dashboard</a>
""",
        "variables": {
            "birthdayPerson": "Name of birthday person",
            "department": "Department name",
        },
    },
    NT.WORK_ANNIVERSARY: {
        "name": "Work Anniversary",
        "subject": "Work Anniversary: {{employeeName}} - {{years}} Year(s)",
        "html_body": """
      <h2 class="title">Work Anniversary</h2>
      <p class="subtitle">Congratulations on your work anniversary!</p>
      <div class="content" style="text-align: center; padding: 20px 0;">
        <p style="font-size: 18px; margin-bottom: 8px;"><strong>{{employeeName}}</strong></p>
        <p style="color: #666;">{{department}}</p>
        <p style="margin-top: 16px;">is celebrating <strong>{{years}} year(s)</strong> with us!</p>
      </div>
""",
        "variables": {
            "employeeName": "Employee name",
            "department": "Department name",
            "years": "Number of years",
        },
    },
    NT.ASSET_ASSIGNED: {
        "name": "Asset Assigned",
        "subject": "Asset Assigned - {{assetName}}",
        "html_body": """
      <h2 class="title">Asset Assigned</h2>
      <p class="subtitle">An asset has been assigned to you.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Asset</span><span class="info-value">{{assetName}}</span></div>
        <div class="info-row"><span class="info-label">Asset Tag</span><span class="info-value">{{assetTag}}</span></div>
        <div class="info-row"><span class="info-label">Category</span><span class="info-value">{{category}}</span></div>
        <div class="info-row"><span class="info-label">Assigned By</span><span class="info-value">{{assignedBy}}</span></div>
      </div>
      <a href="{{appUrl}}/dashboard/assets" class="button">View My Assets</a>
""",
        "variables": {
            "assetName": "Asset name",
            "assetTag": "Asset tag",
            "category": "Asset category",
            "assignedBy": "Assigned by",
        },
    },
    NT.ASSET_RETURNED: {
        "name": "Asset Returned",
        "subject": "Asset Returned - {{assetName}}",
        "html_body": """
      <h2 class="title">Asset Returned</h2>
      <p class="subtitle">An asset has been returned.</p>
      <div class="content">
        <div class="info-row"><span class="info-label">Asset</span><span class="info-value">{{assetName}}</span></div>
        <div class="info-row"><span class="info-label">Asset Tag</span><span class="info-value">{{assetTag}}</span></div>
        <div class="info-row"><span class="info-label">Returned By</span><span class="info-value">{{returnedBy}}</span></div>
        <div class="info-row"><span class="info-label">Condition</span><span class="info-value">{{condition}}</span></div>
      </div>
""",
        "variables": {
            "assetName": "Asset name",
            "assetTag": "Asset tag",
            "returnedBy": "Returned by",
            "condition": "Asset condition",
        },
    },
    NT.WELCOME_EMAIL: {
        "name": "Welcome Email",
        "subject": "Welcome to {{appName}}!",
        "html_body": """
      <h2 class="title">Welcome to {{appName}}!</h2>
      <p class="subtitle">Your account has been created.</p>
      <div class="content">
        <p>Hello {{employeeName}},</p>
        <p>Welcome to the team! Your account has been set up and you can now access the HR portal.</p>
        <div class="info-row"><span class="info-label">Email</span><span class="info-value">{{email}}</span></div>
        <div class="info-row"><span class="info-label">Employee ID</span><span class="info-value">{{employeeId}}</span></div>
      </div>
      <a href="{{appUrl}}/login" class="button">Login to Portal</a>
""",
        "variables": {
            "employeeName": "Employee name",
            "email": "Employee email",
            "employeeId": "Employee ID",
        },
    },
    NT.PASSWORD_RESET: {
        "name": "Password Reset",
        "subject": "Password Reset Request - {{appName}}",
        "html_body": """
      <h2 class="title">Password Reset Request</h2>
      <p class="subtitle">You requested to reset your password.</p>
      <div class="content">
        <p>Click the button below to reset your password. This link will expire in 1 hour.</p>
        <p style="font-size: 12px; color: #999;">If you didn't request this, please ignore this email.</p>
      </div>
      <a href="{{resetLink}}" class="button">Reset Password</a>
""",
        "variables": {
            "resetLink": "Password reset link",
        },
    },
    NT.APPRECIATION: {
        "name": "Appreciation",
        "subject": "You received an appreciation from {{senderName}}!",
        "html_body": """
      <h2 class="title">You've Been Appreciated!</h2>
      <p class="subtitle">{{senderName}} has sent you an appreciation.</p>
      <div class="content" style="text-align: center; padding: 20px 0;">
        <p style="font-size: 16px; font-style: italic;">"{{message}}"</p>
        <p style="margin-top: 16px; color: #666;">- {{senderName}}</p>
      </div>
      <a href="{{appUrl}}/dashboard" class="button">View Dashboard</a>
""",
        "variables": {
            "senderName": "Sender name",
            "message": "Appreciation message",
        },
    },
    NT.CUSTOM: {
        "name": "Custom Email",
        "subject": "{{subject}}",
        "html_body": """
      <h2 class="title">{{title}}</h2>
      <div class="content">
        {{content}}
      </div>
""",
        "variables": {
            "subject": "Email subject",
            "title": "Email title",
            "content": "Email content",
        },
    },
}


def _recipients(**flags: Any) -> Dict[str, Any]:
    config = {
        "notify_requester": False,
        "notify_manager": False,
        "notify_team_lead": False,
        "notify_department_head": False,
        "notify_hr": False,
        "notify_admin": False,
        "custom_recipients": [],
        "role_recipients": [],
    }
    config.update(flags)
    return config


DEFAULT_RECIPIENT_CONFIGS: Dict[NotificationType, Dict[str, Any]] = {
    NT.LEAVE_REQUEST_SUBMITTED: _recipients(notify_requester=True),
    NT.LEAVE_REQUEST_APPROVED: _recipients(notify_requester=True),
    NT.LEAVE_REQUEST_REJECTED: _recipients(notify_requester=True),
    NT.LEAVE_REQUEST_CANCELLED: _recipients(notify_manager=True, notify_hr=True),
    NT.LEAVE_PENDING_APPROVAL: _recipients(notify_manager=True, notify_team_lead=True, notify_hr=True),
    NT.REQUEST_SUBMITTED: _recipients(notify_requester=True, notify_hr=True),
    NT.REQUEST_APPROVED: _recipients(notify_requester=True),
    NT.REQUEST_REJECTED: _recipients(notify_requester=True),
    NT.ANNOUNCEMENT_PUBLISHED: _recipients(role_recipients=["ADMIN", "HR", "MANAGER", "TEAM_LEAD", "EMPLOYEE"]),
    NT.BIRTHDAY_REMINDER: _recipients(notify_requester=True),
    NT.WORK_ANNIVERSARY: _recipients(notify_requester=True),
    NT.ASSET_ASSIGNED: _recipients(notify_requester=True),
    NT.ASSET_RETURNED: _recipients(notify_hr=True, notify_admin=True),
    NT.WELCOME_EMAIL: _recipients(notify_requester=True),
    NT.PASSWORD_RESET: _recipients(notify_requester=True),
    NT.APPRECIATION: _recipients(notify_requester=True),
    NT.CUSTOM: _recipients(notify_requester=True),
}
