import pytest
from fastapi import HTTPException
from app.auth.permissions import PermissionChecker, permissions_for_role
from app.auth.scope import ALL, DEPARTMENT, SELF, TEAM, can_access, resolve_scope
from app.models.auth.user import User
from app.models.shared.enums import UserRole


def make_user(user_id, role, department_id=None, team_id=None):
    return User(id=user_id, role=role, department_id=department_id, team_id=team_id,
                email=f"u{user_id}@example.com", first_name="U", last_name=str(user_id))


class TestPermissionChecker:
    def test_admin_manages_queue_hr_does_not(self):
        assert PermissionChecker(UserRole.ADMIN).can("notification_queue", "manage")
        assert PermissionChecker(UserRole.HR).cannot("notification_queue", "manage")

    def test_unknown_permission_is_denied(self):
        assert PermissionChecker(UserRole.ADMIN).cannot("payroll", "run")

    def test_override_widens_audit_log_access(self):
        checker = PermissionChecker(UserRole.HR, {"audit_log:view": [UserRole.ADMIN, UserRole.HR]})
        assert checker.can("audit_log", "view")
        assert PermissionChecker(UserRole.HR).cannot("audit_log", "view")

    def test_require_raises_forbidden(self):
        with pytest.raises(HTTPException) as exc_info:
            PermissionChecker(UserRole.EMPLOYEE).require("leave_request", "approve")
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Forbidden"

    def test_require_custom_message(self):
        with pytest.raises(HTTPException) as exc_info:
            PermissionChecker(UserRole.TEAM_LEAD).require("leave_request", "approve", "Not authorized to approve/reject")
        assert exc_info.value.detail == "Not authorized to approve/reject"

    def test_employee_permissions_are_self_service(self):
        permissions = permissions_for_role(UserRole.EMPLOYEE)
        assert "leave_request:create" in permissions
        assert "notification_log:view" not in permissions


class TestScope:
    def test_admin_and_hr_see_everything(self):
        assert resolve_scope(make_user(1, UserRole.ADMIN)).kind == ALL
        assert resolve_scope(make_user(2, UserRole.HR)).kind == ALL

    def test_manager_sees_department(self):
        scope = resolve_scope(make_user(1, UserRole.MANAGER, department_id=7))
        assert scope.kind == DEPARTMENT
        assert can_access(scope, make_user(2, UserRole.EMPLOYEE, department_id=7))
        assert not can_access(scope, make_user(3, UserRole.EMPLOYEE, department_id=8))

    def test_team_lead_sees_team(self):
        scope = resolve_scope(make_user(1, UserRole.TEAM_LEAD, team_id=4))
        assert scope.kind == TEAM
        assert can_access(scope, make_user(2, UserRole.EMPLOYEE, team_id=4))
        assert not can_access(scope, make_user(3, UserRole.EMPLOYEE, team_id=5))

    def test_manager_without_department_falls_back_to_self(self):
        scope = resolve_scope(make_user(1, UserRole.MANAGER))
        assert scope.kind == SELF
        assert can_access(scope, make_user(1, UserRole.MANAGER))
        assert not can_access(scope, make_user(2, UserRole.EMPLOYEE))
