# app/auth/permissions.py
# Single role -> capability table consulted by every endpoint

from typing import Dict, FrozenSet, Iterable, List, Optional
from fastapi import HTTPException, status
import logging
from app.models.shared.enums import UserRole

logger = logging.getLogger(__name__)

ALL_ROLES = frozenset(UserRole)
ADMIN_ONLY = frozenset({UserRole.ADMIN})
ADMIN_HR = frozenset({UserRole.ADMIN, UserRole.HR})

# "resource:action" -> roles allowed
CAPABILITIES: Dict[str, FrozenSet[UserRole]] = {
    # Users
    "user:view": ALL_ROLES,
    "user:create": ADMIN_HR,
    "user:edit": ADMIN_HR,
    # Organization structure
    "branch:view": ALL_ROLES,
    "branch:create": ADMIN_HR,
    "branch:edit": ADMIN_HR,
    "branch:delete": ADMIN_ONLY,
    "department:view": ALL_ROLES,
    "department:create": ADMIN_HR,
    "department:edit": ADMIN_HR,
    "department:delete": ADMIN_ONLY,
    "team:view": ALL_ROLES,
    "team:create": ADMIN_HR,
    "team:edit": ADMIN_HR,
    "team:delete": ADMIN_ONLY,
    # Leave
    "leave_type:view": ALL_ROLES,
    "leave_type:create": ADMIN_HR,
    "leave_type:edit": ADMIN_HR,
    "leave_type:delete": ADMIN_ONLY,
    "leave_allocation:view": ALL_ROLES,
    "leave_allocation:manage": ADMIN_HR,
    "leave_request:view": ALL_ROLES,
    "leave_request:create": ALL_ROLES,
    "leave_request:approve": ADMIN_HR,
    # Attendance
    "attendance:view": ALL_ROLES,
    "attendance:check": ALL_ROLES,
    "holiday:view": ALL_ROLES,
    "holiday:manage": ADMIN_HR,
    # Assets
    "asset:view": ALL_ROLES,
    "asset:view_all": ADMIN_HR,
    "asset:create": ADMIN_HR,
    "asset:edit": ADMIN_HR,
    "asset:delete": ADMIN_ONLY,
    "asset:assign": ADMIN_HR,
    "asset:return": ADMIN_HR,
    # Employee requests & notices
    "request:view": ALL_ROLES,
    "request:create": ALL_ROLES,
    "request:approve": ADMIN_HR,
    "notice:view": ALL_ROLES,
    "notice:manage": ADMIN_HR,
    # Settings & audit
    "settings:view": ADMIN_HR,
    "settings:edit": ADMIN_ONLY,
    "audit_log:view": ADMIN_ONLY,
    # Notifications
    "notification_rule:view": ADMIN_HR,
    "notification_rule:edit": ADMIN_ONLY,
    "notification_template:view": ADMIN_HR,
    "notification_template:edit": ADMIN_HR,
    "notification_log:view": ADMIN_HR,
    "notification_queue:manage": ADMIN_ONLY,
}


def format_permission_name(resource: str, action: str) -> str:
    return f"{resource}:{action}"


def permissions_for_role(role: UserRole) -> List[str]:
    return sorted(name for name, roles in CAPABILITIES.items() if role in roles)


class PermissionChecker:
    """
    Check what a role may do, using CAPABILITIES
    """

    def __init__(self, role: UserRole, overrides: Optional[Dict[str, Iterable[UserRole]]] = None):
        self.role = UserRole(role)
        # Org settings may widen or narrow a capability (e.g. audit_log:view)
        self._overrides = {name: frozenset(roles) for name, roles in (overrides or {}).items()}

    def can(self, resource: str, action: str) -> bool:
        """
        Examples:
            can("leave_request", "approve")
        """
        permission_key = format_permission_name(resource, action)
        allowed = self._overrides.get(permission_key, CAPABILITIES.get(permission_key))
        if allowed is None:
            logger.warning(f"Unknown permission requested: {permission_key}")
            return False
        granted = self.role in allowed
        logger.debug(f"Permission {'granted' if granted else 'denied'}: {permission_key} for {self.role.value}")
        return granted

    def cannot(self, resource: str, action: str) -> bool:
        return not self.can(resource, action)

    def require(
        self,
        resource: str,
        action: str,
        custom_message: Optional[str] = None
    ):
        """
        Require permission or raise HTTPException
        """
        if self.cannot(resource, action):
            message = custom_message or "Forbidden"
            logger.warning(f"Permission check failed: {self.role.value} lacks {resource}:{action}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=message
            )

    def get_all_permissions(self) -> List[str]:
        granted = set(permissions_for_role(self.role))
        for name, roles in self._overrides.items():
            if self.role in roles:
                granted.add(name)
            else:
                granted.discard(name)
        return sorted(granted)


def get_permission_checker(role: UserRole, overrides: Optional[Dict[str, Iterable[UserRole]]] = None) -> PermissionChecker:
    return PermissionChecker(role, overrides)
