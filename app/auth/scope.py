"""
Record visibility by role.

ADMIN and HR see everything, a MANAGER sees their department, a TEAM_LEAD their
team and everybody else only their own records. Every scope also includes the
user's own records. A manager or lead without a department/team falls back to
self.
"""
from dataclasses import dataclass
from typing import Any, Optional
from sqlalchemy import or_, select, true
from sqlalchemy.sql.elements import ColumnElement
from app.models.auth.user import User
from app.models.shared.enums import UserRole

ALL = "all"
DEPARTMENT = "department"
TEAM = "team"
SELF = "self"


@dataclass(frozen=True)
class Scope:
    kind: str
    user_id: int
    department_id: Optional[int] = None
    team_id: Optional[int] = None


def resolve_scope(user: User) -> Scope:
    role = UserRole(user.role)
    if role in (UserRole.ADMIN, UserRole.HR):
        return Scope(ALL, user.id)
    if role == UserRole.MANAGER and user.department_id:
        return Scope(DEPARTMENT, user.id, department_id=user.department_id)
    if role == UserRole.TEAM_LEAD and user.team_id:
        return Scope(TEAM, user.id, team_id=user.team_id)
    return Scope(SELF, user.id)


def team_member_ids(team_id: int):
    return select(User.id).where(User.team_id == team_id)


def scope_condition(scope: Scope, owner_column: Any) -> ColumnElement:
    """WHERE-clause restriction on a column holding the owning user's id"""
    if scope.kind == ALL:
        return true()
    if scope.kind == DEPARTMENT:
        members = select(User.id).where(User.department_id == scope.department_id)
        return or_(owner_column == scope.user_id, owner_column.in_(members))
    if scope.kind == TEAM:
        return or_(owner_column == scope.user_id, owner_column.in_(team_member_ids(scope.team_id)))
    return owner_column == scope.user_id


def can_access(scope: Scope, owner: User) -> bool:
    """Same rule as scope_condition, for a single already-loaded owner"""
    if scope.kind == ALL or owner.id == scope.user_id:
        return True
    if scope.kind == DEPARTMENT:
        return owner.department_id == scope.department_id
    if scope.kind == TEAM:
        return owner.team_id == scope.team_id
    return False
