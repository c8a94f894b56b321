from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from app.models.shared.enums import UserRole


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PermissionSettings(StrictModel):
    employees_can_view_team_leaves: bool = False
    audit_log_roles: List[UserRole] = Field(default_factory=lambda: [UserRole.ADMIN])


class OnlineAttendanceSettings(StrictModel):
    enabled: bool = True
    scope: Literal["all", "department", "team", "specific"] = "all"
    department_ids: List[int] = Field(default_factory=list)
    team_ids: List[int] = Field(default_factory=list)
    user_ids: List[int] = Field(default_factory=list)


class MobileSettings(StrictModel):
    enabled: bool = False
    require_location: bool = False


class ThemeSettings(StrictModel):
    primary_color: str = "#111111"
    logo_url: Optional[str] = None


class OrganizationConfig(StrictModel):
    """Typed view of the organization-wide settings blob"""
    permissions: PermissionSettings = Field(default_factory=PermissionSettings)
    online_attendance: OnlineAttendanceSettings = Field(default_factory=OnlineAttendanceSettings)
    mobile: MobileSettings = Field(default_factory=MobileSettings)
    theme: ThemeSettings = Field(default_factory=ThemeSettings)


class OrganizationSettingsUpdate(StrictModel):
    name: Optional[str] = None
    permissions: Optional[PermissionSettings] = None
    online_attendance: Optional[OnlineAttendanceSettings] = None
    mobile: Optional[MobileSettings] = None
    theme: Optional[ThemeSettings] = None


class OrganizationSettingsResponse(BaseModel):
    name: Optional[str] = None
    config: OrganizationConfig
