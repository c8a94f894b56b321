from typing import List
from pydantic import BaseModel
from app.models.shared.enums import NotificationType


class PreferenceItem(BaseModel):
    type: NotificationType
    email_enabled: bool


class PreferencesUpdate(BaseModel):
    preferences: List[PreferenceItem]


class PreferencesResponse(BaseModel):
    user_id: int
    preferences: List[PreferenceItem]


class PreferencesUpdated(BaseModel):
    updated: int
