import logging
from typing import Dict, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.exceptions import InternalError
from app.models.notification.notification_preference import NotificationPreference
from app.models.shared.enums import NotificationType
from app.schemas.notification.notification_preference_schema import PreferenceItem

logger = logging.getLogger(__name__)


class NotificationPreferenceService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_preferences(self, user_id: int) -> List[Dict]:
        """Every notification type for the user; types without a row are enabled"""
        result = await self.session.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        stored = {pref.type: pref.email_enabled for pref in result.scalars().all()}
        return [
            {"type": notification_type, "email_enabled": stored.get(notification_type, True)}
            for notification_type in NotificationType
        ]

    async def update_preferences(self, user_id: int, items: List[PreferenceItem]) -> int:
        try:
            result = await self.session.execute(
                select(NotificationPreference).where(NotificationPreference.user_id == user_id)
            )
            existing = {pref.type: pref for pref in result.scalars().all()}

            for item in items:
                pref = existing.get(item.type)
                if pref is None:
                    pref = NotificationPreference(user_id=user_id, type=item.type)
                    self.session.add(pref)
                    existing[item.type] = pref
                pref.email_enabled = item.email_enabled

            await self.session.commit()
            logger.info(f"Updated {len(items)} notification preference(s) for user {user_id}")
            return len(items)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating notification preferences for user {user_id}: {e}")
            raise InternalError("Error updating notification preferences")
