import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.exceptions import InternalError
from app.models.organization.organization_settings import OrganizationSettings
from app.schemas.organization.settings_schema import OrganizationConfig, OrganizationSettingsUpdate

logger = logging.getLogger(__name__)


class OrganizationSettingsService:
    """Reads and writes the singleton settings row through OrganizationConfig"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self) -> Optional[OrganizationSettings]:
        result = await self.session.execute(
            select(OrganizationSettings).order_by(OrganizationSettings.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_config(self) -> OrganizationConfig:
        row = await self._get_row()
        if row is None:
            return OrganizationConfig()
        return OrganizationConfig.model_validate(row.config or {})

    async def get_settings(self) -> dict:
        row = await self._get_row()
        return {
            "name": row.name if row else None,
            "config": OrganizationConfig.model_validate((row.config if row else None) or {}),
        }

    async def update_settings(self, data: OrganizationSettingsUpdate, updated_by: int) -> dict:
        try:
            row = await self._get_row()
            if row is None:
                row = OrganizationSettings(config={})
                self.session.add(row)

            current = OrganizationConfig.model_validate(row.config or {})
            changes = data.model_dump(exclude_unset=True, exclude={"name"})
            merged = current.model_copy(update={key: getattr(data, key) for key in changes if getattr(data, key) is not None})

            if "name" in data.model_fields_set:
                row.name = data.name
            row.config = merged.model_dump(mode="json")
            row.updated_by = updated_by
            await self.session.commit()
            logger.info(f"Organization settings updated: {sorted(changes)}")
            return {"name": row.name, "config": merged}
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating organization settings: {e}")
            raise InternalError("Error updating organization settings")
