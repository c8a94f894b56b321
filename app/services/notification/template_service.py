import logging
from typing import Any, Dict, List, Optional
from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.models.notification.email_template import EmailTemplate
from app.models.shared.enums import AuditAction, NotificationType
from app.schemas.notification.email_template_schema import EmailTemplateCreate, EmailTemplateUpdate
from app.services.audit.audit_service import AuditService
from app.services.notification.template_engine import SAMPLE_VARIABLES, default_variables, render_template

logger = logging.getLogger(__name__)

AUDIT_ENTITY = "EMAIL_TEMPLATE"


class EmailTemplateService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    # ---------- Getters ----------
    async def get_templates(self, notification_type: Optional[NotificationType] = None) -> List[EmailTemplate]:
        query = select(EmailTemplate).where(EmailTemplate.is_deleted == False)
        if notification_type is not None:
            query = query.where(EmailTemplate.type == notification_type)
        result = await self.session.execute(query.order_by(EmailTemplate.type, EmailTemplate.name))
        return list(result.scalars().all())

    async def get_template(self, template_id: int) -> EmailTemplate:
        template = await self.session.get(EmailTemplate, template_id)
        if template is None or template.is_deleted:
            raise NotFoundError("Template not found")
        return template

    async def _name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = select(EmailTemplate.id).where(EmailTemplate.name == name)
        if exclude_id is not None:
            query = query.where(EmailTemplate.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    # ---------- Create / Update / Delete ----------
    async def create_template(self, data: EmailTemplateCreate, user_id: int, request: Optional[Request] = None) -> EmailTemplate:
        if await self._name_taken(data.name):
            raise ConflictError("A template with this name already exists")
        try:
            template = EmailTemplate(**data.model_dump(), is_system=False, created_by=user_id)
            self.session.add(template)
            await self.session.commit()
            logger.info(f"Email template created: {template.name}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating email template: {e}")
            raise InternalError("Error creating email template")

        await self.audit.log(
            AuditAction.CREATE, AUDIT_ENTITY, template.id, user_id,
            details={"name": template.name, "type": template.type.value}, request=request,
        )
        return template

    async def update_template(self, template_id: int, data: EmailTemplateUpdate, user_id: int, request: Optional[Request] = None) -> EmailTemplate:
        template = await self.get_template(template_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != template.name and await self._name_taken(changes["name"], template_id):
            raise ConflictError("A template with this name already exists")
        try:
            for field, value in changes.items():
                setattr(template, field, value)
            template.updated_by = user_id
            await self.session.commit()
            logger.info(f"Email template updated: {template.name}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating email template {template_id}: {e}")
            raise InternalError("Error updating email template")

        await self.audit.log(AuditAction.UPDATE, AUDIT_ENTITY, template.id, user_id, details={"fields": sorted(changes)}, request=request)
        return template

    async def delete_template(self, template_id: int, user_id: int, request: Optional[Request] = None) -> None:
        template = await self.get_template(template_id)
        if template.is_system:
            raise ValidationError("System templates cannot be deleted")
        details = {"name": template.name, "type": template.type.value}
        try:
            await self.session.delete(template)
            await self.session.commit()
            logger.info(f"Email template deleted: {details['name']}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting email template {template_id}: {e}")
            raise InternalError("Error deleting email template")

        await self.audit.log(AuditAction.DELETE, AUDIT_ENTITY, template_id, user_id, details=details, request=request)

    # ---------- Preview ----------
    async def preview_template(self, template_id: int, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Dry-run render: defaults, then sample values, then caller-supplied values"""
        template = await self.get_template(template_id)
        merged = {**default_variables(), **SAMPLE_VARIABLES, **(variables or {})}
        rendered = render_template(template, merged)
        return {"subject": rendered.subject, "html": rendered.html, "variables": merged}
