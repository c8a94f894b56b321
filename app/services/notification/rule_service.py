import logging
from typing import List, Optional
from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.exceptions import ConflictError, InternalError, NotFoundError
from app.models.notification.notification_rule import NotificationRule
from app.models.shared.enums import AuditAction
from app.schemas.notification.notification_rule_schema import NotificationRuleCreate, NotificationRuleUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)

AUDIT_ENTITY = "NOTIFICATION_RULE"


class NotificationRuleService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    # ---------- Getters ----------
    async def get_rules(self) -> List[NotificationRule]:
        result = await self.session.execute(select(NotificationRule).order_by(NotificationRule.type))
        return list(result.scalars().all())

    async def get_rule(self, rule_id: int) -> NotificationRule:
        rule = await self.session.get(NotificationRule, rule_id)
        if rule is None:
            raise NotFoundError("Rule not found")
        return rule

    # ---------- Create / Update / Delete ----------
    async def create_rule(self, data: NotificationRuleCreate, user_id: int, request: Optional[Request] = None) -> NotificationRule:
        try:
            exists = await self.session.execute(
                select(NotificationRule.id).where(NotificationRule.type == data.type).limit(1)
            )
            if exists.scalar_one_or_none() is not None:
                raise ConflictError("A rule for this notification type already exists")

            rule = NotificationRule(
                type=data.type,
                name=data.name,
                description=data.description,
                is_active=data.is_active,
                recipient_config=data.recipient_config.model_dump(mode="json"),
                conditions=data.conditions,
                created_by=user_id,
            )
            self.session.add(rule)
            await self.session.commit()
            logger.info(f"Notification rule created: {rule.type.value}")
        except ConflictError:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating notification rule: {e}")
            raise InternalError("Error creating notification rule")

        await self.audit.log(
            AuditAction.CREATE, AUDIT_ENTITY, rule.id, user_id,
            details={"type": rule.type.value, "name": rule.name}, request=request,
        )
        return rule

    async def update_rule(self, rule_id: int, data: NotificationRuleUpdate, user_id: int, request: Optional[Request] = None) -> NotificationRule:
        rule = await self.get_rule(rule_id)
        changes = data.model_dump(exclude_unset=True, mode="json")
        try:
            for field, value in changes.items():
                setattr(rule, field, value)
            rule.updated_by = user_id
            await self.session.commit()
            logger.info(f"Notification rule updated: {rule.type.value}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating notification rule {rule_id}: {e}")
            raise InternalError("Error updating notification rule")

        await self.audit.log(AuditAction.UPDATE, AUDIT_ENTITY, rule.id, user_id, details=changes, request=request)
        return rule

    async def delete_rule(self, rule_id: int, user_id: int, request: Optional[Request] = None) -> None:
        rule = await self.get_rule(rule_id)
        details = {"type": rule.type.value, "name": rule.name}
        try:
            await self.session.delete(rule)
            await self.session.commit()
            logger.info(f"Notification rule deleted: {details['type']}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting notification rule {rule_id}: {e}")
            raise InternalError("Error deleting notification rule")

        await self.audit.log(AuditAction.DELETE, AUDIT_ENTITY, rule_id, user_id, details=details, request=request)
