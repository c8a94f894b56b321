import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.models.auth.user import User
from app.models.notification.notification_preference import NotificationPreference
from app.models.notification.notification_rule import NotificationRule
from app.models.organization.department import Department
from app.models.organization.team import Team
from app.models.shared.enums import EmailPriority, NotificationType, UserRole
from app.schemas.notification.notification_rule_schema import RecipientConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str = ""
    user_id: Optional[int] = None


@dataclass
class NotificationContext:
    """Everything a dispatch needs to know about the event that triggered it"""
    requester_id: Optional[int] = None
    entity_type: Optional[str] = None
    entity_id: Optional[Any] = None
    variables: Dict[str, Any] = field(default_factory=dict)
    # When given, these replace whatever the rule would resolve to
    custom_recipient_ids: Optional[List[int]] = None
    custom_recipients: Optional[List[str]] = None
    priority: EmailPriority = EmailPriority.NORMAL


def _to_recipient(user: User) -> Recipient:
    return Recipient(email=user.email, name=user.full_name, user_id=user.id)


def _dedupe(recipients: Iterable[Recipient]) -> List[Recipient]:
    seen = set()
    unique = []
    for recipient in recipients:
        key = (recipient.email or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(recipient)
    return unique


class RecipientResolver:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Lookups ----------
    async def get_rule(self, notification_type: NotificationType) -> Optional[NotificationRule]:
        result = await self.session.execute(
            select(NotificationRule).where(NotificationRule.type == notification_type)
        )
        return result.scalar_one_or_none()

    async def _get_subject(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(
            select(User)
            .options(
                selectinload(User.manager),
                selectinload(User.team).selectinload(Team.lead),
                selectinload(User.department).selectinload(Department.head),
            )
            .where(User.id == user_id, User.is_deleted == False)
        )
        return result.scalar_one_or_none()

    async def _get_users_by_role(self, roles: Iterable[UserRole]) -> List[Recipient]:
        roles = list(roles)
        if not roles:
            return []
        result = await self.session.execute(
            select(User).where(
                User.role.in_(roles),
                User.is_active == True,
                User.is_deleted == False,
            ).order_by(User.id)
        )
        return [_to_recipient(u) for u in result.scalars().all()]

    async def _get_users_by_ids(self, user_ids: Iterable[int]) -> List[Recipient]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        result = await self.session.execute(
            select(User).where(
                User.id.in_(user_ids),
                User.is_active == True,
                User.is_deleted == False,
            ).order_by(User.id)
        )
        return [_to_recipient(u) for u in result.scalars().all()]

    # ---------- Resolution ----------
    async def resolve(
        self,
        notification_type: NotificationType,
        context: NotificationContext,
        rule: Optional[NotificationRule] = None,
    ) -> List[Recipient]:
        """
        Compute the deduplicated, preference-filtered recipient list for one event.

        Missing relations (no manager, no team lead, ...) contribute nobody.
        """
        if context.custom_recipient_ids or context.custom_recipients:
            recipients = await self._get_users_by_ids(context.custom_recipient_ids or [])
            recipients += [Recipient(email=address) for address in context.custom_recipients or []]
            return await self.filter_by_preferences(notification_type, _dedupe(recipients))

        if rule is not None and rule.is_active:
            config = RecipientConfig.model_validate(rule.recipient_config or {})
        else:
            # No usable rule: only the person the event is about hears of it
            config = RecipientConfig(notify_requester=True)

        recipients = await self.resolve_config(config, context.requester_id)
        return await self.filter_by_preferences(notification_type, recipients)

    async def resolve_config(self, config: RecipientConfig, requester_id: Optional[int]) -> List[Recipient]:
        recipients: List[Recipient] = []

        subject = await self._get_subject(requester_id) if requester_id else None
        if subject is not None:
            related = []
            if config.notify_requester:
                related.append(subject)
            if config.notify_manager:
                related.append(subject.manager)
            if config.notify_team_lead and subject.team is not None:
                related.append(subject.team.lead)
            if config.notify_department_head and subject.department is not None:
                related.append(subject.department.head)
            for person in related:
                if person is not None and person.is_active and not person.is_deleted:
                    recipients.append(_to_recipient(person))
        elif requester_id:
            logger.warning(f"Notification subject user {requester_id} not found")

        roles = list(config.role_recipients)
        if config.notify_hr:
            roles.append(UserRole.HR)
        if config.notify_admin:
            roles.append(UserRole.ADMIN)
        recipients += await self._get_users_by_role(dict.fromkeys(roles))

        recipients += [Recipient(email=str(address)) for address in config.custom_recipients]
        return _dedupe(recipients)

    async def filter_by_preferences(
        self, notification_type: NotificationType, recipients: List[Recipient]
    ) -> List[Recipient]:
        """Drop recipients whose user has switched this notification type off."""
        if not recipients:
            return recipients

        # Plain addresses may still belong to a user account
        unlinked = [r.email.lower() for r in recipients if r.user_id is None]
        email_to_user: Dict[str, int] = {}
        if unlinked:
            result = await self.session.execute(
                select(User.id, func.lower(User.email)).where(func.lower(User.email).in_(unlinked))
            )
            email_to_user = {email: user_id for user_id, email in result.all()}

        def owner(recipient: Recipient) -> Optional[int]:
            return recipient.user_id if recipient.user_id is not None else email_to_user.get(recipient.email.lower())

        user_ids = {uid for uid in map(owner, recipients) if uid is not None}
        if not user_ids:
            return recipients

        result = await self.session.execute(
            select(NotificationPreference.user_id).where(
                NotificationPreference.user_id.in_(user_ids),
                NotificationPreference.type == notification_type,
                NotificationPreference.email_enabled == False,
            )
        )
        opted_out = set(result.scalars().all())
        if opted_out:
            logger.debug(f"Skipping {len(opted_out)} opted-out recipient(s) for {notification_type.value}")
        return [r for r in recipients if owner(r) not in opted_out]
