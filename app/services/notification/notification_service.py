import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.shared.enums import EmailPriority, NoticeType, NotificationType
from app.services.communication.email_service import EmailService
from app.services.notification.email_queue import EmailQueueService
from app.services.notification.recipient_resolver import NotificationContext, RecipientResolver

logger = logging.getLogger(__name__)

ANNOUNCEMENT_PREVIEW_LENGTH = 200


class NotificationService:
    """Entry point used by business services to announce an event by email"""

    def __init__(self, session: AsyncSession, transport: Optional[EmailService] = None):
        self.session = session
        self.resolver = RecipientResolver(session)
        self.queue = EmailQueueService(session, transport)

    async def dispatch(self, notification_type: NotificationType, context: NotificationContext) -> int:
        """
        Resolve recipients for the event and queue one email each.

        Returns the number of queued emails. Never raises: a notification problem
        must not undo the business operation that triggered it.
        """
        try:
            rule = await self.resolver.get_rule(notification_type)
            if rule is not None and not rule.is_active:
                logger.debug(f"Rule for {notification_type.value} is inactive; falling back to requester only")
            recipients = await self.resolver.resolve(notification_type, context, rule)
            if not recipients:
                logger.info(f"No recipients for {notification_type.value}")
                return 0

            queued = 0
            for recipient in recipients:
                entry = await self.queue.enqueue(
                    notification_type,
                    recipient.email,
                    context.variables,
                    recipient_name=recipient.name,
                    recipient_id=recipient.user_id,
                    priority=context.priority,
                    entity_type=context.entity_type,
                    entity_id=context.entity_id,
                )
                if entry is not None:
                    queued += 1
            logger.info(f"🔔 {notification_type.value}: queued {queued}/{len(recipients)} email(s)")
            return queued
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to dispatch {notification_type.value} notification: {e}")
            return 0

    # region Event helpers
    async def notify_leave_event(
        self,
        notification_type: NotificationType,
        leave_request: Any,
        extra: Optional[Dict[str, Any]] = None,
    ) -> int:
        variables = {
            "employeeName": leave_request.user.full_name,
            "leaveType": leave_request.leave_type.name,
            "startDate": leave_request.start_date.isoformat(),
            "endDate": leave_request.end_date.isoformat(),
            "days": f"{leave_request.days.normalize():f}" if hasattr(leave_request.days, "normalize") else leave_request.days,
            "reason": leave_request.reason,
        }
        variables.update(extra or {})
        return await self.dispatch(
            notification_type,
            NotificationContext(
                requester_id=leave_request.user_id,
                entity_type="LEAVE_REQUEST",
                entity_id=leave_request.id,
                variables=variables,
            ),
        )

    async def notify_request_event(
        self,
        notification_type: NotificationType,
        employee_request: Any,
        approver_name: str = "",
    ) -> int:
        return await self.dispatch(
            notification_type,
            NotificationContext(
                requester_id=employee_request.user_id,
                entity_type="EMPLOYEE_REQUEST",
                entity_id=employee_request.id,
                variables={
                    "requestType": employee_request.type.value.title(),
                    "subject": employee_request.subject,
                    "approverName": approver_name,
                    "response": employee_request.response or "",
                },
            ),
        )

    async def notify_announcement(
        self,
        notice: Any,
        published_by: str,
        recipient_ids: Optional[List[int]] = None,
    ) -> int:
        content = notice.content or ""
        preview = content if len(content) <= ANNOUNCEMENT_PREVIEW_LENGTH else content[:ANNOUNCEMENT_PREVIEW_LENGTH] + "..."
        priority = {
            NoticeType.URGENT: EmailPriority.URGENT,
            NoticeType.IMPORTANT: EmailPriority.HIGH,
        }.get(notice.type, EmailPriority.NORMAL)
        return await self.dispatch(
            NotificationType.ANNOUNCEMENT_PUBLISHED,
            NotificationContext(
                entity_type="NOTICE",
                entity_id=notice.id,
                custom_recipient_ids=recipient_ids,
                priority=priority,
                variables={
                    "typeLabel": notice.type.value.title(),
                    "title": notice.title,
                    "preview": preview,
                    "publishedBy": published_by,
                },
            ),
        )

    async def notify_asset_event(
        self,
        notification_type: NotificationType,
        asset: Any,
        holder_id: int,
        extra: Optional[Dict[str, Any]] = None,
    ) -> int:
        variables = {
            "assetName": asset.name,
            "assetTag": asset.asset_tag,
            "category": asset.category.value.replace("_", " ").title(),
        }
        variables.update(extra or {})
        return await self.dispatch(
            notification_type,
            NotificationContext(
                requester_id=holder_id,
                entity_type="ASSET",
                entity_id=asset.id,
                variables=variables,
            ),
        )

    async def notify_welcome(self, user: Any) -> int:
        return await self.dispatch(
            NotificationType.WELCOME_EMAIL,
            NotificationContext(
                requester_id=user.id,
                entity_type="USER",
                entity_id=user.id,
                variables={
                    "employeeName": user.full_name,
                    "email": user.email,
                    "employeeId": user.employee_id or "",
                },
            ),
        )

    async def notify_password_reset(self, user: Any, reset_link: str) -> int:
        # Account owner only; rules and opt-outs do not apply
        try:
            entry = await self.queue.enqueue(
                NotificationType.PASSWORD_RESET,
                user.email,
                {"resetLink": reset_link},
                recipient_name=user.full_name,
                recipient_id=user.id,
                priority=EmailPriority.HIGH,
                entity_type="USER",
                entity_id=user.id,
            )
            return 1 if entry is not None else 0
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to queue password reset email for user {user.id}: {e}")
            return 0
    # endregion
