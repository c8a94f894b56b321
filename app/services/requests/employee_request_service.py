import logging
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, update
from sqlalchemy.orm import selectinload
from app.auth.permissions import PermissionChecker
from app.auth.scope import Scope, can_access, scope_condition
from app.core.exceptions import ForbiddenError, InternalError, NotFoundError, ValidationError
from app.db.base import utcnow
from app.models.auth.user import User
from app.models.requests.employee_request import EmployeeRequest
from app.models.shared.enums import AuditAction, LeaveStatus, NotificationType, RequestType
from app.schemas.requests.employee_request_schema import EmployeeRequestCreate, EmployeeRequestStatusUpdate
from app.services.audit.audit_service import AuditService
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)

STATUS_NOTIFICATIONS = {
    LeaveStatus.APPROVED: (AuditAction.APPROVE, NotificationType.REQUEST_APPROVED),
    LeaveStatus.REJECTED: (AuditAction.REJECT, NotificationType.REQUEST_REJECTED),
    LeaveStatus.CANCELLED: (AuditAction.CANCEL, None),
}


class EmployeeRequestService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_request(self, request_id: int) -> Optional[EmployeeRequest]:
        result = await self.session.execute(
            select(EmployeeRequest)
            .options(selectinload(EmployeeRequest.user))
            .where(EmployeeRequest.id == request_id, EmployeeRequest.is_deleted == False)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_visible_request(self, request_id: int, scope: Scope) -> EmployeeRequest:
        employee_request = await self.get_request(request_id)
        if employee_request is None or not can_access(scope, employee_request.user):
            raise NotFoundError("Request not found")
        return employee_request

    async def get_requests(
        self,
        scope: Scope,
        page_index: int = 1,
        page_size: int = 50,
        status: Optional[LeaveStatus] = None,
        request_type: Optional[RequestType] = None,
    ) -> Dict[str, Any]:
        query = (
            select(EmployeeRequest)
            .options(selectinload(EmployeeRequest.user))
            .where(EmployeeRequest.is_deleted == False, scope_condition(scope, EmployeeRequest.user_id))
        )
        if status is not None:
            query = query.where(EmployeeRequest.status == status)
        if request_type is not None:
            query = query.where(EmployeeRequest.type == request_type)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(EmployeeRequest.created_at.desc(), EmployeeRequest.id.desc()).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    async def create_request(self, data: EmployeeRequestCreate, current_user: User,
                             request: Optional[Request] = None) -> EmployeeRequest:
        user_id = current_user.id
        try:
            employee_request = EmployeeRequest(
                user_id=user_id,
                type=data.type,
                subject=data.subject,
                description=data.description,
                status=LeaveStatus.PENDING,
                created_by=user_id,
            )
            self.session.add(employee_request)
            await self.session.commit()
            request_id = employee_request.id
            logger.info(f"{data.type.value} request {request_id} submitted by user {user_id}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating request: {e}")
            raise InternalError("Error creating request")

        await AuditService(self.session).log(AuditAction.CREATE, "EMPLOYEE_REQUEST", request_id, user_id,
                                             details={"type": data.type.value}, request=request)
        await NotificationService(self.session).notify_request_event(
            NotificationType.REQUEST_SUBMITTED, await self.get_request(request_id)
        )
        return await self.get_request(request_id)

    async def update_status(
        self,
        request_id: int,
        data: EmployeeRequestStatusUpdate,
        current_user: User,
        checker: PermissionChecker,
        request: Optional[Request] = None,
    ) -> EmployeeRequest:
        employee_request = await self.get_request(request_id)
        if employee_request is None:
            raise NotFoundError("Request not found")

        target = data.status
        if target == LeaveStatus.CANCELLED:
            if employee_request.user_id != current_user.id:
                raise ForbiddenError("Only the requester can cancel")
            if employee_request.status != LeaveStatus.PENDING:
                raise ValidationError("Only pending requests can be cancelled")
        else:
            checker.require("request", "approve")
            if employee_request.status != LeaveStatus.PENDING:
                raise ValidationError(f"Request is already {employee_request.status.value.lower()}")

        actor_id = current_user.id
        actor_name = current_user.full_name
        values = {"status": target, "updated_by": actor_id}
        if target != LeaveStatus.CANCELLED:
            values.update(handled_by_id=actor_id, handled_at=utcnow(), response=data.response)
        try:
            result = await self.session.execute(
                update(EmployeeRequest)
                .where(EmployeeRequest.id == request_id, EmployeeRequest.status == LeaveStatus.PENDING)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValidationError("Request is no longer pending")
            await self.session.commit()
            logger.info(f"Request {request_id} -> {target.value} by user {actor_id}")
        except ValidationError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating request {request_id}: {e}")
            raise InternalError("Error updating request")

        audit_action, notification_type = STATUS_NOTIFICATIONS[target]
        await AuditService(self.session).log(audit_action, "EMPLOYEE_REQUEST", request_id, actor_id,
                                             details={"status": target.value}, request=request)
        if notification_type is not None:
            await NotificationService(self.session).notify_request_event(
                notification_type, await self.get_request(request_id), approver_name=actor_name
            )
        return await self.get_request(request_id)
