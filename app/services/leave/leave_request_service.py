import logging
from decimal import Decimal
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import selectinload
from app.auth.permissions import PermissionChecker
from app.auth.scope import SELF, Scope, can_access, scope_condition, team_member_ids
from app.core.exceptions import ForbiddenError, InternalError, NotFoundError, ValidationError
from app.db.base import utcnow
from app.models.auth.user import User
from app.models.leave.leave_allocation import LeaveAllocation
from app.models.leave.leave_request import LeaveRequest
from app.models.leave.leave_type import LeaveType
from app.models.shared.enums import AuditAction, LeaveStatus, NotificationType
from app.schemas.leave.leave_request_schema import LeaveRequestCreate, LeaveRequestStatusUpdate
from app.services.audit.audit_service import AuditService
from app.services.leave.leave_allocation_service import LeaveAllocationService
from app.services.notification.notification_service import NotificationService
from app.services.organization.settings_service import OrganizationSettingsService

logger = logging.getLogger(__name__)

TRANSITION_AUDIT = {
    LeaveStatus.APPROVED: (AuditAction.APPROVE, NotificationType.LEAVE_REQUEST_APPROVED),
    LeaveStatus.REJECTED: (AuditAction.REJECT, NotificationType.LEAVE_REQUEST_REJECTED),
    LeaveStatus.CANCELLED: (AuditAction.CANCEL, NotificationType.LEAVE_REQUEST_CANCELLED),
}


def _format_days(days: Decimal) -> str:
    return f"{Decimal(days).normalize():f}"


class LeaveRequestService:
    """
    Leave requests and their PENDING -> APPROVED | REJECTED | CANCELLED lifecycle.

    Terminal states are final. Approval books the days against the matching
    allocation in the same transaction as the status change.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.allocations = LeaveAllocationService(session)

    # ---------- Getters ----------
    async def get_leave_request(self, request_id: int) -> Optional[LeaveRequest]:
        result = await self.session.execute(
            select(LeaveRequest)
            .options(
                selectinload(LeaveRequest.user),
                selectinload(LeaveRequest.leave_type),
                selectinload(LeaveRequest.approver),
            )
            .where(LeaveRequest.id == request_id, LeaveRequest.is_deleted == False)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_visible_leave_request(self, request_id: int, scope: Scope) -> LeaveRequest:
        leave_request = await self.get_leave_request(request_id)
        if leave_request is None or not can_access(scope, leave_request.user):
            raise NotFoundError("Leave request not found")
        return leave_request

    async def _visibility(self, current_user: User, scope: Scope):
        condition = scope_condition(scope, LeaveRequest.user_id)
        if scope.kind == SELF and current_user.team_id:
            config = await OrganizationSettingsService(self.session).get_config()
            if config.permissions.employees_can_view_team_leaves:
                # Team-mates' approved leave only
                condition = or_(
                    condition,
                    and_(
                        LeaveRequest.user_id.in_(team_member_ids(current_user.team_id)),
                        LeaveRequest.status == LeaveStatus.APPROVED,
                    ),
                )
        return condition

    async def get_leave_requests(
        self,
        current_user: User,
        scope: Scope,
        page_index: int = 1,
        page_size: int = 50,
        status: Optional[LeaveStatus] = None,
        user_id: Optional[int] = None,
        leave_type_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        query = (
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.user), selectinload(LeaveRequest.leave_type))
            .where(LeaveRequest.is_deleted == False, await self._visibility(current_user, scope))
        )
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        if user_id is not None:
            query = query.where(LeaveRequest.user_id == user_id)
        if leave_type_id is not None:
            query = query.where(LeaveRequest.leave_type_id == leave_type_id)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    # ---------- Create ----------
    async def create_leave_request(self, data: LeaveRequestCreate, current_user: User,
                                   request: Optional[Request] = None) -> LeaveRequest:
        leave_type = await self.session.get(LeaveType, data.leave_type_id)
        if leave_type is None or leave_type.is_deleted or not leave_type.is_active:
            raise NotFoundError("Leave type not found")

        days = data.days if data.days is not None else Decimal((data.end_date - data.start_date).days + 1)

        allocation = await self.allocations.find_allocation(current_user.id, data.leave_type_id, data.start_date.year)
        if allocation is None:
            raise ValidationError("No leave allocation found for this leave type")
        balance = allocation.balance
        if days > balance:
            raise ValidationError(f"Insufficient leave balance. Available: {_format_days(balance)} days")

        overlapping = await self.session.execute(
            select(LeaveRequest.id).where(
                LeaveRequest.user_id == current_user.id,
                LeaveRequest.status.in_([LeaveStatus.PENDING, LeaveStatus.APPROVED]),
                LeaveRequest.start_date <= data.end_date,
                LeaveRequest.end_date >= data.start_date,
                LeaveRequest.is_deleted == False,
            ).limit(1)
        )
        if overlapping.scalar_one_or_none() is not None:
            raise ValidationError("You already have a leave request for these dates")

        user_id = current_user.id
        try:
            leave_request = LeaveRequest(
                user_id=user_id,
                leave_type_id=data.leave_type_id,
                start_date=data.start_date,
                end_date=data.end_date,
                days=days,
                reason=data.reason,
                status=LeaveStatus.PENDING,
                created_by=user_id,
            )
            self.session.add(leave_request)
            await self.session.commit()
            request_id = leave_request.id
            logger.info(f"Leave request {request_id} submitted by user {user_id} ({_format_days(days)} days)")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating leave request: {e}")
            raise InternalError("Error creating leave request")

        await AuditService(self.session).log(
            AuditAction.CREATE, "LEAVE_REQUEST", request_id, user_id,
            details={"leave_type_id": data.leave_type_id, "days": _format_days(days)}, request=request,
        )

        notifications = NotificationService(self.session)
        loaded = await self.get_leave_request(request_id)
        await notifications.notify_leave_event(NotificationType.LEAVE_REQUEST_SUBMITTED, loaded)
        loaded = await self.get_leave_request(request_id)
        await notifications.notify_leave_event(NotificationType.LEAVE_PENDING_APPROVAL, loaded)
        return await self.get_leave_request(request_id)

    # ---------- Status transitions ----------
    async def update_status(
        self,
        request_id: int,
        data: LeaveRequestStatusUpdate,
        current_user: User,
        checker: PermissionChecker,
        request: Optional[Request] = None,
    ) -> LeaveRequest:
        leave_request = await self.get_leave_request(request_id)
        if leave_request is None:
            raise NotFoundError("Leave request not found")

        target = data.status
        if target == LeaveStatus.CANCELLED:
            if leave_request.user_id != current_user.id:
                raise ForbiddenError("Only the requester can cancel")
            if leave_request.status != LeaveStatus.PENDING:
                raise ValidationError("Only pending requests can be cancelled")
        else:
            checker.require("leave_request", "approve", "Not authorized to approve/reject")
            if leave_request.status != LeaveStatus.PENDING:
                raise ValidationError(f"Leave request is already {leave_request.status.value.lower()}")

        actor_id = current_user.id
        actor_name = current_user.full_name
        days = leave_request.days
        values = {"status": target, "updated_by": actor_id}
        if target in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            values.update(approver_id=actor_id, approved_at=utcnow())
        if target == LeaveStatus.REJECTED and data.rejection_reason:
            values["rejection_reason"] = data.rejection_reason

        try:
            allocation = None
            if target == LeaveStatus.APPROVED:
                allocation = await self.allocations.find_allocation(
                    leave_request.user_id, leave_request.leave_type_id, leave_request.start_date.year
                )
                if allocation is None:
                    raise ValidationError("No leave allocation found for this leave type")

            # Only one concurrent decision can move the request out of PENDING
            result = await self.session.execute(
                update(LeaveRequest)
                .where(LeaveRequest.id == request_id, LeaveRequest.status == LeaveStatus.PENDING)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValidationError("Leave request is no longer pending")

            if allocation is not None:
                await self.session.execute(
                    update(LeaveAllocation)
                    .where(LeaveAllocation.id == allocation.id)
                    .values(used=LeaveAllocation.used + Decimal(days), updated_by=actor_id)
                    .execution_options(synchronize_session=False)
                )

            await self.session.commit()
            logger.info(f"Leave request {request_id} -> {target.value} by user {actor_id}")
        except ValidationError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating leave request {request_id}: {e}")
            raise InternalError("Error updating leave request")

        audit_action, notification_type = TRANSITION_AUDIT[target]
        await AuditService(self.session).log(
            audit_action, "LEAVE_REQUEST", request_id, actor_id,
            details={"status": target.value, "days": _format_days(days)}, request=request,
        )

        loaded = await self.get_leave_request(request_id)
        extra = {
            "approverName": actor_name,
            "rejectionReason": loaded.rejection_reason or "",
        }
        await NotificationService(self.session).notify_leave_event(notification_type, loaded, extra)
        return await self.get_leave_request(request_id)
