import logging
from typing import Optional, Dict, Any
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, or_
from app.auth.scope import Scope, scope_condition
from app.core.exceptions import ConflictError, InternalError, NotFoundError
from app.core.security import get_password_hash
from app.models.auth.user import User
from app.models.shared.enums import AuditAction, UserRole
from app.schemas.auth.user import UserCreate, UserUpdate
from app.services.audit.audit_service import AuditService
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        result = await self.session.execute(
            select(User).where(
                User.id == user_id,
                User.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)"""
        result = await self.session.execute(
            select(User).where(
                func.lower(User.email) == email.strip().lower(),
                User.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def get_users(
        self,
        scope: Scope,
        page_index: int = 1,
        page_size: int = 50,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        department_id: Optional[int] = None,
        team_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        query = select(User).where(User.is_deleted == False, scope_condition(scope, User.id))
        if search:
            like = f"%{search}%"
            query = query.where(or_(
                User.first_name.ilike(like),
                User.last_name.ilike(like),
                User.email.ilike(like),
                User.employee_id.ilike(like),
            ))
        if role is not None:
            query = query.where(User.role == role)
        if department_id is not None:
            query = query.where(User.department_id == department_id)
        if team_id is not None:
            query = query.where(User.team_id == team_id)
        if is_active is not None:
            query = query.where(User.is_active == is_active)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(User.first_name, User.last_name).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    async def _check_unique(self, email: Optional[str], employee_id: Optional[str], exclude_id: Optional[int] = None):
        if email:
            query = select(User.id).where(func.lower(User.email) == email.lower())
            if exclude_id is not None:
                query = query.where(User.id != exclude_id)
            if (await self.session.execute(query.limit(1))).scalar_one_or_none() is not None:
                raise ConflictError("Email already exists")
        if employee_id:
            query = select(User.id).where(User.employee_id == employee_id)
            if exclude_id is not None:
                query = query.where(User.id != exclude_id)
            if (await self.session.execute(query.limit(1))).scalar_one_or_none() is not None:
                raise ConflictError("Employee ID already exists")

    async def create_user(self, data: UserCreate, created_by: int, request: Optional[Request] = None) -> User:
        await self._check_unique(data.email, data.employee_id)
        try:
            payload = data.model_dump(exclude={"password"})
            payload["email"] = payload["email"].lower()
            user = User(
                **payload,
                hashed_password=get_password_hash(data.password),
                is_active=True,
                created_by=created_by,
            )
            self.session.add(user)
            await self.session.commit()
            logger.info(f"User created: {user.email}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating user: {e}")
            raise InternalError("Error creating user")

        await AuditService(self.session).log(
            AuditAction.CREATE, "USER", user.id, created_by,
            details={"email": user.email, "role": user.role.value}, request=request,
        )
        await NotificationService(self.session).notify_welcome(user)
        return await self.get_user(user.id)

    async def update_user(self, user_id: int, data: UserUpdate, updated_by: int, request: Optional[Request] = None) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")

        changes = data.model_dump(exclude_unset=True)
        await self._check_unique(None, changes.get("employee_id"), exclude_id=user_id)
        try:
            for field, value in changes.items():
                setattr(user, field, value)
            user.updated_by = updated_by
            await self.session.commit()
            logger.info(f"User updated: {user.email}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating user {user_id}: {e}")
            raise InternalError("Error updating user")

        await AuditService(self.session).log(
            AuditAction.UPDATE, "USER", user_id, updated_by,
            details={"fields": sorted(changes)}, request=request,
        )
        return await self.get_user(user_id)
