import logging
import re
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import selectinload
from app.auth.permissions import PermissionChecker
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.db.base import utcnow
from app.models.assets.asset import Asset
from app.models.assets.asset_assignment import AssetAssignment
from app.models.auth.user import User
from app.models.shared.enums import AssetCategory, AssetStatus, AuditAction, NotificationType
from app.schemas.assets.asset_schema import AssetAssignRequest, AssetCreate, AssetReturnRequest, AssetUpdate
from app.services.audit.audit_service import AuditService
from app.services.auth.user_service import UserService
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)

ASSET_TAG_PREFIX = "AST-"
ASSET_TAG_PATTERN = re.compile(r"AST-(\d+)")


class AssetService:
    """
    Company assets and their hand-overs.

    An asset is AVAILABLE or ASSIGNED to exactly one user at a time; every
    hand-over is kept as an AssetAssignment row that is closed on return.
    Deleting an asset only deactivates it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Getters ----------
    def _with_holder(self, query):
        return query.options(selectinload(Asset.assigned_to))

    async def get_asset(self, asset_id: int, with_history: bool = False) -> Optional[Asset]:
        query = self._with_holder(select(Asset)).where(Asset.id == asset_id, Asset.is_deleted == False)
        if with_history:
            query = query.options(selectinload(Asset.assignments).selectinload(AssetAssignment.user))
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_assignment(self, assignment_id: int) -> Optional[AssetAssignment]:
        result = await self.session.execute(
            select(AssetAssignment)
            .options(selectinload(AssetAssignment.user))
            .where(AssetAssignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_visible_asset(self, asset_id: int, current_user: User, checker: PermissionChecker) -> Asset:
        """Employees only see what is assigned to them; anything else is reported as missing"""
        asset = await self.get_asset(asset_id, with_history=True)
        if asset is None or (checker.cannot("asset", "view_all") and asset.assigned_to_id != current_user.id):
            raise NotFoundError("Asset not found")
        return asset

    async def get_assets(
        self,
        current_user: User,
        checker: PermissionChecker,
        page_index: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        category: Optional[AssetCategory] = None,
        status: Optional[AssetStatus] = None,
        user_id: Optional[int] = None,
        unassigned: bool = False,
    ) -> Dict[str, Any]:
        query = self._with_holder(select(Asset)).where(Asset.is_active == True, Asset.is_deleted == False)

        if checker.cannot("asset", "view_all"):
            query = query.where(Asset.assigned_to_id == current_user.id)
        elif unassigned:
            query = query.where(Asset.assigned_to_id.is_(None), Asset.status == AssetStatus.AVAILABLE)
        elif user_id is not None:
            query = query.where(Asset.assigned_to_id == user_id)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Asset.name.ilike(pattern),
                Asset.asset_tag.ilike(pattern),
                Asset.brand.ilike(pattern),
                Asset.model.ilike(pattern),
                Asset.serial_number.ilike(pattern),
            ))
        if category is not None:
            query = query.where(Asset.category == category)
        if status is not None:
            query = query.where(Asset.status == status)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(Asset.created_at.desc(), Asset.id.desc()).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    async def _serial_taken(self, serial_number: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Asset.id).where(Asset.serial_number == serial_number)
        if exclude_id is not None:
            query = query.where(Asset.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def next_asset_tag(self) -> str:
        """AST-00001, AST-00002, ... continuing from the highest tag issued so far"""
        result = await self.session.execute(
            select(Asset.asset_tag).where(Asset.asset_tag.like(f"{ASSET_TAG_PREFIX}%"))
        )
        highest = 0
        for tag in result.scalars().all():
            match = ASSET_TAG_PATTERN.fullmatch(tag)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{ASSET_TAG_PREFIX}{highest + 1:05d}"

    # ---------- CRUD ----------
    async def create_asset(self, data: AssetCreate, created_by: int, request: Optional[Request] = None) -> Asset:
        if data.serial_number and await self._serial_taken(data.serial_number):
            raise ConflictError("An asset with this serial number already exists")

        try:
            asset = Asset(
                **data.model_dump(),
                asset_tag=await self.next_asset_tag(),
                status=AssetStatus.AVAILABLE,
                is_active=True,
                created_by=created_by,
            )
            self.session.add(asset)
            await self.session.commit()
            asset_id = asset.id
            logger.info(f"Asset created: {asset.asset_tag} ({asset.name})")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating asset: {e}")
            raise InternalError("Error creating asset")

        await AuditService(self.session).log(
            AuditAction.CREATE, "ASSET", asset_id, created_by,
            details={"asset_tag": asset.asset_tag, "name": asset.name, "category": asset.category.value},
            request=request,
        )
        return await self.get_asset(asset_id)

    async def update_asset(self, asset_id: int, data: AssetUpdate, updated_by: int,
                           request: Optional[Request] = None) -> Asset:
        asset = await self.get_asset(asset_id)
        if not asset:
            raise NotFoundError("Asset not found")

        changes = data.model_dump(exclude_unset=True)
        serial = changes.get("serial_number")
        if serial and serial != asset.serial_number and await self._serial_taken(serial, exclude_id=asset_id):
            raise ConflictError("An asset with this serial number already exists")

        try:
            for field, value in changes.items():
                setattr(asset, field, value)
            asset.updated_by = updated_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating asset {asset_id}: {e}")
            raise InternalError("Error updating asset")

        await AuditService(self.session).log(AuditAction.UPDATE, "ASSET", asset_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_asset(asset_id)

    async def delete_asset(self, asset_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        asset = await self.get_asset(asset_id)
        if not asset:
            raise NotFoundError("Asset not found")
        details = {"asset_tag": asset.asset_tag, "name": asset.name}
        try:
            asset.is_active = False
            asset.updated_by = deleted_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting asset {asset_id}: {e}")
            raise InternalError("Error deleting asset")

        await AuditService(self.session).log(AuditAction.DELETE, "ASSET", asset_id, deleted_by,
                                             details=details, request=request)

    # ---------- Hand-over ----------
    async def assign_asset(self, data: AssetAssignRequest, actor: User,
                           request: Optional[Request] = None) -> Dict[str, Any]:
        asset = await self.get_asset(data.asset_id)
        if asset is None:
            raise NotFoundError("Asset not found")
        if not asset.is_active:
            raise ValidationError("Asset is not active")
        if asset.status != AssetStatus.AVAILABLE:
            raise ValidationError(f"Asset is not available. Current status: {asset.status.value}")

        holder = await UserService(self.session).get_user(data.user_id)
        if holder is None or not holder.is_active:
            raise NotFoundError("User not found")

        actor_id = actor.id
        actor_name = actor.full_name
        holder_id = holder.id
        holder_name = holder.full_name
        asset_tag = asset.asset_tag
        try:
            # Two assigners racing for the same asset: only one sees it AVAILABLE
            result = await self.session.execute(
                update(Asset)
                .where(Asset.id == data.asset_id, Asset.status == AssetStatus.AVAILABLE)
                .values(status=AssetStatus.ASSIGNED, assigned_to_id=holder_id, assigned_at=utcnow(),
                        updated_by=actor_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValidationError("Asset is no longer available")
            assignment = AssetAssignment(
                asset_id=data.asset_id,
                user_id=holder_id,
                assigned_by_id=actor_id,
                condition=asset.condition,
                notes=data.notes,
                created_by=actor_id,
            )
            self.session.add(assignment)
            await self.session.commit()
            assignment_id = assignment.id
            logger.info(f"Asset {asset_tag} assigned to user {holder_id} by {actor_id}")
        except ValidationError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error assigning asset {data.asset_id}: {e}")
            raise InternalError("Error assigning asset")

        await AuditService(self.session).log(
            AuditAction.ASSIGN, "ASSET_ASSIGNMENT", assignment_id, actor_id,
            details={"asset_id": data.asset_id, "asset_tag": asset_tag, "assigned_to_id": holder_id,
                     "assigned_to_name": holder_name},
            request=request,
        )
        await NotificationService(self.session).notify_asset_event(
            NotificationType.ASSET_ASSIGNED, await self.get_asset(data.asset_id), holder_id,
            {"assignedBy": actor_name},
        )
        return {"asset": await self.get_asset(data.asset_id), "assignment": await self.get_assignment(assignment_id)}

    async def return_asset(self, data: AssetReturnRequest, actor: User,
                           request: Optional[Request] = None) -> Dict[str, Any]:
        asset = await self.get_asset(data.asset_id)
        if asset is None:
            raise NotFoundError("Asset not found")
        if asset.status != AssetStatus.ASSIGNED or asset.assigned_to_id is None:
            raise ValidationError("Asset is not currently assigned")

        actor_id = actor.id
        holder_id = asset.assigned_to_id
        holder_name = asset.assigned_to.full_name if asset.assigned_to else ""
        asset_tag = asset.asset_tag
        open_assignment = await self.session.execute(
            select(AssetAssignment)
            .where(
                AssetAssignment.asset_id == data.asset_id,
                AssetAssignment.user_id == holder_id,
                AssetAssignment.returned_at.is_(None),
            )
            .order_by(AssetAssignment.assigned_at.desc())
            .limit(1)
        )
        assignment = open_assignment.scalar_one_or_none()
        assignment_id = assignment.id if assignment else None

        try:
            result = await self.session.execute(
                update(Asset)
                .where(Asset.id == data.asset_id, Asset.status == AssetStatus.ASSIGNED)
                .values(status=AssetStatus.AVAILABLE, assigned_to_id=None, assigned_at=None,
                        condition=data.return_condition, updated_by=actor_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValidationError("Asset is not currently assigned")
            if assignment is not None:
                assignment.returned_at = utcnow()
                assignment.returned_by_id = actor_id
                assignment.return_condition = data.return_condition
                assignment.return_notes = data.return_notes
                assignment.updated_by = actor_id
            await self.session.commit()
            logger.info(f"Asset {asset_tag} returned from user {holder_id}")
        except ValidationError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error returning asset {data.asset_id}: {e}")
            raise InternalError("Error returning asset")

        await AuditService(self.session).log(
            AuditAction.RETURN, "ASSET_ASSIGNMENT", assignment_id or data.asset_id, actor_id,
            details={"asset_id": data.asset_id, "asset_tag": asset_tag, "returned_from_id": holder_id,
                     "returned_from_name": holder_name, "return_condition": data.return_condition.value},
            request=request,
        )
        await NotificationService(self.session).notify_asset_event(
            NotificationType.ASSET_RETURNED, await self.get_asset(data.asset_id), holder_id,
            {"returnedBy": holder_name, "condition": data.return_condition.value.title()},
        )
        return {
            "asset": await self.get_asset(data.asset_id),
            "assignment": await self.get_assignment(assignment_id) if assignment_id else None,
        }
