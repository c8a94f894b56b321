from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.organization.department_schema import DepartmentCreate, DepartmentUpdate, DepartmentResponse
from app.services.organization.department_service import DepartmentService

router = APIRouter()

@router.post("/", response_model=ApiResponse[DepartmentResponse], status_code=status.HTTP_201_CREATED)
async def create_department(
    department: DepartmentCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("department", "create"))
):
    """Create a new department"""
    service = DepartmentService(session)
    return {"success": True, "data": await service.create_department(department, current_user.id, request)}

@router.get("/", response_model=ApiResponse[List[DepartmentResponse]])
async def get_departments(
    search: Optional[str] = Query(None),
    branch_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("department", "view"))
):
    """Get all departments with filtering"""
    service = DepartmentService(session)
    return {"success": True, "data": await service.get_departments(search, branch_id, is_active)}

@router.get("/{department_id}", response_model=ApiResponse[DepartmentResponse])
async def get_department(
    department_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("department", "view"))
):
    """Get department by ID"""
    department = await DepartmentService(session).get_department(department_id)
    if department is None:
        raise NotFoundError("Department not found")
    return {"success": True, "data": department}

@router.put("/{department_id}", response_model=ApiResponse[DepartmentResponse])
async def update_department(
    department_id: int,
    department: DepartmentUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("department", "edit"))
):
    """Update department"""
    service = DepartmentService(session)
    return {"success": True, "data": await service.update_department(department_id, department, current_user.id, request)}

@router.delete("/{department_id}", response_model=ApiResponse[MessageData])
async def delete_department(
    department_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("department", "delete"))
):
    """Delete department"""
    await DepartmentService(session).delete_department(department_id, current_user.id, request)
    return {"success": True, "data": {"message": "Department deleted successfully"}}
