from decimal import Decimal
import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select
from app.auth.permissions import PermissionChecker
from app.core.exceptions import ValidationError
from app.models.auth.user import User
from app.models.communication.email_log import EmailLog
from app.models.leave.leave_allocation import LeaveAllocation
from app.models.leave.leave_request import LeaveRequest
from app.models.leave.leave_type import LeaveType
from app.models.shared.enums import LeaveStatus, NotificationType, UserRole
from app.schemas.leave.leave_request_schema import LeaveRequestStatusUpdate
from app.services.leave.leave_request_service import LeaveRequestService

YEAR = 2030


@pytest.fixture
async def leave_setup(db_session, create_user):
    manager = await create_user(UserRole.MANAGER, email="manager@example.com")
    hr = await create_user(UserRole.HR, email="hr@example.com")
    employee = await create_user(UserRole.EMPLOYEE, email="employee@example.com", manager_id=manager.id)
    colleague = await create_user(UserRole.EMPLOYEE, email="colleague@example.com")

    leave_type = LeaveType(name="Annual Leave", code="AL", default_days=Decimal("10"))
    db_session.add(leave_type)
    await db_session.commit()
    allocation = LeaveAllocation(
        user_id=employee.id, leave_type_id=leave_type.id, year=YEAR,
        allocated=Decimal("10"), used=Decimal("0"), carried_over=Decimal("0"), adjusted=Decimal("0"),
    )
    db_session.add(allocation)
    await db_session.commit()
    return {
        "manager": manager, "hr": hr, "employee": employee, "colleague": colleague,
        "leave_type": leave_type, "allocation": allocation,
    }


def leave_payload(leave_type_id, start=f"{YEAR}-03-04", end=f"{YEAR}-03-06", **extra):
    return {"leave_type_id": leave_type_id, "start_date": start, "end_date": end, "reason": "Family trip", **extra}


async def submit(client, headers, leave_type_id, **kwargs):
    return await client.post("/api/v1/leave-requests/", json=leave_payload(leave_type_id, **kwargs), headers=headers)


@pytest.mark.asyncio
class TestLeaveRequests:
    async def test_submit_queues_notifications(self, client: AsyncClient, leave_setup, auth_headers, db_session):
        response = await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["status"] == "PENDING"
        assert Decimal(str(data["days"])) == Decimal("3")
        assert data["leave_type"]["code"] == "AL"

        result = await db_session.execute(select(EmailLog.type, EmailLog.recipient_email).order_by(EmailLog.id))
        queued = set(result.all())
        assert queued == {
            (NotificationType.LEAVE_REQUEST_SUBMITTED, "employee@example.com"),
            (NotificationType.LEAVE_PENDING_APPROVAL, "manager@example.com"),
            (NotificationType.LEAVE_PENDING_APPROVAL, "hr@example.com"),
        }

    async def test_half_day(self, client: AsyncClient, leave_setup, auth_headers):
        response = await submit(
            client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id,
            end=f"{YEAR}-03-04", days="0.5",
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert Decimal(str(response.json()["data"]["days"])) == Decimal("0.5")

    async def test_end_before_start(self, client: AsyncClient, leave_setup, auth_headers):
        response = await submit(
            client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id,
            start=f"{YEAR}-03-06", end=f"{YEAR}-03-04",
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "End date must be on or after start date"

    async def test_insufficient_balance(self, client: AsyncClient, leave_setup, auth_headers):
        response = await submit(
            client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id,
            start=f"{YEAR}-03-01", end=f"{YEAR}-03-20",
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Insufficient leave balance. Available: 10 days"

    async def test_no_allocation(self, client: AsyncClient, leave_setup, auth_headers):
        response = await submit(client, auth_headers(leave_setup["colleague"]), leave_setup["leave_type"].id)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "No leave allocation found for this leave type"

    async def test_overlapping_request(self, client: AsyncClient, leave_setup, auth_headers):
        headers = auth_headers(leave_setup["employee"])
        await submit(client, headers, leave_setup["leave_type"].id)

        response = await submit(client, headers, leave_setup["leave_type"].id, start=f"{YEAR}-03-06", end=f"{YEAR}-03-07")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "You already have a leave request for these dates"

    async def test_approval_books_days(self, client: AsyncClient, leave_setup, auth_headers, reload, db_session):
        created = await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)
        request_id = created.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/leave-requests/{request_id}", json={"status": "APPROVED"}, headers=auth_headers(leave_setup["hr"])
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["status"] == "APPROVED"
        assert data["approver_id"] == leave_setup["hr"].id
        allocation = await reload(LeaveAllocation, leave_setup["allocation"].id)
        assert allocation.used == Decimal("3")
        assert allocation.balance == Decimal("7")

        result = await db_session.execute(
            select(EmailLog.recipient_email).where(EmailLog.type == NotificationType.LEAVE_REQUEST_APPROVED)
        )
        assert result.scalars().all() == ["employee@example.com"]

    async def test_terminal_states_are_final(self, client: AsyncClient, leave_setup, auth_headers):
        created = await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)
        request_id = created.json()["data"]["id"]
        hr_headers = auth_headers(leave_setup["hr"])

        await client.patch(f"/api/v1/leave-requests/{request_id}", json={"status": "REJECTED", "rejection_reason": "Busy"}, headers=hr_headers)
        response = await client.patch(f"/api/v1/leave-requests/{request_id}", json={"status": "APPROVED"}, headers=hr_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Leave request is already rejected"

    async def test_only_approvers_can_approve(self, client: AsyncClient, leave_setup, auth_headers):
        created = await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)
        request_id = created.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/leave-requests/{request_id}", json={"status": "APPROVED"}, headers=auth_headers(leave_setup["manager"])
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Not authorized to approve/reject"

    async def test_cancel_rules(self, client: AsyncClient, leave_setup, auth_headers):
        created = await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)
        request_id = created.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/leave-requests/{request_id}", json={"status": "CANCELLED"}, headers=auth_headers(leave_setup["hr"])
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Only the requester can cancel"

        response = await client.patch(
            f"/api/v1/leave-requests/{request_id}", json={"status": "CANCELLED"}, headers=auth_headers(leave_setup["employee"])
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "CANCELLED"

    async def test_pending_is_not_a_target(self, client: AsyncClient, leave_setup, auth_headers):
        response = await client.patch(
            "/api/v1/leave-requests/1", json={"status": "PENDING"}, headers=auth_headers(leave_setup["hr"])
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Status must be APPROVED, REJECTED or CANCELLED"


@pytest.mark.asyncio
class TestLeaveVisibility:
    async def test_employee_sees_only_own_requests(self, client: AsyncClient, leave_setup, auth_headers):
        created = await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)
        request_id = created.json()["data"]["id"]

        listing = await client.get("/api/v1/leave-requests/", headers=auth_headers(leave_setup["colleague"]))
        assert listing.json()["data"]["count"] == 0

        response = await client.get(f"/api/v1/leave-requests/{request_id}", headers=auth_headers(leave_setup["colleague"]))
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Leave request not found"

    async def test_hr_sees_everything(self, client: AsyncClient, leave_setup, auth_headers):
        await submit(client, auth_headers(leave_setup["employee"]), leave_setup["leave_type"].id)

        listing = await client.get("/api/v1/leave-requests/?status=PENDING", headers=auth_headers(leave_setup["hr"]))
        assert listing.status_code == status.HTTP_200_OK
        assert listing.json()["data"]["count"] == 1
        assert listing.json()["data"]["data"][0]["user"]["email"] == "employee@example.com"


@pytest.mark.asyncio
class TestLeaveTypes:
    async def test_delete_guard(self, client: AsyncClient, leave_setup, auth_headers, create_user):
        admin = await create_user(UserRole.ADMIN)
        response = await client.delete(
            f"/api/v1/leave-types/{leave_setup['leave_type'].id}", headers=auth_headers(admin)
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Cannot delete leave type with existing allocations. Deactivate it instead."

    async def test_duplicate_code(self, client: AsyncClient, leave_setup, auth_headers):
        response = await client.post(
            "/api/v1/leave-types/", json={"name": "Another", "code": "al"}, headers=auth_headers(leave_setup["hr"])
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Leave type code already exists"

    async def test_duplicate_allocation(self, client: AsyncClient, leave_setup, auth_headers):
        payload = {
            "user_id": leave_setup["employee"].id,
            "leave_type_id": leave_setup["leave_type"].id,
            "year": YEAR,
            "allocated": "5",
        }
        response = await client.post("/api/v1/leave-allocations/", json=payload, headers=auth_headers(leave_setup["hr"]))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Leave allocation already exists for this user, leave type and year"


@pytest.mark.asyncio
class TestConcurrentDecisions:
    """Two approvers working in separate sessions, each holding rows read before the other committed"""

    async def _approve(self, session, request_id, approver_id):
        approver = await session.get(User, approver_id)
        return await LeaveRequestService(session).update_status(
            request_id, LeaveRequestStatusUpdate(status=LeaveStatus.APPROVED), approver, PermissionChecker(approver.role)
        )

    async def _submit_two(self, client, leave_setup, auth_headers):
        headers = auth_headers(leave_setup["employee"])
        leave_type_id = leave_setup["leave_type"].id
        first = await submit(client, headers, leave_type_id, start=f"{YEAR}-03-04", end=f"{YEAR}-03-05")
        second = await submit(client, headers, leave_type_id, start=f"{YEAR}-03-10", end=f"{YEAR}-03-11")
        return first.json()["data"]["id"], second.json()["data"]["id"]

    async def test_parallel_approvals_both_book_days(self, client: AsyncClient, leave_setup, auth_headers,
                                                     session_factory, reload):
        first_id, second_id = await self._submit_two(client, leave_setup, auth_headers)
        allocation_id = leave_setup["allocation"].id
        hr_id = leave_setup["hr"].id

        async with session_factory() as session_a, session_factory() as session_b:
            stale = await session_a.get(LeaveAllocation, allocation_id)
            assert stale.used == Decimal("0")

            await self._approve(session_b, first_id, hr_id)
            await self._approve(session_a, second_id, hr_id)

        allocation = await reload(LeaveAllocation, allocation_id)
        assert allocation.used == Decimal("4")
        assert allocation.balance == Decimal("6")

    async def test_same_request_is_booked_once(self, client: AsyncClient, leave_setup, auth_headers,
                                               session_factory, reload):
        first_id, _ = await self._submit_two(client, leave_setup, auth_headers)
        hr_id = leave_setup["hr"].id

        async with session_factory() as session_a, session_factory() as session_b:
            assert (await session_a.get(LeaveRequest, first_id)).status == LeaveStatus.PENDING

            await self._approve(session_b, first_id, hr_id)
            with pytest.raises(ValidationError):
                await self._approve(session_a, first_id, hr_id)

        allocation = await reload(LeaveAllocation, leave_setup["allocation"].id)
        assert allocation.used == Decimal("2")
