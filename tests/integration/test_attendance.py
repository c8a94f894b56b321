import pytest
from httpx import AsyncClient
from fastapi import status
from app.models.shared.enums import UserRole


@pytest.mark.asyncio
class TestAttendance:
    async def test_day_lifecycle(self, client: AsyncClient, create_user, auth_headers):
        headers = auth_headers(await create_user(UserRole.EMPLOYEE))

        today = await client.get("/api/v1/attendance/today", headers=headers)
        assert today.json()["data"] == {"record": None, "online_checkin_allowed": True}

        check_in = await client.post("/api/v1/attendance/checkin", headers=headers)
        assert check_in.status_code == status.HTTP_201_CREATED
        assert check_in.json()["data"]["record"]["check_in"] is not None
        assert check_in.json()["data"]["record"]["check_out"] is None

        again = await client.post("/api/v1/attendance/checkin", headers=headers)
        assert again.status_code == status.HTTP_400_BAD_REQUEST
        assert again.json()["error"] == "Already checked in"

        check_out = await client.post("/api/v1/attendance/checkout", headers=headers)
        assert check_out.status_code == status.HTTP_200_OK
        assert check_out.json()["data"]["record"]["check_out"] is not None

        again = await client.post("/api/v1/attendance/checkout", headers=headers)
        assert again.json()["error"] == "Already checked out"

        again = await client.post("/api/v1/attendance/checkin", headers=headers)
        assert again.json()["error"] == "Already completed attendance for today"

    async def test_checkout_without_checkin(self, client: AsyncClient, create_user, auth_headers):
        headers = auth_headers(await create_user(UserRole.EMPLOYEE))
        response = await client.post("/api/v1/attendance/checkout", headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Not checked in today"

    async def test_online_checkin_restricted_to_listed_users(self, client: AsyncClient, create_user, auth_headers):
        admin = await create_user(UserRole.ADMIN)
        allowed = await create_user(UserRole.EMPLOYEE)
        blocked = await create_user(UserRole.EMPLOYEE)
        settings_payload = {"online_attendance": {"enabled": True, "scope": "specific", "user_ids": [allowed.id]}}
        await client.put("/api/v1/settings/organization", json=settings_payload, headers=auth_headers(admin))

        response = await client.post("/api/v1/attendance/checkin", headers=auth_headers(blocked))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Online check-in is not enabled for you"

        today = await client.get("/api/v1/attendance/today", headers=auth_headers(blocked))
        assert today.json()["data"]["online_checkin_allowed"] is False

        response = await client.post("/api/v1/attendance/checkin", headers=auth_headers(allowed))
        assert response.status_code == status.HTTP_201_CREATED

    async def test_listing_is_scoped(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        first = await create_user(UserRole.EMPLOYEE)
        second = await create_user(UserRole.EMPLOYEE)
        await client.post("/api/v1/attendance/checkin", headers=auth_headers(first))
        await client.post("/api/v1/attendance/checkin", headers=auth_headers(second))

        own = await client.get("/api/v1/attendance/", headers=auth_headers(first))
        assert own.json()["data"]["count"] == 1
        assert own.json()["data"]["data"][0]["user_id"] == first.id

        everyone = await client.get("/api/v1/attendance/", headers=auth_headers(hr))
        assert everyone.json()["data"]["count"] == 2
