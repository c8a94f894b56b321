import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select
from app.models.assets.asset_assignment import AssetAssignment
from app.models.communication.email_log import EmailLog
from app.models.shared.enums import NotificationType, UserRole


async def queued_for(db_session, notification_type):
    result = await db_session.execute(
        select(EmailLog).where(EmailLog.type == notification_type).order_by(EmailLog.id)
    )
    return result.scalars().all()


@pytest.mark.asyncio
class TestHolidays:
    async def test_crud(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        employee = await create_user(UserRole.EMPLOYEE)

        response = await client.post(
            "/api/v1/holidays/",
            json={"name": " Victory Day ", "date": "2025-12-16", "type": "PUBLIC"},
            headers=auth_headers(hr),
        )
        assert response.status_code == status.HTTP_201_CREATED
        holiday = response.json()["data"]
        assert holiday["name"] == "Victory Day"
        assert holiday["is_active"] is True

        response = await client.put(
            f"/api/v1/holidays/{holiday['id']}",
            json={"type": "OPTIONAL", "description": "Office closed"},
            headers=auth_headers(hr),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["type"] == "OPTIONAL"
        assert response.json()["data"]["description"] == "Office closed"

        response = await client.get(f"/api/v1/holidays/{holiday['id']}", headers=auth_headers(employee))
        assert response.status_code == status.HTTP_200_OK

        response = await client.delete(f"/api/v1/holidays/{holiday['id']}", headers=auth_headers(hr))
        assert response.json()["data"]["message"] == "Holiday deleted successfully"

        response = await client.get(f"/api/v1/holidays/{holiday['id']}", headers=auth_headers(hr))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_listing_by_year(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        employee = await create_user(UserRole.EMPLOYEE)
        for name, day in [("New Year", "2025-01-01"), ("Labour Day", "2025-05-01"), ("New Year", "2026-01-01")]:
            await client.post("/api/v1/holidays/", json={"name": name, "date": day}, headers=auth_headers(hr))
        hidden = await client.post(
            "/api/v1/holidays/", json={"name": "Retired", "date": "2025-03-03"}, headers=auth_headers(hr)
        )
        await client.put(
            f"/api/v1/holidays/{hidden.json()['data']['id']}", json={"is_active": False}, headers=auth_headers(hr)
        )

        response = await client.get("/api/v1/holidays/?year=2025", headers=auth_headers(employee))
        assert [h["date"] for h in response.json()["data"]] == ["2025-01-01", "2025-05-01"]

        response = await client.get("/api/v1/holidays/?year=2025", headers=auth_headers(hr))
        assert [h["date"] for h in response.json()["data"]] == ["2025-01-01", "2025-03-03", "2025-05-01"]

    async def test_employee_cannot_manage(self, client: AsyncClient, create_user, auth_headers):
        employee = await create_user(UserRole.EMPLOYEE)
        response = await client.post(
            "/api/v1/holidays/", json={"name": "Day off", "date": "2025-02-21"}, headers=auth_headers(employee)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_update_rejects_null_name(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        created = await client.post(
            "/api/v1/holidays/", json={"name": "Mother Language Day", "date": "2025-02-21"}, headers=auth_headers(hr)
        )
        response = await client.put(
            f"/api/v1/holidays/{created.json()['data']['id']}", json={"name": None}, headers=auth_headers(hr)
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Name cannot be empty"


@pytest.mark.asyncio
class TestAssets:
    async def _create(self, client, headers, **fields):
        payload = {"name": "ThinkPad T14", "category": "LAPTOP", **fields}
        response = await client.post("/api/v1/assets/", json=payload, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        return response.json()["data"]

    async def test_create_issues_sequential_tags(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        first = await self._create(client, auth_headers(hr), serial_number="SN-1")
        second = await self._create(client, auth_headers(hr), name="Dell U2720Q", category="MONITOR")
        assert first["asset_tag"] == "AST-00001"
        assert second["asset_tag"] == "AST-00002"
        assert first["status"] == "AVAILABLE"
        assert second["serial_number"] is None

    async def test_duplicate_serial_number(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        await self._create(client, auth_headers(hr), serial_number="SN-1")
        response = await client.post(
            "/api/v1/assets/",
            json={"name": "Another", "category": "LAPTOP", "serial_number": "SN-1"},
            headers=auth_headers(hr),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "An asset with this serial number already exists"

    async def test_assign_notifies_the_assignee(self, client: AsyncClient, create_user, auth_headers, db_session):
        hr = await create_user(UserRole.HR, email="people@example.com", first_name="Nadia", last_name="Rahman")
        employee = await create_user(UserRole.EMPLOYEE, email="worker@example.com")
        asset = await self._create(client, auth_headers(hr))

        response = await client.post(
            "/api/v1/assets/assign",
            json={"asset_id": asset["id"], "user_id": employee.id, "notes": "For remote work"},
            headers=auth_headers(hr),
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["asset"]["status"] == "ASSIGNED"
        assert data["asset"]["assigned_to_id"] == employee.id
        assert data["assignment"]["user_id"] == employee.id
        assert data["assignment"]["returned_at"] is None

        queued = await queued_for(db_session, NotificationType.ASSET_ASSIGNED)
        assert [log.recipient_email for log in queued] == ["worker@example.com"]
        assert queued[0].subject == "Asset Assigned - ThinkPad T14"
        assert queued[0].variables["assignedBy"] == "Nadia Rahman"
        assert queued[0].variables["assetTag"] == asset["asset_tag"]

    async def test_assigned_asset_cannot_be_assigned_again(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        first = await create_user(UserRole.EMPLOYEE)
        second = await create_user(UserRole.EMPLOYEE)
        asset = await self._create(client, auth_headers(hr))

        await client.post("/api/v1/assets/assign", json={"asset_id": asset["id"], "user_id": first.id},
                          headers=auth_headers(hr))
        response = await client.post("/api/v1/assets/assign", json={"asset_id": asset["id"], "user_id": second.id},
                                     headers=auth_headers(hr))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Asset is not available. Current status: ASSIGNED"

    async def test_assign_to_unknown_user(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        asset = await self._create(client, auth_headers(hr))
        response = await client.post("/api/v1/assets/assign", json={"asset_id": asset["id"], "user_id": 999},
                                     headers=auth_headers(hr))
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "User not found"

    async def test_return_notifies_hr_and_admin(self, client: AsyncClient, create_user, auth_headers, db_session):
        admin = await create_user(UserRole.ADMIN, email="admin@example.com")
        hr = await create_user(UserRole.HR, email="people@example.com")
        employee = await create_user(UserRole.EMPLOYEE, email="worker@example.com", first_name="Karim", last_name="Ali")
        asset = await self._create(client, auth_headers(hr))
        await client.post("/api/v1/assets/assign", json={"asset_id": asset["id"], "user_id": employee.id},
                          headers=auth_headers(hr))

        response = await client.patch(
            "/api/v1/assets/assign",
            json={"asset_id": asset["id"], "return_condition": "GOOD", "return_notes": "Scratched lid"},
            headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["asset"]["status"] == "AVAILABLE"
        assert data["asset"]["assigned_to_id"] is None
        assert data["asset"]["condition"] == "GOOD"
        assert data["assignment"]["return_condition"] == "GOOD"
        assert data["assignment"]["returned_by_id"] == admin.id

        queued = await queued_for(db_session, NotificationType.ASSET_RETURNED)
        assert {log.recipient_email for log in queued} == {"admin@example.com", "people@example.com"}
        assert queued[0].variables["returnedBy"] == "Karim Ali"
        assert queued[0].variables["condition"] == "Good"

        history = await db_session.execute(select(AssetAssignment).where(AssetAssignment.asset_id == asset["id"]))
        assert len(history.scalars().all()) == 1

    async def test_return_of_available_asset(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        asset = await self._create(client, auth_headers(hr))
        response = await client.patch(
            "/api/v1/assets/assign",
            json={"asset_id": asset["id"], "return_condition": "GOOD"},
            headers=auth_headers(hr),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Asset is not currently assigned"

    async def test_employee_sees_only_own_assets(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        employee = await create_user(UserRole.EMPLOYEE)
        mine = await self._create(client, auth_headers(hr))
        other = await self._create(client, auth_headers(hr), name="Spare phone", category="MOBILE")
        await client.post("/api/v1/assets/assign", json={"asset_id": mine["id"], "user_id": employee.id},
                          headers=auth_headers(hr))

        response = await client.get("/api/v1/assets/", headers=auth_headers(employee))
        page = response.json()["data"]
        assert page["count"] == 1
        assert [a["id"] for a in page["data"]] == [mine["id"]]

        response = await client.get(f"/api/v1/assets/{mine['id']}", headers=auth_headers(employee))
        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()["data"]["assignments"]) == 1

        response = await client.get(f"/api/v1/assets/{other['id']}", headers=auth_headers(employee))
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.get("/api/v1/assets/?unassigned=true", headers=auth_headers(hr))
        assert [a["id"] for a in response.json()["data"]["data"]] == [other["id"]]

    async def test_delete_deactivates(self, client: AsyncClient, create_user, auth_headers):
        admin = await create_user(UserRole.ADMIN)
        hr = await create_user(UserRole.HR)
        asset = await self._create(client, auth_headers(hr))

        response = await client.delete(f"/api/v1/assets/{asset['id']}", headers=auth_headers(hr))
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.delete(f"/api/v1/assets/{asset['id']}", headers=auth_headers(admin))
        assert response.json()["data"]["message"] == "Asset deleted successfully"

        response = await client.get("/api/v1/assets/", headers=auth_headers(admin))
        assert response.json()["data"]["count"] == 0

        response = await client.get(f"/api/v1/assets/{asset['id']}", headers=auth_headers(admin))
        assert response.json()["data"]["is_active"] is False
