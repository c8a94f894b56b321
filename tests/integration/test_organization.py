import pytest
from httpx import AsyncClient
from fastapi import status
from app.models.shared.enums import UserRole


@pytest.fixture
async def admin(create_user):
    return await create_user(UserRole.ADMIN, email="admin@example.com")


async def create_branch(client, headers, code="HQ"):
    response = await client.post("/api/v1/branches/", json={"name": "Head Office", "code": code}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


@pytest.mark.asyncio
class TestBranches:
    async def test_create_uppercases_code(self, client: AsyncClient, admin, auth_headers):
        branch = await create_branch(client, auth_headers(admin), code="hq")
        assert branch["code"] == "HQ"
        assert branch["is_active"] is True

    async def test_duplicate_code(self, client: AsyncClient, admin, auth_headers):
        headers = auth_headers(admin)
        await create_branch(client, headers)

        response = await client.post("/api/v1/branches/", json={"name": "Other", "code": "hq"}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Branch code already exists"

    async def test_update_rejects_null_for_required_fields(self, client: AsyncClient, admin, auth_headers):
        headers = auth_headers(admin)
        branch = await create_branch(client, headers)

        response = await client.put(f"/api/v1/branches/{branch['id']}", json={"name": None}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Name cannot be empty"

        response = await client.put(f"/api/v1/branches/{branch['id']}", json={"phone": None}, headers=headers)
        assert response.status_code == status.HTTP_200_OK

    async def test_employee_cannot_create(self, client: AsyncClient, create_user, auth_headers):
        employee = await create_user(UserRole.EMPLOYEE)
        response = await client.post("/api/v1/branches/", json={"name": "X", "code": "X"}, headers=auth_headers(employee))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"success": False, "error": "Forbidden"}

    async def test_delete_guard(self, client: AsyncClient, admin, auth_headers):
        headers = auth_headers(admin)
        branch = await create_branch(client, headers)
        department = await client.post(
            "/api/v1/departments/", json={"name": "Engineering", "code": "ENG", "branch_id": branch["id"]}, headers=headers
        )
        assert department.status_code == status.HTTP_201_CREATED

        response = await client.delete(f"/api/v1/branches/{branch['id']}", headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == (
            "Cannot delete branch with departments or users. Remove them first or deactivate the branch."
        )

        await client.delete(f"/api/v1/departments/{department.json()['data']['id']}", headers=headers)
        response = await client.delete(f"/api/v1/branches/{branch['id']}", headers=headers)
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"/api/v1/branches/{branch['id']}", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Branch not found"


@pytest.mark.asyncio
class TestTeams:
    async def test_team_with_members_cannot_be_deleted(self, client: AsyncClient, admin, auth_headers, create_user):
        headers = auth_headers(admin)
        team = await client.post("/api/v1/teams/", json={"name": "Platform", "code": "plt"}, headers=headers)
        team_id = team.json()["data"]["id"]
        await create_user(UserRole.EMPLOYEE, team_id=team_id)

        response = await client.delete(f"/api/v1/teams/{team_id}", headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Cannot delete team with members. Remove them first or deactivate the team."


@pytest.mark.asyncio
class TestOrganizationSettings:
    async def test_defaults(self, client: AsyncClient, admin, auth_headers):
        response = await client.get("/api/v1/settings/organization", headers=auth_headers(admin))

        assert response.status_code == status.HTTP_200_OK
        config = response.json()["data"]["config"]
        assert config["online_attendance"]["enabled"] is True
        assert config["permissions"]["audit_log_roles"] == ["ADMIN"]

    async def test_section_update_keeps_other_sections(self, client: AsyncClient, admin, auth_headers):
        headers = auth_headers(admin)
        payload = {"theme": {"primary_color": "#0055ff"}}
        response = await client.put("/api/v1/settings/organization", json=payload, headers=headers)

        assert response.status_code == status.HTTP_200_OK
        config = response.json()["data"]["config"]
        assert config["theme"]["primary_color"] == "#0055ff"
        assert config["online_attendance"]["enabled"] is True

    async def test_hr_cannot_edit(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        response = await client.put("/api/v1/settings/organization", json={"name": "Acme"}, headers=auth_headers(hr))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_audit_log_access_follows_settings(self, client: AsyncClient, admin, auth_headers, create_user):
        hr = await create_user(UserRole.HR)
        assert (await client.get("/api/v1/audit-logs/", headers=auth_headers(hr))).status_code == status.HTTP_403_FORBIDDEN

        await client.put(
            "/api/v1/settings/organization",
            json={"permissions": {"audit_log_roles": ["ADMIN", "HR"]}},
            headers=auth_headers(admin),
        )

        response = await client.get("/api/v1/audit-logs/", headers=auth_headers(hr))
        assert response.status_code == status.HTTP_200_OK
