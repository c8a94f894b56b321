import pytest
from httpx import AsyncClient
from fastapi import status
from app.models.communication.email_log import EmailLog
from app.models.shared.enums import EmailStatus, NotificationType, UserRole


@pytest.fixture
async def admin_headers(create_user, auth_headers):
    return auth_headers(await create_user(UserRole.ADMIN, email="admin@example.com"))


@pytest.fixture
async def queued_email(db_session):
    entry = EmailLog(
        recipient_email="someone@example.com",
        type=NotificationType.CUSTOM,
        subject="Hello",
        body="<p>Hello</p>",
        status=EmailStatus.PENDING,
        attempts=0,
    )
    db_session.add(entry)
    await db_session.commit()
    return entry


@pytest.mark.asyncio
class TestNotificationRules:
    async def test_defaults_are_listed(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/v1/notifications/rules/", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        types = {rule["type"] for rule in response.json()["data"]}
        assert "LEAVE_PENDING_APPROVAL" in types

    async def test_duplicate_rule(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/notifications/rules/",
            json={"type": "LEAVE_PENDING_APPROVAL", "name": "Again", "recipient_config": {"notify_hr": True}},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "A rule for this notification type already exists"

    async def test_unknown_recipient_key_rejected(self, client: AsyncClient, admin_headers):
        rules = await client.get("/api/v1/notifications/rules/", headers=admin_headers)
        rule_id = rules.json()["data"][0]["id"]
        response = await client.put(
            f"/api/v1/notifications/rules/{rule_id}",
            json={"recipient_config": {"notify_everyone": True}},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_employee_cannot_view(self, client: AsyncClient, create_user, auth_headers):
        employee = await create_user(UserRole.EMPLOYEE)
        response = await client.get("/api/v1/notifications/rules/", headers=auth_headers(employee))
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
class TestEmailTemplates:
    async def _system_template(self, client, headers):
        response = await client.get(
            "/api/v1/notifications/templates/", params={"type": "LEAVE_REQUEST_SUBMITTED"}, headers=headers
        )
        templates = response.json()["data"]
        assert len(templates) == 1
        return templates[0]

    async def test_preview_with_variables(self, client: AsyncClient, admin_headers):
        template = await self._system_template(client, admin_headers)
        response = await client.post(
            f"/api/v1/notifications/templates/{template['id']}/preview",
            json={"variables": {"leaveType": "Sick Leave"}},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["subject"] == "Leave Request Submitted - Sick Leave"

    async def test_preview_without_body(self, client: AsyncClient, admin_headers):
        template = await self._system_template(client, admin_headers)
        response = await client.post(
            f"/api/v1/notifications/templates/{template['id']}/preview", headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["subject"].startswith("Leave Request Submitted - ")

    async def test_system_template_cannot_be_deleted(self, client: AsyncClient, admin_headers):
        template = await self._system_template(client, admin_headers)
        response = await client.delete(f"/api/v1/notifications/templates/{template['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "System templates cannot be deleted"

    async def test_custom_template_lifecycle(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/notifications/templates/",
            json={
                "name": "Short submitted",
                "type": "LEAVE_REQUEST_SUBMITTED",
                "subject": "Submitted: {{leaveType}}",
                "html_body": "<p>{{employeeName}}</p>",
            },
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        template_id = response.json()["data"]["id"]
        assert response.json()["data"]["is_system"] is False

        response = await client.delete(f"/api/v1/notifications/templates/{template_id}", headers=admin_headers)
        assert response.json()["data"]["message"] == "Template deleted successfully"

    async def test_update_rejects_null_and_blank_fields(self, client: AsyncClient, admin_headers):
        template = await self._system_template(client, admin_headers)
        url = f"/api/v1/notifications/templates/{template['id']}"

        response = await client.put(url, json={"subject": None}, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"success": False, "error": "Subject cannot be empty"}

        response = await client.put(url, json={"name": "   "}, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Name cannot be empty"

        response = await client.put(url, json={"subject": "Submitted - {{leaveType}}"}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["subject"] == "Submitted - {{leaveType}}"
        assert response.json()["data"]["name"] == template["name"]

    async def test_unbalanced_template_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/notifications/templates/",
            json={
                "name": "Broken",
                "type": "CUSTOM",
                "subject": "Hi {{name",
                "html_body": "<p>x</p>",
            },
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
class TestNotificationPreferences:
    async def test_update_and_read_own(self, client: AsyncClient, create_user, auth_headers):
        headers = auth_headers(await create_user(UserRole.EMPLOYEE))
        response = await client.put(
            "/api/v1/notifications/preferences/",
            json={"preferences": [{"type": "ANNOUNCEMENT_PUBLISHED", "email_enabled": False}]},
            headers=headers,
        )
        assert response.json()["data"] == {"updated": 1}

        response = await client.get("/api/v1/notifications/preferences/", headers=headers)
        preferences = {p["type"]: p["email_enabled"] for p in response.json()["data"]["preferences"]}
        assert preferences["ANNOUNCEMENT_PUBLISHED"] is False
        assert preferences["LEAVE_REQUEST_APPROVED"] is True
        assert len(preferences) == len(NotificationType)

    async def test_other_users_preferences(self, client: AsyncClient, create_user, auth_headers):
        employee = await create_user(UserRole.EMPLOYEE)
        other = await create_user(UserRole.EMPLOYEE)
        hr = await create_user(UserRole.HR)

        response = await client.get(
            "/api/v1/notifications/preferences/", params={"user_id": other.id}, headers=auth_headers(employee)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.get(
            "/api/v1/notifications/preferences/", params={"user_id": other.id}, headers=auth_headers(hr)
        )
        assert response.json()["data"]["user_id"] == other.id

        response = await client.get(
            "/api/v1/notifications/preferences/", params={"user_id": 99999}, headers=auth_headers(hr)
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "User not found"


@pytest.mark.asyncio
class TestEmailQueueApi:
    async def test_status(self, client: AsyncClient, admin_headers, queued_email):
        response = await client.get("/api/v1/notifications/queue/", headers=admin_headers)
        data = response.json()["data"]
        assert data["smtp_configured"] is True
        assert data["pending_count"] == 1
        assert data["stats"]["pending"] == 1

    async def test_process(self, client: AsyncClient, admin_headers, queued_email, reload):
        response = await client.post("/api/v1/notifications/queue/", params={"action": "process"},
                                     headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["sent"] == 1
        entry = await reload(EmailLog, queued_email.id)
        assert entry.status == EmailStatus.SENT

    async def test_test_action(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/v1/notifications/queue/", params={"action": "test"},
                                     json={"email": "ops@example.com"}, headers=admin_headers)
        assert response.json()["success"] is True

        response = await client.post("/api/v1/notifications/queue/", params={"action": "test"},
                                     headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Test email address is required"

    async def test_invalid_action(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/v1/notifications/queue/", params={"action": "purge"},
                                     headers=admin_headers)
        assert response.json()["error"] == "Invalid action"

    async def test_hr_cannot_process(self, client: AsyncClient, create_user, auth_headers):
        hr = await create_user(UserRole.HR)
        response = await client.post("/api/v1/notifications/queue/", headers=auth_headers(hr))
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
class TestEmailLogsApi:
    async def test_list_and_detail(self, client: AsyncClient, admin_headers, queued_email):
        response = await client.get("/api/v1/notifications/logs/", headers=admin_headers)
        data = response.json()["data"]
        assert data["count"] == 1
        assert data["data"][0]["recipient_email"] == "someone@example.com"

        response = await client.get(f"/api/v1/notifications/logs/{queued_email.id}", headers=admin_headers)
        assert response.json()["data"]["body"] == "<p>Hello</p>"

        response = await client.get("/api/v1/notifications/logs/99999", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Email log not found"

    async def test_stats(self, client: AsyncClient, admin_headers, queued_email):
        response = await client.get("/api/v1/notifications/logs/", params={"stats": "true"}, headers=admin_headers)
        stats = response.json()["data"]["stats"]
        assert stats["total"] == 1
        assert stats["pending"] == 1

    async def test_retry(self, client: AsyncClient, admin_headers, queued_email, db_session, reload):
        response = await client.post(f"/api/v1/notifications/logs/{queued_email.id}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Failed to retry email. It may not exist or is not in FAILED status."

        entry = await reload(EmailLog, queued_email.id)
        entry.status = EmailStatus.FAILED
        entry.attempts = 1
        await db_session.commit()

        response = await client.post(f"/api/v1/notifications/logs/{queued_email.id}", headers=admin_headers)
        assert response.json()["data"]["message"] == "Email queued for retry"
        entry = await reload(EmailLog, queued_email.id)
        assert entry.status == EmailStatus.PENDING
