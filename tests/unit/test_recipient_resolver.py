import pytest
from app.models.notification.notification_preference import NotificationPreference
from app.models.organization.department import Department
from app.models.organization.team import Team
from app.models.shared.enums import NotificationType, UserRole
from app.schemas.notification.notification_rule_schema import RecipientConfig
from app.services.notification.recipient_resolver import NotificationContext, RecipientResolver


@pytest.fixture
async def org(db_session, create_user):
    """An employee with a manager, a team lead and a department head, plus HR and an admin"""
    manager = await create_user(UserRole.MANAGER, email="manager@example.com")
    lead = await create_user(UserRole.TEAM_LEAD, email="lead@example.com")
    head = await create_user(UserRole.MANAGER, email="head@example.com")
    hr = await create_user(UserRole.HR, email="hr@example.com")
    admin = await create_user(UserRole.ADMIN, email="admin@example.com")

    department = Department(name="Engineering", code="ENG", head_id=head.id)
    db_session.add(department)
    await db_session.commit()
    team = Team(name="Platform", code="PLT", department_id=department.id, lead_id=lead.id)
    db_session.add(team)
    await db_session.commit()

    employee = await create_user(
        UserRole.EMPLOYEE, email="employee@example.com",
        manager_id=manager.id, team_id=team.id, department_id=department.id,
    )
    loner = await create_user(UserRole.EMPLOYEE, email="loner@example.com")
    return {
        "manager": manager, "lead": lead, "head": head, "hr": hr,
        "admin": admin, "employee": employee, "loner": loner,
    }


def emails(recipients):
    return [r.email for r in recipients]


class TestResolveConfig:
    async def test_every_relation_flag(self, db_session, org):
        config = RecipientConfig(
            notify_requester=True, notify_manager=True, notify_team_lead=True,
            notify_department_head=True, notify_hr=True, notify_admin=True,
        )
        recipients = await RecipientResolver(db_session).resolve_config(config, org["employee"].id)

        assert sorted(emails(recipients)) == sorted([
            "employee@example.com", "manager@example.com", "lead@example.com",
            "head@example.com", "hr@example.com", "admin@example.com",
        ])

    async def test_missing_relations_yield_nobody(self, db_session, org):
        config = RecipientConfig(notify_manager=True, notify_team_lead=True, notify_department_head=True)
        recipients = await RecipientResolver(db_session).resolve_config(config, org["loner"].id)
        assert recipients == []

    async def test_inactive_manager_is_skipped(self, db_session, org):
        org["manager"].is_active = False
        await db_session.commit()

        config = RecipientConfig(notify_requester=True, notify_manager=True)
        recipients = await RecipientResolver(db_session).resolve_config(config, org["employee"].id)
        assert emails(recipients) == ["employee@example.com"]

    async def test_role_and_custom_recipients(self, db_session, org):
        config = RecipientConfig(
            role_recipients=[UserRole.TEAM_LEAD],
            custom_recipients=["payroll@example.com"],
        )
        recipients = await RecipientResolver(db_session).resolve_config(config, None)
        assert emails(recipients) == ["lead@example.com", "payroll@example.com"]

    async def test_duplicates_collapse_case_insensitively(self, db_session, org):
        config = RecipientConfig(
            notify_requester=True,
            notify_hr=True,
            role_recipients=[UserRole.HR],
            custom_recipients=["EMPLOYEE@example.com"],
        )
        recipients = await RecipientResolver(db_session).resolve_config(config, org["employee"].id)
        assert emails(recipients) == ["employee@example.com", "hr@example.com"]


class TestResolve:
    async def test_opted_out_user_is_dropped(self, db_session, org):
        db_session.add(NotificationPreference(
            user_id=org["hr"].id, type=NotificationType.LEAVE_PENDING_APPROVAL, email_enabled=False,
        ))
        await db_session.commit()

        resolver = RecipientResolver(db_session)
        rule = await resolver.get_rule(NotificationType.LEAVE_PENDING_APPROVAL)
        context = NotificationContext(requester_id=org["employee"].id)
        recipients = await resolver.resolve(NotificationType.LEAVE_PENDING_APPROVAL, context, rule)

        # Default rule: manager, team lead and HR
        assert sorted(emails(recipients)) == ["lead@example.com", "manager@example.com"]

    async def test_opt_out_is_per_type(self, db_session, org):
        db_session.add(NotificationPreference(
            user_id=org["employee"].id, type=NotificationType.REQUEST_APPROVED, email_enabled=False,
        ))
        await db_session.commit()

        resolver = RecipientResolver(db_session)
        rule = await resolver.get_rule(NotificationType.LEAVE_REQUEST_APPROVED)
        context = NotificationContext(requester_id=org["employee"].id)
        recipients = await resolver.resolve(NotificationType.LEAVE_REQUEST_APPROVED, context, rule)
        assert emails(recipients) == ["employee@example.com"]

    async def test_custom_address_belonging_to_opted_out_user(self, db_session, org):
        db_session.add(NotificationPreference(
            user_id=org["admin"].id, type=NotificationType.CUSTOM, email_enabled=False,
        ))
        await db_session.commit()

        context = NotificationContext(custom_recipients=["Admin@example.com", "outside@example.org"])
        recipients = await RecipientResolver(db_session).resolve(NotificationType.CUSTOM, context)
        assert emails(recipients) == ["outside@example.org"]

    async def test_custom_recipient_ids_replace_the_rule(self, db_session, org):
        resolver = RecipientResolver(db_session)
        rule = await resolver.get_rule(NotificationType.ANNOUNCEMENT_PUBLISHED)
        context = NotificationContext(custom_recipient_ids=[org["loner"].id])
        recipients = await resolver.resolve(NotificationType.ANNOUNCEMENT_PUBLISHED, context, rule)
        assert emails(recipients) == ["loner@example.com"]

    async def test_inactive_rule_falls_back_to_requester(self, db_session, org):
        resolver = RecipientResolver(db_session)
        rule = await resolver.get_rule(NotificationType.LEAVE_PENDING_APPROVAL)
        rule.is_active = False
        await db_session.commit()

        context = NotificationContext(requester_id=org["employee"].id)
        recipients = await resolver.resolve(NotificationType.LEAVE_PENDING_APPROVAL, context, rule)
        assert emails(recipients) == ["employee@example.com"]
