import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import engine, async_session_maker
from app.models import *  # noqa: F401,F403  register every model on Base
from app.models.base import Base
from app.models.notification.email_template import EmailTemplate
from app.models.notification.notification_rule import NotificationRule
from app.models.organization.organization_settings import OrganizationSettings
from app.services.notification.default_templates import DEFAULT_RECIPIENT_CONFIGS, DEFAULT_TEMPLATES

logger = logging.getLogger(__name__)


async def create_tables():
    """Create all database tables"""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created successfully")
    except Exception as e:
        logger.error(f"❌ Error creating tables: {str(e)}")
        raise


async def install_notification_defaults(session: AsyncSession) -> dict:
    """Add the system template and default rule for every notification type that lacks one."""
    result = await session.execute(select(EmailTemplate.type).where(EmailTemplate.is_system == True))
    have_templates = set(result.scalars().all())
    result = await session.execute(select(EmailTemplate.name))
    taken_names = set(result.scalars().all())
    result = await session.execute(select(NotificationRule.type))
    have_rules = set(result.scalars().all())

    templates_added = rules_added = 0
    for notification_type, template in DEFAULT_TEMPLATES.items():
        if notification_type not in have_templates and template["name"] not in taken_names:
            session.add(EmailTemplate(
                name=template["name"],
                type=notification_type,
                subject=template["subject"],
                html_body=template["html_body"].strip(),
                variables=template["variables"],
                is_active=True,
                is_system=True,
            ))
            templates_added += 1
        if notification_type not in have_rules:
            session.add(NotificationRule(
                type=notification_type,
                name=template["name"],
                is_active=True,
                recipient_config=DEFAULT_RECIPIENT_CONFIGS[notification_type],
            ))
            rules_added += 1

    await session.commit()
    if templates_added or rules_added:
        logger.info(f"📨 Installed {templates_added} system template(s) and {rules_added} notification rule(s)")
    return {"templates": templates_added, "rules": rules_added}


async def ensure_organization_settings(session: AsyncSession) -> None:
    result = await session.execute(select(OrganizationSettings.id).limit(1))
    if result.scalar_one_or_none() is None:
        session.add(OrganizationSettings(config={}))
        await session.commit()


async def init_db():
    """Initialize the database"""
    try:
        await create_tables()
        async with async_session_maker() as session:
            await ensure_organization_settings(session)
            await install_notification_defaults(session)
        logger.info("✅ Database initialized successfully")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {str(e)}")
        raise
