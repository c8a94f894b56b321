"""
Email queue tasks run by the Celery worker and beat.
"""
import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from app.core.celery_app import celery_app
from app.core.config import settings

logger = logging.getLogger(__name__)

# Create async engine for background tasks
async_engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

def run_async_task(coro):
    """Helper function to run async coroutines in Celery tasks"""
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.error(f"Error in async task: {e}")
        raise
    finally:
        loop.close()

@celery_app.task
def process_email_queue(batch_size: Optional[int] = None):
    """Deliver the next batch of pending emails"""
    async def _process():
        async with async_session_maker() as db:
            # Import inside function to avoid circular imports
            from app.services.notification.email_queue import EmailQueueService

            service = EmailQueueService(db)
            if not service.smtp_configured():
                logger.warning("📭 Email queue skipped: SMTP is not configured")
                return {"processed": 0, "sent": 0, "failed": 0, "skipped": 0}

            result = await service.process_queue(batch_size)
            if result["processed"]:
                logger.info(f"📨 Email queue processed: {result}")
            return result

    return run_async_task(_process())

@celery_app.task
def release_stale_email_claims(older_than_minutes: int = 15):
    """Put entries stuck in PROCESSING back to PENDING"""
    async def _release():
        async with async_session_maker() as db:
            from app.services.notification.email_queue import EmailQueueService

            return await EmailQueueService(db).release_stale_claims(older_than_minutes)

    return run_async_task(_release())
