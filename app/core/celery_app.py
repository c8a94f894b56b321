import sys
from celery import Celery
from celery.signals import setup_logging as celery_setup_logging
from kombu import Queue
from app.core.config import settings

NOTIFICATION_QUEUE = "notifications"

celery_app = Celery(
    "workseed_hrm",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.workers.celery_tasks.notification_tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    result_expires=3600,
    task_default_queue=NOTIFICATION_QUEUE,
    task_queues=(Queue(NOTIFICATION_QUEUE),),
    task_routes={"app.workers.celery_tasks.notification_tasks.*": {"queue": NOTIFICATION_QUEUE}},
    # Acknowledged only once the task has finished
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# Windows-specific configuration
if sys.platform == 'win32':
    celery_app.conf.update(
        worker_pool='threads',
        worker_concurrency=4
    )

celery_app.conf.beat_schedule = {
    "process-email-queue": {
        "task": "app.workers.celery_tasks.notification_tasks.process_email_queue",
        "schedule": settings.EMAIL_QUEUE_INTERVAL_SECONDS,
    },
    "release-stale-email-claims": {
        "task": "app.workers.celery_tasks.notification_tasks.release_stale_email_claims",
        "schedule": 900.0,  # Every 15 minutes
    },
}


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    # Connecting this signal stops Celery from installing its own root handlers
    from app.core.logging_config import setup_logging
    setup_logging()
