from celery import Celery
from celery.signals import setup_logging

from docmarket.core.config import get_settings
from docmarket.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "docmarket",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["docmarket.workers.tasks.ledger_reconciliation"],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)


@setup_logging.connect
def _configure_worker_logging(**_kwargs: object) -> None:
    configure_logging(settings.log_level, app_env=settings.app_env)
