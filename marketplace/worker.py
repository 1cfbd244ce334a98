"""
Celery worker entry point
Delivers appointment notification e-mails
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from marketplace.config.celery_config import celery_app
from marketplace.utils.my_logging import setup_logging

# Registers the tasks on celery_app
import marketplace.tasks.email_tasks  # noqa: F401

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    """Handle worker startup"""
    logger.info("Celery worker ready!")
    logger.info(f"Registered tasks: {sorted(name for name in celery_app.tasks if name.startswith('marketplace.'))}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    """Handle worker shutdown"""
    logger.info("Celery worker shutting down...")


if __name__ == "__main__":
    # Run worker directly
    celery_app.start([
        'worker',
        '--loglevel=info',
        '--queues=notifications',
        '--concurrency=4',
        '--max-tasks-per-child=1000'
    ])
