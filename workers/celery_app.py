# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# Creates the Celery app that runs bulk supplier imports and trial rotations.
#
# Usage:
#   # Imports worker (long tasks, one at a time)
#   celery -A workers.celery_app worker -Q imports --concurrency=1 --loglevel=info
#
#   # Everything else
#   celery -A workers.celery_app worker -Q default --loglevel=info
#
#   # Hourly trial sweep
#   celery -A workers.celery_app beat --loglevel=info
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, task_revoked

from app.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

IMPORT_TASK_NAME = "workers.tasks.run_supplier_import"


def _redacted(url: str) -> str:
    """Drop credentials from a broker URL before logging it."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    """
    Create the SupplierHub Celery app.

    Broker and result backend both point at settings.REDIS_URL; the rest
    of the configuration lives in workers.config.CeleryConfig.
    """
    app = Celery(
        "supplierhub_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app created with broker: {_redacted(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================

@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    logger.info(f"Task started: {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, retval=None, state=None, **extra):
    """Log completion; import runs also log their outcome counts."""
    if task.name == IMPORT_TASK_NAME and isinstance(retval, dict):
        logger.info(
            f"Import task {task_id} finished ({state}): status={retval.get('status')} "
            f"created={retval.get('success_count', 0)} failed={retval.get('error_count', 0)}"
        )
        return
    logger.info(f"Task completed: {task.name} [{task_id}] - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - Error: {exception}")


@task_revoked.connect
def task_revoked_handler(sender=None, request=None, terminated=None, **extra):
    # A revoked import may leave staged files behind in the imports bucket
    task_id = request.id if request else None
    logger.warning(f"Task revoked: {task_id} (terminated={terminated})")


if __name__ == "__main__":
    celery_app.start()
