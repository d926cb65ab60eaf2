# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to Celery workers.
# =============================================================================

from celery.schedules import crontab

from app.config import settings


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Broker Settings (Redis)
    # -------------------------------------------------------------------------

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge tasks after they complete (not before)
    task_acks_late = True

    # Imports are long and sequential; one at a time per worker process
    worker_prefetch_multiplier = 1

    # Results (import summaries) are polled by the admin screen for a day
    result_expires = 86400

    # Default task timeout (5 minutes)
    task_time_limit = 300
    task_soft_time_limit = 240

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    task_queues = {
        "default": {
            "exchange": "default",
            "routing_key": "default",
        },
        "imports": {
            "exchange": "imports",
            "routing_key": "imports",
        },
    }

    # Bulk imports get their own queue so trial rotations never wait behind them
    task_routes = {
        "workers.tasks.run_supplier_import": {"queue": "imports"},
    }

    task_default_queue = "default"

    # Large spreadsheets with many images need more than the default limit
    task_annotations = {
        "workers.tasks.run_supplier_import": {
            "time_limit": 1800,
            "soft_time_limit": 1740,
        },
    }

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    worker_send_task_events = True
    task_send_sent_event = True

    # -------------------------------------------------------------------------
    # Timezone
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True

    # -------------------------------------------------------------------------
    # Periodic Tasks (celery -A workers.celery_app beat)
    # -------------------------------------------------------------------------

    # Hourly sweep: expires finished trials and rotates subsets that are due
    beat_schedule = {
        "refresh-active-trials": {
            "task": "workers.tasks.refresh_active_trials",
            "schedule": crontab(minute=0),
        },
    }
