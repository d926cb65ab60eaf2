# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background processing of bulk supplier imports and trial upkeep.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (supplier import, trial rotation)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q default,imports --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import run_supplier_import
#   result = run_supplier_import.delay(spreadsheet_path, filename, archive_path, user_id)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
