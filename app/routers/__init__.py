# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - imports.py: Bulk supplier import (preview, submit, template, history)
# - tasks.py: Background task status endpoints
# - access.py: Feature access decisions and trial start
# - suppliers.py: Access-gated supplier directory
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import imports
from . import tasks
from . import access
from . import suppliers

__all__ = [
    "health",
    "imports",
    "tasks",
    "access",
    "suppliers",
]
