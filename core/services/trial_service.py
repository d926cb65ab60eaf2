# =============================================================================
# core/services/trial_service.py - Free Trial Lifecycle
# =============================================================================
# Writes the trial state the access gate reads:
#   not_started -> active (start_trial)
#   active      -> expired | converted (end_trial / refresh_status)
#
# While a trial is active the user sees a small random subset of visible
# suppliers, re-drawn every TRIAL_ROTATION_HOURS.
# =============================================================================

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient
from lib.utils import parse_timestamp
from core.models.access import TrialStatus
from core.services.supplier_service import SupplierService
from app.config import settings

logger = logging.getLogger(__name__)


class TrialService:
    """Service for trial state transitions and supplier rotation."""

    @staticmethod
    def _update_profile(user_id: str, data: dict[str, Any]) -> None:
        client = SupabaseClient.get_client()
        client.table("profiles").update(data).eq("id", user_id).execute()

    @staticmethod
    def start_trial(user_id: UUID | str, now: datetime | None = None) -> dict[str, Any]:
        """
        Start a user's trial and draw the first supplier subset.

        Args:
            user_id: User UUID
            now: Start time (defaults to current UTC time)

        Returns:
            Dict with trial_status, trial_start_date, trial_end_date
        """
        user_id = str(user_id)
        now = now or datetime.now(timezone.utc)
        end = now + timedelta(days=settings.TRIAL_DURATION_DAYS)

        data = {
            "trial_status": TrialStatus.ACTIVE.value,
            "trial_start_date": now.isoformat(),
            "trial_end_date": end.isoformat(),
        }
        TrialService._update_profile(user_id, data)
        logger.info(f"Started trial for user {user_id} until {end.isoformat()}")

        TrialService.rotate_allowed_suppliers(user_id, now=now)
        return data

    @staticmethod
    def auto_start_trial(user_id: UUID | str, now: datetime | None = None) -> bool:
        """
        Start the trial only for users that never had one.

        Returns:
            True if a trial was started
        """
        profile = SupabaseClient.fetch_profile(user_id)
        if profile is None:
            logger.warning(f"Cannot start trial: no profile for user {user_id}")
            return False

        status = profile.get("trial_status") or TrialStatus.NOT_STARTED.value
        if status != TrialStatus.NOT_STARTED.value:
            return False

        TrialService.start_trial(user_id, now=now)
        return True

    @staticmethod
    def rotate_allowed_suppliers(
        user_id: UUID | str,
        now: datetime | None = None,
    ) -> list[str]:
        """
        Draw a new random subset of visible suppliers for a trial user.

        Args:
            user_id: User UUID
            now: Rotation time (defaults to current UTC time)

        Returns:
            The newly allowed supplier ids (fewer if not enough suppliers)
        """
        user_id = str(user_id)
        now = now or datetime.now(timezone.utc)

        pool = SupplierService.list_visible_ids()
        count = min(settings.TRIAL_ALLOWED_SUPPLIERS, len(pool))
        selected = random.sample(pool, count)

        client = SupabaseClient.get_client()
        client.table("free_trial_config").upsert({
            "user_id": user_id,
            "allowed_supplier_ids": selected,
            "last_rotation_at": now.isoformat(),
        }).execute()

        logger.info(f"Rotated trial suppliers for user {user_id}: {selected}")
        return selected

    @staticmethod
    def rotate_if_due(user_id: UUID | str, now: datetime | None = None) -> bool:
        """
        Rotate when there is no subset yet or the last one is too old.

        Returns:
            True if a rotation happened
        """
        now = now or datetime.now(timezone.utc)
        config = SupabaseClient.fetch_free_trial_config(user_id)

        last_rotation = parse_timestamp((config or {}).get("last_rotation_at"))
        if last_rotation is not None:
            if now - last_rotation < timedelta(hours=settings.TRIAL_ROTATION_HOURS):
                return False

        TrialService.rotate_allowed_suppliers(user_id, now=now)
        return True

    @staticmethod
    def end_trial(user_id: UUID | str, converted: bool = False) -> TrialStatus:
        """
        Close a trial.

        Args:
            user_id: User UUID
            converted: True when the user subscribed

        Returns:
            The terminal status written
        """
        status = TrialStatus.CONVERTED if converted else TrialStatus.EXPIRED
        TrialService._update_profile(str(user_id), {"trial_status": status.value})
        logger.info(f"Ended trial for user {user_id}: {status.value}")
        return status

    @staticmethod
    def refresh_status(user_id: UUID | str, now: datetime | None = None) -> TrialStatus | None:
        """
        Expire an active trial whose end date has passed.

        Returns:
            The current status, or None if the user has no profile
        """
        now = now or datetime.now(timezone.utc)
        profile = SupabaseClient.fetch_profile(user_id)
        if profile is None:
            return None

        status = TrialStatus(profile.get("trial_status") or TrialStatus.NOT_STARTED.value)
        end_date = parse_timestamp(profile.get("trial_end_date"))

        if status == TrialStatus.ACTIVE and end_date is not None and end_date < now:
            return TrialService.end_trial(user_id, converted=False)

        return status
