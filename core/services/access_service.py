# =============================================================================
# core/services/access_service.py - Feature Access Gate
# =============================================================================
# Loads the rule and trial state for (user, feature) and hands them to the
# pure decision in lib/access.py.
#
# Lookup failures fail closed: the user gets "none" with the feature's
# locked message, never full access by accident.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence
from uuid import UUID

from lib.supabase_client import SupabaseClient
from lib.access import decide_access, fail_closed
from core.models.access import (
    AccessDecision,
    FeatureAccessLevel,
    FeatureAccessRule,
    TrialState,
    TrialStatus,
)

logger = logging.getLogger(__name__)


class FeatureAccessService:
    """Service answering "what may this user see of this feature"."""

    @staticmethod
    def get_rule(feature_key: str) -> FeatureAccessRule | None:
        """Load and parse a feature rule (None if the feature is not gated)."""
        row = SupabaseClient.fetch_feature_access_rule(feature_key)
        if row is None:
            return None
        return FeatureAccessRule.model_validate(row)

    @staticmethod
    def build_trial_state(
        user_id: str,
        profile: Mapping[str, Any],
        trial_config: Mapping[str, Any] | None,
    ) -> TrialState:
        """
        Combine a profiles row and an optional free_trial_config row.

        Example:
            build_trial_state(
                "550e8400-...",
                {"trial_status": "active", "trial_end_date": "2026-10-22T00:00:00Z"},
                {"allowed_supplier_ids": ["a", "b", "c"], "last_rotation_at": "..."},
            )
        """
        trial_config = trial_config or {}
        return TrialState(
            user_id=user_id,
            status=profile.get("trial_status") or TrialStatus.NOT_STARTED,
            start_date=profile.get("trial_start_date"),
            end_date=profile.get("trial_end_date"),
            subscription_status=profile.get("subscription_status"),
            allowed_entity_ids=[str(i) for i in trial_config.get("allowed_supplier_ids") or []],
            last_rotation_date=trial_config.get("last_rotation_at"),
        )

    @staticmethod
    def get_trial_state(user_id: UUID | str) -> TrialState | None:
        """
        Load a user's trial state.

        Returns:
            TrialState, or None if the user has no profile

        Raises:
            SupabaseClientError: If a lookup fails
        """
        user_id = str(user_id)
        profile = SupabaseClient.fetch_profile(user_id)
        if profile is None:
            return None

        trial_config = SupabaseClient.fetch_free_trial_config(user_id)
        return FeatureAccessService.build_trial_state(user_id, profile, trial_config)

    @staticmethod
    def check_access(
        user_id: UUID | str | None,
        feature_key: str,
        partitioned_entities: Sequence[Mapping[str, Any]] | None = None,
        now: datetime | None = None,
    ) -> AccessDecision:
        """
        Decide a user's access to a feature.

        Args:
            user_id: Authenticated user id, or None for anonymous visitors
            feature_key: Feature identifier (e.g. "suppliers_list")
            partitioned_entities: Candidate entities for category-partitioned
                features (see lib.access.decide_access)
            now: Evaluation time (defaults to current UTC time)

        Returns:
            AccessDecision (never raises)
        """
        now = now or datetime.now(timezone.utc)

        try:
            rule = FeatureAccessService.get_rule(feature_key)
        except Exception as e:
            logger.error(f"Failed to load access rule for {feature_key}: {e}")
            return fail_closed()

        if rule is None:
            logger.warning(f"No access rule for feature '{feature_key}', granting full access")
            return AccessDecision(access=FeatureAccessLevel.FULL)

        trial = None
        if user_id is not None:
            try:
                trial = FeatureAccessService.get_trial_state(user_id)
            except Exception as e:
                logger.error(f"Failed to load trial state for user {user_id}: {e}")
                return fail_closed(rule)

            if trial is None:
                logger.warning(f"No profile for user {user_id}, access denied")
                return fail_closed(rule)

        try:
            decision = decide_access(rule, trial, now, partitioned_entities)
        except Exception as e:
            logger.error(f"Access decision failed for {user_id} on {feature_key}: {e}")
            return fail_closed(rule)

        logger.debug(f"Access for {user_id} on {feature_key}: {decision.access.value}")
        return decision
