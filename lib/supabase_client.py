# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for fetching:
# - User profiles (role, trial and subscription status)
# - Feature access rules
# - Trial configuration (rotating allowed suppliers)
# - Supplier codes and categories (import snapshot)
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   profile = SupabaseClient.fetch_profile(user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Callable
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"

# PostgREST caps every response at max-rows (1000 by default)
PAGE_SIZE = 1000


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        profile = SupabaseClient.fetch_profile("550e8400-...")
        rule = SupabaseClient.fetch_feature_access_rule("articles")
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @classmethod
    def fetch_all_rows(cls, build_query: Callable[[Client], Any]) -> list[dict[str, Any]]:
        """
        Read every row of a query, one page at a time.

        build_query must return a fresh, deterministically ordered query on
        each call; pages are requested with .range() until a short page
        comes back.

        Example:
            rows = SupabaseClient.fetch_all_rows(
                lambda client: client.table("suppliers").select("code").order("id")
            )
        """
        client = cls.get_client()
        rows: list[dict[str, Any]] = []
        start = 0

        while True:
            response = build_query(client).range(start, start + PAGE_SIZE - 1).execute()
            page = response.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch the access-relevant columns of a user profile.

        Args:
            user_id: The user UUID (auth.users id)

        Returns:
            Dict with role, subscription_status, trial_status,
            trial_start_date, trial_end_date - or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = (
                client.table("profiles")
                .select("id, role, subscription_status, trial_status, trial_start_date, trial_end_date")
                .eq("id", user_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch profile: {e}",
                code="FETCH_PROFILE_FAILED",
                suggestion="Check that the profiles table is accessible",
                details={"user_id": user_id_str}
            )

    # -------------------------------------------------------------------------
    # Feature Access
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_feature_access_rule(cls, feature_key: str) -> dict[str, Any] | None:
        """
        Fetch the access rule for a feature.

        Args:
            feature_key: Feature identifier (e.g. "suppliers_list")

        Returns:
            Rule dict, or None if the feature has no rule

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table("feature_access_rules")
                .select("*")
                .eq("feature_key", feature_key)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch feature access rule: {e}",
                code="FETCH_RULE_FAILED",
                details={"feature_key": feature_key}
            )

    @classmethod
    def fetch_free_trial_config(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch the rotating supplier subset of a trial user.

        Returns:
            Dict with allowed_supplier_ids and last_rotation_at, or None

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = (
                client.table("free_trial_config")
                .select("user_id, allowed_supplier_ids, last_rotation_at")
                .eq("user_id", user_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch trial config: {e}",
                code="FETCH_TRIAL_CONFIG_FAILED",
                details={"user_id": user_id_str}
            )

    @classmethod
    def fetch_active_trial_user_ids(cls) -> list[str]:
        """
        Ids of every user whose trial is currently active.

        Raises:
            SupabaseClientError: If query fails
        """
        try:
            rows = cls.fetch_all_rows(
                lambda c: c.table("profiles").select("id").eq("trial_status", "active").order("id")
            )
            return [str(row["id"]) for row in rows]

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch active trials: {e}",
                code="FETCH_ACTIVE_TRIALS_FAILED",
            )

    # -------------------------------------------------------------------------
    # Import Snapshot
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_supplier_codes(cls) -> set[str]:
        """
        Fetch every supplier code already persisted.

        Raises:
            SupabaseClientError: If query fails
        """
        try:
            rows = cls.fetch_all_rows(
                lambda c: c.table("suppliers").select("code").order("id")
            )
            codes = {row["code"] for row in rows if row.get("code")}
            logger.debug(f"Fetched {len(codes)} existing supplier codes")
            return codes

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch supplier codes: {e}",
                code="FETCH_CODES_FAILED",
                suggestion="Check that the suppliers table is accessible"
            )

    @classmethod
    def fetch_categories(cls) -> list[dict[str, Any]]:
        """
        Fetch every known category (id, name).

        Raises:
            SupabaseClientError: If query fails
        """
        try:
            return cls.fetch_all_rows(
                lambda c: c.table("categories").select("id, name").order("id")
            )

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch categories: {e}",
                code="FETCH_CATEGORIES_FAILED",
                suggestion="Check that the categories table is accessible"
            )
