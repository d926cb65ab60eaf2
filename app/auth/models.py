# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None


class ProfileResponse(BaseModel):
    """
    Current user's profile as seen by the access gate.

    Built from the profiles table; everything but the id may be missing
    for a user whose profile row hasn't been created yet.
    """
    id: UUID
    email: Optional[str] = None
    role: Optional[str] = None
    subscription_status: Optional[str] = None
    trial_status: Optional[str] = None
    trial_start_date: Optional[datetime] = None
    trial_end_date: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
