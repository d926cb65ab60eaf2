# =============================================================================
# core/models/access.py - Trial & Feature Access Schemas
# =============================================================================
# These models define the inputs and output of the feature-access gate:
# - TrialState: A user's trial window and rotating supplier subset
# - FeatureAccessRule: Static per-feature configuration
# - AccessDecision: What the gate answers for (user, feature)
#
# Trial lifecycle (driven by TrialService, never by the gate):
#   not_started -> active -> expired
#                        \-> converted
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lib.utils import parse_timestamp


class TrialStatus(str, Enum):
    """Trial lifecycle states. expired and converted are terminal."""
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    EXPIRED = "expired"
    CONVERTED = "converted"


class FeatureAccessLevel(str, Enum):
    """
    How much of a feature a user may see.

    - full: no restriction
    - limited_count: only the allowed subset is unlocked
    - limited_blurred: everything rendered as a locked teaser
    - none: everything locked
    """
    FULL = "full"
    LIMITED_COUNT = "limited_count"
    LIMITED_BLURRED = "limited_blurred"
    NONE = "none"


# Subscription statuses (as written by the billing webhook) that count as paying
PAYING_SUBSCRIPTION_STATUSES = {"active", "trialing"}


class TrialState(BaseModel):
    """
    Trial information for one user, read from profiles + free_trial_config.

    Read-only from the gate's point of view.
    """

    user_id: str
    status: TrialStatus = TrialStatus.NOT_STARTED
    start_date: datetime | None = None
    end_date: datetime | None = None
    allowed_entity_ids: list[str] = Field(default_factory=list)
    last_rotation_date: datetime | None = None
    subscription_status: str | None = None

    @field_validator("start_date", "end_date", "last_rotation_date", mode="before")
    @classmethod
    def assume_utc(cls, value: Any) -> datetime | None:
        # "timestamp" columns and date-only strings come back without an offset
        return parse_timestamp(value)

    @property
    def is_subscriber(self) -> bool:
        return (
            self.subscription_status in PAYING_SUBSCRIPTION_STATUSES
            or self.status == TrialStatus.CONVERTED
        )

    def is_expired_at(self, now: datetime) -> bool:
        """True if the trial is over, either by status or by its end date."""
        if self.status == TrialStatus.EXPIRED:
            return True
        if self.status == TrialStatus.ACTIVE and self.end_date is not None:
            return self.end_date < now
        return False


class FeatureAccessRule(BaseModel):
    """
    Row of feature_access_rules.

    Example:
        {
            "feature_key": "articles",
            "trial_access_level": "limited_count",
            "trial_limit_value": null,
            "trial_message_locked": "Assine para ler todos os artigos",
            "non_subscriber_access_level": "none",
            "non_subscriber_limit_value": null,
            "non_subscriber_message_locked": "Conteúdo exclusivo para assinantes"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    feature_key: str
    trial_access_level: FeatureAccessLevel = FeatureAccessLevel.FULL
    trial_limit_value: int | None = None
    trial_locked_message: str | None = Field(default=None, alias="trial_message_locked")
    non_subscriber_access_level: FeatureAccessLevel = FeatureAccessLevel.NONE
    non_subscriber_limit_value: int | None = None
    non_subscriber_locked_message: str | None = Field(
        default=None,
        alias="non_subscriber_message_locked"
    )


class AccessDecision(BaseModel):
    """
    Answer of the feature-access gate.

    allowed_ids is only meaningful for limited_count; for the other
    levels it is None.
    """

    model_config = ConfigDict(frozen=True)

    access: FeatureAccessLevel
    limit: int | None = None
    message: str | None = None
    allowed_ids: list[str] | None = None

    def is_locked(self, entity_id: str) -> bool:
        """Whether an entity renders as a locked teaser under this decision."""
        if self.access == FeatureAccessLevel.FULL:
            return False
        if self.access == FeatureAccessLevel.LIMITED_COUNT:
            return str(entity_id) not in set(self.allowed_ids or [])
        return True
