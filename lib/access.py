# =============================================================================
# lib/access.py - Feature Access Decisions
# =============================================================================
# Pure read-side logic of the trial / feature-access gate:
# - decide_access(): which access level a user gets for a feature
# - latest_per_category(): teaser subset for category-partitioned content
# - lock_entities() / sanitize_for_access(): apply a decision to entities
#
# Nothing here performs I/O or mutates trial state. The Supabase lookups
# live in core/services/access_service.py.
#
# Decision order:
#   no rule              -> full
#   anonymous            -> non-subscriber rule
#   paying / converted   -> full
#   trial over           -> non-subscriber rule (overrides the trial rule)
#   trial active         -> trial rule
#   trial not started    -> non-subscriber rule
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from core.models.access import (
    AccessDecision,
    FeatureAccessLevel,
    FeatureAccessRule,
    TrialState,
    TrialStatus,
)

logger = logging.getLogger(__name__)

GENERIC_LOCKED_MESSAGE = "Unable to verify your access. Please try again."

# Fields replaced on a supplier the user may only see as a teaser
LOCKED_SUPPLIER_PLACEHOLDERS: dict[str, Any] = {
    "name": "Fornecedor Bloqueado",
    "description": "Detalhes disponíveis apenas para assinantes.",
    "city": "Localização",
    "state": "Protegida",
    "instagram": None,
    "whatsapp": None,
    "website": None,
    "min_order": "-",
}


def _apply_level(
    level: FeatureAccessLevel,
    limit: int | None,
    message: str | None,
    allowed_ids: list[str] | None,
) -> AccessDecision:
    if level == FeatureAccessLevel.FULL:
        return AccessDecision(access=level)
    if level == FeatureAccessLevel.LIMITED_COUNT:
        return AccessDecision(
            access=level,
            limit=limit,
            message=message,
            allowed_ids=list(allowed_ids or []),
        )
    return AccessDecision(access=level, message=message)


def _non_subscriber(rule: FeatureAccessRule, allowed_ids: list[str] | None) -> AccessDecision:
    return _apply_level(
        rule.non_subscriber_access_level,
        rule.non_subscriber_limit_value,
        rule.non_subscriber_locked_message,
        allowed_ids,
    )


def _trial(rule: FeatureAccessRule, allowed_ids: list[str] | None) -> AccessDecision:
    return _apply_level(
        rule.trial_access_level,
        rule.trial_limit_value,
        rule.trial_locked_message,
        allowed_ids,
    )


def decide_access(
    rule: FeatureAccessRule | None,
    trial: TrialState | None,
    now: datetime,
    partitioned_entities: Sequence[Mapping[str, Any]] | None = None,
) -> AccessDecision:
    """
    Decide a user's access to one feature.

    Args:
        rule: The feature's access rule (None if the feature is not gated)
        trial: The user's trial state (None for anonymous visitors)
        now: Current time, compared with the trial end date
        partitioned_entities: For category-partitioned content (articles),
            the candidate entities; the teaser subset becomes the latest
            entity per category. When omitted, the trial's rotating
            allowed_entity_ids are used instead.

    Returns:
        AccessDecision
    """
    if rule is None:
        return AccessDecision(access=FeatureAccessLevel.FULL)

    if partitioned_entities is not None:
        allowed_ids = latest_per_category(partitioned_entities)
    elif trial is not None:
        allowed_ids = list(trial.allowed_entity_ids)
    else:
        allowed_ids = []

    if trial is None:
        return _non_subscriber(rule, allowed_ids)

    if trial.is_subscriber:
        return AccessDecision(access=FeatureAccessLevel.FULL)

    if trial.is_expired_at(now):
        return _non_subscriber(rule, allowed_ids)

    if trial.status == TrialStatus.ACTIVE:
        return _trial(rule, allowed_ids)

    return _non_subscriber(rule, allowed_ids)


def fail_closed(rule: FeatureAccessRule | None = None) -> AccessDecision:
    """Decision used when the trial/subscription lookup fails."""
    message = None
    if rule is not None:
        message = rule.non_subscriber_locked_message or rule.trial_locked_message
    return AccessDecision(access=FeatureAccessLevel.NONE, message=message or GENERIC_LOCKED_MESSAGE)


def latest_per_category(entities: Iterable[Mapping[str, Any]]) -> list[str]:
    """
    Pick the most recently published entity of each category.

    Entities without a category or publication date are ignored. On equal
    dates the first one seen wins.

    Args:
        entities: Dicts with "id", "category" and "published_at"

    Returns:
        One id per category, in first-seen category order
    """
    latest: dict[str, tuple[Any, str]] = {}

    for entity in entities:
        category = entity.get("category")
        published_at = entity.get("published_at")
        if category is None or published_at is None:
            continue

        current = latest.get(category)
        if current is None or published_at > current[0]:
            latest[category] = (published_at, str(entity["id"]))

    return [entity_id for _, entity_id in latest.values()]


def sanitize_for_access(
    entity: Mapping[str, Any],
    is_locked: bool,
    placeholders: Mapping[str, Any] = LOCKED_SUPPLIER_PLACEHOLDERS,
) -> dict[str, Any]:
    """
    Redact an entity for display.

    Returns a new dict; the input is never modified. Locked entities keep
    their id and non-sensitive fields so they can render as a teaser.
    """
    sanitized = dict(entity)
    sanitized["is_locked"] = is_locked
    if is_locked:
        for key, value in placeholders.items():
            sanitized[key] = value
    return sanitized


def lock_entities(
    entities: Iterable[Mapping[str, Any]],
    decision: AccessDecision,
    placeholders: Mapping[str, Any] = LOCKED_SUPPLIER_PLACEHOLDERS,
) -> list[dict[str, Any]]:
    """
    Flag and sanitize every entity under a decision.

    Locked entities are kept (as teasers), never dropped. Unlocked ones are
    listed first, preserving the original order within each group.
    """
    results = [
        sanitize_for_access(entity, decision.is_locked(str(entity["id"])), placeholders)
        for entity in entities
    ]
    return sorted(results, key=lambda entity: entity["is_locked"])
