# =============================================================================
# tests/test_access.py - Feature Access Decision Tests
# =============================================================================
# Tests for the pure access decision, the teaser subset of partitioned
# content and entity locking/sanitization.
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest

from core.models.access import (
    AccessDecision,
    FeatureAccessLevel,
    FeatureAccessRule,
    TrialState,
    TrialStatus,
)
from lib.access import (
    GENERIC_LOCKED_MESSAGE,
    LOCKED_SUPPLIER_PLACEHOLDERS,
    decide_access,
    fail_closed,
    latest_per_category,
    lock_entities,
    sanitize_for_access,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def rule():
    return FeatureAccessRule(
        feature_key="suppliers_list",
        trial_access_level=FeatureAccessLevel.LIMITED_COUNT,
        trial_limit_value=3,
        trial_message_locked="Assine para ver todos",
        non_subscriber_access_level=FeatureAccessLevel.NONE,
        non_subscriber_message_locked="Exclusivo para assinantes",
    )


def make_trial(status=TrialStatus.ACTIVE, end=NOW + timedelta(days=1), **kwargs):
    return TrialState(
        user_id="user-1",
        status=status,
        start_date=NOW - timedelta(days=2),
        end_date=end,
        allowed_entity_ids=kwargs.pop("allowed", ["s1", "s2", "s3"]),
        **kwargs,
    )


# =============================================================================
# decide_access
# =============================================================================

class TestDecideAccess:
    """Decision table."""

    def test_no_rule_is_full(self):
        assert decide_access(None, None, NOW).access == FeatureAccessLevel.FULL

    def test_anonymous_gets_non_subscriber_rule(self, rule):
        decision = decide_access(rule, None, NOW)

        assert decision.access == FeatureAccessLevel.NONE
        assert decision.message == "Exclusivo para assinantes"
        assert decision.limit is None

    def test_active_trial_gets_trial_rule(self, rule):
        decision = decide_access(rule, make_trial(), NOW)

        assert decision.access == FeatureAccessLevel.LIMITED_COUNT
        assert decision.limit == 3
        assert decision.allowed_ids == ["s1", "s2", "s3"]
        assert decision.message == "Assine para ver todos"

    def test_active_trial_past_end_date_is_non_subscriber(self, rule):
        decision = decide_access(rule, make_trial(end=NOW - timedelta(seconds=1)), NOW)

        assert decision.access == FeatureAccessLevel.NONE

    def test_expired_trial(self, rule):
        decision = decide_access(rule, make_trial(status=TrialStatus.EXPIRED), NOW)

        assert decision.access == FeatureAccessLevel.NONE

    def test_not_started_trial(self, rule):
        decision = decide_access(rule, make_trial(status=TrialStatus.NOT_STARTED, end=None), NOW)

        assert decision.access == FeatureAccessLevel.NONE

    @pytest.mark.parametrize("subscription_status", ["active", "trialing"])
    def test_subscriber_is_full(self, rule, subscription_status):
        trial = make_trial(status=TrialStatus.EXPIRED, subscription_status=subscription_status)

        assert decide_access(rule, trial, NOW).access == FeatureAccessLevel.FULL

    def test_converted_is_full(self, rule):
        trial = make_trial(status=TrialStatus.CONVERTED)

        assert decide_access(rule, trial, NOW).access == FeatureAccessLevel.FULL

    def test_blurred_has_no_limit_or_ids(self, rule):
        rule = rule.model_copy(update={
            "trial_access_level": FeatureAccessLevel.LIMITED_BLURRED,
        })

        decision = decide_access(rule, make_trial(), NOW)

        assert decision.access == FeatureAccessLevel.LIMITED_BLURRED
        assert decision.limit is None
        assert decision.allowed_ids is None
        assert decision.is_locked("s1")

    def test_partitioned_entities_use_latest_per_category(self, rule):
        articles = [
            {"id": "a1", "category": "moda", "published_at": "2026-10-01"},
            {"id": "a2", "category": "moda", "published_at": "2026-10-10"},
            {"id": "a3", "category": "negocios", "published_at": "2026-09-01"},
        ]

        decision = decide_access(rule, make_trial(), NOW, partitioned_entities=articles)

        assert decision.allowed_ids == ["a2", "a3"]
        assert not decision.is_locked("a2")
        assert decision.is_locked("a1")


class TestFailClosed:
    """Lookup-failure decision."""

    def test_with_rule_uses_locked_message(self, rule):
        decision = fail_closed(rule)

        assert decision.access == FeatureAccessLevel.NONE
        assert decision.message == "Exclusivo para assinantes"

    def test_without_rule_uses_generic_message(self):
        assert fail_closed().message == GENERIC_LOCKED_MESSAGE


# =============================================================================
# latest_per_category
# =============================================================================

class TestLatestPerCategory:

    def test_ties_keep_first_seen(self):
        entities = [
            {"id": "a1", "category": "moda", "published_at": "2026-10-01"},
            {"id": "a2", "category": "moda", "published_at": "2026-10-01"},
        ]

        assert latest_per_category(entities) == ["a1"]

    def test_entities_without_category_ignored(self):
        entities = [
            {"id": "a1", "category": None, "published_at": "2026-10-01"},
            {"id": "a2", "category": "moda", "published_at": None},
        ]

        assert latest_per_category(entities) == []


# =============================================================================
# Locking / sanitization
# =============================================================================

class TestLockEntities:

    @pytest.fixture
    def suppliers(self):
        return [
            {"id": "s9", "name": "Nine", "city": "Recife", "whatsapp": "81999"},
            {"id": "s1", "name": "One", "city": "Goiânia", "whatsapp": "62999"},
        ]

    def test_locked_are_sanitized_and_listed_last(self, suppliers):
        decision = AccessDecision(
            access=FeatureAccessLevel.LIMITED_COUNT,
            limit=3,
            allowed_ids=["s1"],
        )

        result = lock_entities(suppliers, decision)

        assert [s["id"] for s in result] == ["s1", "s9"]
        assert result[0]["is_locked"] is False
        assert result[0]["whatsapp"] == "62999"
        assert result[1]["is_locked"] is True
        assert result[1]["name"] == LOCKED_SUPPLIER_PLACEHOLDERS["name"]
        assert result[1]["whatsapp"] is None

    def test_full_access_locks_nothing(self, suppliers):
        result = lock_entities(suppliers, AccessDecision(access=FeatureAccessLevel.FULL))

        assert [s["is_locked"] for s in result] == [False, False]

    def test_sanitize_does_not_mutate_input(self, suppliers):
        original = dict(suppliers[0])

        sanitize_for_access(suppliers[0], True)

        assert suppliers[0] == original
