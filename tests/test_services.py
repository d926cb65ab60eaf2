# =============================================================================
# tests/test_services.py - Service Layer Tests
# =============================================================================
# This module contains tests for:
# - SupplierService (snapshot loading, creation, duplicate handling)
# - Paged reads past the PostgREST row cap
# - ImportHistoryService (best-effort recording, lookups)
# - FeatureAccessService (rule + trial lookups, fail-closed behavior)
# - TrialService (start, rotation, expiry)
#
# Tests use mocked Supabase responses to avoid database calls.
# =============================================================================

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import ImportHistoryNotFoundError
from core.models.access import FeatureAccessLevel, TrialStatus
from core.models.imports import ImportRunResult, ImportStatus
from core.models.supplier import row_to_supplier_create
from core.services.access_service import FeatureAccessService
from core.services.import_history_service import ImportHistoryService
from core.services.supplier_service import DuplicateSupplierError, SupplierService
from core.services.trial_service import TrialService
from lib.access import GENERIC_LOCKED_MESSAGE
from lib.supabase_client import SupabaseClient, SupabaseClientError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

RULE_ROW = {
    "feature_key": "suppliers_list",
    "trial_access_level": "limited_count",
    "trial_limit_value": 3,
    "trial_message_locked": "Assine para ver todos",
    "non_subscriber_access_level": "none",
    "non_subscriber_limit_value": None,
    "non_subscriber_message_locked": "Exclusivo para assinantes",
}


def _response(data):
    response = MagicMock()
    response.data = data
    return response


# =============================================================================
# SupplierService Tests
# =============================================================================

class TestSupplierService:
    """Supplier persistence with mocked Supabase."""

    @pytest.fixture
    def mock_supabase(self):
        with patch("core.services.supplier_service.SupabaseClient") as mock:
            yield mock

    def test_load_snapshot(self, mock_supabase, sample_categories):
        mock_supabase.fetch_supplier_codes.return_value = {"F001"}
        mock_supabase.fetch_categories.return_value = sample_categories

        snapshot = SupplierService.load_snapshot()

        assert snapshot.existing_codes == {"F001"}
        assert snapshot.category_index.resolve("plus size") == "cat-plus"

    def test_create_supplier_links_categories(self, mock_supabase, make_row):
        client = mock_supabase.get_client.return_value
        suppliers_table = MagicMock()
        links_table = MagicMock()
        client.table.side_effect = lambda name: {
            "suppliers": suppliers_table,
            "suppliers_categories": links_table,
        }[name]
        suppliers_table.insert.return_value.execute.return_value = _response([{"id": "sup-1"}])

        payload = row_to_supplier_create(make_row(), ["cat-fem", "cat-plus"])
        created = SupplierService.create_supplier(payload)

        assert created == {"id": "sup-1"}
        inserted = suppliers_table.insert.call_args[0][0]
        assert inserted["code"] == "F001"
        assert "category_ids" not in inserted
        links_table.insert.assert_called_once_with([
            {"supplier_id": "sup-1", "category_id": "cat-fem"},
            {"supplier_id": "sup-1", "category_id": "cat-plus"},
        ])

    def test_failed_category_links_remove_the_supplier(self, mock_supabase, make_row):
        client = mock_supabase.get_client.return_value
        suppliers_table = MagicMock()
        links_table = MagicMock()
        client.table.side_effect = lambda name: {
            "suppliers": suppliers_table,
            "suppliers_categories": links_table,
        }[name]
        suppliers_table.insert.return_value.execute.return_value = _response([{"id": "sup-1"}])
        links_table.insert.return_value.execute.side_effect = RuntimeError("link failed")

        with pytest.raises(RuntimeError, match="link failed"):
            SupplierService.create_supplier(row_to_supplier_create(make_row(), ["cat-fem"]))

        suppliers_table.delete.return_value.eq.assert_called_once_with("id", "sup-1")

    def test_duplicate_key_is_reported_by_code(self, mock_supabase, make_row):
        client = mock_supabase.get_client.return_value
        client.table.return_value.insert.return_value.execute.side_effect = Exception(
            "{'code': '23505', 'message': 'duplicate key value violates unique constraint'}"
        )

        with pytest.raises(DuplicateSupplierError) as exc_info:
            SupplierService.create_supplier(row_to_supplier_create(make_row(), []))

        assert str(exc_info.value) == "code 'F001' already exists."


# =============================================================================
# Paged Reads
# =============================================================================

class TestPagedReads:
    """Reads that go past the PostgREST max-rows cap."""

    @pytest.fixture
    def client(self):
        with patch.object(SupabaseClient, "get_client") as get_client:
            yield get_client.return_value

    def test_supplier_codes_span_pages(self, client):
        first = [{"code": f"F{i:04d}"} for i in range(1000)]
        second = [{"code": f"F{i:04d}"} for i in range(1000, 1500)]
        ranged = client.table.return_value.select.return_value.order.return_value.range
        ranged.return_value.execute.side_effect = [_response(first), _response(second)]

        codes = SupabaseClient.fetch_supplier_codes()

        assert len(codes) == 1500
        assert "F1200" in codes
        assert [call.args for call in ranged.call_args_list] == [(0, 999), (1000, 1999)]

    def test_full_last_page_asks_once_more(self, client):
        ranged = client.table.return_value.select.return_value.order.return_value.range
        ranged.return_value.execute.side_effect = [
            _response([{"id": str(i), "name": f"cat {i}"} for i in range(1000)]),
            _response([]),
        ]

        assert len(SupabaseClient.fetch_categories()) == 1000
        assert ranged.call_count == 2

    def test_rotation_pool_spans_pages(self, client):
        ranged = client.table.return_value.select.return_value.eq.return_value.order.return_value.range
        ranged.return_value.execute.side_effect = [
            _response([{"id": f"s{i}"} for i in range(1000)]),
            _response([{"id": "s1000"}, {"id": "s1001"}]),
        ]

        ids = SupplierService.list_visible_ids()

        assert len(ids) == 1002
        assert ids[-1] == "s1001"


# =============================================================================
# ImportHistoryService Tests
# =============================================================================

class TestImportHistoryService:
    """Audit trail with mocked Supabase."""

    @pytest.fixture
    def mock_supabase(self):
        with patch("core.services.import_history_service.SupabaseClient") as mock:
            yield mock

    @pytest.fixture
    def result(self):
        return ImportRunResult(
            total_rows=2,
            success_count=1,
            error_count=1,
            errors={"F002": ["import failed: timeout"]},
            status=ImportStatus.PARTIAL,
        )

    def test_record_inserts_payload(self, mock_supabase, result):
        table = mock_supabase.get_client.return_value.table.return_value
        table.insert.return_value.execute.return_value = _response([{"id": "hist-1"}])

        record = ImportHistoryService.record(result, "f.xlsx", "user-1")

        assert record == {"id": "hist-1"}
        mock_supabase.get_client.return_value.table.assert_called_with("supplier_import_history")
        payload = table.insert.call_args[0][0]
        assert payload["status"] == "partial"
        assert payload["imported_by"] == "user-1"
        assert payload["errors"] == {"F002": ["import failed: timeout"]}

    def test_record_failure_is_swallowed(self, mock_supabase, result):
        table = mock_supabase.get_client.return_value.table.return_value
        table.insert.return_value.execute.side_effect = Exception("network down")

        assert ImportHistoryService.record(result, "f.xlsx", "user-1") is None

    def test_get_history_not_found(self, mock_supabase):
        query = mock_supabase.get_client.return_value.table.return_value
        query.select.return_value.eq.return_value.single.return_value.execute.side_effect = Exception(
            "PGRST116: no rows"
        )

        with pytest.raises(ImportHistoryNotFoundError):
            ImportHistoryService.get_history("missing-id")


# =============================================================================
# FeatureAccessService Tests
# =============================================================================

class TestFeatureAccessService:
    """Access checks with mocked lookups."""

    @pytest.fixture
    def mock_supabase(self):
        with patch("core.services.access_service.SupabaseClient") as mock:
            mock.fetch_feature_access_rule.return_value = RULE_ROW
            mock.fetch_profile.return_value = {
                "id": "user-1",
                "role": "user",
                "subscription_status": None,
                "trial_status": "active",
                "trial_start_date": "2026-10-18T12:00:00+00:00",
                "trial_end_date": "2026-10-21T12:00:00+00:00",
            }
            mock.fetch_free_trial_config.return_value = {
                "user_id": "user-1",
                "allowed_supplier_ids": ["s1", "s2", "s3"],
                "last_rotation_at": "2026-10-19T00:00:00+00:00",
            }
            yield mock

    def test_active_trial(self, mock_supabase):
        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.LIMITED_COUNT
        assert decision.allowed_ids == ["s1", "s2", "s3"]

    def test_anonymous_skips_profile_lookup(self, mock_supabase):
        decision = FeatureAccessService.check_access(None, "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.NONE
        mock_supabase.fetch_profile.assert_not_called()

    def test_unknown_feature_is_full(self, mock_supabase):
        mock_supabase.fetch_feature_access_rule.return_value = None

        decision = FeatureAccessService.check_access("user-1", "unknown", now=NOW)

        assert decision.access == FeatureAccessLevel.FULL

    def test_profile_failure_fails_closed_with_rule_message(self, mock_supabase):
        mock_supabase.fetch_profile.side_effect = SupabaseClientError("timeout")

        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.NONE
        assert decision.message == "Exclusivo para assinantes"

    def test_missing_profile_fails_closed(self, mock_supabase):
        mock_supabase.fetch_profile.return_value = None

        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.NONE

    def test_rule_failure_uses_generic_message(self, mock_supabase):
        mock_supabase.fetch_feature_access_rule.side_effect = SupabaseClientError("timeout")

        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.NONE
        assert decision.message == GENERIC_LOCKED_MESSAGE

    def test_subscriber_is_full(self, mock_supabase):
        mock_supabase.fetch_profile.return_value["subscription_status"] = "active"

        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.FULL

    @pytest.mark.parametrize("end_date,expected", [
        ("2026-10-22T00:00:00", FeatureAccessLevel.LIMITED_COUNT),
        ("2026-10-22", FeatureAccessLevel.LIMITED_COUNT),
        ("2026-10-18T00:00:00", FeatureAccessLevel.NONE),
        ("2026-10-18", FeatureAccessLevel.NONE),
    ])
    def test_end_date_without_offset_is_utc(self, mock_supabase, end_date, expected):
        mock_supabase.fetch_profile.return_value["trial_end_date"] = end_date

        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == expected

    def test_unparseable_end_date_fails_closed(self, mock_supabase):
        mock_supabase.fetch_profile.return_value["trial_end_date"] = "next tuesday"

        decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.NONE
        assert decision.message == "Exclusivo para assinantes"

    def test_decision_failure_fails_closed(self, mock_supabase):
        with patch("core.services.access_service.decide_access") as decide:
            decide.side_effect = TypeError("can't compare offset-naive and offset-aware datetimes")

            decision = FeatureAccessService.check_access("user-1", "suppliers_list", now=NOW)

        assert decision.access == FeatureAccessLevel.NONE
        assert decision.message == "Exclusivo para assinantes"


# =============================================================================
# TrialService Tests
# =============================================================================

class TestTrialService:
    """Trial lifecycle with mocked Supabase."""

    @pytest.fixture
    def mock_supabase(self):
        with patch("core.services.trial_service.SupabaseClient") as mock:
            yield mock

    @pytest.fixture
    def mock_pool(self):
        with patch("core.services.trial_service.SupplierService") as mock:
            mock.list_visible_ids.return_value = ["s1", "s2", "s3", "s4", "s5"]
            yield mock

    def test_start_trial_sets_window_and_rotates(self, mock_supabase, mock_pool):
        data = TrialService.start_trial("user-1", now=NOW)

        assert data["trial_status"] == "active"
        assert data["trial_end_date"] == (NOW + timedelta(days=3)).isoformat()
        client = mock_supabase.get_client.return_value
        client.table.return_value.upsert.assert_called_once()

    def test_rotation_picks_three_distinct_visible(self, mock_supabase, mock_pool):
        selected = TrialService.rotate_allowed_suppliers("user-1", now=NOW)

        assert len(selected) == 3
        assert len(set(selected)) == 3
        assert set(selected) <= {"s1", "s2", "s3", "s4", "s5"}
        upserted = mock_supabase.get_client.return_value.table.return_value.upsert.call_args[0][0]
        assert upserted["allowed_supplier_ids"] == selected
        assert upserted["last_rotation_at"] == NOW.isoformat()

    def test_rotation_with_small_pool(self, mock_supabase, mock_pool):
        mock_pool.list_visible_ids.return_value = ["s1"]

        assert TrialService.rotate_allowed_suppliers("user-1", now=NOW) == ["s1"]

    def test_rotate_if_due_skips_recent(self, mock_supabase, mock_pool):
        mock_supabase.fetch_free_trial_config.return_value = {
            "last_rotation_at": (NOW - timedelta(hours=5)).isoformat(),
        }

        assert TrialService.rotate_if_due("user-1", now=NOW) is False
        mock_pool.list_visible_ids.assert_not_called()

    def test_rotate_if_due_after_24h(self, mock_supabase, mock_pool):
        mock_supabase.fetch_free_trial_config.return_value = {
            "last_rotation_at": (NOW - timedelta(hours=24)).isoformat(),
        }

        assert TrialService.rotate_if_due("user-1", now=NOW) is True

    def test_rotate_if_due_without_config(self, mock_supabase, mock_pool):
        mock_supabase.fetch_free_trial_config.return_value = None

        assert TrialService.rotate_if_due("user-1", now=NOW) is True

    def test_refresh_expires_past_trial(self, mock_supabase, mock_pool):
        mock_supabase.fetch_profile.return_value = {
            "trial_status": "active",
            "trial_end_date": "2026-10-18T12:00:00Z",
        }

        status = TrialService.refresh_status("user-1", now=NOW)

        assert status == TrialStatus.EXPIRED
        update = mock_supabase.get_client.return_value.table.return_value.update
        update.assert_called_once_with({"trial_status": "expired"})

    def test_refresh_with_naive_end_date(self, mock_supabase, mock_pool):
        mock_supabase.fetch_profile.return_value = {
            "trial_status": "active",
            "trial_end_date": "2026-10-19T11:00:00",
        }

        assert TrialService.refresh_status("user-1", now=NOW) == TrialStatus.EXPIRED

    def test_rotate_if_due_with_naive_timestamp(self, mock_supabase, mock_pool):
        mock_supabase.fetch_free_trial_config.return_value = {
            "last_rotation_at": "2026-10-19T10:00:00",
        }

        assert TrialService.rotate_if_due("user-1", now=NOW) is False

    def test_auto_start_only_when_not_started(self, mock_supabase, mock_pool):
        mock_supabase.fetch_profile.return_value = {"trial_status": "expired"}

        assert TrialService.auto_start_trial("user-1", now=NOW) is False

    def test_end_trial_converted(self, mock_supabase, mock_pool):
        assert TrialService.end_trial("user-1", converted=True) == TrialStatus.CONVERTED
