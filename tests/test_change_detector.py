"""
Tests for engine.change_detector.
"""
import pytest

from engine.change_detector import analyze_data_changes, detect_changes_for_account
from models.tenant import TenantRecord
from utils.errors import ExternalFetchError


def _prior(**fields):
    row = {"property": "A", "unit": "1", "tenant": "X", "past_due": 100}
    row.update(fields)
    return row


def _new(**fields):
    row = {"property": "A", "unit": "1", "tenant": "X", "pastDue": 100}
    row.update(fields)
    return row


class TestClassification:
    def test_identical_values_are_unchanged(self):
        result = analyze_data_changes([_new()], [_prior()])
        assert result.total_rows == 1
        assert result.unchanged_rows == 1
        assert result.changed_rows == 0
        assert result.changes == []
        assert result.records_to_score == []

    def test_past_due_change(self):
        result = analyze_data_changes([_new(pastDue=150.02)], [_prior()])
        assert result.changed_rows == 1
        assert result.unchanged_rows == 0
        assert result.to_dict()["changes"][0]["changes"] == {"past_due": {"old": 100, "new": 150.02}}

    def test_difference_within_tolerance_is_ignored(self):
        result = analyze_data_changes([_new(pastDue=100.005)], [_prior()])
        assert result.unchanged_rows == 1

    def test_difference_beyond_tolerance_is_changed(self):
        result = analyze_data_changes([_new(pastDue=100.02)], [_prior()])
        assert result.changed_rows == 1

    def test_new_key_is_always_changed(self):
        result = analyze_data_changes([_new(unit="2")], [_prior()])
        assert result.new_rows == 1
        assert result.changed_rows == 1
        assert result.unchanged_rows == 0
        assert result.changes == []
        assert len(result.records_to_score) == 1

    def test_empty_prior_batch(self):
        result = analyze_data_changes([_new(), _new(unit="2")], None)
        assert result.changed_rows == result.new_rows == 2

    def test_tenant_name_column_and_name_normalization(self):
        prior = {"property": "A", "unit": "1", "tenant_name": "Smith, John", "past_due": 0}
        new = TenantRecord(property="A", unit="1", tenant="John Smith")
        assert analyze_data_changes([new], [prior]).unchanged_rows == 1


class TestComparedFields:
    @pytest.mark.parametrize("new_field, prior_field", [
        ("rentAmount", "rent_amount"),
        ("delinquentRent", "delinquent_rent"),
        ("aging30", "aging_30"),
        ("aging60", "aging_60"),
        ("aging90", "aging_90"),
        ("agingOver90", "aging_over_90"),
    ])
    def test_numeric_fields(self, new_field, prior_field):
        result = analyze_data_changes([_new(**{new_field: 500})], [_prior(**{prior_field: 400})])
        assert prior_field in result.changes[0].changes

    def test_sparse_new_record_defaults_to_zero(self):
        # three-file records omit zero aging buckets
        result = analyze_data_changes([_new()], [_prior(aging_30=0, delinquent_rent=0)])
        assert result.unchanged_rows == 1

    def test_notes_compare_trimmed(self):
        same = analyze_data_changes(
            [_new(delinquencyNotes="Payment plan ")], [_prior(delinquency_notes=" Payment plan")]
        )
        assert same.unchanged_rows == 1

        changed = analyze_data_changes(
            [_new(delinquencyNotes="Eviction filed")], [_prior(delinquency_notes=None)]
        )
        assert changed.changes[0].changes["delinquency_notes"].new == "Eviction filed"

    def test_total_balance_compared_when_stored(self):
        prior = _prior(delinquent_rent=50, total_balance=150)
        result = analyze_data_changes([_new(delinquentRent=50, pastDue=120)], [prior])
        diff = result.changes[0].changes
        assert diff["total_balance"].old == 150
        assert diff["total_balance"].new == 170

    def test_unrelated_fields_ignored(self):
        result = analyze_data_changes([_new(marketRent=9999, emails="x@y.com")], [_prior()])
        assert result.unchanged_rows == 1


def test_summary_to_dict_shape():
    result = analyze_data_changes([_new(), _new(unit="2")], [_prior()])
    assert result.to_dict() == {
        "totalRows": 2,
        "unchangedRows": 1,
        "changedRows": 1,
        "newRows": 1,
        "changes": [],
    }


# ---------------------------------------------------------------------------
# Snapshot provider
# ---------------------------------------------------------------------------

class _Provider:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.requested = []

    def fetch_prior_snapshot(self, account_key):
        self.requested.append(account_key)
        if self.error:
            raise self.error
        return self.rows


def test_detect_changes_uses_provider():
    provider = _Provider([_prior()])
    result = detect_changes_for_account([_new()], provider, "user-1")
    assert provider.requested == ["user-1"]
    assert result.unchanged_rows == 1


def test_fetch_failure_treated_as_no_prior_data():
    provider = _Provider(error=ExternalFetchError("connection refused"))
    result = detect_changes_for_account([_new(), _new(unit="2")], provider, "user-1")
    assert result.new_rows == 2
    assert result.unchanged_rows == 0
