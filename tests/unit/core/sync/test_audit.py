"""Tests for the dataset audit."""

from spotsync.core.models.records import TestRecord
from spotsync.core.sync.audit import audit_records


class TestAuditRecords:
    """Tests for audit_records()."""

    def test_complete_dataset_is_valid(self, sample_docs) -> None:
        """Test complete documents produce no errors or warnings."""
        result = audit_records(sample_docs)

        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []
        assert result.summary.total_tests == 5
        assert result.summary.total_results == 5
        assert result.summary.tests_with_preparation == 5
        assert result.summary.tests_with_description == 5

    def test_missing_identity_is_an_error(self, make_test_doc) -> None:
        """Test missing id and names are errors with a positional prefix."""
        result = audit_records([make_test_doc(1, id="", method_name_ar="")])

        assert result.is_valid is False
        assert "Test 1 (no-id): Missing id" in result.errors
        assert "Test 1 (no-id): Missing method_name_ar" in result.errors

    def test_bad_hex_color_is_an_error(self, make_test_doc) -> None:
        """Test display colors must be #RRGGBB."""
        doc = make_test_doc(1)
        doc["results"][0]["hex_color"] = "purple"

        result = audit_records([doc])

        assert result.errors == [
            "Test 1 (marquis-test-1) Result 1: Invalid hex_color format (purple)"
        ]

    def test_legacy_hex_key_is_checked(self, make_test_doc) -> None:
        """Test color_hex is audited like hex_color."""
        doc = make_test_doc(1, rows=[])
        doc["results"] = [
            {
                "color": "Red",
                "color_ar": "أحمر",
                "substance": "X",
                "substance_ar": "س",
                "color_hex": "#GG0000",
            }
        ]
        result = audit_records([doc])
        assert len(result.errors) == 1
        assert "Invalid hex_color format (#GG0000)" in result.errors[0]

    def test_missing_translations_are_warnings(self, make_test_doc) -> None:
        """Test missing Arabic text only warns."""
        doc = make_test_doc(2, description_ar="", prepare_ar="")
        doc["results"][0].pop("color_result_ar")

        result = audit_records([doc])

        assert result.is_valid is True
        assert result.warnings == [
            "Test 1 (marquis-test-2): Missing description_ar",
            "Test 1 (marquis-test-2): Missing prepare_ar instructions",
            "Test 1 (marquis-test-2) Result 1: Missing color_result_ar",
        ]

    def test_no_results_warns(self, make_test_doc) -> None:
        """Test a test without rows warns but is not an error."""
        result = audit_records([make_test_doc(3, rows=[])])
        assert "Test 1 (marquis-test-3): No results found" in result.warnings
        assert result.is_valid is True

    def test_models_and_non_records(self, make_test_doc) -> None:
        """Test models are audited and junk entries become errors."""
        record = TestRecord.model_validate(make_test_doc(1))
        result = audit_records([record, 42])

        assert result.summary.total_tests == 2
        assert result.errors == ["Test 2: Entry is not a record"]

    def test_to_dict(self, sample_docs) -> None:
        """Test serialization includes the summary."""
        data = audit_records(sample_docs).to_dict()
        assert data["is_valid"] is True
        assert data["summary"]["total_tests"] == 5
