"""Tests for pre-flight validation."""

from spotsync.core.models.records import TestRecord
from spotsync.core.sync.validator import validate_record, validate_records


class TestValidateRecord:
    """Tests for validate_record()."""

    def test_valid_record_has_no_defects(self, make_test_doc) -> None:
        """Test a complete document passes."""
        assert validate_record(make_test_doc(1)) == []

    def test_accepts_models(self, make_test_doc) -> None:
        """Test TestRecord input is checked on its wire names."""
        assert validate_record(TestRecord.model_validate(make_test_doc(1))) == []

    def test_missing_identity_fields(self, make_test_doc) -> None:
        """Test id, name and Arabic name are each reported."""
        doc = make_test_doc(1, id=None, method_name="", method_name_ar="null")

        errors = validate_record(doc)

        assert "Test missing or invalid ID: Unknown" in errors
        assert "Test missing or invalid method_name: Unknown" in errors
        assert "Test missing or invalid Arabic name: Unknown" in errors

    def test_missing_results(self, make_test_doc) -> None:
        """Test a test without rows is reported once."""
        errors = validate_record(make_test_doc(2, rows=[]))
        assert errors == ["Test missing color results: marquis-test-2"]

    def test_row_defects_use_one_based_index(self, make_test_doc) -> None:
        """Test each missing row field gets its own defect."""
        rows = [
            make_test_doc(1)["results"][0],
            {"color_result": "Red", "possible_substance": "undefined"},
        ]
        errors = validate_record(make_test_doc(3, rows=rows))

        assert errors == [
            "Test marquis-test-3, Result 2: Missing or invalid possible_substance",
            "Test marquis-test-3, Result 2: Missing or invalid color_result_ar",
            "Test marquis-test-3, Result 2: Missing or invalid possible_substance_ar",
        ]

    def test_legacy_row_keys_are_accepted(self, make_test_doc) -> None:
        """Test color/substance legacy keys satisfy the row checks."""
        row = {
            "color": "Blue",
            "color_ar": "أزرق",
            "substance": "Cocaine",
            "substance_ar": "كوكايين",
        }
        doc = make_test_doc(4)
        del doc["results"]
        doc["color_results"] = [row]

        assert validate_record(doc) == []

    def test_non_record_entry(self) -> None:
        """Test non-mapping entries are reported, not raised."""
        assert validate_record("oops") == ["Test entry is not a record: str"]


class TestValidateRecords:
    """Tests for validate_records()."""

    def test_collects_defects_across_batch(self, make_test_doc) -> None:
        """Test defects from every record are concatenated."""
        batch = [make_test_doc(1), make_test_doc(2, rows=[]), make_test_doc(3)]
        assert validate_records(batch) == [
            "Test missing color results: marquis-test-2"
        ]

    def test_empty_batch(self) -> None:
        """Test an empty batch is clean."""
        assert validate_records([]) == []
