"""Tests for the test record models."""

import pytest
from pydantic import ValidationError

from spotsync.core.models.records import (
    ConfidenceLevel,
    RawShape,
    TestRecord,
    TestResultRow,
    canonical_document,
    canonical_row,
    detect_shape,
    is_present,
    is_sentinel,
)


class TestSentinels:
    """Tests for sentinel helpers."""

    @pytest.mark.parametrize("value", ["undefined", "null", " null "])
    def test_sentinels(self, value: str) -> None:
        """Test the placeholder strings are recognized."""
        assert is_sentinel(value) is True
        assert is_present(value) is False

    @pytest.mark.parametrize(
        "value, expected", [("Red", True), ("", False), (None, False)]
    )
    def test_is_present(self, value, expected: bool) -> None:
        """Test presence of ordinary values."""
        assert is_present(value) is expected


class TestConfidenceLevel:
    """Tests for ConfidenceLevel.coerce()."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("HIGH", ConfidenceLevel.HIGH),
            ("low", ConfidenceLevel.LOW),
            (0.2, ConfidenceLevel.LOW),
            (0.5, ConfidenceLevel.MEDIUM),
            (85, ConfidenceLevel.HIGH),
            ("0.9", ConfidenceLevel.HIGH),
            ("certain", ConfidenceLevel.MEDIUM),
            (None, ConfidenceLevel.MEDIUM),
        ],
    )
    def test_coerce(self, raw, expected: ConfidenceLevel) -> None:
        """Test strings, scores and percentages map onto the enum."""
        assert ConfidenceLevel.coerce(raw) is expected


class TestTestRecord:
    """Tests for TestRecord and TestResultRow."""

    def test_wire_names_round_trip(self, make_test_doc) -> None:
        """Test aliases map wire names onto attributes and back."""
        doc = make_test_doc(1)
        record = TestRecord.model_validate(doc)

        assert record.method_name_localized == "اختبار 1"
        assert record.preparation_steps == "Add one drop of reagent"
        assert record.results[0].confidence_level is ConfidenceLevel.HIGH
        assert record.to_document() == doc

    def test_numeric_ids_are_strings(self) -> None:
        """Test ids and test numbers are stored as strings."""
        record = TestRecord.model_validate({"id": 7, "test_number": 3})
        assert record.id == "7"
        assert record.test_number == "3"

    def test_document_without_id(self, make_test_doc) -> None:
        """Test the id can be left out of the document."""
        record = TestRecord.model_validate(make_test_doc(1))
        assert "id" not in record.to_document(include_id=False)

    def test_validity(self) -> None:
        """Test a record needs one row with color and substance."""
        good = TestResultRow(color_result="Red", possible_substance="X")
        bad = TestResultRow(color_result="undefined", possible_substance="X")

        assert TestRecord(results=[bad]).is_valid() is False
        assert TestRecord(results=[bad, good]).valid_results() == [good]

    def test_loose_scalars_are_coerced(self, make_test_doc) -> None:
        """Test numbers become text and nulls take the field default."""
        doc = make_test_doc(1, reference=2019, prepare=None, test_type=None)
        doc["test_number"] = None
        doc["results"][0]["color_result"] = 5

        record = TestRecord.model_validate(doc)

        assert record.reference == "2019"
        assert record.preparation_steps == ""
        assert record.test_type == "general"
        assert record.test_number == "0"
        assert record.description == "Color test"
        assert record.results[0].color_result == "5"

    def test_null_results_and_non_object_rows(self, make_test_doc) -> None:
        """Test missing results are empty and stray row values are dropped."""
        doc = make_test_doc(1)
        row = doc["results"][0]

        doc["results"] = None
        assert TestRecord.model_validate(doc).results == []

        doc["results"] = ["junk", row, 3]
        assert len(TestRecord.model_validate(doc).results) == 1

    def test_structured_text_is_rejected(self, make_test_doc) -> None:
        """Test a mapping where text is expected still fails validation."""
        with pytest.raises(ValidationError):
            TestRecord.model_validate(make_test_doc(1, method_name={"en": "x"}))


class TestShapes:
    """Tests for raw shape detection and re-keying."""

    def test_detect_shape(self) -> None:
        """Test each known shape is recognized."""
        assert detect_shape({"results": []}) is RawShape.CANONICAL
        assert detect_shape({"color_results": []}) is RawShape.LEGACY_COLOR_RESULTS
        assert detect_shape({"color": "Red"}) is RawShape.FLAT_ROW
        assert detect_shape({}) is RawShape.CANONICAL

    def test_canonical_row_prefers_canonical_keys(self) -> None:
        """Test legacy keys only fill gaps."""
        row = canonical_row(
            {"color_result": "", "color": "Blue", "color_hex": "#0000FF"}
        )
        assert row == {"color_result": "Blue", "hex_color": "#0000FF"}

    def test_canonical_document_from_flat_row(self) -> None:
        """Test a flat row becomes a document with one result."""
        doc = canonical_document(
            {
                "method_name": "Mecke",
                "color": "Green",
                "substance": "Y",
                "category": "c",
            }
        )
        assert doc["results"] == [{"color_result": "Green", "possible_substance": "Y"}]
        assert doc["test_type"] == "c"
        assert "color" not in doc
