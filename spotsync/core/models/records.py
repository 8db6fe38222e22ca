"""
Chemical spot-test record model.

Two pydantic models describe the canonical shape shared by every store:
TestRecord (one named test) and TestResultRow (one observed color and
the substance it indicates). Attribute names are snake_case; the wire
documents keep the historic field names (``method_name_ar``,
``prepare``, ``color_result_ar`` ...) through aliases, so
``TestRecord.model_validate(document)`` and ``record.to_document()``
round-trip a stored document.

Raw input is loosely typed. RawShape and detect_shape() name the known
shapes; turning any of them into a TestRecord is the cleaner's job
(spotsync.core.sync.cleaner).
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationInfo, field_validator

# Placeholder strings left behind by malformed upstream data
SENTINEL_VALUES = frozenset({"undefined", "null"})


def is_sentinel(value: Any) -> bool:
    """True if value is one of the sentinel strings ("undefined"/"null")."""
    return isinstance(value, str) and value.strip() in SENTINEL_VALUES


def is_present(value: Any) -> bool:
    """True if value is a non-empty string that is not a sentinel."""
    if value is None:
        return False
    text = str(value).strip()
    return bool(text) and text not in SENTINEL_VALUES


def loose_text(model: type, value: Any, info: ValidationInfo) -> Any:
    """Coerce a scalar to text; None falls back to the field default."""
    if value is None:
        return model.model_fields[info.field_name].default
    if isinstance(value, (bool, int, float)):
        return str(value)
    return value


class ConfidenceLevel(str, Enum):
    """How strongly a color indicates the substance."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: Any) -> "ConfidenceLevel":
        """
        Map a raw confidence value onto the enum.

        Strings are matched case-insensitively. Legacy numeric scores are
        bucketed (<0.34 low, <0.67 medium, otherwise high); numbers above
        1 are read as percentages. Anything else falls back to medium.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or value is None:
            return cls.MEDIUM
        if isinstance(value, (int, float)):
            score = float(value)
            if score > 1:
                score = score / 100.0
            if score < 0.34:
                return cls.LOW
            if score < 0.67:
                return cls.MEDIUM
            return cls.HIGH
        text = str(value).strip().lower()
        for level in cls:
            if level.value == text:
                return level
        try:
            return cls.coerce(float(text))
        except ValueError:
            return cls.MEDIUM


class TestResultRow(BaseModel):
    """One observed color and the substance it suggests."""

    __test__ = False  # not a pytest test class

    color_result: str = Field("", description="Observed color")
    color_result_localized: str = Field(
        "", alias="color_result_ar", description="Observed color (Arabic)"
    )
    possible_substance: str = Field("", description="Inferred substance")
    possible_substance_localized: str = Field(
        "", alias="possible_substance_ar", description="Inferred substance (Arabic)"
    )
    confidence_level: ConfidenceLevel = ConfidenceLevel.MEDIUM
    hex_color: Optional[str] = Field(None, description="Display color, #RRGGBB")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("confidence_level", mode="before")
    @classmethod
    def coerce_confidence(cls, v: Any) -> ConfidenceLevel:
        return ConfidenceLevel.coerce(v)

    @field_validator(
        "color_result",
        "color_result_localized",
        "possible_substance",
        "possible_substance_localized",
        "hex_color",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any, info: ValidationInfo) -> Any:
        return loose_text(cls, v, info)

    def is_valid(self) -> bool:
        """A row is valid iff color and substance are present and not sentinels."""
        return is_present(self.color_result) and is_present(self.possible_substance)

    def to_document(self) -> Dict[str, Any]:
        """Dump to the stored document shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class TestRecord(BaseModel):
    """
    A chemical spot test and its ordered result rows.

    ``id`` is opaque and store-scoped: the local dataset derives slugs
    from name and number while the remote database issues push keys.
    Equal ids never imply equal content, and vice versa.
    """

    __test__ = False  # not a pytest test class

    id: Optional[str] = None
    method_name: str = ""
    method_name_localized: str = Field("", alias="method_name_ar")
    test_type: str = "general"
    test_number: str = "0"
    preparation_steps: str = Field("", alias="prepare")
    preparation_steps_localized: str = Field("", alias="prepare_ar")
    description: Optional[str] = None
    description_localized: Optional[str] = Field(None, alias="description_ar")
    reference: str = ""
    results: List[TestResultRow] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator(
        "method_name",
        "method_name_localized",
        "test_type",
        "test_number",
        "preparation_steps",
        "preparation_steps_localized",
        "description",
        "description_localized",
        "reference",
        "created_by",
        "created_at",
        "updated_at",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any, info: ValidationInfo) -> Any:
        return loose_text(cls, v, info)

    @field_validator("results", mode="before")
    @classmethod
    def coerce_results(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            # non-object rows carry nothing to keep
            return [row for row in v if isinstance(row, (Mapping, TestResultRow))]
        return v

    def valid_results(self) -> List[TestResultRow]:
        return [row for row in self.results if row.is_valid()]

    def is_valid(self) -> bool:
        """A record is valid iff it has at least one valid result row."""
        return bool(self.valid_results())

    def to_document(self, include_id: bool = True) -> Dict[str, Any]:
        """Dump to the stored document shape (wire names, no None values)."""
        exclude = None if include_id else {"id"}
        return self.model_dump(
            by_alias=True, exclude_none=True, exclude=exclude, mode="json"
        )


RawRecord = Union[TestRecord, Mapping[str, Any]]


class RawShape(str, Enum):
    """Known shapes of raw record input."""

    CANONICAL = "canonical"  # results: [{color_result, possible_substance, ...}]
    LEGACY_COLOR_RESULTS = "legacy_color_results"  # color_results: [{color, substance}]
    FLAT_ROW = "flat_row"  # one result inlined at the top level


def detect_shape(raw: RawRecord) -> RawShape:
    """Classify a raw record into one of the known shapes."""
    if isinstance(raw, TestRecord):
        return RawShape.CANONICAL
    if isinstance(raw.get("results"), list):
        return RawShape.CANONICAL
    if isinstance(raw.get("color_results"), list):
        return RawShape.LEGACY_COLOR_RESULTS
    if any(key in raw for key in ("color_result", "possible_substance", "color")):
        return RawShape.FLAT_ROW
    return RawShape.CANONICAL


def raw_get(raw: RawRecord, key: str, default: Any = None) -> Any:
    """Read a wire-named field from a raw mapping or a TestRecord."""
    if isinstance(raw, TestRecord):
        return raw.to_document().get(key, default)
    return raw.get(key, default)


def raw_rows(raw: RawRecord) -> List[Any]:
    """Return the raw result rows for any known shape."""
    if isinstance(raw, TestRecord):
        return [row.to_document() for row in raw.results]
    shape = detect_shape(raw)
    if shape is RawShape.LEGACY_COLOR_RESULTS:
        return list(raw["color_results"])
    if shape is RawShape.FLAT_ROW:
        return [raw]
    rows = raw.get("results")
    return list(rows) if isinstance(rows, list) else []


# canonical row key -> legacy key
LEGACY_ROW_KEYS: Dict[str, str] = {
    "color_result": "color",
    "color_result_ar": "color_ar",
    "possible_substance": "substance",
    "possible_substance_ar": "substance_ar",
    "confidence_level": "confidence",
    "hex_color": "color_hex",
}


def canonical_row(raw: Any) -> Dict[str, Any]:
    """
    Re-key one raw result row onto the canonical wire names.

    Canonical keys win; legacy keys fill the gaps. No defaults are
    applied and sentinels are kept, so validation still sees defects.
    """
    if isinstance(raw, TestResultRow):
        return raw.to_document()
    if not isinstance(raw, Mapping):
        return {}
    row: Dict[str, Any] = {}
    for key, legacy_key in LEGACY_ROW_KEYS.items():
        value = raw.get(key)
        if value is None or value == "":
            value = raw.get(legacy_key)
        if value is not None and value != "":
            row[key] = value
    return row


def canonical_document(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Re-key a raw record of any shape into a canonical document.

    Rows are re-keyed with canonical_row(); ``category`` fills a missing
    ``test_type``. Like canonical_row(), no defaults are applied.
    """
    rows = raw_rows(raw)
    row_keys = ("results", "color_results")
    if detect_shape(raw) is RawShape.FLAT_ROW:
        row_keys = row_keys + tuple(LEGACY_ROW_KEYS) + tuple(LEGACY_ROW_KEYS.values())
    document = {k: v for k, v in raw.items() if k not in row_keys}
    document["results"] = [canonical_row(row) for row in rows]
    if not document.get("test_type") and document.get("category"):
        document["test_type"] = document["category"]
    return document
