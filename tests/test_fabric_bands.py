import json
import pytest

from fitscore.services.fabric import (
    FABRIC_BANDS,
    FabricBandError,
    FabricToleranceBand,
    get_band,
    load_fabric_bands,
    resolve_fabric,
    validate_bands,
)


@pytest.mark.parametrize("fabric", ["rigid", "normal", "stretchy"])
def test_builtin_bands_are_ordered(fabric):
    band = FABRIC_BANDS[fabric]
    assert band.tight_threshold <= band.perfect_min <= band.perfect_max <= band.loose_threshold


def test_builtin_band_values():
    assert FABRIC_BANDS["rigid"].as_dict() == {
        "perfect_min": 2.0, "perfect_max": 4.0, "tight_threshold": 0.0, "loose_threshold": 6.0,
    }
    assert FABRIC_BANDS["normal"].as_dict() == {
        "perfect_min": -1.5, "perfect_max": 2.0, "tight_threshold": -3.0, "loose_threshold": 4.0,
    }
    assert FABRIC_BANDS["stretchy"].as_dict() == {
        "perfect_min": -4.0, "perfect_max": 1.0, "tight_threshold": -6.0, "loose_threshold": 3.0,
    }


def test_band_table_is_read_only():
    with pytest.raises(TypeError):
        FABRIC_BANDS["silk"] = FABRIC_BANDS["normal"]  # type: ignore[index]


def test_inverted_band_rejected_at_construction():
    with pytest.raises(FabricBandError):
        FabricToleranceBand(perfect_min=3.0, perfect_max=1.0, tight_threshold=0.0, loose_threshold=5.0)
    with pytest.raises(FabricBandError):
        # tight threshold above perfect_min
        FabricToleranceBand(perfect_min=-1.0, perfect_max=1.0, tight_threshold=0.0, loose_threshold=5.0)


def test_unknown_fabric_falls_back_to_normal():
    assert get_band("silk") is FABRIC_BANDS["normal"]
    assert get_band(None) is FABRIC_BANDS["normal"]
    assert get_band("") is FABRIC_BANDS["normal"]
    assert resolve_fabric("silk") == "normal"
    assert resolve_fabric("stretchy") == "stretchy"


def test_validate_bands_requires_normal():
    with pytest.raises(FabricBandError):
        validate_bands({"rigid": FABRIC_BANDS["rigid"]})


def test_validate_bands_reports_missing_threshold():
    with pytest.raises(FabricBandError, match="loose_threshold"):
        validate_bands({"normal": {"perfect_min": -1, "perfect_max": 1, "tight_threshold": -2}})


def test_validate_bands_rejects_non_numeric():
    with pytest.raises(FabricBandError):
        validate_bands({"normal": {"perfect_min": "a", "perfect_max": 1, "tight_threshold": -2, "loose_threshold": 3}})


def test_load_without_overrides_returns_builtin_table():
    assert load_fabric_bands(None) is FABRIC_BANDS


def test_load_merges_overrides():
    overrides = {
        "denim": {"perfect_min": 3, "perfect_max": 5, "tight_threshold": 1, "loose_threshold": 7},
    }
    table = load_fabric_bands(json.dumps(overrides))
    assert set(table) == {"rigid", "normal", "stretchy", "denim"}
    assert table["denim"].perfect_min == 3.0
    assert table["normal"] is FABRIC_BANDS["normal"]


def test_load_rejects_inverted_override():
    overrides = {"normal": {"perfect_min": 2, "perfect_max": -1, "tight_threshold": -3, "loose_threshold": 4}}
    with pytest.raises(FabricBandError):
        load_fabric_bands(json.dumps(overrides))


@pytest.mark.parametrize("raw", ["not json", "[1, 2]"])
def test_load_rejects_malformed_json(raw):
    with pytest.raises(FabricBandError):
        load_fabric_bands(raw)
