import json
from dataclasses import dataclass, asdict
from types import MappingProxyType
from typing import Any, Dict, Mapping

import structlog


logger = structlog.get_logger("fitscore.fabric")


DEFAULT_FABRIC = "normal"


class FabricBandError(ValueError):
    """Raised when a fabric band configuration is malformed."""


@dataclass(frozen=True)
class FabricToleranceBand:
    """Ease tolerances for one class of fabric, in cm of (chart - body).

    Only ``perfect_min``/``perfect_max`` decide the category. The tight and
    loose thresholds describe the band for range display and are never used
    as cut points; changing that needs product sign-off.
    """

    perfect_min: float
    perfect_max: float
    tight_threshold: float
    loose_threshold: float

    def __post_init__(self) -> None:
        if not (self.tight_threshold <= self.perfect_min <= self.perfect_max <= self.loose_threshold):
            raise FabricBandError(
                "fabric band must satisfy tight_threshold <= perfect_min <= perfect_max <= loose_threshold, "
                f"got {self.tight_threshold}, {self.perfect_min}, {self.perfect_max}, {self.loose_threshold}"
            )

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


# Rigid/woven needs positive ease, normal tolerates a little either side,
# stretch fabrics allow body-hugging negative ease.
FABRIC_BANDS: Mapping[str, FabricToleranceBand] = MappingProxyType({
    "rigid": FabricToleranceBand(perfect_min=2.0, perfect_max=4.0, tight_threshold=0.0, loose_threshold=6.0),
    "normal": FabricToleranceBand(perfect_min=-1.5, perfect_max=2.0, tight_threshold=-3.0, loose_threshold=4.0),
    "stretchy": FabricToleranceBand(perfect_min=-4.0, perfect_max=1.0, tight_threshold=-6.0, loose_threshold=3.0),
})


def get_band(fabric_type: str | None, bands: Mapping[str, FabricToleranceBand] = FABRIC_BANDS) -> FabricToleranceBand:
    """Return the band for ``fabric_type``, falling back to the normal band."""
    return bands[resolve_fabric(fabric_type, bands)]


def resolve_fabric(fabric_type: str | None, bands: Mapping[str, FabricToleranceBand] = FABRIC_BANDS) -> str:
    """Name of the band ``get_band`` would pick for ``fabric_type``."""
    if fabric_type and fabric_type in bands:
        return fabric_type
    return DEFAULT_FABRIC


def validate_bands(bands: Mapping[str, Any]) -> Mapping[str, FabricToleranceBand]:
    """Build a read-only band table from raw mappings, rejecting bad ones.

    Accepts either ``FabricToleranceBand`` instances or dicts with the four
    threshold keys. The normal band must always be present since it is the
    fallback for unknown fabrics.
    """
    table: Dict[str, FabricToleranceBand] = {}
    for name, raw in bands.items():
        if isinstance(raw, FabricToleranceBand):
            table[name] = raw
            continue
        if not isinstance(raw, Mapping):
            raise FabricBandError(f"fabric band '{name}' must be an object")
        try:
            table[name] = FabricToleranceBand(
                perfect_min=float(raw["perfect_min"]),
                perfect_max=float(raw["perfect_max"]),
                tight_threshold=float(raw["tight_threshold"]),
                loose_threshold=float(raw["loose_threshold"]),
            )
        except KeyError as e:
            raise FabricBandError(f"fabric band '{name}' is missing {e.args[0]}") from e
        except FabricBandError as e:
            raise FabricBandError(f"fabric band '{name}': {e}") from e
        except (TypeError, ValueError) as e:
            raise FabricBandError(f"fabric band '{name}' has a non-numeric threshold") from e
    if DEFAULT_FABRIC not in table:
        raise FabricBandError(f"fabric band table must define '{DEFAULT_FABRIC}'")
    return MappingProxyType(table)


def load_fabric_bands(overrides_json: str | None = None) -> Mapping[str, FabricToleranceBand]:
    """Merge optional JSON overrides onto the built-in table and validate."""
    if not overrides_json:
        return FABRIC_BANDS
    try:
        overrides = json.loads(overrides_json)
    except json.JSONDecodeError as e:
        raise FabricBandError("FABRIC_BANDS_JSON must be valid JSON") from e
    if not isinstance(overrides, dict):
        raise FabricBandError("FABRIC_BANDS_JSON must be a JSON object")

    merged: Dict[str, Any] = dict(FABRIC_BANDS)
    merged.update(overrides)
    table = validate_bands(merged)
    logger.info("fabric_bands_loaded", fabrics=sorted(table), overridden=sorted(overrides))
    return table
