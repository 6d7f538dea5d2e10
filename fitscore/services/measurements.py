import math
import re
from typing import Any, Dict, List, Mapping, Optional

from .classifier import MeasurementSample


# Body measurement fields a profile may carry, all optional.
PROFILE_FIELDS = (
    "chest",
    "waist",
    "hip",
    "shoulder",
    "armLength",
    "legLength",
    "thighCircumference",
    "inseam",
    "height",
    "weight",
)

# Chart keys that name the size itself rather than a measurement.
RESERVED_CHART_KEYS = frozenset({"size"})

# Shown as Short/Long instead of Tight/Loose.
LENGTH_MEASUREMENTS = frozenset({"inseam", "armLength", "legLength", "thighCircumference"})

_SEPARATOR_RE = re.compile(r"_(.)")


def normalize_key(key: str) -> str:
    """``arm_length`` -> ``armLength``; keys without separators are returned as is."""
    return _SEPARATOR_RE.sub(lambda m: m.group(1).upper(), key)


# Chart keys that name a profile field differently; anything else goes through normalize_key.
CHART_KEY_TO_PROFILE_FIELD: Dict[str, str] = {
    "thigh": "thighCircumference",
    "hips": "hip",
    "shoulder_width": "shoulder",
}


def profile_field_for(chart_key: str) -> str:
    """Profile field a chart key is compared against."""
    return CHART_KEY_TO_PROFILE_FIELD.get(chart_key) or normalize_key(chart_key)


def is_number(value: Any) -> bool:
    """Finite int or float; bools, NaN and infinities do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def match_samples(profile: Mapping[str, Any], size_measurements: Mapping[str, Any]) -> List[MeasurementSample]:
    """Pair each numeric chart measurement with the profile's value for it.

    Chart order is preserved. Reserved keys, non-numeric or non-finite
    values and measurements the profile lacks are skipped.
    """
    samples: List[MeasurementSample] = []
    for key, chart_value in size_measurements.items():
        if key in RESERVED_CHART_KEYS or not is_number(chart_value):
            continue
        user_value = profile.get(profile_field_for(key))
        if not is_number(user_value):
            continue
        samples.append(MeasurementSample(key=key, user_value=float(user_value), chart_value=float(chart_value)))
    return samples


def is_length_measurement(chart_key: str) -> bool:
    return profile_field_for(chart_key) in LENGTH_MEASUREMENTS


def profile_measurements(profile: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """Numeric profile fields only, keyed by their profile field name."""
    if not profile:
        return {}
    return {k: float(profile[k]) for k in PROFILE_FIELDS if is_number(profile.get(k))}
