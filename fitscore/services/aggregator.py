import math
from typing import Optional, Sequence, Tuple

from .classifier import FitCategory, FitVerdict


# Fixed +/-5% band used only for the human readable range text
DISPLAY_RANGE_LOW = 0.95
DISPLAY_RANGE_HIGH = 1.05


def derive_confidence(verdicts: Sequence[FitVerdict], fallback: str) -> str:
    """Reduce per-measurement verdicts to one confidence label.

    Tight beats loose, loose beats everything else, and only an all-perfect
    set is "Perfect". A single tight measurement is enough to make the whole
    size "Tight" however many others fit. With no verdicts the externally
    supplied ``fallback`` is returned unchanged.
    """
    if not verdicts:
        return fallback
    categories = [v.category for v in verdicts]
    if FitCategory.TIGHT in categories:
        return FitCategory.TIGHT.label
    if FitCategory.LOOSE in categories:
        return FitCategory.LOOSE.label
    if all(c is FitCategory.PERFECT for c in categories):
        return FitCategory.PERFECT.label
    return FitCategory.GOOD.label


def overall_fit(verdicts: Sequence[FitVerdict]) -> str:
    """Lower-case fit summary for the size comparison view, "unknown" if empty."""
    if not verdicts:
        return "unknown"
    return derive_confidence(verdicts, fallback="unknown").lower()


def display_range(chart_value: float) -> Tuple[Optional[int], Optional[int]]:
    """Whole-cm range shown next to a measurement; not used for classification.

    Infinite or NaN chart values have no range and give ``(None, None)``.
    """
    if not math.isfinite(chart_value):
        return None, None
    return (
        math.floor(chart_value * DISPLAY_RANGE_LOW),
        math.ceil(chart_value * DISPLAY_RANGE_HIGH),
    )


def normalize_confidence(confidence: str | None, default: str) -> str:
    """Map a free-form confidence string ("perfect fit", "TIGHT") to a canonical label.

    Unrecognised strings pass through untouched; empty ones become ``default``.
    """
    if not confidence:
        return default
    lowered = confidence.lower()
    for label in ("perfect", "good", "loose", "tight"):
        if label in lowered:
            return label.capitalize()
    return confidence
