import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Mapping

from .fabric import FABRIC_BANDS, FabricToleranceBand, get_band


class FitCategory(str, Enum):
    PERFECT = "perfect"
    GOOD = "good"
    TIGHT = "tight"
    LOOSE = "loose"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class MeasurementSample:
    key: str
    user_value: float
    chart_value: float


@dataclass(frozen=True)
class FitVerdict:
    key: str
    difference: float
    category: FitCategory


def ease_difference(user_value: float, chart_value: float) -> float:
    """Signed ease (chart - body) rounded half-up to one decimal place.

    Infinite and NaN differences are returned unrounded.
    """
    diff = float(chart_value) - float(user_value)
    if not math.isfinite(diff):
        return diff
    # enough digits for any finite double plus the tenths place
    with localcontext() as ctx:
        ctx.prec = 400
        return float(Decimal(diff).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def categorize(difference: float, band: FabricToleranceBand) -> FitCategory:
    # perfect_min/perfect_max are the only cut points
    if band.perfect_min <= difference <= band.perfect_max:
        return FitCategory.PERFECT
    if difference < band.perfect_min:
        return FitCategory.TIGHT
    if difference > band.perfect_max:
        return FitCategory.LOOSE
    # only NaN gets here
    return FitCategory.GOOD


def classify(
    user_value: float,
    chart_value: float,
    fabric_type: str | None = None,
    key: str = "",
    bands: Mapping[str, FabricToleranceBand] = FABRIC_BANDS,
) -> FitVerdict:
    """Classify one body/garment measurement pair.

    Values are not range checked; unknown fabric types use the normal band.
    """
    difference = ease_difference(user_value, chart_value)
    return FitVerdict(key=key, difference=difference, category=categorize(difference, get_band(fabric_type, bands)))


def classify_sample(
    sample: MeasurementSample,
    fabric_type: str | None = None,
    bands: Mapping[str, FabricToleranceBand] = FABRIC_BANDS,
) -> FitVerdict:
    return classify(sample.user_value, sample.chart_value, fabric_type, key=sample.key, bands=bands)
