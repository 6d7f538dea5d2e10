import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

from .aggregator import derive_confidence, display_range, overall_fit
from .classifier import FitCategory, FitVerdict, MeasurementSample, classify_sample
from .fabric import FABRIC_BANDS, FabricToleranceBand
from .measurements import is_length_measurement, match_samples


logger = structlog.get_logger("fitscore.evaluator")


def status_label(category: FitCategory, key: str) -> str:
    """Human facing label; length measurements read Short/Long rather than Tight/Loose."""
    if is_length_measurement(key):
        if category is FitCategory.TIGHT:
            return "Short"
        if category is FitCategory.LOOSE:
            return "Long"
    return category.label


@dataclass(frozen=True)
class MeasurementComparison:
    sample: MeasurementSample
    verdict: FitVerdict

    @property
    def key(self) -> str:
        return self.sample.key

    @property
    def status(self) -> str:
        return status_label(self.verdict.category, self.sample.key)

    @property
    def display_range(self) -> Tuple[Optional[int], Optional[int]]:
        return display_range(self.sample.chart_value)


@dataclass(frozen=True)
class SizeEvaluation:
    size: str
    comparisons: Tuple[MeasurementComparison, ...]
    overall_confidence: str
    recommended: bool = False

    @property
    def verdicts(self) -> List[FitVerdict]:
        return [c.verdict for c in self.comparisons]

    @property
    def overall_fit(self) -> str:
        return overall_fit(self.verdicts)


def decode_size_chart(raw: Any) -> Dict[str, Dict[str, Any]]:
    """Accept a size chart as a mapping or a JSON string.

    Anything that does not decode to ``{size: {key: value}}`` becomes an
    empty chart so the caller falls back to the external confidence.
    """
    chart = raw
    if isinstance(raw, (str, bytes)):
        try:
            chart = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("size_chart_decode_failed", error=str(e))
            return {}
    if not isinstance(chart, Mapping):
        return {}
    return {str(size): dict(m) for size, m in chart.items() if isinstance(m, Mapping)}


class FitEvaluator:
    def __init__(self, bands: Mapping[str, FabricToleranceBand] = FABRIC_BANDS) -> None:
        self.bands = bands

    def evaluate_measurements(
        self,
        profile: Mapping[str, Any],
        size_measurements: Mapping[str, Any],
        fabric_type: Optional[str],
        fallback_confidence: str,
        size: str = "",
        recommended: bool = False,
    ) -> SizeEvaluation:
        comparisons = tuple(
            MeasurementComparison(sample=s, verdict=classify_sample(s, fabric_type, self.bands))
            for s in match_samples(profile, size_measurements)
        )
        confidence = derive_confidence([c.verdict for c in comparisons], fallback_confidence)
        logger.debug(
            "size_evaluated",
            size=size,
            fabric=fabric_type,
            measurements=len(comparisons),
            overall=confidence,
        )
        return SizeEvaluation(size=size, comparisons=comparisons, overall_confidence=confidence, recommended=recommended)

    def evaluate_size(
        self,
        profile: Mapping[str, Any],
        size_chart: Mapping[str, Mapping[str, Any]],
        size: str,
        fabric_type: Optional[str],
        fallback_confidence: str,
        recommended: bool = False,
    ) -> SizeEvaluation:
        """Evaluate one size of the chart; a missing size has no measurements."""
        return self.evaluate_measurements(
            profile,
            size_chart.get(size) or {},
            fabric_type,
            fallback_confidence,
            size=size,
            recommended=recommended,
        )

    def compare_sizes(
        self,
        profile: Mapping[str, Any],
        size_chart: Mapping[str, Mapping[str, Any]],
        fabric_type: Optional[str],
        fallback_confidence: str,
        recommended_size: Optional[str] = None,
    ) -> List[SizeEvaluation]:
        """Evaluate every size in chart order so the caller can compare them."""
        return [
            self.evaluate_measurements(
                profile,
                measurements,
                fabric_type,
                fallback_confidence,
                size=size,
                recommended=size == recommended_size,
            )
            for size, measurements in size_chart.items()
        ]
