from typing import Any, Dict, Optional, List
from pydantic import BaseModel, ConfigDict, Field

from ..services.classifier import FitCategory
from ..services.evaluator import SizeEvaluation


# Entries that are not measurement mappings (e.g. "unit": "cm") are dropped when decoded
SizeChart = Dict[str, Any]


class ProfileMeasurements(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chest: Optional[float] = None
    waist: Optional[float] = None
    hip: Optional[float] = None
    shoulder: Optional[float] = None
    arm_length: Optional[float] = Field(None, alias="armLength")
    leg_length: Optional[float] = Field(None, alias="legLength")
    thigh_circumference: Optional[float] = Field(None, alias="thighCircumference")
    inseam: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None

    def as_profile(self) -> Dict[str, float]:
        """Measurements keyed by profile field name, absent ones dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


class FabricBand(BaseModel):
    fabric: str
    perfect_min: float
    perfect_max: float
    tight_threshold: float
    loose_threshold: float


class ClassifyRequest(BaseModel):
    user_value: float = Field(allow_inf_nan=False)
    chart_value: float = Field(allow_inf_nan=False)
    fabric_type: Optional[str] = None
    key: str = ""


class EvaluateRequest(BaseModel):
    profile: ProfileMeasurements
    # Either a mapping or the JSON string produced by the chart extraction
    size_chart: SizeChart | str
    size: str
    fabric_type: Optional[str] = None
    fallback_confidence: Optional[str] = None
    include_feedback: bool = False
    tone: Optional[str] = None


class CompareRequest(BaseModel):
    profile: ProfileMeasurements
    size_chart: SizeChart | str
    fabric_type: Optional[str] = None
    fallback_confidence: Optional[str] = None
    recommended_size: Optional[str] = None


class FitVerdictOut(BaseModel):
    key: str
    user_value: float
    chart_value: float
    difference: float
    category: FitCategory
    status: str
    range_min: Optional[int] = None
    range_max: Optional[int] = None


class SizeEvaluationOut(BaseModel):
    size: str
    recommended: bool = False
    verdicts: List[FitVerdictOut]
    overall_confidence: str
    overall_fit: str

    @classmethod
    def from_evaluation(cls, evaluation: SizeEvaluation) -> "SizeEvaluationOut":
        verdicts = []
        for c in evaluation.comparisons:
            range_min, range_max = c.display_range
            verdicts.append(
                FitVerdictOut(
                    key=c.key,
                    user_value=c.sample.user_value,
                    chart_value=c.sample.chart_value,
                    difference=c.verdict.difference,
                    category=c.verdict.category,
                    status=c.status,
                    range_min=range_min,
                    range_max=range_max,
                )
            )
        return cls(
            size=evaluation.size,
            recommended=evaluation.recommended,
            verdicts=verdicts,
            overall_confidence=evaluation.overall_confidence,
            overall_fit=evaluation.overall_fit,
        )


class EvaluateResponse(BaseModel):
    fabric_type: str
    evaluation: SizeEvaluationOut
    preview_feedback: List[str] = Field(default_factory=list)
    final_feedback: Optional[str] = None


class CompareResponse(BaseModel):
    fabric_type: str
    recommended_size: Optional[str] = None
    sizes: List[SizeEvaluationOut]


class RecommendationFitResponse(BaseModel):
    recommendation_id: str
    recommended_size: str
    fabric_type: str
    ai_confidence: str
    confidence: str
    evaluation: SizeEvaluationOut
    sizes: List[SizeEvaluationOut]
