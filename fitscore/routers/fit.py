from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request

from ..security import verify_api_key
from ..config import settings
from ..services.aggregator import display_range
from ..services.classifier import classify
from ..services.evaluator import FitEvaluator, decode_size_chart, status_label
from ..services.fabric import resolve_fabric
from ..services.llm import TailorLLM
from ..schemas.fit import (
    ClassifyRequest,
    CompareRequest,
    CompareResponse,
    EvaluateRequest,
    EvaluateResponse,
    FabricBand,
    FitVerdictOut,
    SizeEvaluationOut,
)


router = APIRouter(prefix="/fit", tags=["fit"], dependencies=[Depends(verify_api_key)])


def get_evaluator(request: Request) -> FitEvaluator:
    return request.app.state.evaluator


@router.get("/fabrics")
async def fabrics(evaluator: FitEvaluator = Depends(get_evaluator)) -> List[FabricBand]:
    return [FabricBand(fabric=name, **band.as_dict()) for name, band in evaluator.bands.items()]


@router.post("/classify")
async def classify_measurement(req: ClassifyRequest, evaluator: FitEvaluator = Depends(get_evaluator)) -> FitVerdictOut:
    fabric = req.fabric_type or settings.default_fabric
    verdict = classify(req.user_value, req.chart_value, fabric, key=req.key, bands=evaluator.bands)
    range_min, range_max = display_range(req.chart_value)
    return FitVerdictOut(
        key=req.key,
        user_value=req.user_value,
        chart_value=req.chart_value,
        difference=verdict.difference,
        category=verdict.category,
        status=status_label(verdict.category, req.key),
        range_min=range_min,
        range_max=range_max,
    )


@router.post("/evaluate")
async def evaluate(req: EvaluateRequest, evaluator: FitEvaluator = Depends(get_evaluator)) -> EvaluateResponse:
    chart = decode_size_chart(req.size_chart)
    if req.size not in chart:
        raise HTTPException(status_code=404, detail=f"Size '{req.size}' not found in size chart")

    fabric = resolve_fabric(req.fabric_type or settings.default_fabric, evaluator.bands)
    evaluation = evaluator.evaluate_size(
        req.profile.as_profile(),
        chart,
        req.size,
        fabric,
        req.fallback_confidence or settings.default_confidence,
        recommended=True,
    )

    response = EvaluateResponse(fabric_type=fabric, evaluation=SizeEvaluationOut.from_evaluation(evaluation))
    if req.include_feedback:
        feedback = await TailorLLM().generate_feedback(evaluation, fabric, tone=req.tone)
        response.preview_feedback = list(feedback.get("preview") or [])
        response.final_feedback = feedback.get("final", "")
    return response


@router.post("/compare")
async def compare(req: CompareRequest, evaluator: FitEvaluator = Depends(get_evaluator)) -> CompareResponse:
    chart = decode_size_chart(req.size_chart)
    fabric = resolve_fabric(req.fabric_type or settings.default_fabric, evaluator.bands)
    evaluations = evaluator.compare_sizes(
        req.profile.as_profile(),
        chart,
        fabric,
        req.fallback_confidence or settings.default_confidence,
        recommended_size=req.recommended_size,
    )
    return CompareResponse(
        fabric_type=fabric,
        recommended_size=req.recommended_size,
        sizes=[SizeEvaluationOut.from_evaluation(e) for e in evaluations],
    )
