import httpx
import structlog
from fastapi import APIRouter, Depends, Header, HTTPException

from ..security import verify_api_key
from ..config import settings
from ..services.aggregator import normalize_confidence
from ..services.evaluator import FitEvaluator, decode_size_chart
from ..services.fabric import resolve_fabric
from ..services.measurements import profile_measurements
from ..services.profile_api import ProfileApiClient
from ..services.recommendation_api import RecommendationApiClient
from ..schemas.fit import RecommendationFitResponse, SizeEvaluationOut
from .fit import get_evaluator


logger = structlog.get_logger("fitscore.recommendations")

router = APIRouter(prefix="/recommendations", tags=["recommendations"], dependencies=[Depends(verify_api_key)])


@router.get("/{recommendation_id}/fit")
async def recommendation_fit(
    recommendation_id: str,
    x_user_token: str | None = Header(None),
    evaluator: FitEvaluator = Depends(get_evaluator),
) -> RecommendationFitResponse:
    """Evaluate a stored recommendation against the signed-in user's profile.

    The recommended size comes from the stored recommendation; this endpoint
    only scores it (and every other size, for the comparison view).
    """
    recommendation_client = RecommendationApiClient()
    profile_client = ProfileApiClient()

    try:
        recommendation = await recommendation_client.get_recommendation(recommendation_id, token=x_user_token)
        profile = await profile_client.get_profile(token=x_user_token) if recommendation else None
    except (httpx.HTTPError, RuntimeError) as e:
        logger.error("upstream_fetch_failed", recommendation_id=recommendation_id, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch recommendation or profile")

    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    recommended_size = str(recommendation.get("recommendedSize") or "")
    fabric = resolve_fabric(recommendation.get("fabricType") or settings.default_fabric, evaluator.bands)
    ai_confidence = str(recommendation.get("confidence") or "")
    fallback = normalize_confidence(ai_confidence, settings.default_confidence)
    chart = decode_size_chart(recommendation.get("sizeChartData"))
    # No profile means nothing to compare, so every size falls back to the AI confidence
    user = profile_measurements(profile)

    evaluation = evaluator.evaluate_size(user, chart, recommended_size, fabric, fallback, recommended=True)
    sizes = evaluator.compare_sizes(user, chart, fabric, fallback, recommended_size=recommended_size)

    logger.info(
        "recommendation_fit_evaluated",
        recommendation_id=recommendation_id,
        recommended_size=recommended_size,
        fabric=fabric,
        ai_confidence=ai_confidence,
        confidence=evaluation.overall_confidence,
        measurements=len(evaluation.comparisons),
    )

    return RecommendationFitResponse(
        recommendation_id=recommendation_id,
        recommended_size=recommended_size,
        fabric_type=fabric,
        ai_confidence=ai_confidence,
        confidence=evaluation.overall_confidence,
        evaluation=SizeEvaluationOut.from_evaluation(evaluation),
        sizes=[SizeEvaluationOut.from_evaluation(e) for e in sizes],
    )
