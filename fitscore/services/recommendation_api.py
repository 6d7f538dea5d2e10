import httpx
from typing import Dict, Any, Optional
from ..config import settings


class RecommendationApiClient:
    def __init__(self, base: str | None = None) -> None:
        self.base = (base or settings.recommendations_api_base).rstrip("/")

    async def get_recommendation(self, recommendation_id: str, token: str | None = None) -> Optional[Dict[str, Any]]:
        """Fetch a stored recommendation produced by the size-chart analysis.

        The payload carries ``recommendedSize``, ``sizeChartData`` (object or
        JSON string), ``fabricType`` and the analysis' own ``confidence``.
        """
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.get(f"{self.base}/recommendations/{recommendation_id}", headers=headers)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict):
                raise RuntimeError("Recommendations API returned a non-object payload")
            return data
