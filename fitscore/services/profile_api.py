import httpx
from typing import Any, Dict, Optional
from ..config import settings


class ProfileApiClient:
    def __init__(self, base: str | None = None) -> None:
        self.base = (base or settings.profile_api_base).rstrip("/")

    async def get_profile(self, token: str | None = None) -> Optional[Dict[str, Any]]:
        """Fetch the signed-in user's profile; ``None`` when the user has none yet."""
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.get(f"{self.base}/profile", headers=headers)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            profile = resp.json()
            if not isinstance(profile, dict):
                raise RuntimeError("Profile API returned a non-object profile")
            return profile
