import os
from pydantic import BaseModel


class Settings(BaseModel):
    api_key: str = os.getenv("API_KEY", "change-me")
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")

    profile_api_base: str = os.getenv("PROFILE_API_BASE", "http://localhost:5000/api")
    recommendations_api_base: str = os.getenv("RECOMMENDATIONS_API_BASE", "http://localhost:5000/api")

    # Fit scoring
    default_fabric: str = os.getenv("DEFAULT_FABRIC", "normal")
    default_confidence: str = os.getenv("DEFAULT_CONFIDENCE", "Good")
    # JSON object of {fabric: {perfect_min, perfect_max, tight_threshold, loose_threshold}}
    fabric_bands_json: str | None = os.getenv("FABRIC_BANDS_JSON")

    # JWT
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    jwt_audience: str | None = os.getenv("JWT_AUDIENCE")
    jwt_issuer: str | None = os.getenv("JWT_ISSUER")
    jwt_ttl_seconds: int = int(os.getenv("JWT_TTL_SECONDS", "3600"))

    # Rate limit (token bucket)
    rate_limit_per_min: int = int(os.getenv("RATE_LIMIT_PER_MIN", "60"))
    rate_limit_burst: int = int(os.getenv("RATE_LIMIT_BURST", "30"))


settings = Settings()
