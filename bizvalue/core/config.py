import os
from pydantic import BaseModel

class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "43200"))

    # Data providers
    ANALYTICS_PROVIDER: str = os.getenv("ANALYTICS_PROVIDER", "mock")  # mock | http
    ANALYTICS_BASE_URL: str | None = os.getenv("ANALYTICS_BASE_URL")
    STORE_PROVIDER: str = os.getenv("STORE_PROVIDER", "mock")          # mock | http
    STORE_BASE_URL: str | None = os.getenv("STORE_BASE_URL")
    STORE_API_KEY: str | None = os.getenv("STORE_API_KEY")

    # Funnel / report tuning (provisional values, not validated business rules)
    LOW_VOLUME_THRESHOLD: int = int(os.getenv("LOW_VOLUME_THRESHOLD", "20"))
    LEAK_THRESHOLD_LOW: int = int(os.getenv("LEAK_THRESHOLD_LOW", "50"))
    LEAK_THRESHOLD_MEDIUM: int = int(os.getenv("LEAK_THRESHOLD_MEDIUM", "40"))
    LEAK_THRESHOLD_HIGH: int = int(os.getenv("LEAK_THRESHOLD_HIGH", "30"))
    SEVERE_DROP_OFF_PCT: int = int(os.getenv("SEVERE_DROP_OFF_PCT", "70"))
    MRR_PER_PAID_USER: float = float(os.getenv("MRR_PER_PAID_USER", "50"))

    # Security
    API_KEY: str | None = os.getenv("API_KEY")
    RATE_LIMIT_RPM: int = int(os.getenv("RATE_LIMIT_RPM", "60"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Cache
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

settings = Settings()
