from pydantic import BaseModel
from typing import Optional
import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    app_name: str = os.getenv("APP_NAME", "kc-api")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    jwt_secret: str = os.getenv("JWT_SECRET", "default-jwt-secret-change-in-production")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = _env_int("PORT", 8080)

    # AI queue (Celery over Redis). Unset address disables the subsystem.
    redis_addr: Optional[str] = os.getenv("REDIS_ADDR") or None
    redis_password: str = os.getenv("REDIS_PASSWORD", "")
    redis_db: int = _env_int("REDIS_DB", 0)
    redis_queue_name: str = os.getenv("REDIS_QUEUE_NAME") or "celery"

    # Advisory only: the worker's result backend owns expiry.
    redis_result_ttl_seconds: int = _env_int("REDIS_RESULT_TTL", 3600)
    redis_probe_timeout_seconds: float = float(os.getenv("REDIS_PROBE_TIMEOUT", "5"))

    @property
    def ai_queue_enabled(self) -> bool:
        return bool(self.redis_addr)

settings = Settings()
