# nextlevel/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "NextLevel API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3002"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Reverse proxies whose X-Forwarded-For is honored for the client IP (comma separated)
    trusted_proxies: list[str] = [
        p.strip() for p in os.getenv("TRUSTED_PROXIES", "").split(",") if p.strip()
    ]

    # Token signing: two distinct secrets so one token class cannot forge the other
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-access-secret")
    jwt_refresh_secret: str = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret")

    # Activity log retention (days) used when cleanup is called without a threshold
    log_retention_days: int = int(os.getenv("LOG_RETENTION_DAYS", "90"))

    # Google OAuth (external identity login); disabled when client id/secret are missing
    google_client_id: str | None = os.getenv("GOOGLE_CLIENT_ID")
    google_client_secret: str | None = os.getenv("GOOGLE_CLIENT_SECRET")
    google_redirect_uri: str = os.getenv(
        "GOOGLE_REDIRECT_URI", "http://localhost:3002/api/v1/auth/google/callback"
    )

    # Push notification relay; topic broadcasts are skipped when no URL is configured
    notify_api_url: str | None = os.getenv("NOTIFY_API_URL")
    notify_api_key: str | None = os.getenv("NOTIFY_API_KEY")
    notify_timeout_sec: float = float(os.getenv("NOTIFY_TIMEOUT_SEC", "5"))

settings = Settings()  # Instantiate configuration
