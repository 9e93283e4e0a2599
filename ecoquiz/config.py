# ecoquiz/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

# .env lives next to the package, not in the cwd
ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=ENV_PATH)


def _csv(value: str):
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings:
    DATABASE_URL = (os.getenv("DATABASE_URL") or "").strip()
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
    SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "168"))
    CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS", "http://localhost:5173"))
    TIMEZONE = os.getenv("TIMEZONE") or "Europe/Zurich"  # IANA name
    EXPORT_LIMIT = int(os.getenv("EXPORT_LIMIT", "10000"))
    API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
