import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")

APP_DIR = Path(__file__).resolve().parent

FIXTURES_DIR = Path(os.getenv("INCIDENCIAS_FIXTURES_DIR", str(APP_DIR / "fixtures")))

DEFAULT_LIMIT = int(os.getenv("INCIDENCIAS_DEFAULT_LIMIT", "50"))
MAX_COMMENT_LENGTH = int(os.getenv("INCIDENCIAS_MAX_COMMENT_LENGTH", "200"))

DASHBOARD_RECENT = int(os.getenv("INCIDENCIAS_DASHBOARD_RECENT", "5"))
DASHBOARD_TOP_WORKERS = int(os.getenv("INCIDENCIAS_DASHBOARD_TOP_WORKERS", "3"))

CORS_ORIGINS = [o.strip() for o in os.getenv("INCIDENCIAS_CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
