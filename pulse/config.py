# pulse/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env for local dev (hosted deploys use dashboard env vars)
load_dotenv()

APP_NAME = "Peace Pulse Journal"
APP_VERSION = "1.0.0"

ENV = os.getenv("ENV", "development").strip().lower()

# -------------------------
# CORS
# -------------------------
_cors_raw = (os.getenv("CORS_ORIGINS") or "").strip()
if _cors_raw:
    CORS_ORIGINS = [o.strip().rstrip("/") for o in _cors_raw.split(",") if o.strip()]
else:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

# -------------------------
# Storage
# -------------------------
DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
DB_NAME = os.getenv("DB_NAME", "pulse.db").strip() or "pulse.db"
DEFAULT_USER_ID = (os.getenv("DEFAULT_USER_ID") or "default").strip() or "default"

# -------------------------
# Logging
# -------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
LOG_DIR = Path(os.environ["LOG_DIR"]) if os.getenv("LOG_DIR") else None

# -------------------------
# Coach (LLM providers)
# -------------------------
MODEL_PROVIDER = os.getenv("MODEL_PROVIDER", "openai").strip().lower()
OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or "").strip()
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
GEMINI_API_KEY = (os.getenv("GEMINI_API_KEY") or "").strip()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "models/gemini-flash-latest").strip()
