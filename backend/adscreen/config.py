"""Configuration loaded from environment variables."""
import os
from dotenv import load_dotenv

load_dotenv()

# Generative judge (OpenAI-compatible chat completions)
_OPENAI_API_KEY_ENV = os.getenv("OPENAI_API_KEY", "")
_OPENAI_BASE_URL_ENV = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
_OPENAI_MODEL_ENV = os.getenv("OPENAI_MODEL", "gpt-4.1")

_api_key_override = None
_base_url_override = None
_model_override = None


def get_ai_config():
    api_key = _api_key_override if _api_key_override is not None else _OPENAI_API_KEY_ENV
    base_url = _base_url_override if _base_url_override is not None else _OPENAI_BASE_URL_ENV
    model = _model_override if _model_override is not None else _OPENAI_MODEL_ENV
    return api_key, base_url, model


def set_ai_config(api_key=None, base_url=None, model=None):
    global _api_key_override, _base_url_override, _model_override
    if api_key is not None:
        _api_key_override = api_key
    if base_url is not None:
        _base_url_override = base_url
    if model is not None:
        _model_override = model


AI_TIMEOUT_SEC = float(os.getenv("AI_TIMEOUT_SEC", "90") or "90")

# OCR (Google Cloud Vision REST)
GOOGLE_VISION_API_KEY = os.getenv("GOOGLE_VISION_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""
OCR_LANGUAGE_HINTS = [
    hint.strip()
    for hint in (os.getenv("OCR_LANGUAGE_HINTS") or os.getenv("GOOGLE_VISION_LANGUAGE_HINTS") or "ko").split(",")
    if hint.strip()
]
OCR_TIMEOUT_SEC = float(os.getenv("OCR_TIMEOUT_SEC", "60") or "60")

# Storage
STORE_DIR = os.getenv("STORE_DIR", "./data/store")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./data/uploads")
FORBIDDEN_PHRASES_PATH = os.getenv("FORBIDDEN_PHRASES_PATH", "")
SIGNED_URL_SECRET = os.getenv("SIGNED_URL_SECRET", "dev-secret")
SIGNED_URL_TTL_SEC = int(os.getenv("SIGNED_URL_TTL_SEC", "3600") or "3600")

# Submission limits (bytes)
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(15 * 1024 * 1024)))
DEMO_MAX_IMAGE_BYTES = int(os.getenv("DEMO_MAX_IMAGE_BYTES", str(2 * 1024 * 1024)))

# Background jobs
JOB_START_DELAY_SEC = float(os.getenv("JOB_START_DELAY_SEC", "0.3") or "0")
JOB_WORKERS = max(1, int(os.getenv("JOB_WORKERS", "2") or "2"))

# CORS
_cors_origins = os.getenv("CORS_ORIGINS", "*")
if _cors_origins.strip() == "*":
    CORS_ORIGINS = ["*"]
else:
    CORS_ORIGINS = [origin.strip() for origin in _cors_origins.split(",") if origin.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
