# config.py
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> float | None:
    value = (os.getenv(name) or "").strip()
    return float(value) if value else None


DEBUG = _env_bool("DEBUG", True)

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_ENDPOINT = os.getenv(
    "GEMINI_ENDPOINT",
    f"https://generativelanguage.googleapis.com/v1beta/models/{GEMINI_MODEL}:generateContent",
)
# None means the outbound call waits as long as Gemini takes
GEMINI_TIMEOUT = _env_float("GEMINI_TIMEOUT")

# in-memory language sessions kept before the least recently used are dropped
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))

GA_MEASUREMENT_ID = os.getenv("GA_MEASUREMENT_ID", "")
GA_API_SECRET = os.getenv("GA_API_SECRET", "")
GA_ENDPOINT = os.getenv("GA_ENDPOINT", "https://www.google-analytics.com/mp/collect")


def gemini_api_key() -> str:
    """Read at request time so a missing key switches that request to mock mode."""
    return (os.getenv("GEMINI_API_KEY") or "").strip()
