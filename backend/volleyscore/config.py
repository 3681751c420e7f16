import logging
import os

logger = logging.getLogger(__name__)


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _int_setting(env_var: str, default: int) -> int:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid integer (got %r); defaulting to %d",
            env_var,
            raw_value,
            default,
        )
        return default


def database_url() -> str:
    """Return the async driver URL configured through ``DATABASE_URL``.

    Plain ``postgresql://`` URLs are rewritten to use asyncpg so the same value
    can be shared with tools that expect the synchronous form.
    """

    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL environment variable is required")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

SCORING_RATE_LIMIT = os.getenv("SCORING_RATE_LIMIT") or "300/minute"

DEFAULT_SET_FORMAT = _int_setting("DEFAULT_SET_FORMAT", 1)
DEFAULT_REGULAR_SET_POINTS = _int_setting("DEFAULT_REGULAR_SET_POINTS", 25)
DEFAULT_FINAL_SET_POINTS = _int_setting("DEFAULT_FINAL_SET_POINTS", 15)
