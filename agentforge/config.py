"""
Configuration — defaults shared across the package.
Connection values can be overridden with FORGE_* environment variables;
execution limits remain code constants.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default


# ── Inference Endpoint ──
DEFAULT_BASE_URL = os.environ.get("FORGE_BASE_URL", "http://localhost:1234/v1")
DEFAULT_API_KEY = os.environ.get("FORGE_API_KEY", "local")
DEFAULT_TIMEOUT = _env_float("FORGE_TIMEOUT", 300.0)

# ── Sampling defaults ──
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.9

# ── Execution Limits (code constants, not user config) ──
MAX_TOOL_ROUNDS = 15

# ── Logging ──
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: int = logging.INFO):
    """Install the standard log format. For applications; the library never calls it."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
