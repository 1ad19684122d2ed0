"""Application configuration -- environment variables for the runner.

Loads the bot credentials and the delivery settings from the environment via
``python-dotenv``.  All values are resolved at import time so ``main`` can
``from config import ...`` without repeated lookups.  The ``botapi`` package
never imports this module; everything it needs is passed in explicitly.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import BotLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

# ── Logger (used for startup diagnostics at the bottom of this module) ───────
logger = BotLogger.get_logger()

_UPDATE_MODES = ("polling", "webhook")


# ── Helper functions (private) ───────────────────────────────────────────────


def _int_env(name: str, default: int) -> int:
    """Read *name* as an int, falling back to *default* when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric environment value", extra={"variable": name, "value": raw})
        return default


def _update_mode(raw: str | None) -> str:
    mode = (raw or "polling").strip().lower()
    if mode not in _UPDATE_MODES:
        logger.warning("Unknown UPDATE_MODE, using polling", extra={"update_mode": mode})
        return "polling"
    return mode


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN")
API_ENDPOINT: str = os.environ.get("API_ENDPOINT", "https://api.telegram.org/bot{token}/{method}")
UPDATE_MODE: str = _update_mode(os.environ.get("UPDATE_MODE"))
POLL_TIMEOUT: int = _int_env("POLL_TIMEOUT", 30)
POLL_LIMIT: int = _int_env("POLL_LIMIT", 0)
UPDATE_BUFFER: int = _int_env("UPDATE_BUFFER", 100)
WEBHOOK_PATH: str = os.environ.get("WEBHOOK_PATH", "/webhook")
WEBHOOK_HOST: str = os.environ.get("WEBHOOK_HOST", "0.0.0.0")
WEBHOOK_PORT: int = _int_env("WEBHOOK_PORT", 8443)
# Public URL registered with setWebhook at startup; leave unset to manage it
# out of band.
WEBHOOK_URL: str | None = os.environ.get("WEBHOOK_URL")
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()


# ── Startup diagnostics ─────────────────────────────────────────────────────

if BOT_TOKEN:
    logger.info("Config loaded, BOT_TOKEN is set", extra={"update_mode": UPDATE_MODE})
else:
    logger.warning("Config loaded, BOT_TOKEN is NOT set")

if UPDATE_MODE == "webhook":
    logger.info(
        "Webhook settings resolved",
        extra={"webhook_path": WEBHOOK_PATH, "host": WEBHOOK_HOST, "port": WEBHOOK_PORT},
    )
else:
    logger.info("Polling settings resolved", extra={"timeout": POLL_TIMEOUT, "limit": POLL_LIMIT})
