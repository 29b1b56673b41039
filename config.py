"""
Runtime settings, read from the environment once at import.

CLI flags in main.py override CATALOG_ROOT and PLAYWRIGHT_HEADLESS.
"""
import logging
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")

SITE_ORIGIN = "https://www.youtube.com"

CATALOG_ROOT = os.getenv("CATALOG_ROOT", "data")
DEBUG_DIR = os.getenv("DEBUG_DIR", ".")

HEADLESS = os.getenv("PLAYWRIGHT_HEADLESS", "1") not in ("0", "false", "no")
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36",
)
LOCALE = os.getenv("LOCALE", "en-US")
TIMEZONE = os.getenv("TZ", "UTC")
ACCEPT_LANGUAGE = os.getenv("ACCEPT_LANGUAGE", "en-US,en;q=0.9")
CONSENT_VALUE = os.getenv("CONSENT_VALUE", "YES+cb")

# milliseconds
NAV_TIMEOUT_MS = int(os.getenv("NAV_TIMEOUT_MS", "60000"))
SETTLE_DELAY_MS = int(os.getenv("SETTLE_DELAY_MS", "2000"))
RESOLVE_TIMEOUT_MS = int(os.getenv("RESOLVE_TIMEOUT_MS", "3000"))
ATTRIBUTE_TIMEOUT_MS = int(os.getenv("ATTRIBUTE_TIMEOUT_MS", "2000"))

# 1 means no retry
NAV_ATTEMPTS = max(1, int(os.getenv("NAV_ATTEMPTS", "1")))

MAX_RECENT = int(os.getenv("MAX_RECENT", "20"))
MAX_POPULAR = int(os.getenv("MAX_POPULAR", "10"))
