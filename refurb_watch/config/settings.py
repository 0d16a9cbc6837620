# refurb_watch/config/settings.py

"""Central configuration for the refurb_watch tracker."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the refurb_watch tracker."""

    # --- Fetching ---
    REQUEST_DELAY: float = 2.0          # Base backoff between retries
    REQUEST_TIMEOUT: int = 30           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Attempts before falling back
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for adaptive backoff

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/131.0.0.0 Safari/537.36"
        ),
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Listing source ---
    LISTING_URL: str = (
        "https://www.apple.com/shop/refurbished/mac/mac-mini"
    )
    SOURCE_LABEL: str = "apple.com/shop/refurbished"
    PRODUCT_TYPE: str = "Product"
    PRODUCT_NAME_PATTERN: str = r"mac\s*mini"
    BOOTSTRAP_VARIABLE: str = "REFURB_GRID_BOOTSTRAP"
    DEFAULT_CURRENCY: str = "USD"

    # --- Notifications ---
    SLACK_WEBHOOK_URL: str = os.getenv("SLACK_WEBHOOK_URL", "")
    WEBHOOK_TIMEOUT: int = 15

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    HISTORY_PATH: Path = DATA_DIR / "refurb-history.json"
    CHARTS_DIR: Path = DATA_DIR / "charts"
    LOGS_DIR: Path = BASE_DIR / "logs"
    LOG_RETENTION: int = 30             # Run logs kept on disk
