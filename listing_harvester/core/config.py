# config.py

from dotenv import load_dotenv
import os, re
from dataclasses import dataclass
from pathlib import Path

# Load .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


# Targets
HUB_URL = os.getenv("HARVEST_HUB_URL", "https://apps.microsoft.com/apps?hl=en-US&gl=US")
COLLECTION_URL = os.getenv(
    "HARVEST_COLLECTION_URL",
    "https://apps.microsoft.com/collections/browse/MerchandiserContent/Apps/Collection-C/CollectionCAppsPage?hl=en-US&gl=US",
)
# Empty means "same origin as the page being crawled"
EXPECTED_ORIGIN = os.getenv("HARVEST_EXPECTED_ORIGIN", "https://apps.microsoft.com").strip()

RESULT_DIR = Path(os.getenv("HARVEST_RESULT_DIR", "result"))
DEFAULT_IN = RESULT_DIR / "collection_page_items.json"
DEFAULT_OUT = RESULT_DIR / "apps_free.json"
DEFAULT_LIMIT = _env_int("HARVEST_LIMIT", 50)


# ---- Card markup ----

CARD_TAG = "square-card"
CARD_CLASS_TOKEN = "product-card"
DETAIL_PATH_MARKER = "/detail/"
DESCRIPTOR_ATTR = "telemetry-data"
PRICE_BADGE_TAG = "price-badge"
PRICE_CONTAINER_PART = "price-container"
TITLE_PART = "title"

# /detail/<id> or /detail/<name>/<id>
DETAIL_ID_REGEX = re.compile(r"/detail/(?:[^/]+/)?([^/?#]+)", re.I)

FREE_REGEX = re.compile(r"\bfree\b", re.I)

# ---- Collection pages ----

COLLECTION_TITLE_CLASSES = ("title", "text-two-line-overflow")
COLLECTION_OUT_NAME = "collection_page_items.json"
LOAD_MORE_REGEX = r"\b(show|see|load)\s+more\b"


# ---- Browser ----

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]

VIEWPORT = {"width": 1366, "height": 900}

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

ACCEPT_LANGUAGE = "en-US,en;q=0.9"
LOCALE = "en-US"

NAVIGATION_TIMEOUT_MS = _env_int("HARVEST_NAV_TIMEOUT_MS", 120_000)
NAVIGATION_WAIT_UNTIL = "networkidle"

HEADLESS = os.getenv("HARVEST_HEADLESS", "1").strip().lower() not in ("0", "false", "no")


# ---- Scroll convergence ----

MAX_ROUNDS = _env_int("HARVEST_MAX_ROUNDS", 80)
IDLE_DELAY_MS = _env_int("HARVEST_IDLE_MS", 1200)
STABLE_ROUNDS = _env_int("HARVEST_STABLE_ROUNDS", 3)
BURST_STEPS = 30
MIN_STEP_PX = 700
VIEWPORT_STEP_RATIO = 0.95

COLLECTION_MAX_ROUNDS = 50
COLLECTION_IDLE_DELAY_MS = 1500
COLLECTION_AFTER_CLICK_DELAY_MS = 2500
COLLECTION_BURST_STEPS = 25
COLLECTION_MIN_STEP_PX = 600
COLLECTION_VIEWPORT_STEP_RATIO = 0.9


@dataclass(frozen=True)
class ScrollConfig:
    """Thresholds for one scroll-convergence loop.

    The defaults were tuned against a single page family; override them per
    run rather than editing the constants.
    """

    max_rounds: int = MAX_ROUNDS
    idle_delay_ms: int = IDLE_DELAY_MS
    stable_rounds: int = STABLE_ROUNDS
    burst_steps: int = BURST_STEPS
    min_step_px: int = MIN_STEP_PX
    viewport_step_ratio: float = VIEWPORT_STEP_RATIO
    click_load_more: bool = False
    after_click_delay_ms: int = 0


COLLECTION_SCROLL = ScrollConfig(
    max_rounds=COLLECTION_MAX_ROUNDS,
    idle_delay_ms=COLLECTION_IDLE_DELAY_MS,
    burst_steps=COLLECTION_BURST_STEPS,
    min_step_px=COLLECTION_MIN_STEP_PX,
    viewport_step_ratio=COLLECTION_VIEWPORT_STEP_RATIO,
    click_load_more=True,
    after_click_delay_ms=COLLECTION_AFTER_CLICK_DELAY_MS,
)
