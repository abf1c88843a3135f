"""
Hotline Archive scraper – centralized configuration.
Makes/year to crawl, output and checkpoint paths, timeouts, settle delays, credentials.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from hotline_scraper.errors import ConfigError

# Paths
BASE_DIR = Path(__file__).resolve().parent.parent

# .env is read once, here, before any setting below; real environment variables take precedence
ENV_FILE = Path(os.getenv("HOTLINE_ENV_FILE", str(BASE_DIR / ".env")))
load_dotenv(ENV_FILE)

OUTPUT_DIR = Path(os.getenv("HOTLINE_OUTPUT_DIR", str(BASE_DIR / "output")))
CHECKPOINT_DIR = Path(os.getenv("HOTLINE_CHECKPOINT_DIR", str(BASE_DIR)))
VISITED_IDS_FILE = "processed_hanumbers.json"
UNIT_RECORDS_FILE = "processed_models.json"

# Catalog slice to crawl (static configuration; HOTLINE_MAKES is comma-separated)
DEFAULT_MAKES = ["Hyundai", "Honda", "Toyota", "Skoda", "Suzuki", "Ford", "Nissan", "Chevrolet", "Volvo"]
DEFAULT_YEAR = "2020"

# Timeouts (ms)
NAVIGATION_TIMEOUT = int(os.getenv("HOTLINE_NAV_TIMEOUT", "90000"))
LOGIN_FORM_TIMEOUT = int(os.getenv("HOTLINE_LOGIN_TIMEOUT", "30000"))
ELEMENT_TIMEOUT = int(os.getenv("HOTLINE_ELEMENT_TIMEOUT", "30000"))

# Settle delays (seconds) after state-changing actions; the remote UI updates asynchronously
SELECT_SETTLE_SEC = float(os.getenv("HOTLINE_SELECT_SETTLE", "5.0"))
VEHICLE_SETTLE_SEC = float(os.getenv("HOTLINE_VEHICLE_SETTLE", "10.0"))
TAB_SETTLE_SEC = float(os.getenv("HOTLINE_TAB_SETTLE", "2.0"))
LISTING_SETTLE_SEC = float(os.getenv("HOTLINE_LISTING_SETTLE", "10.0"))
PAGE_SETTLE_SEC = float(os.getenv("HOTLINE_PAGE_SETTLE", "5.0"))
RESET_SETTLE_SEC = float(os.getenv("HOTLINE_RESET_SETTLE", "20.0"))
DOCUMENT_DELAY_SEC = float(os.getenv("HOTLINE_DOCUMENT_DELAY", "10.0"))
TYPING_DELAY_MS = int(os.getenv("HOTLINE_TYPING_DELAY", "100"))

# Browser visibility (default visible, the site is driven interactively; set HOTLINE_HEADLESS=1 on servers)
HEADLESS = os.getenv("HOTLINE_HEADLESS", "0").strip().lower() in ("1", "true", "yes")

# Keep browser open after run until user presses Enter (default True when visible)
_env_keep = os.getenv("HOTLINE_KEEP_BROWSER_OPEN", "").strip().lower()
KEEP_BROWSER_OPEN = _env_keep in ("1", "true", "yes") if _env_keep else (not HEADLESS)


def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default).strip()


def _env_list(key: str, default: list[str]) -> list[str]:
    raw = _env(key)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


USERNAME = _env("IDENTIFIX_USERNAME")
PASSWORD = _env("IDENTIFIX_PASSWORD")

# Site
BASE_URL = "https://dh.identifix.com"
LOGIN_URL = f"{BASE_URL}/Default/LogOnIdentifix"
VEHICLE_SELECTION_URL = f"{BASE_URL}/CreateVehicle/Index?LocationId=13"

# Selectors
USERNAME_SELECTOR = 'input[name="UserName"], input[type="text"], #UserName'
PASSWORD_SELECTOR = 'input[name="Password"], input[type="password"], #Password'
LOGIN_BUTTON_SELECTOR = "#Login"
AXIS_SELECTORS = {
    "year": "#ddlVehicleYear",
    "make": "#ddlVehicleMake",
    "model": "#ddlVehicleModel",
    "engine": "#ddlVehicleEngine",
}
SELECT_VEHICLE_SELECTOR = "#btnSelectVehicle"
FIX_DATA_TAB_SELECTOR = 'li[tab-value="FixData"]'
TAB_LINK_SELECTOR = ".tab-link-list a"
HOTLINE_ARCHIVES_LINK_TEXT = "Hotline Archives"
DOCUMENT_LINK_SELECTOR = "a.symptom-link.document-link"
DOCUMENT_TITLE_SELECTOR = ".vehicle-info"
DOCUMENT_BODY_SELECTOR = ".html-details-body-div-content"

# Documents
DOCUMENT_ID_PATTERN = r"HANumber=(\d+)"
DOCUMENT_FILE_PREFIX = "HANumber"
SAFE_NAME_MAX_LENGTH = 100
# Placeholder option values ("-- Select --") in every vehicle dropdown
SENTINEL_OPTION_VALUES = ("", "0")


@dataclass
class CrawlConfig:
    makes: list[str] = field(default_factory=lambda: list(DEFAULT_MAKES))
    year: str = DEFAULT_YEAR
    output_dir: Path = OUTPUT_DIR
    checkpoint_dir: Path = CHECKPOINT_DIR
    document_delay_sec: float = DOCUMENT_DELAY_SEC
    keep_browser_open: bool = KEEP_BROWSER_OPEN

    @property
    def visited_ids_path(self) -> Path:
        return Path(self.checkpoint_dir) / VISITED_IDS_FILE

    @property
    def unit_records_path(self) -> Path:
        return Path(self.checkpoint_dir) / UNIT_RECORDS_FILE

    def validate(self) -> "CrawlConfig":
        if not self.makes:
            raise ConfigError("At least one make must be configured")
        if any(not (m or "").strip() for m in self.makes):
            raise ConfigError(f"Empty make name in {self.makes!r}")
        if not (self.year or "").strip():
            raise ConfigError("A target year must be configured")
        if self.document_delay_sec < 0:
            raise ConfigError("document_delay_sec must be >= 0")
        return self


def load_config(
    makes: list[str] | None = None,
    year: str | None = None,
    output_dir: str | Path | None = None,
    checkpoint_dir: str | Path | None = None,
    keep_browser_open: bool | None = None,
) -> CrawlConfig:
    """Build the run configuration from environment defaults plus explicit overrides (CLI flags)."""
    config = CrawlConfig(
        makes=list(makes) if makes else _env_list("HOTLINE_MAKES", DEFAULT_MAKES),
        year=year or _env("HOTLINE_YEAR", DEFAULT_YEAR),
        output_dir=Path(output_dir) if output_dir else OUTPUT_DIR,
        checkpoint_dir=Path(checkpoint_dir) if checkpoint_dir else CHECKPOINT_DIR,
        keep_browser_open=KEEP_BROWSER_OPEN if keep_browser_open is None else keep_browser_open,
    )
    return config.validate()
