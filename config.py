"""
config.py - Dining hall sources and runtime settings

Hall configuration is static; settings come from environment variables.
"""

import os
from typing import NamedTuple, Optional

SOURCE_POMONA = "pomona"
SOURCE_SODEXO = "sodexo"
SOURCE_BONAPPETIT = "bonappetit"
SOURCES = (SOURCE_POMONA, SOURCE_SODEXO, SOURCE_BONAPPETIT)

DAYS_AHEAD = 5
FETCH_TIMEOUT = 20
BATCH_SIZE = 500
TIMEZONE = "America/Los_Angeles"


class ConfigError(Exception):
    """Required configuration is missing or invalid"""


class HallConfig(NamedTuple):
    key: str
    source: str
    url: str
    campus: str
    date_param: str = "date"
    cafe_path: Optional[str] = None


DINING_HALLS = (
    HallConfig("frary", SOURCE_POMONA, "https://portal.pomona.edu/eatec/Frary.json", "Pomona"),
    HallConfig("oldenborg", SOURCE_POMONA, "https://portal.pomona.edu/eatec/Oldenborg.json", "Pomona"),
    HallConfig("frank", SOURCE_POMONA, "https://portal.pomona.edu/eatec/Frank.json", "Pomona"),
    HallConfig(
        "hoch",
        SOURCE_SODEXO,
        "https://hmc.sodexomyway.com/en-us/locations/hoch-shanahan-dining-commons",
        "HMC",
        date_param="date",
    ),
    HallConfig(
        "malott",
        SOURCE_BONAPPETIT,
        "https://scripps.cafebonappetit.com/",
        "Scripps",
        cafe_path="/cafe/malott-dining-commons",
    ),
    HallConfig(
        "mcconnell",
        SOURCE_BONAPPETIT,
        "https://pitzer.cafebonappetit.com/",
        "Pitzer",
        cafe_path="/cafe/mcconnell-bistro",
    ),
    HallConfig(
        "collins",
        SOURCE_BONAPPETIT,
        "https://collins-cmc.cafebonappetit.com/",
        "CMC",
        cafe_path="/cafe/collins",
    ),
)


def get_hall(key):
    for hall in DINING_HALLS:
        if hall.key == key:
            return hall
    raise KeyError(key)


class Config(NamedTuple):
    store_url: str
    service_key: str
    days_ahead: int = DAYS_AHEAD
    fetch_timeout: int = FETCH_TIMEOUT
    timezone: str = TIMEZONE
    batch_size: int = BATCH_SIZE

    def scraper_options(self):
        return {
            "days_ahead": self.days_ahead,
            "timeout": self.fetch_timeout,
            "timezone": self.timezone,
        }


def _int_setting(environ, name, default, minimum=0):
    raw = environ.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    return value


def load_config(environ=None):
    """
    Read settings from the environment

    The store URL (SUPABASE_URL, or PROJECT_URL) and SERVICE_ROLE_KEY are
    required; the scraper refuses to run without them.
    """
    environ = os.environ if environ is None else environ

    store_url = environ.get("SUPABASE_URL") or environ.get("PROJECT_URL")
    service_key = environ.get("SERVICE_ROLE_KEY")
    if not store_url or not service_key:
        raise ConfigError("Missing SUPABASE_URL/PROJECT_URL or SERVICE_ROLE_KEY env vars")

    return Config(
        store_url=store_url.rstrip("/"),
        service_key=service_key,
        days_ahead=_int_setting(environ, "SCRAPE_DAYS_AHEAD", DAYS_AHEAD),
        fetch_timeout=_int_setting(environ, "SCRAPE_FETCH_TIMEOUT", FETCH_TIMEOUT, minimum=1),
        timezone=environ.get("SCRAPE_TIMEZONE") or TIMEZONE,
        batch_size=_int_setting(environ, "SCRAPE_BATCH_SIZE", BATCH_SIZE) or BATCH_SIZE,
    )
