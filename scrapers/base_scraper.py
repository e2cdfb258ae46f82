#!/usr/bin/env python3
"""
Base Scraper
Common functionality for all dining hall source adapters.
"""

import requests
import time
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import List, Dict, Optional
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode
from zoneinfo import ZoneInfo

from config import DAYS_AHEAD, FETCH_TIMEOUT, TIMEZONE

HTML_ACCEPT = 'text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8'
JSON_ACCEPT = 'application/json, text/javascript;q=0.9, */*;q=0.1'


class ScrapeError(Exception):
    """A hall's source could not be fetched or understood"""


def build_url(url: str, params: Optional[Dict[str, str]] = None) -> str:
    """
    Add query params plus a `_<epoch millis>` cache buster so upstream
    caches never hand back a previous run's page.
    """
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    for name, value in (params or {}).items():
        query = [(k, v) for k, v in query if k != name]
        query.append((name, value))
    query.append((f"_{int(time.time() * 1000)}", ""))
    return urlunsplit(parts._replace(query=urlencode(query)))


def create_menu_row(
    date_served: str,
    meal: str,
    dish_name: str,
    section: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
    ingredients: Optional[str] = None,
    allergens: Optional[List[str]] = None,
    dietary_choices: Optional[List[str]] = None,
    nutrients: Optional[str] = None
) -> Dict:
    """Helper to create a standardized menu row"""
    return {
        "date_served": date_served,
        "meal": meal,
        "dish_name": dish_name,
        "section": section,
        "description": description,
        "tags": tags,
        "ingredients": ingredients,
        "allergens": allergens,
        "dietary_choices": dietary_choices,
        "nutrients": nutrients
    }


class BaseScraper(ABC):
    """
    Abstract base class for all dining hall scrapers.
    Each source adapter must implement the scrape() method.
    """

    def __init__(
        self,
        hall,
        days_ahead: int = DAYS_AHEAD,
        timeout: int = FETCH_TIMEOUT,
        timezone: str = TIMEZONE,
        session: Optional[requests.Session] = None
    ):
        self.hall = hall
        self.days_ahead = days_ahead
        self.timeout = timeout
        self.timezone = ZoneInfo(timezone)
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
            'Accept-Language': 'en-US,en;q=0.9',
        })

    def now(self) -> datetime:
        """Get current time in the hall's timezone"""
        return datetime.now(self.timezone)

    def today(self) -> date:
        return self.now().date()

    def day_window(self) -> List[str]:
        """Today plus `days_ahead` days, as YYYY-MM-DD strings"""
        start = self.today()
        return [
            (start + timedelta(days=offset)).isoformat()
            for offset in range(self.days_ahead + 1)
        ]

    @abstractmethod
    def scrape(self) -> List[Dict]:
        """
        Main scraping method - must be implemented by each source adapter.

        Returns:
            List of menu row dictionaries with structure:
            {
                "date_served": str,        # YYYY-MM-DD
                "meal": str,               # breakfast | lunch | dinner | late_night
                "dish_name": str,
                "section": str | None,
                "description": str | None,
                "tags": List[str] | None,
                "ingredients": str | None,
                "allergens": List[str] | None,
                "dietary_choices": List[str] | None,
                "nutrients": str | None    # "Label: value | Label: value"
            }
        """
        pass

    def fetch_text(self, url: str, accept: str = HTML_ACCEPT) -> Optional[str]:
        """Fetch a page body; failures are logged and give None"""
        try:
            response = self.session.get(url, headers={'Accept': accept}, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            print(f"   ❌ Error fetching {url}: {e}", flush=True)
            return None
        return response.text

    def _print_summary(self, rows: List[Dict]) -> None:
        """Print a summary of scraped rows per date"""
        by_date = {}
        for row in rows:
            by_date[row["date_served"]] = by_date.get(row["date_served"], 0) + 1

        print(f"   📊 {self.hall.key}: {len(rows)} rows across {len(by_date)} day(s)")
        for day in sorted(by_date):
            print(f"      {day}: {by_date[day]}")
