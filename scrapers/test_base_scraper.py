from datetime import date
from urllib.parse import parse_qsl, urlsplit

import pytest
import requests

from config import get_hall
from scrapers.base_scraper import BaseScraper, build_url, create_menu_row
from scrapers.bonappetit.scraper import BonAppetitScraper
from scrapers.pomona.scraper import PomonaScraper
from scrapers.scraper_factory import get_scraper
from scrapers.sodexo.scraper import SodexoScraper


class EchoScraper(BaseScraper):
    def scrape(self):
        return []


class FakeSession:
    def __init__(self, error=None):
        self.headers = {}
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        raise self.error


def test_build_url_appends_cache_buster():
    url = build_url("https://hmc.example.com/menu?lang=en", {"date": "2024-01-15"})
    query = parse_qsl(urlsplit(url).query, keep_blank_values=True)

    assert query[0] == ("lang", "en")
    assert query[1] == ("date", "2024-01-15")
    name, value = query[2]
    assert name.startswith("_") and name[1:].isdigit()
    assert value == ""


def test_build_url_replaces_existing_param():
    url = build_url("https://hmc.example.com/menu?date=2020-01-01", {"date": "2024-01-15"})
    query = dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))
    assert query["date"] == "2024-01-15"


def test_day_window_is_today_plus_five(monkeypatch):
    scraper = EchoScraper(get_hall("hoch"), session=FakeSession())
    monkeypatch.setattr(scraper, "today", lambda: date(2024, 12, 29))

    assert scraper.day_window() == [
        "2024-12-29", "2024-12-30", "2024-12-31", "2025-01-01", "2025-01-02", "2025-01-03"
    ]


def test_fetch_text_timeout_gives_none():
    session = FakeSession(error=requests.Timeout("timed out"))
    scraper = EchoScraper(get_hall("hoch"), timeout=15, session=session)

    assert scraper.fetch_text("https://hmc.example.com/menu") is None
    assert session.calls[0][2] == 15


def test_create_menu_row_defaults():
    row = create_menu_row("2024-01-15", "lunch", "Soup")
    assert row["section"] is None
    assert row["tags"] is None
    assert set(row) == {
        "date_served", "meal", "dish_name", "section", "description",
        "tags", "ingredients", "allergens", "dietary_choices", "nutrients",
    }


def test_get_scraper_picks_adapter_by_source():
    scraper = get_scraper(get_hall("hoch"), days_ahead=2, timeout=5)
    assert isinstance(scraper, SodexoScraper)
    assert scraper.days_ahead == 2
    assert scraper.timeout == 5
    assert isinstance(get_scraper(get_hall("frank")), PomonaScraper)
    assert isinstance(get_scraper(get_hall("collins")), BonAppetitScraper)


def test_get_scraper_unknown_source():
    hall = get_hall("frary")._replace(source="aramark")
    with pytest.raises(ValueError):
        get_scraper(hall)
