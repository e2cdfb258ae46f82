#!/usr/bin/env python3
"""
Bon Appetit Cafe Scraper (Scripps, Pitzer, CMC)
Cafe pages embed Bamco.menu_items and Bamco.daily_menus as JS object literals.
"""

import re
from typing import List, Dict, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from meal_periods import normalize_meal_name, infer_meal_from_station
from scrapers.base_scraper import BaseScraper, build_url, create_menu_row
from scrapers.shared import (
    decode_html_entities,
    clean_description,
    menu_row_key,
    normalize_html_chunk,
    to_array,
    uniq_by,
)
from scrapers.shared.embedded_state import extract_bonapp_json_block

# <section id=...> blocks on the cafe page, in the order they are checked
MEAL_SECTION_IDS = [
    ("breakfast", "breakfast"),
    ("lunch", "lunch"),
    ("dinner", "dinner"),
    ("late-night", "late_night"),
    ("late_night", "late_night"),
]


class BonAppetitScraper(BaseScraper):
    """
    Scraper for Bon Appetit cafes.
    Uses the daypart listing when the page has one, otherwise guesses each
    item's meal from the page sections or the station markup.
    """

    def day_url(self, iso_date: str) -> str:
        cafe_path = (self.hall.cafe_path or "").rstrip("/")
        segment = f"{cafe_path}/{iso_date}/" if cafe_path else f"{iso_date}/"
        return urljoin(self.hall.url, segment)

    def scrape(self) -> List[Dict]:
        print(f"\n📡 Fetching Bon Appetit menus for {self.hall.key}...", flush=True)
        rows = []

        for iso_date in self.day_window():
            page_url = self.day_url(iso_date)
            html = self.fetch_text(build_url(page_url))
            if html is None:
                print(f"   ⚠️ Bon App: fetch failed for {page_url}; skipping", flush=True)
                continue

            menu_items = extract_bonapp_json_block(html, "menu_items")
            if not menu_items:
                print(f"   ⚠️ Bon App: missing menu_items for {page_url}; skipping", flush=True)
                continue

            daily_menus = extract_bonapp_json_block(html, "daily_menus")
            daypart_rows = normalize_bonapp(menu_items, daily_menus, iso_date) if daily_menus else []
            if daypart_rows:
                rows.extend(daypart_rows)
                continue

            sections = extract_bonapp_meal_sections(html)
            inferred_rows = infer_bonapp_meals_from_sections(menu_items, sections, iso_date)
            if not inferred_rows:
                print(f"   ⚠️ Bon App: no inferable meal periods for {page_url}; skipping", flush=True)
                continue

            rows.extend(inferred_rows)

        self._print_summary(rows)
        return rows


def extract_bonapp_tags(item: Dict) -> Optional[List[str]]:
    """Union of the cor_icon and ordered_cor_icon labels, first-seen order"""
    tags = []
    cor_icon = item.get("cor_icon") or {}
    ordered = item.get("ordered_cor_icon") or {}

    values = list(cor_icon.values()) if isinstance(cor_icon, dict) else to_array(cor_icon)
    values += list(ordered.values()) if isinstance(ordered, dict) else to_array(ordered)

    for value in values:
        if isinstance(value, dict):
            value = value.get("label")
        label = value.strip() if isinstance(value, str) else ""
        if label and label not in tags:
            tags.append(label)
    return tags or None


def extract_station_label(station) -> Optional[str]:
    if isinstance(station, str):
        raw = station
    elif isinstance(station, dict):
        raw = (
            station.get("label")
            or station.get("name")
            or station.get("station")
            or station.get("display_name")
            or ""
        )
    else:
        raw = ""

    cleaned = re.sub(r"<[^>]+>", " ", decode_html_entities(str(raw)))
    cleaned = re.sub(r"\s+", " ", cleaned.replace("@", " ")).strip()
    return cleaned or None


def extract_bonapp_meal_sections(html: str) -> Dict[str, str]:
    """Lowercased text of each meal's <section id="..."> block on the page"""
    soup = BeautifulSoup(html, "html.parser")
    section_text = {}

    for section_id, meal in MEAL_SECTION_IDS:
        if meal in section_text:
            continue
        section = soup.find("section", id=section_id)
        if section is None:
            continue
        normalized = normalize_html_chunk(section.decode_contents())
        if normalized:
            section_text[meal] = normalized

    return section_text


def infer_meal_from_sections(label: str, sections: Dict[str, str]) -> Optional[str]:
    needle = normalize_html_chunk(label)
    if not needle:
        return None

    for meal, content in sections.items():
        if content and needle in content:
            return meal
    return None


def _flatten_dayparts(dayparts) -> List:
    dayparts = to_array(dayparts)
    if dayparts and isinstance(dayparts[0], list):
        return [part for group in dayparts for part in to_array(group)]
    return dayparts


def _bonapp_row(date, meal, dish, section, item):
    return create_menu_row(
        date,
        meal,
        dish,
        section=section,
        description=clean_description(item.get("description")),
        tags=extract_bonapp_tags(item),
    )


def normalize_bonapp(menu_items: Dict, daily_menus: Dict, day_date: str) -> List[Dict]:
    """Rows for one date from daily_menus dayparts, resolved against menu_items"""
    rows = []
    date_menu = (daily_menus or {}).get(day_date) or {}

    for part in _flatten_dayparts(date_menu.get("dayparts")):
        if not isinstance(part, dict):
            continue
        meal = normalize_meal_name(part.get("label") or part.get("name"))

        for station in to_array(part.get("stations")):
            section = extract_station_label(station)
            item_ids = station.get("items") if isinstance(station, dict) else None

            for item_id in to_array(item_ids):
                item = menu_items.get(str(item_id)) or {}
                dish = (item.get("label") or "").strip()
                if dish:
                    rows.append(_bonapp_row(day_date, meal, dish, section, item))

    return uniq_by(rows, menu_row_key)


def infer_bonapp_meals_from_sections(menu_items: Dict, sections: Dict[str, str], date: str) -> List[Dict]:
    """
    Place every menu item on a meal without daypart data.

    An item's label found inside a meal's page section decides its meal;
    otherwise station markers like "@lunch" do. Items matching neither are
    dropped.
    """
    rows = []

    for item in menu_items.values():
        if not isinstance(item, dict):
            continue
        label = (item.get("label") or item.get("name") or "").strip()
        if not label:
            continue

        meal = infer_meal_from_sections(label, sections) if sections else None
        if not meal:
            meal = infer_meal_from_station(item.get("station") if isinstance(item.get("station"), str) else None)

        if meal:
            rows.append(_bonapp_row(date, meal, label, extract_station_label(item.get("station")), item))

    return uniq_by(rows, menu_row_key)
