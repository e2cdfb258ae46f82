#!/usr/bin/env python3
"""
Pomona College Dining Scraper
Reads the EATEC exchange feeds (XML converted to JSON) published per hall.
"""

import json
from typing import List, Dict, Optional

from meal_periods import normalize_meal_name
from scrapers.base_scraper import BaseScraper, ScrapeError, build_url, create_menu_row, JSON_ACCEPT
from scrapers.shared import clean_description, menu_row_key, to_array, to_iso, uniq_by


class PomonaScraper(BaseScraper):
    """
    Scraper for Pomona dining halls (Frary, Oldenborg, Frank).
    One request returns every published day for the hall.
    """

    def scrape(self) -> List[Dict]:
        print(f"\n📡 Fetching Pomona feed for {self.hall.key}...", flush=True)

        raw = self.fetch_text(build_url(self.hall.url), accept=JSON_ACCEPT)
        if raw is None:
            raise ScrapeError(f"Pomona fetch failed for {self.hall.key}")

        data = parse_feed(raw)
        rows = normalize_pomona(data)
        self._print_summary(rows)
        return rows


def parse_feed(raw: str) -> Dict:
    """Some feeds come wrapped in JS; keep only the outermost JSON object"""
    trimmed = raw.strip()
    first = trimmed.find("{")
    last = trimmed.rfind("}")
    if first == -1 or last == -1 or last <= first:
        raise ScrapeError("Pomona response missing JSON object")

    try:
        return json.loads(trimmed[first:last + 1])
    except ValueError as e:
        raise ScrapeError(f"Pomona response is not valid JSON: {e}")


def _flagged_labels(entries) -> Optional[List[str]]:
    """Labels (@id) of entries whose text flag is "yes" """
    labels = []
    for entry in to_array(entries):
        if not isinstance(entry, dict):
            continue
        flag = (entry.get("#text") or "").strip().lower()
        label = (entry.get("@id") or "").strip()
        if flag == "yes" and label:
            labels.append(label)
    return labels or None


def extract_pomona_tags(recipe: Dict) -> Optional[List[str]]:
    return _flagged_labels((recipe.get("dietaryChoices") or {}).get("dietaryChoice"))


def extract_pomona_allergens(recipe: Dict) -> Optional[List[str]]:
    return _flagged_labels((recipe.get("allergens") or {}).get("allergen"))


def _ingredients(recipe: Dict) -> Optional[str]:
    raw = recipe.get("ingredients")
    if isinstance(raw, dict):
        raw = raw.get("#cdata-section")
    return clean_description(raw if isinstance(raw, str) else None)


def normalize_pomona(data: Dict) -> List[Dict]:
    """
    Convert an EatecExchange document into menu rows.

    Serve date and meal period normally sit on the menu entry; a recipe that
    carries its own @servedate / @mealperiodname overrides them. Unknown meal
    period names fall back to dinner.
    """
    rows = []
    exchange = (data or {}).get("EatecExchange") or {}

    for entry in to_array(exchange.get("menu")):
        if not isinstance(entry, dict):
            continue
        recipes = (entry.get("recipes") or {}).get("recipe")

        for recipe in to_array(recipes):
            if not isinstance(recipe, dict):
                continue

            servedate = str(recipe.get("@servedate") or entry.get("@servedate") or "").strip()
            if len(servedate) != 8:
                continue

            dish_name = (recipe.get("@shortName") or "").strip() or (recipe.get("@description") or "").strip()
            if not dish_name:
                continue

            meal = normalize_meal_name(recipe.get("@mealperiodname") or entry.get("@mealperiodname"))

            # Only the alternate description is shown; the formal one is a kitchen name
            alt_desc = (recipe.get("@alternatedescription") or "").strip()
            description = clean_description(alt_desc) if alt_desc and alt_desc.lower() != "n/a" else None

            dietary = extract_pomona_tags(recipe)

            rows.append(create_menu_row(
                to_iso(servedate),
                meal,
                dish_name,
                section=(recipe.get("@category") or "").strip() or None,
                description=description,
                tags=dietary,
                ingredients=_ingredients(recipe),
                allergens=extract_pomona_allergens(recipe),
                dietary_choices=list(dietary) if dietary else None,
                nutrients=(recipe.get("@nutrients") or "").strip() or None,
            ))

    return uniq_by(rows, menu_row_key)
