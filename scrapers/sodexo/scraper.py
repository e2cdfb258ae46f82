#!/usr/bin/env python3
"""
Sodexo Dining Scraper (Harvey Mudd - Hoch-Shanahan)
Each day's menu page embeds its data in window.__PRELOADED_STATE__.
"""

import re
from typing import List, Dict, Optional

from meal_periods import normalize_meal_name
from scrapers.base_scraper import BaseScraper, build_url, create_menu_row
from scrapers.shared import clean_description, menu_row_key, to_array, uniq_by
from scrapers.shared.embedded_state import extract_preloaded_state

# Macro fields Sodexo puts directly on an item when it has no nutrition block
MACRO_FIELDS = [
    ("Calories", "calories"),
    ("Calories from Fat", "caloriesFromFat"),
    ("Fat", "fat"),
    ("Saturated Fat", "saturatedFat"),
    ("Trans Fat", "transFat"),
    ("Polyunsaturated Fat", "polyunsaturatedFat"),
    ("Cholesterol", "cholesterol"),
    ("Sodium", "sodium"),
    ("Carbohydrates", "carbohydrates"),
    ("Dietary Fiber", "dietaryFiber"),
    ("Sugar", "sugar"),
    ("Added Sugar", "addedSugar"),
    ("Protein", "protein"),
    ("Potassium", "potassium"),
    ("Iron", "iron"),
    ("Calcium", "calcium"),
    ("Vitamin A", "vitaminA"),
    ("Vitamin C", "vitaminC"),
    ("Vitamin D", "vitaminD"),
]

DIETARY_FLAGS = [
    ("Vegan", "isVegan"),
    ("Vegetarian", "isVegetarian"),
    ("Plant Based", "isPlantBased"),
    ("Mindful", "isMindful"),
    ("Swell", "isSwell"),
]


class SodexoScraper(BaseScraper):
    """
    Scraper for Sodexo-run halls.
    Fetches one page per day of the window; a bad day is skipped, not fatal.
    """

    def scrape(self) -> List[Dict]:
        print(f"\n📡 Fetching Sodexo menus for {self.hall.key}...", flush=True)
        rows = []

        for iso_date in self.day_window():
            url = build_url(self.hall.url, {self.hall.date_param or "date": iso_date})
            html = self.fetch_text(url)
            if html is None:
                print(f"   ⚠️ Sodexo: fetch failed for {iso_date}; skipping", flush=True)
                continue

            preloaded = extract_preloaded_state(html)
            if not preloaded:
                print(f"   ⚠️ Sodexo: no __PRELOADED_STATE__ for {iso_date}; skipping", flush=True)
                continue

            menu_region = extract_sodexo_menu(preloaded)
            if not menu_region:
                print(f"   ⚠️ Sodexo: no menus region for {iso_date}; skipping", flush=True)
                continue

            rows.extend(normalize_sodexo(menu_region, iso_date))

        self._print_summary(rows)
        return rows


def extract_sodexo_menu(preloaded) -> Optional[Dict]:
    """The region with id "menus" under composition.subject.regions"""
    if not isinstance(preloaded, dict):
        return None
    regions = preloaded
    for key in ("composition", "subject", "regions"):
        regions = regions.get(key) if isinstance(regions, dict) else None
    if not isinstance(regions, list):
        return None
    for region in regions:
        if isinstance(region, dict) and region.get("id") == "menus":
            return region
    return None


def _labels(src) -> List[str]:
    if isinstance(src, list):
        values = src
    elif isinstance(src, str):
        values = re.split(r"[,;]+", src)
    else:
        values = []

    out = []
    for value in values:
        label = value.get("label") if isinstance(value, dict) else value
        if isinstance(label, str) and label.strip():
            out.append(label.strip())
    return out


def extract_sodexo_allergens(item: Dict) -> Optional[List[str]]:
    src = item.get("allergens") or item.get("allergenIcons") or item.get("allergenNames")
    return _labels(src) or None


def extract_sodexo_dietary(item: Dict) -> Optional[List[str]]:
    src = item.get("dietary") or item.get("dietaryFlags") or item.get("specialDiets")
    values = _labels(src)
    for label, flag in DIETARY_FLAGS:
        if item.get(flag):
            values.append(label)
    return values or None


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def format_sodexo_nutrients(item: Dict) -> Optional[str]:
    """
    Render nutrition info as "Label: value | Label: value".

    Sodexo has shipped nutrition as a list of label/value objects, as a plain
    object, as a preformatted string, or only as macro fields on the item;
    they are tried in that order. Blank values are left out.
    """
    src = item.get("nutrition")
    if src is None:
        src = item.get("nutritionInfo")
    if src is None:
        src = item.get("nutrients")

    if isinstance(src, list):
        parts = []
        for entry in src:
            if not isinstance(entry, dict):
                continue
            label = _text(entry.get("label") or entry.get("name"))
            value = ""
            for key in ("value", "amount", "qty"):
                value = _text(entry.get(key))
                if value:
                    break
            if label and value:
                parts.append(f"{label}: {value}")
        return " | ".join(parts) or None

    if isinstance(src, dict):
        parts = []
        for key, value in src.items():
            text = _text(value)
            if text:
                parts.append(f"{key}: {text}")
        return " | ".join(parts) or None

    if isinstance(src, str):
        return src.strip() or None

    parts = []
    for label, field in MACRO_FIELDS:
        value = item.get(field)
        if value is False:
            continue
        text = _text(value)
        if text:
            parts.append(f"{label}: {text}")
    return " | ".join(parts) or None


def _first_text(obj: Dict, *keys) -> str:
    for key in keys:
        value = obj.get(key)
        if value:
            return str(value).strip()
    return ""


def _sodexo_row(iso_date, meal, dish, section, item, description):
    return create_menu_row(
        iso_date,
        meal,
        dish,
        section=section or None,
        description=description,
        ingredients=clean_description(item.get("ingredients") or item.get("ingredientList")),
        allergens=extract_sodexo_allergens(item),
        dietary_choices=extract_sodexo_dietary(item),
        nutrients=format_sodexo_nutrients(item),
    )


def normalize_sodexo(menu_region: Dict, fallback_date: Optional[str] = None) -> List[Dict]:
    """
    Convert the "menus" region into menu rows.

    Older payloads use content.meals[].categories[].items[]; newer ones use
    content.main.sections[].groups[].items[]. The old shape wins whenever it
    has meal blocks, even if a newer shape is also present.
    """
    rows = []

    for fragment in to_array(menu_region.get("fragments")):
        content = fragment.get("content") if isinstance(fragment, dict) else None
        if not isinstance(content, dict):
            continue
        metadata = content.get("metadata")
        date_raw = content.get("menuDate") or (metadata.get("menuDate") if isinstance(metadata, dict) else None)
        iso_date = date_raw[:10] if isinstance(date_raw, str) and "-" in date_raw else fallback_date

        meals = content.get("meals") or content.get("menuBlocks") or []
        if isinstance(meals, list) and meals:
            for meal_block in meals:
                if not isinstance(meal_block, dict):
                    continue
                meal = normalize_meal_name(meal_block.get("name") or meal_block.get("mealName"))
                categories = meal_block.get("categories") or meal_block.get("stations") or meal_block.get("items") or []

                for category in to_array(categories):
                    if not isinstance(category, dict):
                        continue
                    section = _first_text(category, "name", "categoryName", "stationName")
                    items = category.get("items") or category.get("recipes") or category.get("menuItems") or []

                    for item in to_array(items):
                        if not isinstance(item, dict):
                            continue
                        dish = _first_text(item, "description", "name", "title", "itemName", "menuItemName")
                        if not iso_date or not dish:
                            continue
                        description = clean_description(
                            item.get("longDescription") or item.get("summary") or item.get("description")
                        )
                        rows.append(_sodexo_row(iso_date, meal, dish, section, item, description))
            continue

        main = content.get("main")
        sections = main.get("sections") if isinstance(main, dict) else None
        for section_block in to_array(sections):
            if not isinstance(section_block, dict):
                continue
            section_meal = section_block.get("name")

            for group in to_array(section_block.get("groups")):
                if not isinstance(group, dict):
                    continue
                group_section = _first_text(group, "name") or _first_text(section_block, "name")

                for item in to_array(group.get("items")):
                    if not isinstance(item, dict):
                        continue
                    dish = _first_text(item, "formalName", "name", "title")
                    if not dish or not iso_date:
                        continue
                    meal = normalize_meal_name(item.get("meal") or section_meal)
                    description = clean_description(item.get("description") or item.get("longDescription"))
                    rows.append(_sodexo_row(iso_date, meal, dish, group_section, item, description))

    return uniq_by(rows, menu_row_key)
