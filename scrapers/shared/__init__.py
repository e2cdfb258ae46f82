"""
Shared utilities for dining scrapers
Text cleanup, slugs and row keys used by every source adapter
"""

import html
import re

from bs4 import BeautifulSoup


def slugify_dish(name):
    """Lowercase, hyphen-joined slug for a dish name ("dish" if nothing is left)"""
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")
    return slug or "dish"


def to_array(value):
    """Converted-XML fields are sometimes a list, sometimes a single object"""
    if isinstance(value, list):
        return value
    return [value] if value else []


def uniq_by(items, key_fn):
    """Keep the first item seen for each key"""
    seen = set()
    out = []
    for item in items:
        key = key_fn(item)
        if key not in seen:
            seen.add(key)
            out.append(item)
    return out


def menu_row_key(row):
    return "|".join([
        row["date_served"],
        row["meal"],
        row.get("section") or "",
        row["dish_name"].lower(),
    ])


def to_iso(yyyymmdd):
    return f"{yyyymmdd[0:4]}-{yyyymmdd[4:6]}-{yyyymmdd[6:8]}"


def decode_html_entities(text):
    return html.unescape(text).replace("\xa0", " ")


def clean_description(text):
    """Flatten <br> tags and whitespace, decode entities. Empty -> None"""
    if not text:
        return None
    cleaned = re.sub(r"<br\s*/?>", " ", str(text), flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+", " ", decode_html_entities(cleaned)).strip()
    return cleaned or None


def normalize_html_chunk(text):
    """
    Reduce an HTML fragment to lowercase plain text for substring matching.
    Scripts and styles are dropped entirely.
    """
    if not text:
        return ""

    if "<" in text:
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        plain = soup.get_text(" ")
    else:
        plain = text

    return re.sub(r"\s+", " ", decode_html_entities(plain)).strip().lower()
