"""
canonicalize.py - Row deduplication and dish canonicalization

Scraped rows are collapsed to one per (date, meal, section, dish name), then
folded into one dish per slug before anything is written.
"""

from scrapers.shared import menu_row_key, slugify_dish, uniq_by

DISH_FIELDS = ("description", "ingredients", "allergens", "dietary_choices", "nutrients", "tags")


def dedupe_rows(rows):
    """First row wins per case-insensitive (date, meal, section, dish) key"""
    return uniq_by(rows, menu_row_key)


def merge_dish_metadata(rows):
    """
    Build slug -> dish from every mention of a dish in this run.

    Rows are applied in order and each non-null field overwrites what is
    already stored for the slug, so the result is the union of what all
    mentions know (latest value per field). The name is the latest spelling.
    """
    dishes = {}
    for row in rows:
        slug = slugify_dish(row["dish_name"])
        prev = dishes.get(slug, {})
        dish = {"name": row["dish_name"], "slug": slug}
        for field in DISH_FIELDS:
            value = row.get(field)
            dish[field] = value if value is not None else prev.get(field)
        dishes[slug] = dish
    return dishes


def attach_dish_ids(rows, hall_id, slug_to_id):
    """Menu item payloads for rows whose slug resolved to a dish id"""
    items = []
    for row in rows:
        dish_id = slug_to_id.get(slugify_dish(row["dish_name"]))
        if dish_id is None:
            continue
        item = dict(row)
        item["hall_id"] = hall_id
        item["dish_id"] = dish_id
        items.append(item)
    return items


def menu_item_key(item):
    return "|".join([
        str(item["hall_id"]),
        str(item["dish_id"]),
        item["date_served"],
        item["meal"],
        item.get("section") or "",
    ])


def dedupe_menu_items(items):
    """
    Collapse items sharing the store's conflict key.

    Names like "Mac & Cheese" and "Mac-Cheese" slug to the same dish, so two
    rows that were distinct by name can collide once dish ids are attached.
    """
    return uniq_by(items, menu_item_key)
