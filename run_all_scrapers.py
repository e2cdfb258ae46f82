#!/usr/bin/env python3
"""
Unified Dining Scraper Runner
Scrapes every configured hall, canonicalizes dishes and upserts the results
"""

import argparse
import json
import sys

from canonicalize import (
    attach_dish_ids,
    dedupe_menu_items,
    dedupe_rows,
    merge_dish_metadata,
)
from config import DINING_HALLS, ConfigError, get_hall, load_config
from scrapers.scraper_factory import get_scraper


def scrape_hall(hall, store, scraper=None, **options):
    """
    Scrape one hall and write it to the store

    Nothing is written until the hall's rows have been fetched and
    normalized, so a failing source leaves the hall's stored data untouched.

    Returns:
        Number of deduplicated menu rows scraped for the hall
    """
    scraper = scraper or get_scraper(hall, **options)
    rows = dedupe_rows(scraper.scrape())

    hall_id = store.upsert_hall(hall.key, hall.campus)

    dishes = merge_dish_metadata(rows)
    dish_rows = store.upsert_dishes(hall_id, list(dishes.values()))
    slug_to_id = {d["slug"]: d["id"] for d in dish_rows}

    items = dedupe_menu_items(attach_dish_ids(rows, hall_id, slug_to_id))
    store.upsert_menu_items(items)

    print(f"   ✅ {hall.key}: {len(rows)} rows, {len(dishes)} dishes, {len(items)} menu items", flush=True)
    return len(rows)


def run_all_scrapers(store, halls=DINING_HALLS, scraper_factory=get_scraper, **options):
    """
    Run every hall in order; one hall failing never stops the others

    Returns:
        {"ok": True, "results": {hall_key: row_count}, "errors": {hall_key: message}}
    """
    print("\n" + "=" * 60)
    print("🍽️  Claremont Dining Menu Scraper")
    print("=" * 60, flush=True)

    results = {}
    errors = {}

    for hall in halls:
        try:
            scraper = scraper_factory(hall, **options)
            results[hall.key] = scrape_hall(hall, store, scraper=scraper)
        except Exception as e:
            print(f"\n❌ {hall.key} scraper failed: {e}", flush=True)
            errors[hall.key] = str(e)

    print("\n" + "=" * 60)
    print("📊 SUMMARY")
    print("=" * 60)
    for key, count in results.items():
        print(f"  🟢 {key}: {count} rows")
    for key, message in errors.items():
        print(f"  ❌ {key}: {message}")
    print("=" * 60 + "\n", flush=True)

    return {"ok": True, "results": results, "errors": errors}


def dump_rows(halls, output_file, scraper_factory=get_scraper, **options):
    """Scrape without writing to a store and save the normalized rows"""
    dump = {}
    for hall in halls:
        try:
            dump[hall.key] = dedupe_rows(scraper_factory(hall, **options).scrape())
        except Exception as e:
            print(f"\n❌ {hall.key} scraper failed: {e}", flush=True)
            dump[hall.key] = []

    with open(output_file, "w") as f:
        json.dump(dump, f, indent=2)
    print(f"✅ Rows saved to {output_file}")
    return dump


def main(argv=None):
    parser = argparse.ArgumentParser(description="Scrape Claremont dining menus")
    parser.add_argument("--hall", action="append", help="Hall key to scrape (repeatable, default: all)")
    parser.add_argument("--local-db", help="Write to this SQLite file instead of the hosted store")
    parser.add_argument("--output", help="Save normalized rows to this JSON file and skip the store")
    args = parser.parse_args(argv)

    try:
        halls = tuple(get_hall(key) for key in args.hall) if args.hall else DINING_HALLS
    except KeyError as e:
        print(f"❌ Unknown hall {e}")
        return 2

    if args.output:
        dump_rows(halls, args.output)
        return 0

    if args.local_db:
        from database import SqliteStore
        summary = run_all_scrapers(SqliteStore(args.local_db), halls=halls)
    else:
        from rest_store import RestStore
        try:
            config = load_config()
        except ConfigError as e:
            print(f"❌ {e}")
            return 1
        summary = run_all_scrapers(RestStore.from_config(config), halls=halls, **config.scraper_options())

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
