#!/usr/bin/env python3
"""
Scheduler that runs the menu scrape once a day
Refreshes today plus the next few days of menus for every hall
"""

import schedule
import time
from datetime import datetime

from config import ConfigError, load_config
from rest_store import RestStore
from run_all_scrapers import run_all_scrapers

RUN_AT = "03:00"


def update_menus():
    """Run the full pipeline against the hosted store"""
    print(f"\n{'='*60}")
    print(f"🕐 Scheduled update at {datetime.now().strftime('%I:%M %p')}")
    print(f"{'='*60}\n", flush=True)

    try:
        config = load_config()
    except ConfigError as e:
        print(f"❌ Refusing to run: {e}")
        return None

    summary = run_all_scrapers(RestStore.from_config(config), **config.scraper_options())
    print(f"🎉 Update complete at {datetime.now().strftime('%I:%M %p')}: "
          f"{len(summary['results'])} halls ok, {len(summary['errors'])} failed", flush=True)
    return summary


def run_scheduler(run_now=True):
    """Blocking loop; the server runs this in a background thread"""
    print("🚀 Scheduler starting...")

    if run_now:
        update_menus()

    schedule.every().day.at(RUN_AT).do(update_menus)
    print(f"⏰ Updates scheduled at {RUN_AT} daily\n", flush=True)

    while True:
        schedule.run_pending()
        time.sleep(60)


if __name__ == "__main__":
    try:
        run_scheduler()
    except KeyboardInterrupt:
        print("\n\n👋 Scheduler stopped. Goodbye!")
