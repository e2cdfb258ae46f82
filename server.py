#!/usr/bin/env python3
"""
Flask server exposing the scrape trigger, with an optional background scheduler
"""

from flask import Flask, jsonify
from flask_cors import CORS
import threading
import os
from datetime import datetime

from config import ConfigError, load_config
from rest_store import RestStore
from run_all_scrapers import run_all_scrapers

app = Flask(__name__)
CORS(app)


@app.route('/scrape-menus', methods=['GET', 'POST'])
def scrape_menus():
    """
    Run the scrape for every hall

    Response:
    {
        "ok": true,
        "results": {"frary": 212, ...},
        "errors": {"hoch": "..."}
    }
    A missing store URL or service key answers 500 without scraping anything.
    """
    try:
        config = load_config()
    except ConfigError as e:
        print(f"❌ scrape-menus refused: {e}")
        return jsonify({"ok": False, "error": str(e)}), 500

    try:
        summary = run_all_scrapers(RestStore.from_config(config), **config.scraper_options())
        return jsonify(summary)
    except Exception as e:
        print(f"❌ scrape-menus error: {e}")
        return jsonify({"ok": False, "error": str(e)}), 500


@app.route('/api/status', methods=['GET'])
def status():
    """Health check endpoint"""
    return jsonify({"status": "running", "timestamp": datetime.now().isoformat()})


def start_scheduler():
    """Run the daily scheduler in a daemon thread"""
    from scheduler import run_scheduler

    thread = threading.Thread(target=run_scheduler, daemon=True)
    thread.start()
    return thread


if __name__ == '__main__':
    if os.environ.get('SCRAPE_SCHEDULE') == '1':
        start_scheduler()
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 8080)))
