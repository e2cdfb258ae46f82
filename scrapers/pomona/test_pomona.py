import json

import pytest
import requests

from config import get_hall
from scrapers.base_scraper import ScrapeError
from scrapers.pomona.scraper import PomonaScraper, normalize_pomona, parse_feed


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.headers = {}
        self.urls = []

    def get(self, url, headers=None, timeout=None):
        self.urls.append(url)
        return self.response


def feed(menu):
    return {"EatecExchange": {"menu": menu}}


def test_recipe_level_attributes():
    data = feed({"recipes": {"recipe": {
        "@shortName": "Pancakes",
        "@mealperiodname": "Breakfast",
        "@servedate": "20240115",
        "@category": "Grill",
    }}})

    rows = normalize_pomona(data)

    assert len(rows) == 1
    row = rows[0]
    assert row["date_served"] == "2024-01-15"
    assert row["meal"] == "breakfast"
    assert row["section"] == "Grill"
    assert row["dish_name"] == "Pancakes"
    assert row["description"] is None
    assert row["allergens"] is None


def test_menu_entries_as_list_and_singleton_recipes():
    data = feed([
        {
            "@servedate": "20240115",
            "@mealperiodname": "Lunch",
            "recipes": {"recipe": [
                {"@shortName": "Tomato Soup", "@category": "Soups"},
                {"@shortName": " ", "@description": "Grilled Cheese", "@category": "Grill"},
                {"@shortName": "", "@description": ""},
            ]},
        },
        {
            "@servedate": "20240116",
            "@mealperiodname": "Late Night Snack",
            "recipes": {"recipe": {"@shortName": "Nachos"}},
        },
    ])

    rows = normalize_pomona(data)

    assert [(r["date_served"], r["meal"], r["dish_name"], r["section"]) for r in rows] == [
        ("2024-01-15", "lunch", "Tomato Soup", "Soups"),
        ("2024-01-15", "lunch", "Grilled Cheese", "Grill"),
        ("2024-01-16", "late_night", "Nachos", None),
    ]


def test_unknown_meal_period_defaults_to_dinner():
    data = feed({
        "@servedate": "20240115",
        "@mealperiodname": "Weird Unlabeled Period",
        "recipes": {"recipe": {"@shortName": "Stir Fry"}},
    })
    assert normalize_pomona(data)[0]["meal"] == "dinner"


def test_bad_servedate_is_skipped():
    data = feed([
        {"@servedate": "2024-01-15", "recipes": {"recipe": {"@shortName": "Bagel"}}},
        {"@servedate": "202401", "recipes": {"recipe": {"@shortName": "Toast"}}},
        {"recipes": {"recipe": {"@shortName": "Waffle"}}},
    ])
    assert normalize_pomona(data) == []


def test_descriptions_tags_and_allergens():
    data = feed({
        "@servedate": "20240115",
        "@mealperiodname": "Dinner",
        "recipes": {"recipe": [
            {
                "@shortName": "Veggie Curry",
                "@description": "VEG CURRY 6OZ",
                "@alternatedescription": "Chickpea &amp; spinach<br>curry",
                "@nutrients": " Calories: 320 | Protein: 12g ",
                "ingredients": {"#cdata-section": "chickpeas,  spinach, coconut milk"},
                "dietaryChoices": {"dietaryChoice": [
                    {"@id": "Vegan", "#text": "Yes"},
                    {"@id": "Halal", "#text": "No"},
                    {"@id": " ", "#text": "yes"},
                ]},
                "allergens": {"allergen": {"@id": "Coconut", "#text": "yes"}},
            },
            {
                "@shortName": "Rice",
                "@alternatedescription": "N/A",
            },
        ]},
    })

    curry, rice = normalize_pomona(data)

    assert curry["description"] == "Chickpea & spinach curry"
    assert curry["ingredients"] == "chickpeas, spinach, coconut milk"
    assert curry["nutrients"] == "Calories: 320 | Protein: 12g"
    assert curry["tags"] == ["Vegan"]
    assert curry["dietary_choices"] == ["Vegan"]
    assert curry["allergens"] == ["Coconut"]
    assert rice["description"] is None
    assert rice["tags"] is None


def test_duplicate_recipes_collapse():
    data = feed({
        "@servedate": "20240115",
        "@mealperiodname": "Breakfast",
        "recipes": {"recipe": [
            {"@shortName": "Tofu Scramble", "@category": "Vegan"},
            {"@shortName": "tofu scramble", "@category": "Vegan"},
        ]},
    })
    assert len(normalize_pomona(data)) == 1


def test_parse_feed_peels_wrapper():
    assert parse_feed('/* feed */ callback({"EatecExchange": {}});') == {"EatecExchange": {}}
    with pytest.raises(ScrapeError):
        parse_feed("<html>maintenance</html>")


def test_scrape_adds_cache_buster():
    body = "var data = " + json.dumps(feed({
        "@servedate": "20240115",
        "@mealperiodname": "Breakfast",
        "recipes": {"recipe": {"@shortName": "Pancakes"}},
    }))
    session = FakeSession(FakeResponse(body))
    scraper = PomonaScraper(get_hall("frary"), session=session)

    rows = scraper.scrape()

    assert [r["dish_name"] for r in rows] == ["Pancakes"]
    assert session.urls[0].startswith("https://portal.pomona.edu/eatec/Frary.json?_")
    assert session.urls[0].endswith("=")


def test_scrape_fetch_failure_raises():
    session = FakeSession(FakeResponse("Service Unavailable", status_code=503))
    scraper = PomonaScraper(get_hall("frank"), session=session)

    with pytest.raises(ScrapeError):
        scraper.scrape()
