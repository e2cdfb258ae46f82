import pytest

from config import DINING_HALLS, SOURCES, ConfigError, get_hall, load_config


def test_load_config_requires_store_url_and_key():
    with pytest.raises(ConfigError):
        load_config({})
    with pytest.raises(ConfigError):
        load_config({"SUPABASE_URL": "https://example.supabase.co"})
    with pytest.raises(ConfigError):
        load_config({"SERVICE_ROLE_KEY": "secret"})


def test_load_config_defaults_and_project_url_fallback():
    config = load_config({"PROJECT_URL": "https://example.supabase.co/", "SERVICE_ROLE_KEY": "secret"})

    assert config.store_url == "https://example.supabase.co"
    assert config.service_key == "secret"
    assert config.days_ahead == 5
    assert config.fetch_timeout == 20
    assert config.scraper_options() == {"days_ahead": 5, "timeout": 20, "timezone": "America/Los_Angeles"}


def test_load_config_overrides():
    config = load_config({
        "SUPABASE_URL": "https://a.example",
        "PROJECT_URL": "https://b.example",
        "SERVICE_ROLE_KEY": "secret",
        "SCRAPE_DAYS_AHEAD": "2",
        "SCRAPE_FETCH_TIMEOUT": "15",
        "SCRAPE_BATCH_SIZE": "100",
    })
    assert config.store_url == "https://a.example"
    assert config.days_ahead == 2
    assert config.fetch_timeout == 15
    assert config.batch_size == 100


def test_load_config_rejects_bad_numbers():
    with pytest.raises(ConfigError):
        load_config({"SUPABASE_URL": "https://a.example", "SERVICE_ROLE_KEY": "k", "SCRAPE_DAYS_AHEAD": "soon"})


def test_load_config_rejects_zero_timeout():
    base = {"SUPABASE_URL": "https://a.example", "SERVICE_ROLE_KEY": "k"}
    with pytest.raises(ConfigError, match="SCRAPE_FETCH_TIMEOUT"):
        load_config(dict(base, SCRAPE_FETCH_TIMEOUT="0"))
    with pytest.raises(ConfigError):
        load_config(dict(base, SCRAPE_FETCH_TIMEOUT="-5"))
    assert load_config(dict(base, SCRAPE_FETCH_TIMEOUT="1")).fetch_timeout == 1
    assert load_config(dict(base, SCRAPE_DAYS_AHEAD="0")).days_ahead == 0


def test_hall_table():
    assert [hall.key for hall in DINING_HALLS] == [
        "frary", "oldenborg", "frank", "hoch", "malott", "mcconnell", "collins"
    ]
    assert all(hall.source in SOURCES for hall in DINING_HALLS)
    assert get_hall("malott").cafe_path == "/cafe/malott-dining-commons"
    with pytest.raises(KeyError):
        get_hall("nope")
