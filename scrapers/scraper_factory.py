"""
Scraper factory
Maps a hall's source kind onto its adapter class.
"""

from config import SOURCE_POMONA, SOURCE_SODEXO, SOURCE_BONAPPETIT
from scrapers.bonappetit.scraper import BonAppetitScraper
from scrapers.pomona.scraper import PomonaScraper
from scrapers.sodexo.scraper import SodexoScraper

SCRAPERS = {
    SOURCE_POMONA: PomonaScraper,
    SOURCE_SODEXO: SodexoScraper,
    SOURCE_BONAPPETIT: BonAppetitScraper,
}


def get_scraper(hall, **options):
    """Build the scraper for `hall`; options go to BaseScraper"""
    try:
        scraper_cls = SCRAPERS[hall.source]
    except KeyError:
        raise ValueError(f"Unknown source {hall.source!r} for hall {hall.key}")
    return scraper_cls(hall, **options)
