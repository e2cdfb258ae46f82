"""
rest_store.py - Writer for the hosted data store (PostgREST API)

Every write is an upsert on the table's natural key, so reruns are no-ops
apart from refreshed metadata.
"""

from datetime import datetime, timezone

import requests

from config import BATCH_SIZE, FETCH_TIMEOUT

HALL_CONFLICT = "name"
DISH_CONFLICT = "hall_id,slug"
MENU_ITEM_CONFLICT = "hall_id,dish_id,date_served,meal,section"


class StoreError(Exception):
    """The data store rejected a write or could not be reached"""


def _chunks(rows, size):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class RestStore:
    """
    Upserts halls, dishes and menu items through /rest/v1

    Menu items without a section are sent with section = null. Reruns only
    merge onto the existing rows when the menu_items unique index treats
    nulls as equal:

        create unique index menu_items_unique_key on menu_items
            (hall_id, dish_id, date_served, meal, section) nulls not distinct;

    (Postgres 15+; older servers need a unique index on coalesce(section, '')
    plus a matching on_conflict target.)
    """

    def __init__(self, base_url, service_key, batch_size=BATCH_SIZE, timeout=FETCH_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/")
        self.batch_size = batch_size
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @classmethod
    def from_config(cls, config):
        return cls(
            config.store_url,
            config.service_key,
            batch_size=config.batch_size,
            timeout=config.fetch_timeout,
        )

    def _upsert(self, table, rows, on_conflict, select=None):
        """POST one batch with merge-duplicates; returns the selected columns"""
        params = {"on_conflict": on_conflict}
        if select:
            params["select"] = select
        prefer = "resolution=merge-duplicates,"
        prefer += "return=representation" if select else "return=minimal"

        try:
            response = self.session.post(
                f"{self.base_url}/rest/v1/{table}",
                params=params,
                json=rows,
                headers={"Prefer": prefer},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"{table} upsert failed: {e}")

        if not response.ok:
            raise StoreError(f"{table} upsert failed ({response.status_code}): {response.text[:300]}")

        return response.json() if select else []

    def upsert_hall(self, name, campus=None):
        rows = self._upsert("halls", [{"name": name, "campus": campus}], HALL_CONFLICT, select="id")
        if not rows:
            raise StoreError(f"halls upsert returned no row for {name}")
        return rows[0]["id"]

    def upsert_dishes(self, hall_id, dishes):
        if not dishes:
            return []

        updated_at = datetime.now(timezone.utc).isoformat()
        payload = [dict(dish, hall_id=hall_id, updated_at=updated_at) for dish in dishes]

        written = []
        for batch in _chunks(payload, self.batch_size):
            written.extend(self._upsert("dishes", batch, DISH_CONFLICT, select="id,slug"))
        return written

    def upsert_menu_items(self, items):
        for batch in _chunks(items, self.batch_size):
            self._upsert("menu_items", batch, MENU_ITEM_CONFLICT)
