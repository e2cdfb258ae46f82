"""
database.py - SQLite store for halls, dishes and menu items

Same tables and unique keys as the hosted store, used for local runs and tests.
"""

import json
import os
import sqlite3

DATABASE_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'menus.db')

LIST_FIELDS = ('tags', 'allergens', 'dietary_choices')


def _encode_list(value):
    return json.dumps(value) if value is not None else None


def _decode_row(row):
    data = dict(row)
    for field in LIST_FIELDS:
        if field in data and data[field] is not None:
            data[field] = json.loads(data[field])
    if data.get('section') == '':
        data['section'] = None
    return data


class SqliteStore:
    """Upsert-only writer over a local SQLite file"""

    def __init__(self, path=DATABASE_PATH):
        self.path = path
        self.init_db()

    def get_db_connection(self):
        """Get a database connection with row factory for dict-like access"""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        return conn

    def init_db(self):
        """Initialize the database schema"""
        conn = self.get_db_connection()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS halls (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                campus TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS dishes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                hall_id INTEGER NOT NULL REFERENCES halls(id),
                slug TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                ingredients TEXT,
                allergens TEXT,
                dietary_choices TEXT,
                nutrients TEXT,
                tags TEXT,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(hall_id, slug)
            )
        ''')

        # section is '' rather than NULL so the composite key stays unique
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS menu_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                hall_id INTEGER NOT NULL REFERENCES halls(id),
                dish_id INTEGER NOT NULL REFERENCES dishes(id),
                date_served TEXT NOT NULL,
                meal TEXT NOT NULL CHECK(meal IN ('breakfast', 'lunch', 'dinner', 'late_night')),
                dish_name TEXT NOT NULL,
                section TEXT NOT NULL DEFAULT '',
                description TEXT,
                tags TEXT,
                ingredients TEXT,
                allergens TEXT,
                dietary_choices TEXT,
                nutrients TEXT,
                UNIQUE(hall_id, dish_id, date_served, meal, section)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_menu_items_date
            ON menu_items(date_served, hall_id)
        ''')

        conn.commit()
        conn.close()

    def upsert_hall(self, name, campus=None):
        """Insert or update a hall by name and return its id"""
        conn = self.get_db_connection()
        try:
            conn.execute('''
                INSERT INTO halls (name, campus) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET campus = excluded.campus
            ''', (name, campus))
            row = conn.execute('SELECT id FROM halls WHERE name = ?', (name,)).fetchone()
            conn.commit()
        finally:
            conn.close()
        return row['id']

    def upsert_dishes(self, hall_id, dishes):
        """
        Insert or update dishes by (hall_id, slug)

        Returns:
            List of {"id", "slug"} for the written dishes
        """
        if not dishes:
            return []

        conn = self.get_db_connection()
        try:
            conn.executemany('''
                INSERT INTO dishes (hall_id, slug, name, description, ingredients,
                                    allergens, dietary_choices, nutrients, tags)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(hall_id, slug) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    ingredients = excluded.ingredients,
                    allergens = excluded.allergens,
                    dietary_choices = excluded.dietary_choices,
                    nutrients = excluded.nutrients,
                    tags = excluded.tags,
                    updated_at = CURRENT_TIMESTAMP
            ''', [
                (
                    hall_id,
                    d['slug'],
                    d['name'],
                    d.get('description'),
                    d.get('ingredients'),
                    _encode_list(d.get('allergens')),
                    _encode_list(d.get('dietary_choices')),
                    d.get('nutrients'),
                    _encode_list(d.get('tags')),
                )
                for d in dishes
            ])

            slugs = [d['slug'] for d in dishes]
            placeholders = ', '.join('?' for _ in slugs)
            rows = conn.execute(
                f'SELECT id, slug FROM dishes WHERE hall_id = ? AND slug IN ({placeholders})',
                [hall_id] + slugs
            ).fetchall()
            conn.commit()
        finally:
            conn.close()

        return [{"id": row['id'], "slug": row['slug']} for row in rows]

    def upsert_menu_items(self, items):
        """Insert or update menu items by (hall_id, dish_id, date_served, meal, section)"""
        if not items:
            return

        conn = self.get_db_connection()
        try:
            conn.executemany('''
                INSERT INTO menu_items (hall_id, dish_id, date_served, meal, dish_name, section,
                                        description, tags, ingredients, allergens,
                                        dietary_choices, nutrients)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(hall_id, dish_id, date_served, meal, section) DO UPDATE SET
                    dish_name = excluded.dish_name,
                    description = excluded.description,
                    tags = excluded.tags,
                    ingredients = excluded.ingredients,
                    allergens = excluded.allergens,
                    dietary_choices = excluded.dietary_choices,
                    nutrients = excluded.nutrients
            ''', [
                (
                    item['hall_id'],
                    item['dish_id'],
                    item['date_served'],
                    item['meal'],
                    item['dish_name'],
                    item.get('section') or '',
                    item.get('description'),
                    _encode_list(item.get('tags')),
                    item.get('ingredients'),
                    _encode_list(item.get('allergens')),
                    _encode_list(item.get('dietary_choices')),
                    item.get('nutrients'),
                )
                for item in items
            ])
            conn.commit()
        finally:
            conn.close()

    def get_menu_items(self, date_served=None):
        """
        Get menu items with their hall name, optionally for one date

        Args:
            date_served: The date to query (YYYY-MM-DD format)

        Returns:
            List of menu item dicts ordered by hall, meal and dish name
        """
        conn = self.get_db_connection()
        query = '''
            SELECT menu_items.*, halls.name AS hall_name
            FROM menu_items JOIN halls ON halls.id = menu_items.hall_id
        '''
        params = ()
        if date_served:
            query += ' WHERE date_served = ?'
            params = (date_served,)
        query += ' ORDER BY halls.name, meal, dish_name'

        rows = conn.execute(query, params).fetchall()
        conn.close()
        return [_decode_row(row) for row in rows]

    def get_dishes(self, hall_id=None):
        conn = self.get_db_connection()
        if hall_id is None:
            rows = conn.execute('SELECT * FROM dishes ORDER BY hall_id, slug').fetchall()
        else:
            rows = conn.execute('SELECT * FROM dishes WHERE hall_id = ? ORDER BY slug', (hall_id,)).fetchall()
        conn.close()
        return [_decode_row(row) for row in rows]

    def count_rows(self, table):
        if table not in ('halls', 'dishes', 'menu_items'):
            raise ValueError(f"Unknown table {table!r}")
        conn = self.get_db_connection()
        count = conn.execute(f'SELECT COUNT(*) AS total FROM {table}').fetchone()['total']
        conn.close()
        return count

    def get_latest_menu_date(self):
        """Most recent date_served on record, or None"""
        conn = self.get_db_connection()
        row = conn.execute('SELECT MAX(date_served) AS latest FROM menu_items').fetchone()
        conn.close()
        return row['latest']


if __name__ == "__main__":
    store = SqliteStore()
    print(f"Database created at: {store.path}")
