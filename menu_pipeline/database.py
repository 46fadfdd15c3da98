"""
database.py — Supabase access for the menu pipeline.

Tables:
- restaurants: one row per place, analysis_status drives stage eligibility
- raw_menus:   extracted menu text, one row per restaurant (full replace)
- menu_items:  analysed dishes, N rows per restaurant (full replace)

Every stage selects its batch through one of the restaurants_to_*() queries
and changes status only through transition(), which enforces the
AnalysisStatus transition table.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from supabase import Client, create_client

from menu_pipeline.models import AnalysisStatus

log = logging.getLogger(__name__)

PAGE_SIZE = 1000

SCHEMA_SQL = """
-- ============================================
-- DIETARY MENU PIPELINE SCHEMA
-- ============================================

CREATE EXTENSION IF NOT EXISTS "uuid-ossp";

-- 1. RESTAURANTS
CREATE TABLE IF NOT EXISTS restaurants (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    place_id VARCHAR UNIQUE NOT NULL,
    name VARCHAR NOT NULL,
    slug VARCHAR UNIQUE NOT NULL,
    address TEXT,
    neighborhood VARCHAR,
    latitude DECIMAL(10, 7),
    longitude DECIMAL(10, 7),

    website_uri TEXT,
    phone VARCHAR,
    rating DECIMAL(2, 1),
    user_rating_count INTEGER,
    price_level SMALLINT,
    serves_vegetarian_food BOOLEAN,
    editorial_summary TEXT,
    photo_url TEXT,

    menu_url TEXT,
    menu_type VARCHAR CHECK (menu_type IN ('html', 'pdf', 'none')),
    analysis_status VARCHAR NOT NULL DEFAULT 'pending'
        CHECK (analysis_status IN ('pending', 'extracting', 'extracted',
                                   'analyzing', 'analyzed', 'failed')),
    analysis_error TEXT,
    last_analyzed_at TIMESTAMPTZ,

    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_restaurants_status ON restaurants(analysis_status);
CREATE INDEX IF NOT EXISTS idx_restaurants_neighborhood ON restaurants(neighborhood);

-- 2. RAW MENUS (one per restaurant)
CREATE TABLE IF NOT EXISTS raw_menus (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    restaurant_id UUID REFERENCES restaurants(id) ON DELETE CASCADE,
    raw_text TEXT NOT NULL,
    source_url TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_raw_menus_restaurant ON raw_menus(restaurant_id);

-- 3. MENU ITEMS
CREATE TABLE IF NOT EXISTS menu_items (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    restaurant_id UUID REFERENCES restaurants(id) ON DELETE CASCADE,
    name VARCHAR NOT NULL,
    description TEXT,
    is_vegan BOOLEAN NOT NULL DEFAULT FALSE,
    is_vegetarian BOOLEAN NOT NULL DEFAULT FALSE,
    is_gluten_free BOOLEAN NOT NULL DEFAULT FALSE,
    confidence VARCHAR NOT NULL CHECK (confidence IN ('certain', 'uncertain')),
    modifications TEXT[],
    ask_server TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_menu_items_restaurant ON menu_items(restaurant_id);
"""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _raw_text(row: dict) -> Optional[str]:
    """raw_menus embeds as a list, or as an object when restaurant_id is unique."""
    embedded = row.get('raw_menus')
    if isinstance(embedded, list):
        embedded = embedded[0] if embedded else None
    return (embedded or {}).get('raw_text')


class RestaurantStore:
    """
    Supabase-backed store used by all five stages.

    Query errors are raised (postgrest APIError); stages decide whether that
    is fatal for the stage or only for one record.
    """

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def connect(cls, supabase_url: str, supabase_key: str) -> 'RestaurantStore':
        return cls(create_client(supabase_url, supabase_key))

    @staticmethod
    def schema_sql() -> str:
        """DDL to run once in the Supabase SQL editor."""
        return SCHEMA_SQL

    def _restaurants(self):
        return self.client.table('restaurants')

    # ------------------------------------------------------------------ #
    # Stage 1
    # ------------------------------------------------------------------ #

    def slug_index(self) -> dict[str, str]:
        """place_id → slug for every stored restaurant."""
        index: dict[str, str] = {}
        start = 0
        while True:
            result = (
                self._restaurants()
                .select('place_id, slug')
                .order('id')
                .range(start, start + PAGE_SIZE - 1)
                .execute()
            )
            rows = result.data or []
            for row in rows:
                index[row['place_id']] = row['slug']
            if len(rows) < PAGE_SIZE:
                return index
            start += PAGE_SIZE

    def upsert_restaurant(self, row: dict):
        """Insert or overwrite by place_id. Columns absent from row are left as they are."""
        self._restaurants().upsert(
            {**row, 'updated_at': utc_now()},
            on_conflict='place_id',
            ignore_duplicates=False,
        ).execute()

    # ------------------------------------------------------------------ #
    # Stage selections
    # ------------------------------------------------------------------ #

    def restaurants_to_enrich(self, limit: int) -> list[dict]:
        result = (
            self._restaurants()
            .select('id, place_id, name, analysis_status')
            .is_('website_uri', 'null')
            .eq('analysis_status', AnalysisStatus.PENDING.value)
            .limit(limit)
            .execute()
        )
        return result.data or []

    def restaurants_to_find_menus(self) -> list[dict]:
        result = (
            self._restaurants()
            .select('id, name, website_uri, analysis_status')
            .not_.is_('website_uri', 'null')
            .is_('menu_url', 'null')
            .eq('analysis_status', AnalysisStatus.PENDING.value)
            .execute()
        )
        return result.data or []

    def restaurants_to_extract(self) -> list[dict]:
        result = (
            self._restaurants()
            .select('id, name, menu_url, menu_type, analysis_status')
            .not_.is_('menu_url', 'null')
            .eq('analysis_status', AnalysisStatus.PENDING.value)
            .execute()
        )
        return result.data or []

    def restaurants_to_analyze(self) -> list[dict]:
        """Extracted restaurants with their raw text flattened onto 'raw_text'."""
        result = (
            self._restaurants()
            .select('id, name, analysis_status, raw_menus(raw_text)')
            .eq('analysis_status', AnalysisStatus.EXTRACTED.value)
            .execute()
        )
        rows = []
        for row in result.data or []:
            row = dict(row)
            row['raw_text'] = _raw_text(row)
            row.pop('raw_menus', None)
            rows.append(row)
        return rows

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def update_restaurant(self, restaurant_id: str, fields: dict):
        self._restaurants().update(
            {**fields, 'updated_at': utc_now()}
        ).eq('id', restaurant_id).execute()

    def transition(self, restaurant: dict, target: AnalysisStatus, **fields):
        """
        Move a restaurant to `target`, writing any extra columns alongside.

        The in-memory row is updated after the write succeeds.

        Raises:
            InvalidTransitionError: target not reachable from the current status
        """
        current = AnalysisStatus(restaurant['analysis_status'])
        target = current.advance(target)
        self.update_restaurant(restaurant['id'], {'analysis_status': target.value, **fields})
        restaurant['analysis_status'] = target.value

    def replace_raw_menu(self, restaurant_id: str, raw_text: str, source_url: str):
        self.client.table('raw_menus').delete().eq('restaurant_id', restaurant_id).execute()
        self.client.table('raw_menus').insert({
            'restaurant_id': restaurant_id,
            'raw_text': raw_text,
            'source_url': source_url,
        }).execute()

    def replace_menu_items(self, restaurant_id: str, rows: list[dict]):
        """
        Make `rows` the complete item set for the restaurant.

        New rows go in before the old ones are removed, so a failed insert
        leaves the previously published menu intact.
        """
        existing = self.client.table('menu_items').select('id').eq('restaurant_id', restaurant_id).execute()
        old_ids = [r['id'] for r in existing.data or []]

        if rows:
            self.client.table('menu_items').insert(rows).execute()
        if old_ids:
            self.client.table('menu_items').delete().in_('id', old_ids).execute()
