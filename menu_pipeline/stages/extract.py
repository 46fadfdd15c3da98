"""
extract.py — Stage 4: menu page / PDF → raw_menus text.

Each restaurant is marked `extracting` before any network call, so a crash
mid-batch leaves a visible trail instead of silently re-running.
"""

import logging
from typing import Optional

import requests

from menu_pipeline.config import StageSettings, TimeoutSettings
from menu_pipeline.models import AnalysisStatus, MenuType
from menu_pipeline.pdf import extract_pdf_text
from menu_pipeline.scraper import extract_menu_text
from menu_pipeline.stages.common import mark_failed

log = logging.getLogger(__name__)

NO_TEXT = 'Could not extract menu text'


def fetch_menu_text(restaurant: dict, vision=None,
                    session: Optional[requests.Session] = None,
                    timeouts: Optional[TimeoutSettings] = None) -> Optional[str]:
    timeouts = timeouts or TimeoutSettings()
    menu_type = restaurant.get('menu_type')
    menu_url = restaurant['menu_url']

    if menu_type == MenuType.PDF.value:
        return extract_pdf_text(menu_url, vision=vision, session=session, timeout=timeouts.pdf)
    if menu_type == MenuType.HTML.value:
        return extract_menu_text(menu_url, session=session, timeout=timeouts.scrape)

    log.debug(f"Unknown menu_type {menu_type!r} for {restaurant.get('name')}")
    return None


def run(store, vision=None, settings: Optional[StageSettings] = None,
        timeouts: Optional[TimeoutSettings] = None,
        session: Optional[requests.Session] = None) -> dict:
    settings = settings or StageSettings()
    stats = {'extracted': 0, 'failed': 0}

    restaurants = store.restaurants_to_extract()
    print(f'  {len(restaurants)} menus to extract')

    for restaurant in restaurants:
        name = restaurant.get('name')
        try:
            store.transition(restaurant, AnalysisStatus.EXTRACTING)
            text = fetch_menu_text(restaurant, vision=vision, session=session, timeouts=timeouts)

            if text and len(text) >= settings.min_menu_chars:
                store.replace_raw_menu(restaurant['id'], text, restaurant['menu_url'])
                store.transition(restaurant, AnalysisStatus.EXTRACTED)
                stats['extracted'] += 1
                print(f'  ✓ {name}: {len(text)} chars')
            else:
                mark_failed(store, restaurant, NO_TEXT)
                stats['failed'] += 1
                print(f"  ✗ {name}: only {len(text or '')} chars")

        except Exception as e:
            mark_failed(store, restaurant, str(e))
            stats['failed'] += 1
            log.error(f'Extract failed for {name}: {e}')
            print(f'  ✗ {name}: {e}')

    return stats
