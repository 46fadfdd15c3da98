"""
find_menus.py — Stage 3: locate a menu page or PDF on each restaurant website.
"""

import logging
import time
from typing import Optional

import requests

from menu_pipeline.config import StageSettings, TimeoutSettings
from menu_pipeline.models import MenuType
from menu_pipeline.scraper import find_menu_url
from menu_pipeline.stages.common import mark_failed

log = logging.getLogger(__name__)

NO_MENU = 'No menu found on website'


def run(store, settings: Optional[StageSettings] = None,
        timeouts: Optional[TimeoutSettings] = None,
        session: Optional[requests.Session] = None) -> dict:
    settings = settings or StageSettings()
    timeouts = timeouts or TimeoutSettings()
    stats = {'found': 0, 'not_found': 0, 'errors': 0}

    restaurants = store.restaurants_to_find_menus()
    print(f'  {len(restaurants)} websites to crawl')

    for restaurant in restaurants:
        name = restaurant.get('name')
        try:
            result = find_menu_url(restaurant['website_uri'], session=session,
                                   timeout=timeouts.scrape)
            if result:
                menu_url, menu_type = result
                store.update_restaurant(restaurant['id'], {
                    'menu_url': menu_url,
                    'menu_type': menu_type.value,
                })
                stats['found'] += 1
                print(f'  ✓ {name}: {menu_type.value} {menu_url}')
            else:
                mark_failed(store, restaurant, NO_MENU, menu_type=MenuType.NONE.value)
                stats['not_found'] += 1
                print(f'  ✗ {name}: no menu found')
        except Exception as e:
            stats['errors'] += 1
            log.error(f'Find-menus failed for {name}: {e}')
            print(f'  ✗ {name}: {e}')

        time.sleep(settings.find_menus_delay)

    return stats
