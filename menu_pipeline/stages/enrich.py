"""
enrich.py — Stage 2: pull Place details for restaurants without a website.
"""

import logging
import time
from typing import Optional

from menu_pipeline.config import StageSettings
from menu_pipeline.models import MenuType
from menu_pipeline.stages.common import mark_failed

log = logging.getLogger(__name__)

NO_WEBSITE = 'No website found'


def run(store, places, settings: Optional[StageSettings] = None) -> dict:
    settings = settings or StageSettings()
    stats = {'enriched': 0, 'no_website': 0, 'errors': 0}

    restaurants = store.restaurants_to_enrich(settings.enrich_batch_size)
    print(f'  {len(restaurants)} restaurants to enrich')

    for restaurant in restaurants:
        name = restaurant.get('name')
        try:
            details = places.get_details(restaurant['place_id'])

            if not details.website_uri:
                mark_failed(store, restaurant, NO_WEBSITE, menu_type=MenuType.NONE.value)
                stats['no_website'] += 1
                print(f'  ✗ {name}: no website')
            else:
                fields = {
                    'website_uri': details.website_uri,
                    'phone': details.phone,
                    'serves_vegetarian_food': details.serves_vegetarian_food,
                    'editorial_summary': details.editorial_summary,
                    'user_rating_count': details.user_rating_count,
                }
                # Keep the search photo if details came back without one
                if details.photo_url:
                    fields['photo_url'] = details.photo_url
                store.update_restaurant(restaurant['id'], fields)
                stats['enriched'] += 1
                print(f'  ✓ {name}: {details.website_uri}')

        except Exception as e:
            # Left pending; the next run picks it up again
            stats['errors'] += 1
            log.error(f'Enrich failed for {name}: {e}')
            print(f'  ✗ {name}: {e}')

        time.sleep(settings.enrich_delay)

    return stats
