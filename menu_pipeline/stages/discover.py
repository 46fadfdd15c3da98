"""
discover.py — Stage 1: find candidate restaurants.

One Places nearby search per configured neighborhood. Places that pass the
quality filter are upserted by place_id. Re-running is safe: known places
keep their slug and their analysis_status.
"""

import logging
import time
from typing import Optional, Sequence

from menu_pipeline.chains import is_chain
from menu_pipeline.config import DiscoverySettings
from menu_pipeline.geo import Neighborhood, nearest_neighborhood
from menu_pipeline.models import AnalysisStatus, NearbyPlace
from menu_pipeline.slugify import UniqueSlugAllocator

log = logging.getLogger(__name__)


def passes_quality_filter(place: NearbyPlace, settings: DiscoverySettings) -> bool:
    if (place.rating or 0) < settings.min_rating:
        return False
    if (place.user_rating_count or 0) < settings.min_reviews:
        return False
    return not is_chain(place.name)


def neighborhood_label(place: NearbyPlace, region: Neighborhood,
                       neighborhoods: Sequence[Neighborhood]) -> str:
    if not place.latitude and not place.longitude:
        return region.name
    nearest: Optional[Neighborhood] = nearest_neighborhood(
        place.latitude, place.longitude, neighborhoods
    )
    return nearest.name if nearest else region.name


def build_row(place: NearbyPlace, slug: str, neighborhood: str, is_new: bool) -> dict:
    row = {
        'place_id': place.place_id,
        'name': place.name,
        'slug': slug,
        'address': place.address,
        'neighborhood': neighborhood,
        'latitude': place.latitude,
        'longitude': place.longitude,
        'rating': place.rating,
        'user_rating_count': place.user_rating_count,
        'price_level': place.price_level,
        'photo_url': place.photo_url,
    }
    # Existing rows keep whatever status later stages gave them
    if is_new:
        row['analysis_status'] = AnalysisStatus.PENDING.value
    return row


def run(store, places, neighborhoods: Sequence[Neighborhood],
        settings: Optional[DiscoverySettings] = None) -> dict:
    settings = settings or DiscoverySettings()
    stats = {'regions': 0, 'region_errors': 0, 'found': 0, 'kept': 0,
             'upserted': 0, 'upsert_errors': 0}

    existing = store.slug_index()
    allocator = UniqueSlugAllocator(existing)
    stored_place_ids = set(existing)
    log.info(f'{len(existing)} restaurants already stored')

    for region in neighborhoods:
        stats['regions'] += 1
        try:
            found = places.search_nearby(region.latitude, region.longitude, region.radius)
        except Exception as e:
            stats['region_errors'] += 1
            log.error(f'Search failed for {region.name}: {e}')
            print(f'  ✗ {region.name}: {e}')
            time.sleep(settings.region_delay)
            continue

        kept = [p for p in found if passes_quality_filter(p, settings)]
        stats['found'] += len(found)
        stats['kept'] += len(kept)
        print(f'  {region.name}: {len(found)} found, {len(kept)} pass filters')

        for place in kept:
            label = neighborhood_label(place, region, neighborhoods)
            slug = allocator.slug_for(place.place_id, place.name, label)
            is_new = place.place_id not in stored_place_ids
            try:
                store.upsert_restaurant(build_row(place, slug, label, is_new))
                stored_place_ids.add(place.place_id)
                stats['upserted'] += 1
            except Exception as e:
                stats['upsert_errors'] += 1
                log.error(f'Upsert failed for {place.name} ({place.place_id}): {e}')
                print(f'    ✗ {place.name}: {e}')

        time.sleep(settings.region_delay)

    print(f"  ✓ {stats['upserted']} restaurants upserted from {stats['regions']} neighborhoods")
    return stats
