"""
places.py — Google Places (New) API client.

Two calls are used by the pipeline:
  search_nearby(lat, lng, radius)  → list[NearbyPlace]   (stage 1)
  get_details(place_id)            → PlaceDetails        (stage 2)

Raw API JSON is decoded into the pydantic models in menu_pipeline.models
here and nowhere else.
"""

import logging
from typing import Optional

import requests

from menu_pipeline.errors import PlacesAPIError
from menu_pipeline.models import NearbyPlace, PlaceDetails

log = logging.getLogger(__name__)

PLACES_API_BASE = 'https://places.googleapis.com/v1'

PRICE_LEVEL_MAP = {
    'PRICE_LEVEL_FREE': 0,
    'PRICE_LEVEL_INEXPENSIVE': 1,
    'PRICE_LEVEL_MODERATE': 2,
    'PRICE_LEVEL_EXPENSIVE': 3,
    'PRICE_LEVEL_VERY_EXPENSIVE': 4,
}

_NEARBY_FIELD_MASK = ','.join([
    'places.id',
    'places.displayName',
    'places.formattedAddress',
    'places.location',
    'places.rating',
    'places.userRatingCount',
    'places.priceLevel',
    'places.photos',
])

_DETAILS_FIELD_MASK = ','.join([
    'id',
    'displayName',
    'formattedAddress',
    'location',
    'rating',
    'userRatingCount',
    'priceLevel',
    'websiteUri',
    'nationalPhoneNumber',
    'servesVegetarianFood',
    'editorialSummary',
    'photos',
])


class PlacesClient:
    """
    Thin wrapper around the Places REST API.

    Args:
        api_key: Google Places API key
        timeout: Per-request timeout in seconds (default 10)
        session: Optional shared requests.Session
    """

    def __init__(self, api_key: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    # ------------------------------------------------------------------ #
    # Decoding helpers
    # ------------------------------------------------------------------ #

    def _photo_url(self, photos: Optional[list]) -> Optional[str]:
        if not photos:
            return None
        name = (photos[0] or {}).get('name')
        if not name:
            return None
        return f'{PLACES_API_BASE}/{name}/media?maxWidthPx=800&key={self.api_key}'

    @staticmethod
    def _price_level(raw: Optional[str]) -> Optional[int]:
        return PRICE_LEVEL_MAP.get(raw) if raw else None

    def _decode_nearby(self, p: dict) -> NearbyPlace:
        location = p.get('location') or {}
        return NearbyPlace(
            place_id=p['id'],
            name=(p.get('displayName') or {}).get('text', ''),
            address=p.get('formattedAddress', ''),
            latitude=location.get('latitude', 0.0),
            longitude=location.get('longitude', 0.0),
            rating=p.get('rating'),
            user_rating_count=p.get('userRatingCount'),
            price_level=self._price_level(p.get('priceLevel')),
            photo_url=self._photo_url(p.get('photos')),
        )

    def _decode_details(self, p: dict) -> PlaceDetails:
        location = p.get('location') or {}
        return PlaceDetails(
            place_id=p['id'],
            name=(p.get('displayName') or {}).get('text', ''),
            address=p.get('formattedAddress', ''),
            latitude=location.get('latitude'),
            longitude=location.get('longitude'),
            rating=p.get('rating'),
            user_rating_count=p.get('userRatingCount'),
            price_level=self._price_level(p.get('priceLevel')),
            website_uri=p.get('websiteUri'),
            phone=p.get('nationalPhoneNumber'),
            serves_vegetarian_food=p.get('servesVegetarianFood'),
            editorial_summary=(p.get('editorialSummary') or {}).get('text'),
            photo_url=self._photo_url(p.get('photos')),
        )

    # ------------------------------------------------------------------ #
    # Public interface
    # ------------------------------------------------------------------ #

    def search_nearby(self, latitude: float, longitude: float,
                      radius: float) -> list[NearbyPlace]:
        """Restaurants within `radius` meters of the point."""
        resp = self._session.post(
            f'{PLACES_API_BASE}/places:searchNearby',
            headers={
                'Content-Type': 'application/json',
                'X-Goog-Api-Key': self.api_key,
                'X-Goog-FieldMask': _NEARBY_FIELD_MASK,
            },
            json={
                'includedTypes': ['restaurant'],
                'locationRestriction': {
                    'circle': {
                        'center': {'latitude': latitude, 'longitude': longitude},
                        'radius': radius,
                    },
                },
            },
            timeout=self.timeout,
        )
        if not resp.ok:
            raise PlacesAPIError(
                f'Google Places searchNearby failed: {resp.status_code} {resp.reason}'
            )

        places = resp.json().get('places') or []
        log.debug(f'searchNearby ({latitude}, {longitude}, r={radius}) → {len(places)} places')
        return [self._decode_nearby(p) for p in places]

    def get_details(self, place_id: str) -> PlaceDetails:
        resp = self._session.get(
            f'{PLACES_API_BASE}/places/{place_id}',
            headers={
                'X-Goog-Api-Key': self.api_key,
                'X-Goog-FieldMask': _DETAILS_FIELD_MASK,
            },
            timeout=self.timeout,
        )
        if not resp.ok:
            raise PlacesAPIError(
                f'Google Places getPlaceDetails failed: {resp.status_code} {resp.reason}'
            )
        return self._decode_details(resp.json())
