from unittest.mock import MagicMock

import pytest

from menu_pipeline.errors import PlacesAPIError
from menu_pipeline.places import PLACES_API_BASE, PlacesClient

NEARBY_JSON = {
    'places': [
        {
            'id': 'ChIJ-girl-and-goat',
            'displayName': {'text': 'Girl & the Goat'},
            'formattedAddress': '809 W Randolph St, Chicago, IL',
            'location': {'latitude': 41.8841, 'longitude': -87.6479},
            'rating': 4.7,
            'userRatingCount': 9000,
            'priceLevel': 'PRICE_LEVEL_EXPENSIVE',
            'photos': [{'name': 'places/ChIJ-girl-and-goat/photos/abc'}],
        },
        {'id': 'ChIJ-bare'},
    ]
}


def _response(json_data, status_code=200, reason='OK'):
    resp = MagicMock()
    resp.ok = 200 <= status_code < 300
    resp.status_code = status_code
    resp.reason = reason
    resp.json.return_value = json_data
    return resp


def test_search_nearby_decodes_places():
    session = MagicMock()
    session.post.return_value = _response(NEARBY_JSON)
    client = PlacesClient('places-key', session=session)

    places = client.search_nearby(41.88, -87.64, 1500)

    first, bare = places
    assert first.place_id == 'ChIJ-girl-and-goat'
    assert first.name == 'Girl & the Goat'
    assert first.rating == 4.7
    assert first.user_rating_count == 9000
    assert first.price_level == 3
    assert first.photo_url == (
        f'{PLACES_API_BASE}/places/ChIJ-girl-and-goat/photos/abc/media?maxWidthPx=800&key=places-key'
    )
    assert bare.name == ''
    assert bare.price_level is None
    assert bare.photo_url is None


def test_search_nearby_request_shape():
    session = MagicMock()
    session.post.return_value = _response({})
    PlacesClient('places-key', timeout=10, session=session).search_nearby(41.88, -87.64, 1500)

    url = session.post.call_args[0][0]
    kwargs = session.post.call_args[1]
    assert url.endswith('/places:searchNearby')
    assert kwargs['headers']['X-Goog-Api-Key'] == 'places-key'
    assert 'places.userRatingCount' in kwargs['headers']['X-Goog-FieldMask']
    assert kwargs['json']['includedTypes'] == ['restaurant']
    assert kwargs['json']['locationRestriction']['circle']['radius'] == 1500
    assert kwargs['timeout'] == 10


def test_search_nearby_http_error():
    session = MagicMock()
    session.post.return_value = _response({}, status_code=403, reason='Forbidden')

    with pytest.raises(PlacesAPIError) as exc_info:
        PlacesClient('bad-key', session=session).search_nearby(41.88, -87.64, 1500)

    assert str(exc_info.value) == 'Google Places searchNearby failed: 403 Forbidden'


def test_get_details_decodes_website_and_summary():
    session = MagicMock()
    session.get.return_value = _response({
        'id': 'ChIJ-x',
        'displayName': {'text': 'Avec'},
        'websiteUri': 'https://avecrestaurant.com',
        'nationalPhoneNumber': '(312) 377-2002',
        'servesVegetarianFood': True,
        'editorialSummary': {'text': 'Mediterranean small plates.'},
        'priceLevel': 'PRICE_LEVEL_MODERATE',
    })

    details = PlacesClient('k', session=session).get_details('ChIJ-x')

    assert session.get.call_args[0][0] == f'{PLACES_API_BASE}/places/ChIJ-x'
    assert details.website_uri == 'https://avecrestaurant.com'
    assert details.phone == '(312) 377-2002'
    assert details.serves_vegetarian_food is True
    assert details.editorial_summary == 'Mediterranean small plates.'
    assert details.price_level == 2


def test_get_details_http_error():
    session = MagicMock()
    session.get.return_value = _response({}, status_code=500, reason='Internal Server Error')

    with pytest.raises(PlacesAPIError):
        PlacesClient('k', session=session).get_details('ChIJ-x')
