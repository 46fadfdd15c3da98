from unittest.mock import patch

from menu_pipeline.models import MenuType
from menu_pipeline.stages import find_menus


@patch('menu_pipeline.stages.find_menus.find_menu_url')
def test_menu_found_is_stored(mock_find, store):
    r = store.add(place_id='p1', name='Avec', slug='avec', website_uri='https://avec.example')
    mock_find.return_value = ('https://avec.example/menu.pdf', MenuType.PDF)

    stats = find_menus.run(store)

    row = store.restaurants[r['id']]
    assert row['menu_url'] == 'https://avec.example/menu.pdf'
    assert row['menu_type'] == 'pdf'
    assert row['analysis_status'] == 'pending'
    assert stats['found'] == 1
    assert mock_find.call_args[0][0] == 'https://avec.example'


@patch('menu_pipeline.stages.find_menus.find_menu_url', return_value=None)
def test_no_menu_fails_the_restaurant(_mock_find, store):
    r = store.add(place_id='p1', name='Avec', slug='avec', website_uri='https://avec.example')

    find_menus.run(store)

    row = store.restaurants[r['id']]
    assert row['analysis_status'] == 'failed'
    assert row['analysis_error'] == 'No menu found on website'
    assert row['menu_type'] == 'none'


@patch('menu_pipeline.stages.find_menus.find_menu_url')
def test_records_with_menu_or_without_website_are_skipped(mock_find, store):
    store.add(place_id='p1', name='No Site', slug='no-site')
    store.add(place_id='p2', name='Has Menu', slug='has-menu',
              website_uri='https://x.example', menu_url='https://x.example/menu')

    find_menus.run(store)

    mock_find.assert_not_called()
