import pytest

from menu_pipeline.chains import is_chain, normalize_name


@pytest.mark.parametrize('name', [
    "McDonald's",
    'MCDONALDS',
    'Chipotle Mexican Grill',
    'Chick-fil-A',
    'Starbucks Reserve Roastery',
    'Portillo’s Hot Dogs',
])
def test_is_chain_matches_brands(name):
    assert is_chain(name)


@pytest.mark.parametrize('name', [
    'Chipotleville',
    'Girl & the Goat',
    'Subwaysandwich Co-op',
    '',
])
def test_is_chain_leaves_independents_alone(name):
    assert not is_chain(name)


def test_normalize_name():
    assert normalize_name('  Chick-fil-A ') == 'chick fil a'
    assert normalize_name("McDonald's®") == 'mcdonalds'
    assert normalize_name(None) == ''
