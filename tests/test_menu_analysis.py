import json

import pytest

from menu_pipeline.errors import MalformedResponseError
from menu_pipeline.menu_analysis import (
    build_prompt,
    map_item_to_row,
    parse_menu_response,
    summarize_rows,
)
from menu_pipeline.models import AnalyzedMenuItem

SAMPLE = {
    'items': [
        {
            'name': 'Falafel Wrap',
            'description': 'Chickpea fritters, tahini',
            'labels': [
                {'type': 'vegan', 'confidence': 'confirmed'},
                {'type': 'vegetarian', 'confidence': 'confirmed'},
            ],
        },
        {
            'name': 'Fries',
            'labels': [
                {'type': 'gluten-free', 'confidence': 'uncertain',
                 'askServer': 'Are the fries cooked in a shared fryer?'},
            ],
            'modifications': ['Ask for a dedicated fryer'],
        },
        {'name': 'Burger', 'labels': []},
    ]
}


def _item(**data):
    return AnalyzedMenuItem.model_validate(data)


def test_build_prompt_appends_menu_text():
    prompt = build_prompt('Falafel Wrap $9')
    assert prompt.endswith('Menu text:\nFalafel Wrap $9')
    assert '{"items": [...]}' in prompt


def test_parse_plain_json():
    analysis = parse_menu_response(json.dumps(SAMPLE))
    assert [i.name for i in analysis.items] == ['Falafel Wrap', 'Fries', 'Burger']


def test_parse_uses_first_fenced_block():
    text = 'Here you go:\n```json\n' + json.dumps(SAMPLE) + '\n```\nand ```{}```'
    analysis = parse_menu_response(text)
    assert len(analysis.items) == 3


def test_parse_fence_without_language_tag():
    text = '```\n' + json.dumps({'items': []}) + '\n```'
    assert parse_menu_response(text).items == []


@pytest.mark.parametrize('text', [
    '',
    '   ',
    "Sorry, I can't help with that.",
    '{"items": [',
    '{"dishes": []}',
    '{"items": [{"labels": []}]}',
])
def test_parse_rejects_malformed_answers(text):
    with pytest.raises(MalformedResponseError):
        parse_menu_response(text)


def test_map_all_confirmed_labels_is_certain():
    row = map_item_to_row('r1', _item(**SAMPLE['items'][0]))

    assert row['restaurant_id'] == 'r1'
    assert row['is_vegan'] is True
    assert row['is_vegetarian'] is True
    assert row['is_gluten_free'] is False
    assert row['confidence'] == 'certain'
    assert row['ask_server'] is None


def test_map_any_uncertain_label_is_uncertain_and_keeps_hint():
    row = map_item_to_row('r1', _item(**SAMPLE['items'][1]))

    assert row['is_gluten_free'] is True
    assert row['confidence'] == 'uncertain'
    assert row['ask_server'] == 'Are the fries cooked in a shared fryer?'
    assert row['modifications'] == ['Ask for a dedicated fryer']


def test_map_mixed_confidence_is_uncertain():
    row = map_item_to_row('r1', _item(name='Pad Thai', labels=[
        {'type': 'vegetarian', 'confidence': 'confirmed'},
        {'type': 'gluten-free', 'confidence': 'uncertain'},
    ]))
    assert row['confidence'] == 'uncertain'


def test_map_item_without_labels_is_uncertain():
    row = map_item_to_row('r1', _item(name='Burger', labels=[]))

    assert row['confidence'] == 'uncertain'
    assert not (row['is_vegan'] or row['is_vegetarian'] or row['is_gluten_free'])


def test_map_ask_server_takes_first_hint():
    row = map_item_to_row('r1', _item(name='Curry', labels=[
        {'type': 'vegan', 'confidence': 'uncertain'},
        {'type': 'vegetarian', 'confidence': 'uncertain', 'askServer': 'Ghee?'},
        {'type': 'gluten-free', 'confidence': 'uncertain', 'askServer': 'Flour?'},
    ]))
    assert row['ask_server'] == 'Ghee?'


def test_summarize_rows_counts_each_label():
    rows = [map_item_to_row('r1', i) for i in parse_menu_response(json.dumps(SAMPLE)).items]
    assert summarize_rows(rows) == {'items': 3, 'vegan': 1, 'vegetarian': 1, 'gluten_free': 1}


def test_unknown_label_values_do_not_reject_the_menu():
    text = json.dumps({'items': [
        {'name': 'Hummus', 'labels': [{'type': 'vegan', 'confidence': 'confirmed'}]},
        {'name': 'Greek Salad', 'labels': [{'type': 'dairy-free', 'confidence': 'likely'}]},
    ]})

    items = parse_menu_response(text).items
    hummus, salad = [map_item_to_row('r1', i) for i in items]

    assert hummus['confidence'] == 'certain'
    assert salad['confidence'] == 'uncertain'
    assert not (salad['is_vegan'] or salad['is_vegetarian'] or salad['is_gluten_free'])


def test_unknown_label_type_still_counts_toward_confidence():
    row = map_item_to_row('r1', _item(name='Tofu Bowl', labels=[
        {'type': 'vegan', 'confidence': 'confirmed'},
        {'type': 'nut-free', 'confidence': 'uncertain'},
    ]))

    assert row['is_vegan'] is True
    assert row['confidence'] == 'uncertain'
