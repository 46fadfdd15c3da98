"""
menu_analysis.py — Prompt, response parsing and row mapping for stage 5.

The model is asked for:

  {"items": [{"name", "description"?, "labels": [{"type", "confidence",
              "askServer"?}], "modifications"?}]}

parse_menu_response() turns whatever came back into a MenuAnalysis or raises
MalformedResponseError; map_item_to_row() flattens one item into a
menu_items row.
"""

import json
import re

from pydantic import ValidationError

from menu_pipeline.errors import MalformedResponseError
from menu_pipeline.models import AnalyzedMenuItem, MenuAnalysis

ANALYSIS_PROMPT = """You are a dietary menu analyzer. Analyze restaurant menu text and identify ALL menu items with their dietary properties.

For each item return:
- name: item name
- description: item description if available
- labels: array of dietary labels that apply
  - type: "vegan" | "vegetarian" | "gluten-free"
  - confidence: "confirmed" (clearly stated) | "uncertain" (inferred)
  - askServer: string (what to ask staff, only for uncertain items)
- modifications: array of strings (optional tweaks to make it diet-friendly)

Rules:
- Vegan: no meat, dairy, eggs, honey, or animal products
- Vegetarian: no meat/fish, but dairy/eggs OK
- Gluten-free: no wheat, barley, rye
- Mark uncertain when you're inferring (e.g. fries might share a fryer)
- Include ALL items, not just ones with dietary labels

Return ONLY valid JSON:
{"items": [...]}"""

PDF_TRANSCRIBE_PROMPT = (
    'Extract all menu items and their descriptions from this restaurant menu PDF. '
    'List every item with its name, description, and price if shown.'
)

_CODE_BLOCK = re.compile(r'```(?:json)?\s*([\s\S]*?)```')


def build_prompt(menu_text: str) -> str:
    return f'{ANALYSIS_PROMPT}\n\nMenu text:\n{menu_text}'


def parse_menu_response(text: str) -> MenuAnalysis:
    """
    Decode a model answer, unwrapping a ```json fenced block if present.

    Raises:
        MalformedResponseError: not JSON, or JSON without a valid items array
    """
    if not text or not text.strip():
        raise MalformedResponseError('Empty response from model')

    match = _CODE_BLOCK.search(text)
    json_text = match.group(1) if match else text

    try:
        data = json.loads(json_text.strip())
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f'Model returned invalid JSON: {e}') from e

    try:
        return MenuAnalysis.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f'Model JSON does not match the menu schema: {e}') from e


def map_item_to_row(restaurant_id: str, item: AnalyzedMenuItem) -> dict:
    label_types = {label.type for label in item.labels}

    all_confirmed = bool(item.labels) and all(
        label.confidence == 'confirmed' for label in item.labels
    )
    ask_server = next((label.ask_server for label in item.labels if label.ask_server), None)

    return {
        'restaurant_id': restaurant_id,
        'name': item.name,
        'description': item.description,
        'is_vegan': 'vegan' in label_types,
        'is_vegetarian': 'vegetarian' in label_types,
        'is_gluten_free': 'gluten-free' in label_types,
        'confidence': 'certain' if all_confirmed else 'uncertain',
        'modifications': item.modifications,
        'ask_server': ask_server,
    }


def summarize_rows(rows: list[dict]) -> dict:
    """Counts used in the stage 5 progress line."""
    return {
        'items': len(rows),
        'vegan': sum(1 for r in rows if r['is_vegan']),
        'vegetarian': sum(1 for r in rows if r['is_vegetarian']),
        'gluten_free': sum(1 for r in rows if r['is_gluten_free']),
    }
