"""
analyze.py — Stage 5: raw menu text → dietary-labelled menu_items.
"""

import logging
import time
from typing import Optional

from menu_pipeline.config import StageSettings
from menu_pipeline.database import utc_now
from menu_pipeline.errors import PipelineError
from menu_pipeline.menu_analysis import map_item_to_row, summarize_rows
from menu_pipeline.models import AnalysisStatus
from menu_pipeline.stages.common import mark_failed

log = logging.getLogger(__name__)

NO_RAW_TEXT = 'No raw menu text found'


def analyze_restaurant(store, classifier, restaurant: dict) -> dict:
    """
    Classify one extracted restaurant and publish its items.

    Returns the summary counts. Raises on any failure; the caller records it.
    """
    store.transition(restaurant, AnalysisStatus.ANALYZING)

    raw_text = restaurant.get('raw_text')
    if not raw_text:
        raise PipelineError(NO_RAW_TEXT)

    items = classifier.classify(raw_text)
    rows = [map_item_to_row(restaurant['id'], item) for item in items]
    counts = summarize_rows(rows)

    store.replace_menu_items(restaurant['id'], rows)
    store.transition(
        restaurant,
        AnalysisStatus.ANALYZED,
        last_analyzed_at=utc_now(),
        analysis_error=None,
    )
    return counts


def run(store, classifier, settings: Optional[StageSettings] = None) -> dict:
    settings = settings or StageSettings()
    stats = {'analyzed': 0, 'failed': 0, 'items': 0}

    restaurants = store.restaurants_to_analyze()
    print(f'  {len(restaurants)} menus to analyze')

    if restaurants and classifier is None:
        raise PipelineError('No AI provider configured (set PERPLEXITY_API_KEY, '
                            'GEMINI_API_KEY or ANTHROPIC_API_KEY)')

    for restaurant in restaurants:
        name = restaurant.get('name')
        try:
            counts = analyze_restaurant(store, classifier, restaurant)
            stats['analyzed'] += 1
            stats['items'] += counts['items']
            print(f"  ✓ {name}: {counts['items']} items "
                  f"({counts['vegan']} vegan, {counts['vegetarian']} vegetarian, "
                  f"{counts['gluten_free']} gluten-free)")
        except Exception as e:
            mark_failed(store, restaurant, str(e))
            stats['failed'] += 1
            log.error(f'Analyze failed for {name}: {e}')
            print(f'  ✗ {name}: {e}')

        time.sleep(settings.analyze_delay)

    return stats
