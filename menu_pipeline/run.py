"""
run.py — Wire the collaborators and run the five stages in order.

Every stage runs even if an earlier one raised; a stage that raised counts
as failed and makes the process exit 1. Restaurants that end up `failed`
inside a stage do not.
"""

import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Sequence

import requests

from menu_pipeline.classifier import build_classifier
from menu_pipeline.config import PipelineConfig
from menu_pipeline.database import RestaurantStore
from menu_pipeline.places import PlacesClient
from menu_pipeline.providers import ClaudeProvider, GeminiProvider, PerplexityProvider
from menu_pipeline.scraper import make_session
from menu_pipeline.stages import analyze, discover, enrich, extract, find_menus

log = logging.getLogger(__name__)


@dataclass
class StageResult:
    name: str
    success: bool
    duration: float
    error: Optional[str] = None


def run_stage(name: str, fn: Callable[[], object]) -> StageResult:
    print(f"\n{'=' * 60}")
    print(f'  {name}')
    print('=' * 60)

    start = time.monotonic()
    try:
        fn()
        duration = time.monotonic() - start
        print(f'\n  ✓ {name} completed in {duration:.1f}s')
        return StageResult(name, True, duration)
    except Exception as e:
        duration = time.monotonic() - start
        log.error(f'{name} failed: {e}', exc_info=True)
        print(f'\n  ✗ {name} failed after {duration:.1f}s: {e}')
        return StageResult(name, False, duration, str(e))


def print_summary(results: Sequence[StageResult]):
    print(f"\n{'=' * 60}")
    print('  PIPELINE SUMMARY')
    print('=' * 60)
    for r in results:
        marker = '✓' if r.success else '✗'
        line = f'  {marker} {r.name:<14} {r.duration:6.1f}s'
        if r.error:
            line += f'  {r.error}'
        print(line)
    print('=' * 60)


def run_stages(stages: Sequence[tuple[str, Callable[[], object]]]) -> int:
    """Run every stage, print the summary, return the process exit code."""
    results = [run_stage(name, fn) for name, fn in stages]
    print_summary(results)
    return 0 if all(r.success for r in results) else 1


def build_stages(config: PipelineConfig,
                 store: Optional[RestaurantStore] = None) -> list[tuple[str, Callable[[], object]]]:
    secrets = config.secrets
    timeouts = config.timeouts

    store = store or RestaurantStore.connect(secrets.supabase_url, secrets.supabase_key)
    places = PlacesClient(secrets.google_places_api_key, timeout=timeouts.places)
    web = make_session()
    api = requests.Session()

    perplexity = gemini = claude = None
    if secrets.perplexity_api_key:
        perplexity = PerplexityProvider(secrets.perplexity_api_key, config.ai.perplexity_model,
                                        timeout=timeouts.ai, session=api)
    if secrets.gemini_api_key:
        gemini = GeminiProvider(secrets.gemini_api_key, config.ai.gemini_model, timeout=timeouts.ai)
    if secrets.anthropic_api_key:
        claude = ClaudeProvider(secrets.anthropic_api_key, config.ai.claude_model,
                                timeout=timeouts.ai)

    classifier = build_classifier(config.ai, perplexity, gemini, claude)
    if classifier is None:
        log.warning('No AI provider keys set — the Analyze stage will fail')
    if gemini is None:
        log.info('GEMINI_API_KEY not set — scanned PDF menus cannot be transcribed')

    return [
        ('Discover', partial(discover.run, store, places, config.neighborhoods, config.discovery)),
        ('Enrich', partial(enrich.run, store, places, config.stages)),
        ('Find-Menus', partial(find_menus.run, store, config.stages, timeouts, web)),
        ('Extract', partial(extract.run, store, gemini, config.stages, timeouts, web)),
        ('Analyze', partial(analyze.run, store, classifier, config.stages)),
    ]
