"""
config.py — Pipeline settings.

Tunables (neighborhoods, thresholds, delays, models) live in
config/config.yaml; API secrets come from the environment (a local .env file
is honoured).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from menu_pipeline.geo import Neighborhood

DEFAULT_CONFIG_PATH = Path('config/config.yaml')

_REQUIRED_ENV = (
    'SUPABASE_URL',
    'SUPABASE_KEY',
    'GOOGLE_PLACES_API_KEY',
)


@dataclass
class DiscoverySettings:
    min_rating: float = 4.0
    min_reviews: int = 30
    region_delay: float = 0.2


@dataclass
class StageSettings:
    enrich_batch_size: int = 50
    enrich_delay: float = 0.1
    find_menus_delay: float = 0.5
    analyze_delay: float = 1.0
    min_menu_chars: int = 100


@dataclass
class TimeoutSettings:
    places: float = 10.0
    scrape: float = 10.0
    pdf: float = 15.0
    ai: float = 30.0


@dataclass
class AISettings:
    perplexity_model: str = 'sonar'
    gemini_model: str = 'gemini-2.0-flash'
    claude_model: str = 'claude-haiku-4-5-20251001'
    json_retries: int = 2
    max_rate_limit_wait: int = 90


@dataclass
class Secrets:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    google_places_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'Secrets':
        return cls(
            supabase_url=os.environ.get('SUPABASE_URL'),
            supabase_key=os.environ.get('SUPABASE_KEY'),
            google_places_api_key=os.environ.get('GOOGLE_PLACES_API_KEY'),
            perplexity_api_key=os.environ.get('PERPLEXITY_API_KEY'),
            gemini_api_key=os.environ.get('GEMINI_API_KEY'),
            anthropic_api_key=os.environ.get('ANTHROPIC_API_KEY'),
        )

    def missing(self) -> list[str]:
        return [name for name in _REQUIRED_ENV if not getattr(self, name.lower())]


@dataclass
class PipelineConfig:
    neighborhoods: list[Neighborhood] = field(default_factory=list)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    stages: StageSettings = field(default_factory=StageSettings)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    ai: AISettings = field(default_factory=AISettings)
    secrets: Secrets = field(default_factory=Secrets)

    @classmethod
    def from_dict(cls, raw: dict, secrets: Optional[Secrets] = None) -> 'PipelineConfig':
        raw = raw or {}
        return cls(
            neighborhoods=[Neighborhood(**n) for n in raw.get('neighborhoods', [])],
            discovery=DiscoverySettings(**raw.get('discovery', {})),
            stages=StageSettings(**raw.get('stages', {})),
            timeouts=TimeoutSettings(**raw.get('timeouts', {})),
            ai=AISettings(**raw.get('ai', {})),
            secrets=secrets or Secrets(),
        )


def load_config(config_path=DEFAULT_CONFIG_PATH, env_file: Optional[str] = '.env') -> PipelineConfig:
    """
    Load config.yaml and the API keys from the environment.

    Raises:
        FileNotFoundError: config file missing
    """
    if env_file:
        load_dotenv(env_file)

    with open(config_path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f)

    return PipelineConfig.from_dict(raw, secrets=Secrets.from_env())
