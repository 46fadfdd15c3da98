"""
main.py — Dietary menu pipeline.

Discover → Enrich → Find-Menus → Extract → Analyze, against the Supabase
project named in the environment.

Usage:
    python main.py
    python main.py --config config/config.yaml --verbose

Environment (or .env):
    SUPABASE_URL, SUPABASE_KEY, GOOGLE_PLACES_API_KEY      required
    PERPLEXITY_API_KEY, GEMINI_API_KEY, ANTHROPIC_API_KEY  at least one for Analyze

Exit code is 1 if any stage raised, else 0. Safe to re-run: each stage only
picks up restaurants in the status it handles.
"""

import argparse
import logging
import sys

from menu_pipeline.config import DEFAULT_CONFIG_PATH, load_config
from menu_pipeline.run import build_stages, run_stages


def _setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s  %(levelname)-8s  %(name)s  %(message)s',
        datefmt='%H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )
    # Quieten noisy third-party loggers
    for noisy in ('urllib3', 'requests', 'httpx', 'httpcore', 'anthropic', 'google'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def main():
    parser = argparse.ArgumentParser(
        description='Find restaurants, extract their menus and label dietary options',
    )
    parser.add_argument('--config', default=str(DEFAULT_CONFIG_PATH), metavar='PATH',
                        help=f'Pipeline config file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable DEBUG logging')
    args = parser.parse_args()
    _setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f'❌ Config file not found: {args.config}')
        sys.exit(1)

    missing = config.secrets.missing()
    if missing:
        print(f"❌ Missing required environment variables: {', '.join(missing)}")
        print('   Set them in the environment or in a .env file.')
        sys.exit(1)

    try:
        stages = build_stages(config)
    except Exception as e:
        logging.getLogger(__name__).debug('Startup failed', exc_info=True)
        print(f'❌ Could not connect the pipeline services: {e}')
        sys.exit(1)

    try:
        sys.exit(run_stages(stages))
    except KeyboardInterrupt:
        print('\n\n⚠️  Interrupted. Re-run to resume (finished restaurants are skipped).')
        sys.exit(1)


if __name__ == '__main__':
    main()
