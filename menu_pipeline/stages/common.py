"""
common.py — Helpers shared by the per-record stages.
"""

import logging

from menu_pipeline.models import AnalysisStatus

log = logging.getLogger(__name__)


def mark_failed(store, restaurant: dict, message: str, **fields) -> bool:
    """
    Record a per-restaurant failure. Returns False if the failure itself
    could not be written (logged, the stage carries on).
    """
    try:
        store.transition(restaurant, AnalysisStatus.FAILED, analysis_error=message, **fields)
        return True
    except Exception as e:
        log.error(f"Could not mark {restaurant.get('name')} as failed: {e}")
        return False
