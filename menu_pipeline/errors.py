"""
errors.py — Exception types shared by the pipeline stages and adapters.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for every error raised by the menu pipeline."""


class InvalidTransitionError(PipelineError):
    """Raised when a restaurant's analysis_status would move outside the transition table."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f'Invalid status transition: {current} -> {target}')


class PlacesAPIError(PipelineError):
    """Google Places returned a non-2xx response."""


class ProviderError(PipelineError):
    """An AI provider failed to produce a usable answer."""


class MalformedResponseError(ProviderError):
    """The model answered, but the answer is not the JSON we asked for."""


class RateLimitError(ProviderError):
    """The provider refused the call for quota reasons.

    retry_after is the wait (seconds) the provider suggested, if it gave one.
    """

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class AllProvidersFailedError(ProviderError):
    """Every provider in the classification chain failed."""
