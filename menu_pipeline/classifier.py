"""
classifier.py — Ordered AI provider chain with per-provider retry policies.

Default chain (first success wins):

  1  Perplexity  3 attempts, retried only on malformed JSON, no wait
  2  Gemini      2 attempts, retried only on a rate limit whose
                 "retry in N s" hint is <= 90 s; sleeps N s first
  3  Claude      1 attempt

Any error a policy does not retry moves straight on to the next provider.
When the last provider fails, AllProvidersFailedError carries its message.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence

from tenacity import Retrying, retry_if_exception, stop_after_attempt

from menu_pipeline.errors import (
    AllProvidersFailedError,
    MalformedResponseError,
    RateLimitError,
)
from menu_pipeline.menu_analysis import build_prompt, parse_menu_response
from menu_pipeline.models import AnalyzedMenuItem

log = logging.getLogger(__name__)


class Provider(Protocol):
    name: str

    def complete(self, prompt: str) -> str:
        ...


def retry_after_hint(exc: BaseException) -> Optional[float]:
    return getattr(exc, 'retry_after', None)


@dataclass(frozen=True)
class RetryPolicy:
    """
    How hard to push one provider before escalating.

    max_attempts   total calls, first one included
    retry_on       error classes worth another call; anything else escalates
    backoff        maps the error to seconds to wait; None means "do not retry"
    max_backoff    a backoff above this escalates instead of sleeping
    """

    max_attempts: int = 1
    retry_on: tuple = ()
    backoff: Optional[Callable[[BaseException], Optional[float]]] = None
    max_backoff: Optional[float] = None

    def is_retryable(self, exc: BaseException) -> bool:
        if not self.retry_on or not isinstance(exc, self.retry_on):
            return False
        if self.backoff is None:
            return True
        delay = self.backoff(exc)
        if delay is None:
            return False
        return self.max_backoff is None or delay <= self.max_backoff

    def delay_for(self, exc: BaseException) -> float:
        if self.backoff is None:
            return 0
        return self.backoff(exc) or 0


def json_retry_policy(extra_attempts: int = 2) -> RetryPolicy:
    return RetryPolicy(max_attempts=1 + extra_attempts, retry_on=(MalformedResponseError,))


def rate_limit_policy(max_wait: float = 90) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=2,
        retry_on=(RateLimitError,),
        backoff=retry_after_hint,
        max_backoff=max_wait,
    )


SINGLE_ATTEMPT = RetryPolicy()


@dataclass
class ProviderStrategy:
    provider: Provider
    policy: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def name(self) -> str:
        return self.provider.name


class MenuClassifier:
    """
    Runs menu text through the provider chain.

    Args:
        strategies: Providers in fallback order, each with its RetryPolicy
        sleep:      Sleep function used between retries (injectable for tests)
    """

    def __init__(self, strategies: Sequence[ProviderStrategy],
                 sleep: Callable[[float], None] = time.sleep):
        if not strategies:
            raise ValueError('MenuClassifier needs at least one provider')
        self.strategies = list(strategies)
        self._sleep = sleep

    def _pause(self, seconds: float):
        if seconds and seconds > 0:
            self._sleep(seconds)

    def _attempt(self, strategy: ProviderStrategy, prompt: str) -> list[AnalyzedMenuItem]:
        text = strategy.provider.complete(prompt)
        return parse_menu_response(text).items

    def _run_with_policy(self, strategy: ProviderStrategy,
                         prompt: str) -> list[AnalyzedMenuItem]:
        policy = strategy.policy

        def log_retry(retry_state):
            exc = retry_state.outcome.exception()
            wait = retry_state.next_action.sleep if retry_state.next_action else 0
            if wait:
                log.warning(
                    f'  {strategy.name} rate limited — waiting {wait:g}s before retry '
                    f'({retry_state.attempt_number}/{policy.max_attempts - 1}): {exc}'
                )
            else:
                log.warning(
                    f'  {strategy.name} failed ({exc}), retrying '
                    f'({retry_state.attempt_number}/{policy.max_attempts - 1})...'
                )

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            retry=retry_if_exception(policy.is_retryable),
            wait=lambda retry_state: policy.delay_for(retry_state.outcome.exception()),
            sleep=self._pause,
            before_sleep=log_retry,
            reraise=True,
        )
        return retrying(self._attempt, strategy, prompt)

    def classify(self, menu_text: str) -> list[AnalyzedMenuItem]:
        """
        Return the analysed menu items.

        Raises:
            AllProvidersFailedError: every provider failed
        """
        prompt = build_prompt(menu_text)
        last_error: Optional[BaseException] = None

        for i, strategy in enumerate(self.strategies):
            try:
                items = self._run_with_policy(strategy, prompt)
                log.debug(f'  {strategy.name} returned {len(items)} items')
                return items
            except Exception as e:
                last_error = e
                if i + 1 < len(self.strategies):
                    log.warning(
                        f'  {strategy.name} failed, trying {self.strategies[i + 1].name}: {e}'
                    )
                else:
                    log.error(f'  {strategy.name} failed: {e}')

        raise AllProvidersFailedError(f'All AI providers failed. Last error: {last_error}')


def build_classifier(ai_settings, perplexity=None, gemini=None, claude=None,
                     sleep: Callable[[float], None] = time.sleep) -> Optional[MenuClassifier]:
    """
    The default Perplexity → Gemini → Claude chain.

    Providers passed as None (no API key) are left out of the chain.
    Returns None when none is available.
    """
    strategies = []
    if perplexity is not None:
        strategies.append(ProviderStrategy(perplexity, json_retry_policy(ai_settings.json_retries)))
    if gemini is not None:
        strategies.append(ProviderStrategy(gemini, rate_limit_policy(ai_settings.max_rate_limit_wait)))
    if claude is not None:
        strategies.append(ProviderStrategy(claude, SINGLE_ATTEMPT))

    if not strategies:
        return None
    return MenuClassifier(strategies, sleep=sleep)
