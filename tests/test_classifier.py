import json
from unittest.mock import MagicMock

import pytest

from menu_pipeline.classifier import (
    SINGLE_ATTEMPT,
    MenuClassifier,
    ProviderStrategy,
    RetryPolicy,
    build_classifier,
    json_retry_policy,
    rate_limit_policy,
)
from menu_pipeline.config import AISettings
from menu_pipeline.errors import (
    AllProvidersFailedError,
    MalformedResponseError,
    ProviderError,
    RateLimitError,
)

GOOD = json.dumps({'items': [{'name': 'Hummus', 'labels': [{'type': 'vegan', 'confidence': 'confirmed'}]}]})


def _provider(name, *outcomes):
    """A provider whose complete() returns/raises each outcome in turn."""
    provider = MagicMock()
    provider.name = name
    provider.complete.side_effect = list(outcomes)
    return provider


def _default_chain(primary, secondary, tertiary, sleep):
    return MenuClassifier(
        [
            ProviderStrategy(primary, json_retry_policy(2)),
            ProviderStrategy(secondary, rate_limit_policy(90)),
            ProviderStrategy(tertiary, SINGLE_ATTEMPT),
        ],
        sleep=sleep,
    )


def test_first_provider_success_short_circuits():
    primary = _provider('Perplexity', GOOD)
    secondary = _provider('Gemini')
    tertiary = _provider('Claude')
    sleep = MagicMock()

    items = _default_chain(primary, secondary, tertiary, sleep).classify('menu')

    assert [i.name for i in items] == ['Hummus']
    secondary.complete.assert_not_called()
    tertiary.complete.assert_not_called()
    sleep.assert_not_called()


def test_primary_retries_malformed_json_then_succeeds():
    primary = _provider('Perplexity', 'not json', '```json\n{"items": [\n```', GOOD)
    sleep = MagicMock()

    items = _default_chain(primary, _provider('Gemini'), _provider('Claude'), sleep).classify('menu')

    assert len(items) == 1
    assert primary.complete.call_count == 3
    sleep.assert_not_called()


def test_primary_network_error_escalates_without_retry():
    primary = _provider('Perplexity', 'not json', 'still not json', ProviderError('Perplexity API error: 503'))
    secondary = _provider('Gemini', GOOD)
    tertiary = _provider('Claude')

    items = _default_chain(primary, secondary, tertiary, MagicMock()).classify('menu')

    assert len(items) == 1
    assert primary.complete.call_count == 3
    assert secondary.complete.call_count == 1
    tertiary.complete.assert_not_called()


def test_primary_gives_up_after_three_malformed_answers():
    primary = _provider('Perplexity', 'a', 'b', 'c')
    secondary = _provider('Gemini', GOOD)

    _default_chain(primary, secondary, _provider('Claude'), MagicMock()).classify('menu')

    assert primary.complete.call_count == 3
    assert secondary.complete.call_count == 1


def test_rate_limit_hint_is_slept_then_escalates_to_tertiary():
    primary = _provider('Perplexity', ProviderError('down'))
    secondary = _provider(
        'Gemini',
        RateLimitError('Please retry in 5s', retry_after=5),
        RateLimitError('Please retry in 5s', retry_after=5),
    )
    tertiary = _provider('Claude', GOOD)
    sleep = MagicMock()

    items = _default_chain(primary, secondary, tertiary, sleep).classify('menu')

    assert len(items) == 1
    sleep.assert_called_once_with(5)
    assert secondary.complete.call_count == 2
    assert tertiary.complete.call_count == 1


def test_rate_limit_over_cap_escalates_without_sleeping():
    primary = _provider('Perplexity', ProviderError('down'))
    secondary = _provider('Gemini', RateLimitError('retry in 120s', retry_after=120))
    tertiary = _provider('Claude', GOOD)
    sleep = MagicMock()

    _default_chain(primary, secondary, tertiary, sleep).classify('menu')

    sleep.assert_not_called()
    assert secondary.complete.call_count == 1


def test_rate_limit_without_hint_escalates():
    primary = _provider('Perplexity', ProviderError('down'))
    secondary = _provider('Gemini', RateLimitError('quota exceeded'))
    tertiary = _provider('Claude', GOOD)

    _default_chain(primary, secondary, tertiary, MagicMock()).classify('menu')

    assert secondary.complete.call_count == 1


def test_all_providers_failing_raises_with_last_error():
    primary = _provider('Perplexity', ProviderError('a'), )
    secondary = _provider('Gemini', ProviderError('b'))
    tertiary = _provider('Claude', ProviderError('Claude exploded'))

    with pytest.raises(AllProvidersFailedError) as exc_info:
        _default_chain(primary, secondary, tertiary, MagicMock()).classify('menu')

    assert str(exc_info.value) == 'All AI providers failed. Last error: Claude exploded'


def test_retry_policy_predicates():
    policy = rate_limit_policy(90)
    assert policy.is_retryable(RateLimitError('x', retry_after=90))
    assert not policy.is_retryable(RateLimitError('x', retry_after=91))
    assert not policy.is_retryable(ProviderError('x'))
    assert policy.delay_for(RateLimitError('x', retry_after=7)) == 7

    json_policy = json_retry_policy(2)
    assert json_policy.max_attempts == 3
    assert json_policy.is_retryable(MalformedResponseError('x'))
    assert not json_policy.is_retryable(RateLimitError('x', retry_after=1))
    assert json_policy.delay_for(MalformedResponseError('x')) == 0

    assert not RetryPolicy().is_retryable(MalformedResponseError('x'))


def test_classifier_requires_a_provider():
    with pytest.raises(ValueError):
        MenuClassifier([])


def test_build_classifier_skips_missing_providers():
    gemini = _provider('Gemini')
    claude = _provider('Claude')

    classifier = build_classifier(AISettings(), perplexity=None, gemini=gemini, claude=claude)

    assert [s.name for s in classifier.strategies] == ['Gemini', 'Claude']
    assert classifier.strategies[0].policy.max_attempts == 2


def test_build_classifier_without_any_provider():
    assert build_classifier(AISettings()) is None
