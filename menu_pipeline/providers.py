"""
providers.py — The three interchangeable AI backends used by stage 5.

Each provider exposes:
  name               short label for logs
  complete(prompt)   → raw model text (parsing happens in the classifier)

Provider-specific failures are translated into menu_pipeline.errors so the
classifier's retry policies can tell a rate limit from anything else.
GeminiProvider additionally reads PDFs (vision fallback for scanned menus).
"""

import logging
import math
import re
from typing import Optional

import anthropic
import google.generativeai as genai
import requests

from menu_pipeline.errors import ProviderError, RateLimitError
from menu_pipeline.menu_analysis import PDF_TRANSCRIBE_PROMPT

log = logging.getLogger(__name__)

PERPLEXITY_API_URL = 'https://api.perplexity.ai/chat/completions'

# "Please retry in 41.8s" (Gemini 429 body) / "retry after 5 s"
_RETRY_HINT_RE = re.compile(r'retry (?:in|after) (\d+(?:\.\d+)?)\s*s', re.IGNORECASE)

_QUOTA_INDICATORS = ('resource_exhausted', '429', 'quota', 'rate limit')


def parse_retry_delay(message: str) -> Optional[int]:
    """Whole seconds from a "retry in N s" hint, rounded up, or None."""
    m = _RETRY_HINT_RE.search(message or '')
    return math.ceil(float(m.group(1))) if m else None


def is_quota_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    return any(indicator in msg for indicator in _QUOTA_INDICATORS)


class PerplexityProvider:
    """Perplexity chat completions in JSON mode, over plain requests."""

    name = 'Perplexity'

    def __init__(self, api_key: str, model: str = 'sonar', timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    def complete(self, prompt: str) -> str:
        resp = self._session.post(
            PERPLEXITY_API_URL,
            headers={
                'Content-Type': 'application/json',
                'Authorization': f'Bearer {self.api_key}',
            },
            json={
                'model': self.model,
                'messages': [
                    {
                        'role': 'system',
                        'content': 'You are a JSON-only API. Never add explanations or prose. '
                                   'Return only valid JSON.',
                    },
                    {'role': 'user', 'content': prompt},
                ],
                'response_format': {'type': 'json_object'},
            },
            timeout=self.timeout,
        )

        if resp.status_code == 429:
            retry_after = resp.headers.get('Retry-After')
            raise RateLimitError(
                f'Perplexity API error: 429 {resp.reason}',
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if not resp.ok:
            raise ProviderError(f'Perplexity API error: {resp.status_code} {resp.reason}')

        choices = resp.json().get('choices') or []
        content = choices[0].get('message', {}).get('content') if choices else None
        if not content:
            raise ProviderError('Empty response from Perplexity')
        return content


class GeminiProvider:
    """Google Gemini via google-generativeai; also transcribes PDF menus."""

    name = 'Gemini'

    def __init__(self, api_key: str, model: str = 'gemini-2.0-flash', timeout: float = 30.0,
                 client: Optional[genai.GenerativeModel] = None):
        self.model = model
        self.timeout = timeout
        if client is None:
            genai.configure(api_key=api_key)
            client = genai.GenerativeModel(model)
        self._client = client

    def _generate(self, contents) -> str:
        try:
            response = self._client.generate_content(
                contents,
                request_options={'timeout': self.timeout},
            )
        except Exception as e:
            if is_quota_error(e):
                raise RateLimitError(
                    f'Gemini rate limited: {e}',
                    retry_after=parse_retry_delay(str(e)),
                ) from e
            raise

        text = response.text
        if not text:
            raise ProviderError('Empty response from Gemini')
        return text

    def complete(self, prompt: str) -> str:
        return self._generate(prompt)

    def transcribe_pdf(self, pdf_bytes: bytes) -> str:
        """Ask the vision model to list the menu items in a (scanned) PDF."""
        return self._generate([
            {'mime_type': 'application/pdf', 'data': pdf_bytes},
            PDF_TRANSCRIBE_PROMPT,
        ])


class ClaudeProvider:
    """Anthropic Claude, last resort in the chain."""

    name = 'Claude'

    def __init__(self, api_key: str, model: str = 'claude-haiku-4-5-20251001',
                 timeout: float = 30.0, client: Optional[anthropic.Anthropic] = None):
        self.model = model
        self._client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout)

    def complete(self, prompt: str) -> str:
        try:
            message = self._client.messages.create(
                model=self.model,
                max_tokens=4096,
                messages=[{'role': 'user', 'content': prompt}],
            )
        except anthropic.RateLimitError as e:
            raise RateLimitError(f'Claude rate limited: {e}') from e

        content = message.content[0] if message.content else None
        if content is None or content.type != 'text':
            raise ProviderError('Empty or unexpected response from Claude')
        return content.text
