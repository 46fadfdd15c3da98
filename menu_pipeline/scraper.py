"""
scraper.py — Locate a menu on a restaurant website and pull its text.

find_menu_url()     → stage 3. Best effort: any failure means "no menu found".
extract_menu_text() → stage 4, HTML menus. HTTP failures raise so the stage
                      can record the real reason on the restaurant.
"""

import logging
import re
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from menu_pipeline.models import MenuType

log = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; DietaryMenuPipeline/1.0)'
DEFAULT_TIMEOUT = 10

MENU_KEYWORDS = ('menu', 'food', 'eat', 'drink', 'dine')

# Tried in order; the first one holding a real block of text wins
CONTENT_SELECTORS = ('main', 'article', '.menu', '#menu', '[class*="menu"]')
NOISE_TAGS = ('script', 'style', 'nav', 'footer', 'header')

_MIN_SELECTOR_CHARS = 100
_MIN_LINE_CHARS = 3
_WHITESPACE = re.compile(r'\s+')


def is_pdf_link(href: str) -> bool:
    return href.lower().split('?')[0].split('#')[0].endswith('.pdf')


def is_menu_link(href: str) -> bool:
    lower = href.lower()
    return any(kw in lower for kw in MENU_KEYWORDS)


def make_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({
        'User-Agent': USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
    })
    return session


def find_menu_links(html: str, base_url: str) -> tuple[list[str], list[str]]:
    """
    Return (pdf_links, menu_page_links) found in the page's anchors,
    resolved against base_url, in document order.
    """
    soup = BeautifulSoup(html, 'html.parser')
    pdf_links: list[str] = []
    menu_links: list[str] = []

    for anchor in soup.find_all('a', href=True):
        href = anchor['href'].strip()
        if not href or href.startswith(('mailto:', 'tel:', 'javascript:')):
            continue
        absolute = urljoin(base_url, href)
        if is_pdf_link(href):
            pdf_links.append(absolute)
        elif is_menu_link(href):
            menu_links.append(absolute)

    return pdf_links, menu_links


def find_menu_url(website_uri: str,
                  session: Optional[requests.Session] = None,
                  timeout: float = DEFAULT_TIMEOUT) -> Optional[tuple[str, MenuType]]:
    """
    Crawl the homepage and return (menu_url, menu_type), or None.

    A PDF link always beats an HTML menu page.
    """
    if not website_uri or not str(website_uri).startswith('http'):
        return None

    session = session or make_session()
    try:
        resp = session.get(website_uri, timeout=timeout, allow_redirects=True)
        if resp.status_code != 200:
            log.debug(f'{website_uri} → HTTP {resp.status_code}')
            return None
        pdf_links, menu_links = find_menu_links(resp.text, website_uri)
    except Exception as e:
        log.debug(f'Menu crawl error for {website_uri}: {e}')
        return None

    if pdf_links:
        return pdf_links[0], MenuType.PDF
    if menu_links:
        return menu_links[0], MenuType.HTML
    return None


def clean_menu_text(text: str) -> str:
    """Collapse whitespace per line and drop lines shorter than 3 characters."""
    lines = (_WHITESPACE.sub(' ', line).strip() for line in text.split('\n'))
    return '\n'.join(line for line in lines if len(line) >= _MIN_LINE_CHARS)


def html_to_menu_text(html: str) -> str:
    """Pick the most menu-like block of the page and return its cleaned text."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(list(NOISE_TAGS)):
        tag.decompose()

    # Text nodes are joined as-is so inline markers like <span>GF</span> stay on
    # the dish's line
    text = ''
    for selector in CONTENT_SELECTORS:
        found = '\n'.join(el.get_text() for el in soup.select(selector))
        if len(found.strip()) > _MIN_SELECTOR_CHARS:
            text = found
            break

    if not text.strip():
        body = soup.body or soup
        text = body.get_text()

    return clean_menu_text(text)


def extract_menu_text(menu_url: str,
                      session: Optional[requests.Session] = None,
                      timeout: float = DEFAULT_TIMEOUT) -> Optional[str]:
    """
    Fetch an HTML menu page and return its cleaned text (None if empty).

    Raises:
        requests.RequestException: network failure or non-2xx response
    """
    session = session or make_session()
    resp = session.get(menu_url, timeout=timeout, allow_redirects=True)
    resp.raise_for_status()

    cleaned = html_to_menu_text(resp.text)
    return cleaned or None
