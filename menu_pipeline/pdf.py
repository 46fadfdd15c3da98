"""
pdf.py — Text from PDF menus.

Native text layer first (pypdf). Scanned menus have little or no text layer,
so anything under 100 characters goes to the vision model instead.
"""

import io
import logging
from typing import Optional

import requests
from pypdf import PdfReader

from menu_pipeline.scraper import USER_AGENT

log = logging.getLogger(__name__)

PDF_FETCH_TIMEOUT = 15
MIN_TEXT_LAYER_CHARS = 100


def pdf_text_layer(pdf_bytes: bytes) -> str:
    """Concatenated text of every page; '' if the PDF cannot be parsed."""
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        return '\n'.join((page.extract_text() or '') for page in reader.pages)
    except Exception as e:
        log.debug(f'PDF text extraction failed: {e}')
        return ''


def extract_pdf_text(pdf_url: str, vision=None,
                     session: Optional[requests.Session] = None,
                     timeout: float = PDF_FETCH_TIMEOUT) -> Optional[str]:
    """
    Download a PDF menu and return its text.

    Args:
        pdf_url: Menu PDF URL
        vision:  Object with transcribe_pdf(bytes) -> str (GeminiProvider), or None
        session: Optional shared requests.Session
        timeout: Download timeout in seconds

    Raises:
        requests.RequestException: download failed
    """
    session = session or requests.Session()
    resp = session.get(pdf_url, headers={'User-Agent': USER_AGENT}, timeout=timeout)
    resp.raise_for_status()
    pdf_bytes = resp.content

    text = pdf_text_layer(pdf_bytes).strip()
    if len(text) >= MIN_TEXT_LAYER_CHARS:
        return text

    if vision is None:
        log.debug(f'PDF text layer too short ({len(text)} chars) and no vision model configured')
        return text or None

    log.info(f'  PDF text layer only {len(text)} chars — transcribing with vision model')
    transcribed = vision.transcribe_pdf(pdf_bytes)
    return transcribed.strip() if transcribed else None
