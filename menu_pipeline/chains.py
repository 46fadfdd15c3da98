"""
chains.py — National chain blocklist for the discovery filter.

Names are normalised before matching so "McDonald's" and "MCDONALDS" hit the
same entry. A chain matches when the normalised name equals the brand or
starts with it as whole words: "Chipotle Mexican Grill" is a chain,
"Chipotleville" is not.
"""

import re
import unicodedata

CHAIN_NAMES = {
    "applebee's",
    "arby's",
    'buffalo wild wings',
    'burger king',
    'cheesecake factory',
    "chili's",
    'chipotle',
    'chick-fil-a',
    'culver\'s',
    'denny\'s',
    'domino\'s',
    'dunkin',
    'five guys',
    'ihop',
    'jimmy john\'s',
    'kfc',
    'little caesars',
    'mcdonald\'s',
    'noodles & company',
    'olive garden',
    'panda express',
    'panera bread',
    'papa john\'s',
    'pizza hut',
    'portillo\'s',
    'potbelly',
    'qdoba',
    'red lobster',
    'shake shack',
    'sonic drive-in',
    'starbucks',
    'subway',
    'sweetgreen',
    'taco bell',
    'tgi fridays',
    'wendy\'s',
    'wingstop',
}

_APOSTROPHES = re.compile(r"[’'`]")
_PUNCT = re.compile(r'[^\w\s]')
_MULTI_SPACE = re.compile(r'\s+')


def normalize_name(name: str) -> str:
    """
    Lowercase, NFKC-normalised name with apostrophes dropped and other
    punctuation turned into spaces.

      "McDonald's®"   → "mcdonalds"
      "Chick-fil-A"   → "chick fil a"
    """
    if not name or not isinstance(name, str):
        return ''
    text = unicodedata.normalize('NFKC', name.strip()).lower()
    text = _APOSTROPHES.sub('', text)
    text = _PUNCT.sub(' ', text)
    return _MULTI_SPACE.sub(' ', text).strip()


_NORMALIZED_CHAINS = frozenset(normalize_name(n) for n in CHAIN_NAMES)


def is_chain(name: str) -> bool:
    normalized = normalize_name(name)
    if not normalized:
        return False
    for chain in _NORMALIZED_CHAINS:
        if normalized == chain or normalized.startswith(chain + ' '):
            return True
    return False
