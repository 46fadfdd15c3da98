"""
slugify.py — URL-safe restaurant slugs.

Slugs are "{name}-{neighborhood}", globally unique, and never change for a
place once assigned: a place_id seen before always gets its stored slug back.
"""

import re
from typing import Iterable, Mapping, Optional

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def _to_slug(text: str) -> str:
    return _NON_ALNUM.sub('-', (text or '').lower()).strip('-')


def slugify(name: str, neighborhood: str) -> str:
    """
    "Big Bowl", "West Town" → "big-bowl-west-town"
    """
    return f'{_to_slug(name)}-{_to_slug(neighborhood)}'


def generate_unique_slug(name: str, neighborhood: str, existing_slugs) -> str:
    """Return slugify(name, neighborhood), suffixed -2, -3, ... until it is not in existing_slugs."""
    base = slugify(name, neighborhood)
    if base not in existing_slugs:
        return base

    counter = 2
    while f'{base}-{counter}' in existing_slugs:
        counter += 1
    return f'{base}-{counter}'


class UniqueSlugAllocator:
    """
    Hands out slugs for one discovery run.

    Seeded with the place_id → slug map of every stored restaurant. Known
    places keep their slug; new places get a fresh unique slug that is
    reserved immediately, so two new restaurants found in the same run can
    never collide.
    """

    def __init__(self, existing_by_place_id: Optional[Mapping[str, str]] = None,
                 extra_slugs: Iterable[str] = ()):
        self._by_place_id: dict[str, str] = dict(existing_by_place_id or {})
        self._taken: set[str] = set(self._by_place_id.values()) | set(extra_slugs)

    @property
    def taken(self) -> frozenset:
        return frozenset(self._taken)

    def slug_for(self, place_id: str, name: str, neighborhood: str) -> str:
        slug = self._by_place_id.get(place_id)
        if slug:
            return slug

        slug = generate_unique_slug(name, neighborhood, self._taken)
        self._taken.add(slug)
        self._by_place_id[place_id] = slug
        return slug

    def __contains__(self, slug: str) -> bool:
        return slug in self._taken

    def __len__(self) -> int:
        return len(self._taken)
