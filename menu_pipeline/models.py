"""
models.py — Record status machine and validated payload shapes.

AnalysisStatus drives stage eligibility:

    pending → extracting → extracted → analyzing → analyzed
       └──────────┴────────────┴───────────┴──→ failed

`analyzed` and `failed` are terminal within a run. The pydantic models below
are the only shapes that leave the Places / AI adapters; raw JSON stays inside
the adapter that fetched it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from menu_pipeline.errors import InvalidTransitionError


class AnalysisStatus(str, Enum):
    PENDING = 'pending'
    EXTRACTING = 'extracting'
    EXTRACTED = 'extracted'
    ANALYZING = 'analyzing'
    ANALYZED = 'analyzed'
    FAILED = 'failed'

    def can_transition(self, target: 'AnalysisStatus') -> bool:
        return AnalysisStatus(target) in _TRANSITIONS[self]

    def advance(self, target: 'AnalysisStatus') -> 'AnalysisStatus':
        """Return target if the move is allowed, else raise InvalidTransitionError."""
        target = AnalysisStatus(target)
        if not self.can_transition(target):
            raise InvalidTransitionError(self.value, target.value)
        return target


_TRANSITIONS = {
    AnalysisStatus.PENDING:    {AnalysisStatus.EXTRACTING, AnalysisStatus.FAILED},
    AnalysisStatus.EXTRACTING: {AnalysisStatus.EXTRACTED, AnalysisStatus.FAILED},
    AnalysisStatus.EXTRACTED:  {AnalysisStatus.ANALYZING, AnalysisStatus.FAILED},
    AnalysisStatus.ANALYZING:  {AnalysisStatus.ANALYZED, AnalysisStatus.FAILED},
    AnalysisStatus.ANALYZED:   set(),
    AnalysisStatus.FAILED:     set(),
}


class MenuType(str, Enum):
    HTML = 'html'
    PDF = 'pdf'
    NONE = 'none'


# ------------------------------------------------------------------ #
# Google Places payloads
# ------------------------------------------------------------------ #

class NearbyPlace(BaseModel):
    place_id: str
    name: str = ''
    address: str = ''
    latitude: float = 0.0
    longitude: float = 0.0
    rating: Optional[float] = None
    user_rating_count: Optional[int] = None
    price_level: Optional[int] = None
    photo_url: Optional[str] = None


class PlaceDetails(BaseModel):
    place_id: str
    name: str = ''
    address: str = ''
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: Optional[float] = None
    user_rating_count: Optional[int] = None
    price_level: Optional[int] = None
    website_uri: Optional[str] = None
    phone: Optional[str] = None
    serves_vegetarian_food: Optional[bool] = None
    editorial_summary: Optional[str] = None
    photo_url: Optional[str] = None


# ------------------------------------------------------------------ #
# AI classification payloads
# ------------------------------------------------------------------ #

class DietaryLabel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Anything other than vegan / vegetarian / gluten-free sets no flag, and any
    # confidence other than 'confirmed' makes the item uncertain
    type: str
    confidence: str
    ask_server: Optional[str] = Field(default=None, alias='askServer')


class AnalyzedMenuItem(BaseModel):
    name: str
    description: Optional[str] = None
    labels: list[DietaryLabel] = Field(default_factory=list)
    modifications: Optional[list[str]] = None


class MenuAnalysis(BaseModel):
    items: list[AnalyzedMenuItem]
