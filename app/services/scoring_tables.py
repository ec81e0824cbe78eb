"""Regional lookup tables used by the lead quality score.

The tables are immutable and passed to ``LeadScorer`` explicitly, so another
service region only needs a new ``ScoringTables`` instance.
"""

import enum
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


class ZipTier(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    STANDARD = "standard"


ZIP_TIER_BONUS: Mapping[ZipTier, int] = MappingProxyType({
    ZipTier.HIGH: 25,
    ZipTier.MEDIUM: 15,
    ZipTier.STANDARD: 5,
})

DEFAULT_PROJECT_TYPE = "other"

_WHITESPACE = re.compile(r"\s+")


def normalize_style(style: Optional[str]) -> Optional[str]:
    """'Modern  Minimalist' -> 'modern-minimalist'."""
    if not style:
        return None
    return _WHITESPACE.sub("-", style.lower())


@dataclass(frozen=True)
class ScoringTables:
    high_zips: frozenset = field(default_factory=frozenset)
    medium_zips: frozenset = field(default_factory=frozenset)
    standard_zips: frozenset = field(default_factory=frozenset)
    project_multipliers: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    style_multipliers: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    def zip_tier(self, zip_code: str) -> ZipTier:
        """Classify a zip. Anything not high or medium, including zips outside
        the service region, is standard."""
        if zip_code in self.high_zips:
            return ZipTier.HIGH
        if zip_code in self.medium_zips:
            return ZipTier.MEDIUM
        return ZipTier.STANDARD

    def project_multiplier(self, room_type: Optional[str]) -> Optional[float]:
        if not room_type:
            return None
        return self.project_multipliers.get(room_type)

    def style_multiplier(self, style: Optional[str]) -> Optional[float]:
        # No fallback entry: unrecognised styles carry no multiplier at all.
        key = normalize_style(style)
        if key is None:
            return None
        return self.style_multipliers.get(key)


def build_tables(
    high_zips,
    medium_zips,
    standard_zips,
    project_multipliers: Mapping[str, float],
    style_multipliers: Mapping[str, float],
) -> ScoringTables:
    """Freeze plain collections into a ``ScoringTables``."""
    return ScoringTables(
        high_zips=frozenset(high_zips),
        medium_zips=frozenset(medium_zips),
        standard_zips=frozenset(standard_zips),
        project_multipliers=MappingProxyType(dict(project_multipliers)),
        style_multipliers=MappingProxyType(dict(style_multipliers)),
    )


# MetroWest Massachusetts
METROWEST_TABLES = build_tables(
    # Wellesley, Concord, Brookline, Newton
    high_zips=["02481", "02482", "01742", "02467", "02468", "02459", "02460"],
    # Framingham, Natick, Wayland, Sudbury
    medium_zips=["01701", "01702", "01760", "01778", "01776", "02030", "02032"],
    # Acton, Ashland, Bolton, Hudson
    standard_zips=["01720", "01721", "01730", "01731", "01740", "01741", "01746"],
    project_multipliers={
        "kitchen": 1.2,
        "bathroom": 1.1,
        "living_room": 1.0,
        "bedroom": 0.9,
        "dining_room": 0.95,
        "home_office": 0.85,
        DEFAULT_PROJECT_TYPE: 0.8,
    },
    style_multipliers={
        "contemporary-luxe": 1.3,
        "modern-minimalist": 1.2,
        "transitional": 1.1,
        "farmhouse-chic": 1.0,
        "coastal-new-england": 1.0,
        "eclectic-bohemian": 0.9,
    },
)
