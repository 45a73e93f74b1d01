"""
Scoring Primitives
Table-driven scorers shared by the component scorers:
- TierTable: discrete 5-tier tables (100/85/70/50/25) over value bands
- LinearProfile: piecewise-linear band scorer
- InsightRule: ordered (predicate, template) lists, first match wins
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from ..config import get_thresholds, ThresholdConfig
from .models import ScoreCategory, SubScore

NO_DATA = "No data"


@dataclass(frozen=True)
class Band:
    """Interval with independently open or closed ends"""
    lo: float = -math.inf
    hi: float = math.inf
    include_lo: bool = True
    include_hi: bool = True

    def contains(self, value: float) -> bool:
        above = value >= self.lo if self.include_lo else value > self.lo
        below = value <= self.hi if self.include_hi else value < self.hi
        return above and below


def closed(lo: float, hi: float) -> Band:
    return Band(lo, hi)


def greater_than(lo: float) -> Band:
    return Band(lo, math.inf, include_lo=False)


def half_open(lo: float, hi: float) -> Band:
    """[lo, hi)"""
    return Band(lo, hi, include_hi=False)


def open_closed(lo: float, hi: float) -> Band:
    """(lo, hi]"""
    return Band(lo, hi, include_lo=False)


@dataclass(frozen=True)
class Tier:
    score: int
    status: str
    bands: Tuple[Band, ...]

    def matches(self, value: float) -> bool:
        return any(b.contains(value) for b in self.bands)


@dataclass(frozen=True)
class TierTable:
    """
    Ordered tiers; the first tier with a band containing the value wins.
    Anything unmatched (including NaN and far out-of-range values) gets
    the fallback tier, so the score is always one of the table's scores.
    """
    tiers: Tuple[Tier, ...]
    fallback: Tier
    unit: str = ""

    def lookup(self, value: float) -> Tier:
        for tier in self.tiers:
            if tier.matches(value):
                return tier
        return self.fallback

    def score(self, value: Optional[float]) -> SubScore:
        if value is None:
            return no_data(self.unit)
        tier = self.lookup(value)
        return SubScore(score=tier.score, status=tier.status, measurement=value, unit=self.unit)


@dataclass(frozen=True)
class PairTier:
    """Tier over two measurements; an empty band tuple accepts any value"""
    score: int
    status: str
    first: Tuple[Band, ...]
    second: Tuple[Band, ...] = ()

    def matches(self, a: float, b: float) -> bool:
        ok_a = not self.first or any(band.contains(a) for band in self.first)
        ok_b = not self.second or any(band.contains(b) for band in self.second)
        return ok_a and ok_b


@dataclass(frozen=True)
class PairTierTable:
    """Two-dimensional TierTable; the reported measurement is the first value"""
    tiers: Tuple[PairTier, ...]
    fallback: PairTier
    unit: str = ""

    def lookup(self, a: float, b: float) -> PairTier:
        for tier in self.tiers:
            if tier.matches(a, b):
                return tier
        return self.fallback

    def score(self, a: Optional[float], b: Optional[float]) -> SubScore:
        if a is None or b is None:
            return no_data(self.unit)
        tier = self.lookup(a, b)
        return SubScore(score=tier.score, status=tier.status, measurement=a, unit=self.unit)


@dataclass(frozen=True)
class LinearSegment:
    """score = max(floor, base - |value - anchor| * rate) over band"""
    band: Band
    base: float = 100.0
    anchor: float = 0.0
    rate: float = 0.0
    floor: float = 0.0

    def apply(self, value: float) -> float:
        return max(self.floor, self.base - abs(value - self.anchor) * self.rate)


@dataclass(frozen=True)
class LinearProfile:
    """Piecewise-linear scorer; segments are tried in order"""
    segments: Tuple[LinearSegment, ...]
    fallback: LinearSegment

    def score(self, value: float) -> float:
        if value is None or math.isnan(value):
            return 0.0
        segment = next((s for s in self.segments if s.band.contains(value)), self.fallback)
        return min(100.0, max(0.0, segment.apply(value)))

    __call__ = score


def no_data(unit: str = "") -> SubScore:
    return SubScore(score=0, status=NO_DATA, measurement=None, unit=unit)


def categorize(score: float, config: Optional[ThresholdConfig] = None) -> ScoreCategory:
    cuts = (config or get_thresholds()).category
    if score >= cuts.elite:
        return ScoreCategory.ELITE
    if score >= cuts.good:
        return ScoreCategory.GOOD
    if score >= cuts.developing:
        return ScoreCategory.DEVELOPING
    if score >= cuts.beginner:
        return ScoreCategory.BEGINNER
    return ScoreCategory.CRITICAL


def weighted_score(parts: Sequence[float], weights: Sequence[float]) -> float:
    if len(parts) != len(weights):
        raise ValueError("parts and weights must have the same length")
    return sum(p * w for p, w in zip(parts, weights))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for non-negative scores (round() rounds to even)"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_score(value: float) -> int:
    return int(round_half_up(value))


# =============================================================================
# Insight selection
# =============================================================================

@dataclass(frozen=True)
class InsightRule:
    key: str
    applies: Callable[[Dict[str, Any]], bool]
    render: Callable[[Dict[str, Any]], str]


def first_insight(rules: Sequence[InsightRule], context: Dict[str, Any]) -> Tuple[str, str]:
    """(key, text) of the first applicable rule. The last rule should always apply."""
    for rule in rules:
        if rule.applies(context):
            return rule.key, rule.render(context)
    raise LookupError("no insight rule applied")
