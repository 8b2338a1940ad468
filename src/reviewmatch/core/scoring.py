"""Match score clamping, chip validation and ranking."""

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .constants import AnalysisConstants
from .models import Chip, LocationAnalysis, ReviewAspect

logger = logging.getLogger(__name__)

CHIP_TYPES = ("positive", "negative")


def clamp_match_score(score: Optional[float]) -> int:
    """Clamp a model-reported score into [0, 100].

    Missing or non-finite scores fall back to the neutral prior of 50.
    """
    if score is None or isinstance(score, bool):
        return AnalysisConstants.NEUTRAL_SCORE
    if isinstance(score, int):
        # JSON integers are unbounded; float() overflows past ~1e308
        return max(AnalysisConstants.MIN_SCORE, min(AnalysisConstants.MAX_SCORE, score))
    try:
        value = float(score)
    except (TypeError, ValueError, OverflowError):
        return AnalysisConstants.NEUTRAL_SCORE
    if not math.isfinite(value):
        return AnalysisConstants.NEUTRAL_SCORE
    value = max(AnalysisConstants.MIN_SCORE, min(AnalysisConstants.MAX_SCORE, value))
    return int(round(value))


def to_review_indices(numbers: Iterable[int], review_count: int) -> List[int]:
    """Convert 1-based review numbers to unique 0-based indices, dropping out-of-range ones."""
    seen = set()
    indices = []
    for number in numbers:
        idx = number - 1
        if 0 <= idx < review_count and idx not in seen:
            seen.add(idx)
            indices.append(idx)
    return indices


def filter_supported_chips(chips: Iterable[Chip]) -> List[Chip]:
    """Keep only chips backed by at least one review."""
    kept = []
    for chip in chips:
        if chip.review_indices:
            kept.append(chip)
        else:
            logger.debug(f"Dropping unsupported chip '{chip.label}' ({chip.type})")
    return kept


def derive_chips(
    review_aspects: Sequence[Sequence[ReviewAspect]],
    ranked_positive: Sequence[str] = (),
    ranked_negative: Sequence[str] = (),
) -> List[Chip]:
    """Aggregate per-review aspects into chips.

    ``review_aspects[i]`` holds the aspects of review ``i``. Aspects are grouped
    by lower-cased label and sentiment; ranked labels come first (positive,
    then negative) and any remaining groups follow in discovery order.
    """
    groups: Dict[Tuple[str, str], List[int]] = {}
    labels: Dict[Tuple[str, str], str] = {}
    for idx, aspects in enumerate(review_aspects):
        for aspect in aspects:
            if aspect.sentiment not in CHIP_TYPES or not aspect.label.strip():
                continue
            key = (aspect.label.strip().lower(), aspect.sentiment)
            groups.setdefault(key, [])
            labels.setdefault(key, aspect.label.strip())
            if idx not in groups[key]:
                groups[key].append(idx)

    chips: List[Chip] = []
    added = set()
    for sentiment, ranked in (("positive", ranked_positive), ("negative", ranked_negative)):
        for label in ranked:
            if not isinstance(label, str):
                continue
            key = (label.strip().lower(), sentiment)
            if key in groups and key not in added:
                chips.append(Chip(label=label.strip(), type=sentiment, review_indices=list(groups[key])))
                added.add(key)

    for key, indices in groups.items():
        if key not in added:
            chips.append(Chip(label=labels[key], type=key[1], review_indices=list(indices)))

    return filter_supported_chips(chips)


def rank_locations(analyses: Iterable[LocationAnalysis]) -> List[LocationAnalysis]:
    """Sort by match score, best first; equal scores keep their input order."""
    return sorted(analyses, key=lambda a: a.match_score, reverse=True)
