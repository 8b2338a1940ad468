"""Trailing twelve-month histogram of chip-backed reviews."""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple

from dateutil import parser as dt_parser

from .constants import AnalysisConstants
from .models import Chip, MonthlyReviewCount, Review

logger = logging.getLogger(__name__)

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# shorter digit strings are years or YYYYMMDD, not epoch stamps
_EPOCH_MIN = 10 ** 8
# epoch values above this are milliseconds
_EPOCH_MS_THRESHOLD = 10 ** 11
# dateutil fills missing components from its default; parsing against two
# defaults that differ in year and month exposes dates lacking either
_DEFAULT_A = datetime(1, 1, 1)
_DEFAULT_B = datetime(2, 2, 1)


def trailing_months(now: datetime, count: int = AnalysisConstants.MONTHS_IN_WINDOW) -> List[Tuple[int, int]]:
    """Return (year, month) keys for the trailing window, oldest first, ending at now's month."""
    keys = []
    for offset in range(count - 1, -1, -1):
        total = now.year * 12 + (now.month - 1) - offset
        keys.append((total // 12, total % 12 + 1))
    return keys


def parse_review_date(value: object, tz=timezone.utc) -> Optional[datetime]:
    """Best-effort parse of a provider date; None when unparsable.

    Accepts ISO and free-form date strings as well as epoch seconds or
    milliseconds. Strings without both a year and a month are rejected
    rather than completed from the current date. Timezone-aware values are
    converted to ``tz``.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    try:
        if text.isdigit() and int(text) >= _EPOCH_MIN:
            stamp = int(text)
            if stamp > _EPOCH_MS_THRESHOLD:
                stamp = stamp / 1000
            return datetime.fromtimestamp(stamp, tz=timezone.utc).astimezone(tz)
        parsed = dt_parser.parse(text, default=_DEFAULT_A)
        alternate = dt_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError, OSError):
        return None
    if (parsed.year, parsed.month) != (alternate.year, alternate.month):
        return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(tz)
        except OverflowError:
            return None
    return parsed


def _collect_indices(chips: Iterable[Chip], chip_type: str) -> Set[int]:
    indices: Set[int] = set()
    for chip in chips:
        if chip.type == chip_type:
            indices.update(chip.review_indices)
    return indices


def compute_monthly_reviews(
    reviews: List[Review],
    chips: List[Chip],
    now: Optional[datetime] = None,
) -> List[MonthlyReviewCount]:
    """Count distinct positive and negative supporting reviews per month.

    A review backing several chips of the same type counts once for that
    type. Reviews with unparsable dates or dates outside the window are
    ignored.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    keys = trailing_months(now)
    counts = {key: [0, 0] for key in keys}

    positive = _collect_indices(chips, "positive")
    negative = _collect_indices(chips, "negative")

    for slot, indices in ((0, positive), (1, negative)):
        for idx in indices:
            if not 0 <= idx < len(reviews):
                continue
            parsed = parse_review_date(reviews[idx].date, tz=now.tzinfo)
            if parsed is None:
                continue
            bucket = counts.get((parsed.year, parsed.month))
            if bucket is not None:
                bucket[slot] += 1

    return [
        MonthlyReviewCount(
            month=MONTH_LABELS[month - 1],
            positive_count=counts[(year, month)][0],
            negative_count=counts[(year, month)][1],
        )
        for year, month in keys
    ]
