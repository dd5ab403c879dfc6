"""
Selection & Ranking of triggered conversion killers.
"""

from typing import List, Optional, Sequence

from api.models import Defect


DEFAULT_LOW_THRESHOLD = 4
MAX_TOP_DEFECTS = 2

TIER_ZERO = "zero"
TIER_LOW = "low"
TIER_HIGH = "high"


class Selection:
    """Display subset of the triggered defects plus the counts around it."""

    def __init__(self, total_found: int, top: List[Defect], tier: str):
        self.total_found = total_found
        self.top = top
        self.tier = tier

    @property
    def remaining(self) -> int:
        return max(0, self.total_found - len(self.top))

    def __repr__(self):
        return f"<Selection tier={self.tier} total={self.total_found} top={len(self.top)}>"


def select_top_defects(
    defects: Sequence[Defect],
    total_found: Optional[int] = None,
    low_threshold: int = DEFAULT_LOW_THRESHOLD,
) -> Selection:
    """
    Pick the defects to display.

    `defects` must already be in priority order; selection never reorders.
    With no defects the tier is "zero". Below `low_threshold` only the
    first defect is shown, otherwise the first two.

    Args:
        defects: Triggered defects in catalog order
        total_found: Overall count when it exceeds len(defects) (LLM path)
        low_threshold: Counts below this pick one defect instead of two

    Returns:
        Selection with tier, top defects and remaining count
    """
    if total_found is None:
        total_found = len(defects)
    total_found = max(total_found, len(defects))

    if total_found == 0:
        return Selection(0, [], TIER_ZERO)

    if total_found < low_threshold:
        count, tier = 1, TIER_LOW
    else:
        count, tier = MAX_TOP_DEFECTS, TIER_HIGH

    return Selection(total_found, list(defects[:count]), tier)
