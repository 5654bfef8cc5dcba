# hrm/services/outcomes.py
"""Tier, fine and action rules for a monthly score. Pure functions."""
from typing import NamedTuple, Optional

from hrm.models.enums import ActionType, Tier

REPEAT_IMPROVEMENT_FINE = 300


class MonthlyOutcome(NamedTuple):
    tier: Tier
    action_type: ActionType
    base_fine: int
    month_fine_count: int
    final_fine: int
    gift_type: Optional[str]


def compute_tier(monthly_score: float) -> Tier:
    if monthly_score >= 90:
        return Tier.BONUS
    if monthly_score >= 80:
        return Tier.APPRECIATION
    if monthly_score >= 70:
        return Tier.IMPROVEMENT
    return Tier.FINE


def score_band_fine(monthly_score: float) -> int:
    """60-69 => 300, 50-59 => 600, below 50 => 1000, otherwise 0."""
    if monthly_score >= 70:
        return 0
    if monthly_score >= 60:
        return 300
    if monthly_score >= 50:
        return 600
    return 1000


def compute_base_fine(monthly_score: float, previous_tier: Optional[str]) -> int:
    band_fine = score_band_fine(monthly_score)
    if band_fine:
        return band_fine
    # two IMPROVEMENT months in a row
    if compute_tier(monthly_score) == Tier.IMPROVEMENT and previous_tier == Tier.IMPROVEMENT:
        return REPEAT_IMPROVEMENT_FINE
    return 0


def compute_action_type(tier: Tier, base_fine: int) -> ActionType:
    if tier == Tier.BONUS:
        return ActionType.BONUS
    if tier == Tier.APPRECIATION:
        return ActionType.APPRECIATION
    if tier == Tier.IMPROVEMENT:
        return ActionType.FINE if base_fine > 0 else ActionType.SHOW_CAUSE
    return ActionType.FINE


def compute_gift_type(tier: Tier) -> Optional[str]:
    if tier in (Tier.BONUS, Tier.APPRECIATION):
        return tier.value
    return None


def compute_monthly_outcome(monthly_score: float, previous_tier: Optional[str]) -> MonthlyOutcome:
    tier = compute_tier(monthly_score)
    base_fine = compute_base_fine(monthly_score, previous_tier)
    month_fine_count = 1 if base_fine > 0 else 0
    return MonthlyOutcome(
        tier=tier,
        action_type=compute_action_type(tier, base_fine),
        base_fine=base_fine,
        month_fine_count=month_fine_count,
        final_fine=base_fine * month_fine_count,
        gift_type=compute_gift_type(tier),
    )
