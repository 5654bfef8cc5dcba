import pytest

from hrm.models.enums import ActionType, Tier
from hrm.services.outcomes import compute_monthly_outcome, compute_tier, score_band_fine


@pytest.mark.parametrize("score, tier", [
    (100, Tier.BONUS),
    (90, Tier.BONUS),
    (89.99, Tier.APPRECIATION),
    (80, Tier.APPRECIATION),
    (79.99, Tier.IMPROVEMENT),
    (70, Tier.IMPROVEMENT),
    (69.99, Tier.FINE),
    (0, Tier.FINE),
])
def test_tier_boundaries(score, tier):
    assert compute_tier(score) == tier


@pytest.mark.parametrize("score, fine", [(69.99, 300), (60, 300), (59.99, 600), (50, 600), (49.99, 1000), (0, 1000), (70, 0)])
def test_score_band_fine(score, fine):
    assert score_band_fine(score) == fine


def test_bonus_month():
    outcome = compute_monthly_outcome(92, None)
    assert outcome.tier == Tier.BONUS
    assert outcome.base_fine == 0
    assert outcome.action_type == ActionType.BONUS
    assert outcome.gift_type == "BONUS"
    assert outcome.final_fine == 0


def test_fine_month():
    outcome = compute_monthly_outcome(45, None)
    assert outcome.tier == Tier.FINE
    assert outcome.base_fine == 1000
    assert outcome.action_type == ActionType.FINE
    assert outcome.month_fine_count == 1
    assert outcome.final_fine == 1000
    assert outcome.gift_type is None


def test_appreciation_month_gets_a_gift():
    outcome = compute_monthly_outcome(85, "FINE")
    assert outcome.action_type == ActionType.APPRECIATION
    assert outcome.gift_type == "APPRECIATION"
    assert outcome.final_fine == 0


def test_first_improvement_month_is_a_show_cause():
    outcome = compute_monthly_outcome(75, "BONUS")
    assert outcome.tier == Tier.IMPROVEMENT
    assert outcome.action_type == ActionType.SHOW_CAUSE
    assert outcome.base_fine == 0


def test_repeat_improvement_month_is_fined():
    outcome = compute_monthly_outcome(75, "IMPROVEMENT")
    assert outcome.base_fine == 300
    assert outcome.action_type == ActionType.FINE
    assert outcome.final_fine == 300


def test_low_score_fine_does_not_stack_with_previous_tier():
    assert compute_monthly_outcome(55, "FINE").final_fine == 600
