from hrm.services.scoring import RawScore, ScoringItem, round2, score, validate

ITEMS = [
    ScoringItem(criterion_id=1, weight=40, scale_max=10),
    ScoringItem(criterion_id=2, weight=30, scale_max=10),
    ScoringItem(criterion_id=3, weight=30, scale_max=10),
]


def test_weighted_total():
    raw = [RawScore(1, 8), RawScore(2, 6), RawScore(3, 9)]
    # (80 * 0.4) + (60 * 0.3) + (90 * 0.3)
    assert score(ITEMS, raw) == 77.00


def test_score_normalises_against_each_scale():
    items = [ScoringItem(1, 50, 5), ScoringItem(2, 50, 20)]
    assert score(items, [RawScore(1, 5), RawScore(2, 10)]) == 75.00


def test_missing_criterion_counts_as_zero():
    assert score(ITEMS, [RawScore(1, 10), RawScore(2, 10)]) == 70.00


def test_score_ignores_input_order():
    raw = [RawScore(1, 7), RawScore(2, 3), RawScore(3, 10)]
    assert score(ITEMS, raw) == score(ITEMS, list(reversed(raw)))


def test_full_marks_is_one_hundred():
    assert score(ITEMS, [RawScore(1, 10), RawScore(2, 10), RawScore(3, 10)]) == 100.00


def test_round2_is_half_up():
    assert round2(2.675) == 2.68
    assert round2(1.005) == 1.01
    assert round2(88.5) == 88.5


def test_validate_accepts_complete_scores():
    result = validate(ITEMS, [RawScore(1, 0), RawScore(2, 10), RawScore(3, 5.5)])
    assert result.valid
    assert result.errors == []


def test_validate_collects_every_violation():
    raw = [RawScore(1, 11), RawScore(1, 5), RawScore(99, 1)]
    result = validate(ITEMS, raw)

    assert not result.valid
    assert len(result.errors) == 5
    joined = " | ".join(result.errors)
    assert "Missing score for criterion 2" in joined
    assert "Missing score for criterion 3" in joined
    assert "Duplicate score for criterion 1" in joined
    assert "Unknown criterion 99" in joined
    assert "between 0 and 10" in joined


def test_validate_rejects_negative_scores():
    result = validate(ITEMS, [RawScore(1, -1), RawScore(2, 1), RawScore(3, 1)])
    assert result.errors == ["Score for criterion 1 must be between 0 and 10"]


def test_validate_rejects_non_finite_scores():
    raw = [RawScore(1, float("nan")), RawScore(2, float("inf")), RawScore(3, 5)]
    result = validate(ITEMS, raw)
    assert not result.valid
    assert result.errors == [
        "Score for criterion 1 must be a finite number",
        "Score for criterion 2 must be a finite number",
    ]
