import pytest

from fitin.calories import (
    ACTIVITY_MULTIPLIERS,
    apply_goal,
    compute_bmr,
    compute_maintenance,
    goal_options,
    round_half_away_from_zero,
)
from fitin.models import ActivityLevel, Gender


def test_bmr_male_and_female_offsets():
    assert compute_bmr(70, 175, 25, "male") == 1673.75
    assert compute_bmr(70, 175, 25, Gender.FEMALE) == 1673.75 - 166


def test_maintenance_reference_case():
    # (10*70 + 6.25*175 - 5*25 + 5) * 1.55 = 2594.3125
    assert compute_maintenance(70, 175, 25, "male", "moderate") == 2594


def test_maintenance_female_sedentary():
    # (600 + 1031.25 - 150 - 161) * 1.2 = 1584.3
    assert compute_maintenance(60, 165, 30, "female", "sedentary") == 1584


def test_activity_multiplier_table_is_exhaustive():
    assert ACTIVITY_MULTIPLIERS == {
        ActivityLevel.SEDENTARY: 1.2,
        ActivityLevel.LIGHT: 1.375,
        ActivityLevel.MODERATE: 1.55,
        ActivityLevel.ACTIVE: 1.725,
        ActivityLevel.VERY_ACTIVE: 1.9,
    }
    assert compute_maintenance(70, 175, 25, "male", "very-active") == round_half_away_from_zero(1673.75 * 1.9)


def test_unknown_activity_level_is_rejected():
    with pytest.raises(ValueError):
        compute_maintenance(70, 175, 25, "male", "couch")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2.5, 3),
        (3.5, 4),
        (0.5, 1),
        (-2.5, -3),
        (2594.3125, 2594),
        (2075.2, 2075),
        (1724.9999999999998, 1725),
    ],
)
def test_round_half_away_from_zero(value, expected):
    assert round_half_away_from_zero(value) == expected


@pytest.mark.parametrize("gender", ["male", "female"])
def test_maintenance_is_positive_and_monotonic(gender):
    activity = "moderate"
    for age in (13, 40, 100):
        previous = None
        for weight in range(30, 301, 15):
            value = compute_maintenance(weight, 175, age, gender, activity)
            assert isinstance(value, int)
            assert value > 0
            if previous is not None:
                assert value >= previous
            previous = value

        previous = None
        for height in range(100, 251, 10):
            value = compute_maintenance(70, height, age, gender, activity)
            assert value > 0
            if previous is not None:
                assert value >= previous
            previous = value

    previous = None
    for age in range(13, 101, 3):
        value = compute_maintenance(30, 100, age, gender, "sedentary")
        assert value > 0
        if previous is not None:
            assert value <= previous
        previous = value


@pytest.mark.parametrize("maintenance", [1200, 1500, 2000, 2594, 2763, 4100])
def test_maintain_goal_is_identity(maintenance):
    assert apply_goal(maintenance, "maintain") == maintenance


@pytest.mark.parametrize(
    ("maintenance", "cut", "bulk"),
    [
        (1500, 1200, 1725),
        (2000, 1600, 2300),
        (2763, 2210, 3177),
    ],
)
def test_cut_and_bulk_targets(maintenance, cut, bulk):
    assert apply_goal(maintenance, "cut") == cut
    assert apply_goal(maintenance, "bulk") == bulk
    assert apply_goal(maintenance, "cut") == round_half_away_from_zero(maintenance * 0.8)
    assert apply_goal(maintenance, "bulk") == round_half_away_from_zero(maintenance * 1.15)


def test_apply_goal_rejects_profile_goal_values():
    with pytest.raises(ValueError):
        apply_goal(2000, "muscle-gain")


def test_goal_options_lists_every_goal():
    assert goal_options(2594) == {"cut": 2075, "maintain": 2594, "bulk": 2983}
