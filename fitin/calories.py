from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from .models import ActivityLevel, Gender, PlanGoal


ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

GOAL_FACTORS: dict[PlanGoal, float] = {
    PlanGoal.CUT: 0.80,
    PlanGoal.MAINTAIN: 1.0,
    PlanGoal.BULK: 1.15,
}


def round_half_away_from_zero(value: float) -> int:
    # round() rounds ties to even; kcal targets use schoolbook rounding.
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_bmr(weight: float, height: float, age: int, gender: Union[Gender, str]) -> float:
    """Mifflin-St Jeor basal metabolic rate in kcal/day."""
    base = 10.0 * weight + 6.25 * height - 5.0 * age
    if Gender(gender) == Gender.MALE:
        return base + 5.0
    return base - 161.0


def compute_maintenance(
    weight: float,
    height: float,
    age: int,
    gender: Union[Gender, str],
    activity_level: Union[ActivityLevel, str],
) -> int:
    """Daily maintenance calories: BMR scaled by the activity multiplier.

    An activity level outside ACTIVITY_MULTIPLIERS raises; the validator is
    expected to have rejected it already.
    """
    multiplier = ACTIVITY_MULTIPLIERS[ActivityLevel(activity_level)]
    return round_half_away_from_zero(compute_bmr(weight, height, age, gender) * multiplier)


def apply_goal(maintenance: int, goal: Union[PlanGoal, str]) -> int:
    try:
        plan_goal = PlanGoal(goal)
    except ValueError:
        raise ValueError(f"Unknown goal: {goal!r}") from None

    if plan_goal == PlanGoal.MAINTAIN:
        return maintenance
    return round_half_away_from_zero(maintenance * GOAL_FACTORS[plan_goal])


def goal_options(maintenance: int) -> dict[str, int]:
    return {goal.value: apply_goal(maintenance, goal) for goal in PlanGoal}
