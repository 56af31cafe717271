from dataclasses import dataclass
from typing import Optional

from .errors import InvalidTransitionError
from .onboarding import OnboardingState, Step


DEFAULT_MEALS: dict[str, int] = {
    "breakfast": 350,
    "lunch": 420,
    "dinner": 312,
    "snacks": 174,
}


@dataclass(frozen=True)
class Dashboard:
    goal: str
    target_calories: int
    meals: dict[str, int]
    consumed_calories: int
    remaining_calories: int
    progress_pct: float


def progress_pct(consumed: int, target: int) -> float:
    if target <= 0:
        return 0.0
    return round(min(100.0, consumed * 100.0 / target), 1)


def build_dashboard(state: OnboardingState, meals: Optional[dict[str, int]] = None) -> Dashboard:
    if state.step != Step.TRACKER:
        raise InvalidTransitionError(step=state.step.value, event="open_dashboard")

    meal_calories = dict(DEFAULT_MEALS if meals is None else meals)
    target = int(state.target_calories or 0)
    consumed = sum(meal_calories.values())

    return Dashboard(
        goal=state.goal.value if state.goal else "maintain",
        target_calories=target,
        meals=meal_calories,
        consumed_calories=consumed,
        remaining_calories=max(0, target - consumed),
        progress_pct=progress_pct(consumed, target),
    )
