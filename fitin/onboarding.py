"""Premium onboarding state machine.

welcome -> calculator -> goal -> photo -> community -> tracker

Strictly linear and forward-only. Each transition takes the current
OnboardingState and returns a Transition holding a new state; guard failures
raise a FitInError and the caller keeps the state it already had.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Union

from .calories import apply_goal, compute_maintenance
from .errors import InvalidEnumError, InvalidTransitionError, MissingRequiredError
from .models import Biometrics, Notification, PlanGoal
from .validation import validate_biometrics


class Step(str, Enum):
    WELCOME = "welcome"
    CALCULATOR = "calculator"
    GOAL = "goal"
    PHOTO = "photo"
    COMMUNITY = "community"
    TRACKER = "tracker"

COMMUNITY_WELCOME_MESSAGE = "Welcome to the FitIn community!"
PHOTO_REQUIRED_MESSAGE = "Please upload a photo to continue"


@dataclass(frozen=True, slots=True)
class OnboardingState:
    step: Step = Step.WELCOME
    biometrics: Optional[Biometrics] = None
    maintenance_calories: Optional[int] = None
    goal: Optional[PlanGoal] = None
    target_calories: Optional[int] = None
    photo_ref: Optional[str] = None

    @classmethod
    def start(cls) -> "OnboardingState":
        return cls()

    @property
    def is_complete(self) -> bool:
        return self.step == Step.TRACKER

    @property
    def has_photo(self) -> bool:
        return bool(self.photo_ref)


@dataclass(frozen=True, slots=True)
class Transition:
    state: OnboardingState
    notification: Optional[Notification] = None

    @property
    def step(self) -> Step:
        return self.state.step


def _require_step(state: OnboardingState, expected: Step, event: str) -> None:
    if state.step != expected:
        raise InvalidTransitionError(step=state.step.value, event=event)


def acknowledge_welcome(state: OnboardingState) -> Transition:
    _require_step(state, Step.WELCOME, "acknowledge")
    return Transition(replace(state, step=Step.CALCULATOR))


def submit_calculator(state: OnboardingState, raw_fields: Mapping[str, Any]) -> Transition:
    _require_step(state, Step.CALCULATOR, "submit_calculator")
    biometrics = validate_biometrics(raw_fields, step=Step.CALCULATOR.value)
    maintenance = compute_maintenance(
        weight=biometrics.weight,
        height=biometrics.height,
        age=biometrics.age,
        gender=biometrics.gender,
        activity_level=biometrics.activity_level,
    )
    return Transition(
        replace(
            state,
            step=Step.GOAL,
            biometrics=biometrics,
            maintenance_calories=maintenance,
            target_calories=maintenance,
        )
    )


def select_goal(state: OnboardingState, goal: Union[PlanGoal, str, None]) -> Transition:
    _require_step(state, Step.GOAL, "select_goal")
    if state.maintenance_calories is None:
        raise MissingRequiredError(
            step=Step.GOAL.value,
            field="maintenanceCalories",
            message="Calculate your maintenance calories first",
        )
    try:
        plan_goal = PlanGoal(goal)
    except ValueError:
        raise InvalidEnumError("goal", [g.value for g in PlanGoal]) from None

    # Always derived from maintenance, never from a previously adjusted target.
    target = apply_goal(state.maintenance_calories, plan_goal)
    return Transition(replace(state, step=Step.PHOTO, goal=plan_goal, target_calories=target))


def attach_photo(state: OnboardingState, photo_ref: Optional[str]) -> Transition:
    _require_step(state, Step.PHOTO, "attach_photo")
    return Transition(replace(state, photo_ref=photo_ref or None))


def submit_photo(state: OnboardingState) -> Transition:
    _require_step(state, Step.PHOTO, "submit_photo")
    if not state.has_photo:
        raise MissingRequiredError(step=Step.PHOTO.value, field="photo", message=PHOTO_REQUIRED_MESSAGE)
    return Transition(replace(state, step=Step.COMMUNITY))


def join_community(state: OnboardingState) -> Transition:
    _require_step(state, Step.COMMUNITY, "join_community")
    return Transition(
        replace(state, step=Step.TRACKER),
        notification=Notification(level="success", message=COMMUNITY_WELCOME_MESSAGE),
    )


_HANDLERS: dict[str, Callable[[OnboardingState, Mapping[str, Any]], Transition]] = {
    "acknowledge": lambda state, payload: acknowledge_welcome(state),
    "submit_calculator": lambda state, payload: submit_calculator(state, payload),
    "select_goal": lambda state, payload: select_goal(state, payload.get("goal")),
    "attach_photo": lambda state, payload: attach_photo(state, payload.get("photoRef")),
    "submit_photo": lambda state, payload: submit_photo(state),
    "join_community": lambda state, payload: join_community(state),
}

EVENTS = tuple(_HANDLERS)


def dispatch(state: OnboardingState, event: str, payload: Optional[Mapping[str, Any]] = None) -> Transition:
    handler = _HANDLERS.get(event)
    if handler is None:
        raise InvalidTransitionError(step=state.step.value, event=event)
    return handler(state, payload or {})
