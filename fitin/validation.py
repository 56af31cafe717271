"""Biometric validation for the calculator step and the premium details form.

Raw values come straight from the client: numbers or numeric strings for
height/weight/age, plain strings for the enum fields. Validation is pure and
either fail-fast (first violated constraint, field order height -> weight ->
age -> enums) or aggregate, in which case every failure is collected into a
single ValidationFailed.
"""

import math
from collections.abc import Mapping
from typing import Any, Callable, Optional

from .config import settings
from .errors import (
    FitInError,
    InvalidEnumError,
    MissingRequiredError,
    OutOfBoundsError,
    ParseError,
    ValidationFailed,
)
from .models import ActivityLevel, Biometrics, Gender, ProfileGoal, ProfileInput


HEIGHT_BOUNDS = (100.0, 250.0)
WEIGHT_BOUNDS = (30.0, 300.0)
AGE_BOUNDS = (13, 100)

# Client field name -> (bounds, integral)
NUMERIC_FIELDS: dict[str, tuple[tuple[float, float], bool]] = {
    "height": (HEIGHT_BOUNDS, False),
    "weight": (WEIGHT_BOUNDS, False),
    "age": (AGE_BOUNDS, True),
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(field: str, value: Any, *, integral: bool = False) -> float:
    if isinstance(value, bool):
        raise ParseError(field)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise ParseError(field) from None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ParseError(field) from None
    else:
        raise ParseError(field)

    if not math.isfinite(number):
        raise ParseError(field)
    if integral and not number.is_integer():
        raise ParseError(field)
    return number


def check_bounds(field: str, value: float, bounds: tuple[float, float]) -> None:
    low, high = bounds
    if value < low or value > high:
        raise OutOfBoundsError(field, low, high, value)


def _numeric_field(raw: Mapping, field: str, step: str) -> float:
    bounds, integral = NUMERIC_FIELDS[field]
    value = raw.get(field)
    if _is_blank(value):
        raise MissingRequiredError(step=step, field=field)
    number = parse_number(field, value, integral=integral)
    check_bounds(field, number, bounds)
    return number


def _enum_field(raw: Mapping, field: str, enum_cls, default=None):
    value = raw.get(field)
    if _is_blank(value):
        if default is not None:
            return default
        raise InvalidEnumError(field, [member.value for member in enum_cls])
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        raise InvalidEnumError(field, [member.value for member in enum_cls]) from None


class _Collector:
    """Runs field checks either fail-fast or collecting every error."""

    def __init__(self, aggregate: bool):
        self.aggregate = aggregate
        self.errors: list[FitInError] = []

    def run(self, check: Callable[[], Any]) -> Optional[Any]:
        try:
            return check()
        except ValidationFailed as exc:
            if not self.aggregate:
                raise
            self.errors.extend(exc.errors)
            return None
        except FitInError as exc:
            if not self.aggregate:
                raise
            self.errors.append(exc)
            return None

    def finish(self) -> None:
        if not self.errors:
            return
        if len(self.errors) == 1:
            raise self.errors[0]
        raise ValidationFailed(self.errors)


def _resolve_mode(mode: Optional[str]) -> bool:
    return (mode or settings.validation_mode()) == "aggregate"


def validate_biometrics(raw: Mapping, *, step: str = "calculator", mode: Optional[str] = None) -> Biometrics:
    """Validate the calculator fields: height, weight, age, gender, activityLevel."""
    collector = _Collector(aggregate=_resolve_mode(mode))

    height = collector.run(lambda: _numeric_field(raw, "height", step))
    weight = collector.run(lambda: _numeric_field(raw, "weight", step))
    age = collector.run(lambda: _numeric_field(raw, "age", step))
    gender = collector.run(lambda: _enum_field(raw, "gender", Gender, default=Gender.MALE))
    activity_level = collector.run(
        lambda: _enum_field(raw, "activityLevel", ActivityLevel, default=ActivityLevel.MODERATE)
    )
    collector.finish()

    return Biometrics(
        height=height,
        weight=weight,
        age=int(age),
        gender=gender,
        activity_level=activity_level,
    )


def validate_profile(raw: Mapping, *, step: str = "details", mode: Optional[str] = None) -> ProfileInput:
    """Validate the full premium details form, including the goal."""
    collector = _Collector(aggregate=_resolve_mode(mode))

    aggregate_mode = "aggregate" if collector.aggregate else "first"
    biometrics = collector.run(lambda: validate_biometrics(raw, step=step, mode=aggregate_mode))
    goal = collector.run(lambda: _enum_field(raw, "goal", ProfileGoal))
    collector.finish()

    return ProfileInput(
        height=biometrics.height,
        weight=biometrics.weight,
        age=biometrics.age,
        goal=goal,
        gender=biometrics.gender,
        activity_level=biometrics.activity_level,
    )
