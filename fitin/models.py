"""Domain types shared by the validator, the calorie formula and the onboarding flow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very-active"


class PlanGoal(str, Enum):
    """Goal picked on the goal step; drives the calorie adjustment."""

    CUT = "cut"
    MAINTAIN = "maintain"
    BULK = "bulk"


class ProfileGoal(str, Enum):
    """Goal collected on the premium details form."""

    MUSCLE_GAIN = "muscle-gain"
    CUT = "cut"
    BULK = "bulk"
    MAINTENANCE = "maintenance"


class PlanType(str, Enum):
    FREE = "free"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class Biometrics:
    height: float  # cm
    weight: float  # kg
    age: int
    gender: Gender = Gender.MALE
    activity_level: ActivityLevel = ActivityLevel.MODERATE

    def as_dict(self) -> dict:
        return {
            "height": self.height,
            "weight": self.weight,
            "age": self.age,
            "gender": self.gender.value,
            "activityLevel": self.activity_level.value,
        }


@dataclass(frozen=True, slots=True)
class ProfileInput:
    height: float
    weight: float
    age: int
    goal: ProfileGoal
    gender: Gender = Gender.MALE
    activity_level: ActivityLevel = ActivityLevel.MODERATE

    def biometrics(self) -> Biometrics:
        return Biometrics(
            height=self.height,
            weight=self.weight,
            age=self.age,
            gender=self.gender,
            activity_level=self.activity_level,
        )

    def as_dict(self) -> dict:
        data = self.biometrics().as_dict()
        data["goal"] = self.goal.value
        return data


@dataclass(frozen=True, slots=True)
class Session:
    user_id: str
    expires_at: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Notification:
    level: str  # "success" | "error"
    message: str
