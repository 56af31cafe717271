from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union, Literal

from .models import Notification
from .onboarding import OnboardingState
from .tracker import Dashboard

RawNumber = Optional[Union[int, float, str]]


class CalculatorRequest(BaseModel):
    # Kept raw: parsing and bounds are the biometric validator's job.
    height: RawNumber = None
    weight: RawNumber = None
    age: RawNumber = None
    gender: Optional[str] = None
    activityLevel: Optional[str] = None


class GoalRequest(BaseModel):
    goal: Optional[str] = None


class PremiumDetailsRequest(BaseModel):
    height: RawNumber = None
    weight: RawNumber = None
    age: RawNumber = None
    goal: Optional[str] = None
    gender: Optional[str] = None
    activityLevel: Optional[str] = None


class NotificationOut(BaseModel):
    level: Literal["success", "error"]
    message: str


class BiometricsOut(BaseModel):
    height: float
    weight: float
    age: int
    gender: str
    activityLevel: str


class OnboardingStateResponse(BaseModel):
    step: str
    biometrics: Optional[BiometricsOut] = None
    maintenanceCalories: Optional[int] = None
    goal: Optional[str] = None
    targetCalories: Optional[int] = None
    hasPhoto: bool = False
    notifications: List[NotificationOut] = Field(default_factory=list)


class GoalOptionsResponse(BaseModel):
    maintenanceCalories: int
    options: Dict[str, int]


class DashboardResponse(BaseModel):
    goal: str
    targetCalories: int = Field(..., ge=0)
    meals: Dict[str, int]
    consumedCalories: int = Field(..., ge=0)
    remainingCalories: int = Field(..., ge=0)
    progressPct: float = Field(..., ge=0, le=100)


class PremiumDetailsResponse(BaseModel):
    height: float
    weight: float
    age: int
    goal: str
    gender: str
    activityLevel: str
    notifications: List[NotificationOut] = Field(default_factory=list)


def notifications_out(notifications: List[Notification]) -> List[NotificationOut]:
    return [NotificationOut(level=n.level, message=n.message) for n in notifications]


def state_response(state: OnboardingState, notifications: Optional[List[Notification]] = None) -> OnboardingStateResponse:
    return OnboardingStateResponse(
        step=state.step.value,
        biometrics=BiometricsOut(**state.biometrics.as_dict()) if state.biometrics else None,
        maintenanceCalories=state.maintenance_calories,
        goal=state.goal.value if state.goal else None,
        targetCalories=state.target_calories,
        hasPhoto=state.has_photo,
        notifications=notifications_out(notifications or []),
    )


def dashboard_response(dashboard: Dashboard) -> DashboardResponse:
    return DashboardResponse(
        goal=dashboard.goal,
        targetCalories=dashboard.target_calories,
        meals=dashboard.meals,
        consumedCalories=dashboard.consumed_calories,
        remainingCalories=dashboard.remaining_calories,
        progressPct=dashboard.progress_pct,
    )
