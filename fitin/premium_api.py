from fastapi import APIRouter, Depends

from .collaborators import RecordingNotifier
from .deps import get_notifier, get_onboarding_service, get_premium_user_id, get_signed_in_user_id
from .flow import OnboardingService
from .schemas import (
    DashboardResponse,
    PremiumDetailsRequest,
    PremiumDetailsResponse,
    notifications_out,
    dashboard_response,
)
from .tracker import build_dashboard


router = APIRouter(prefix="/v1", tags=["Premium"])


@router.get("/tracker/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return dashboard_response(build_dashboard(service.current(user_id)))


@router.post("/premium/details", response_model=PremiumDetailsResponse)
async def save_premium_details(
    payload: PremiumDetailsRequest,
    user_id: str = Depends(get_signed_in_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    profile = await service.save_details(user_id, payload.model_dump())
    return PremiumDetailsResponse(
        **profile.as_dict(),
        notifications=notifications_out(notifier.notifications),
    )
