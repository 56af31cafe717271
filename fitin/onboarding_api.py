from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from .calories import goal_options
from .collaborators import RecordingNotifier
from .deps import get_notifier, get_onboarding_service, get_photo_store, get_premium_user_id
from .errors import InvalidTransitionError
from .flow import OnboardingService
from .onboarding import Step
from .schemas import (
    CalculatorRequest,
    GoalOptionsResponse,
    GoalRequest,
    OnboardingStateResponse,
    state_response,
)


router = APIRouter(prefix="/v1/onboarding", tags=["Onboarding"])


async def _handle(
    service: OnboardingService,
    notifier: RecordingNotifier,
    user_id: str,
    event: str,
    payload: Optional[dict] = None,
) -> OnboardingStateResponse:
    state = await service.handle(user_id, event, payload)
    return state_response(state, notifier.notifications)


@router.get("", response_model=OnboardingStateResponse)
async def get_onboarding_state(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return state_response(service.current(user_id))


@router.post("/restart", response_model=OnboardingStateResponse)
async def restart_onboarding(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return state_response(await service.restart(user_id))


@router.delete("", status_code=204)
async def abandon_onboarding(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
):
    await service.abandon(user_id)


@router.post("/welcome", response_model=OnboardingStateResponse)
async def acknowledge_welcome(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    return await _handle(service, notifier, user_id, "acknowledge")


@router.post("/calculator", response_model=OnboardingStateResponse)
async def submit_calculator(
    payload: CalculatorRequest,
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    return await _handle(service, notifier, user_id, "submit_calculator", payload.model_dump())


@router.get("/goal/options", response_model=GoalOptionsResponse)
async def get_goal_options(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
):
    state = service.current(user_id)
    if state.step != Step.GOAL or state.maintenance_calories is None:
        raise InvalidTransitionError(step=state.step.value, event="view_goal_options")
    return GoalOptionsResponse(
        maintenanceCalories=state.maintenance_calories,
        options=goal_options(state.maintenance_calories),
    )


@router.post("/goal", response_model=OnboardingStateResponse)
async def select_goal(
    payload: GoalRequest,
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    return await _handle(service, notifier, user_id, "select_goal", {"goal": payload.goal})


@router.post("/photo", response_model=OnboardingStateResponse)
async def upload_photo(
    photo: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    photos=Depends(get_photo_store),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    data = await photo.read() if photo is not None else b""
    filename = photo.filename if photo is not None else None
    state = await service.upload_photo(user_id, photos, filename, data)
    return state_response(state, notifier.notifications)


@router.post("/photo/submit", response_model=OnboardingStateResponse)
async def submit_photo(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    return await _handle(service, notifier, user_id, "submit_photo")


@router.post("/community", response_model=OnboardingStateResponse)
async def join_community(
    user_id: str = Depends(get_premium_user_id),
    service: OnboardingService = Depends(get_onboarding_service),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    return await _handle(service, notifier, user_id, "join_community")
