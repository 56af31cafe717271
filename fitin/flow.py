import logging
from collections.abc import Mapping
from typing import Any, Optional

from .collaborators import InMemorySessionStore, Notifier, PhotoStore, ProfileStore
from .config import settings
from .errors import FitInError, UnauthorizedError
from .models import PlanType, ProfileInput, Session
from .observability import flow_ctx, log_ctx_json
from .onboarding import OnboardingState, Step, dispatch
from .validation import validate_profile

logger = logging.getLogger("fitin-flow")

PROFILE_SAVE_FAILED_MESSAGE = "Failed to save your profile. Please try again."
DETAILS_SAVED_MESSAGE = "Details saved successfully!"
DETAILS_SAVE_FAILED_MESSAGE = "Failed to save details. Please try again."


class OnboardingService:
    def __init__(self, sessions: InMemorySessionStore, profiles: ProfileStore, notifier: Notifier):
        self.sessions = sessions
        self.profiles = profiles
        self.notifier = notifier

    async def ensure_premium(self, session: Optional[Session]) -> str:
        """Returns the user id of a paid user; anyone else is redirected out of the flow."""
        if session is None:
            raise UnauthorizedError(settings.AUTH_REDIRECT_PATH)

        plan_type = await self.profiles.fetch_plan_type(session.user_id)
        if plan_type != PlanType.PAID:
            logger.info(
                "ONBOARDING_REDIRECT context=%s",
                log_ctx_json(flow_ctx(session.user_id, plan_type=plan_type.value)),
            )
            raise UnauthorizedError(
                settings.FREE_TRACKER_PATH,
                code="PREMIUM_REQUIRED",
                message="Premium nutrition tracking requires a paid plan",
                status_code=403,
            )
        return session.user_id

    def current(self, user_id: str) -> OnboardingState:
        state = self.sessions.get(user_id)
        if state is None:
            state = OnboardingState.start()
            self.sessions.put(user_id, state)
        return state

    async def restart(self, user_id: str) -> OnboardingState:
        async with self.sessions.lock(user_id):
            state = OnboardingState.start()
            self.sessions.put(user_id, state)
        logger.info("ONBOARDING_RESTART context=%s", log_ctx_json(flow_ctx(user_id)))
        return state

    async def abandon(self, user_id: str) -> None:
        async with self.sessions.lock(user_id):
            previous = self.sessions.get(user_id)
            self.sessions.drop(user_id)
        logger.info(
            "ONBOARDING_ABANDONED context=%s",
            log_ctx_json(flow_ctx(user_id, step=previous.step.value if previous else None)),
        )

    async def handle(self, user_id: str, event: str, payload: Optional[Mapping[str, Any]] = None) -> OnboardingState:
        async with self.sessions.lock(user_id):
            state = self.current(user_id)
            try:
                transition = dispatch(state, event, payload)
            except FitInError as exc:
                self.notifier.notify("error", exc.message)
                logger.info(
                    "ONBOARDING_REJECTED context=%s",
                    log_ctx_json(flow_ctx(user_id, step=state.step.value, event=event, code=exc.code)),
                )
                raise

            new_state = transition.state
            self.sessions.put(user_id, new_state)

        logger.info(
            "ONBOARDING_TRANSITION context=%s",
            log_ctx_json(flow_ctx(user_id, event=event, from_step=state.step.value, to_step=new_state.step.value)),
        )
        if transition.notification is not None:
            self.notifier.notify(transition.notification.level, transition.notification.message)

        if new_state.step == Step.TRACKER and state.step != Step.TRACKER:
            await self._persist(user_id, new_state)
        return new_state

    async def upload_photo(self, user_id: str, photos: PhotoStore, filename: Optional[str], data: bytes) -> OnboardingState:
        photo_ref = None
        # Outside the photo step the transition is rejected without touching storage.
        if self.current(user_id).step == Step.PHOTO and data:
            photo_ref = await photos.store(user_id, filename, data)
        return await self.handle(user_id, "attach_photo", {"photoRef": photo_ref})

    async def save_details(self, user_id: str, raw: Mapping[str, Any]) -> ProfileInput:
        try:
            profile = validate_profile(raw)
        except FitInError as exc:
            self.notifier.notify("error", exc.message)
            raise

        if await self.profiles.save_details(user_id, profile):
            self.notifier.notify("success", DETAILS_SAVED_MESSAGE)
        else:
            self.notifier.notify("error", DETAILS_SAVE_FAILED_MESSAGE)
        return profile

    async def _persist(self, user_id: str, state: OnboardingState) -> None:
        saved = await self.profiles.save_profile(user_id, state)
        if not saved:
            self.notifier.notify("error", PROFILE_SAVE_FAILED_MESSAGE)
            logger.warning("ONBOARDING_SAVE_FAILED context=%s", log_ctx_json(flow_ctx(user_id)))
