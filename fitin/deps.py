from typing import Optional

from fastapi import Depends, Header

from .auth import extract_bearer_token, get_session
from .config import settings
from .collaborators import PathPhotoStore, PostgresProfileStore, RecordingNotifier, session_store
from .db import get_db
from .errors import UnauthorizedError
from .flow import OnboardingService
from .models import Session


def get_current_session(authorization: Optional[str] = Header(default=None)) -> Optional[Session]:
    return get_session(extract_bearer_token(authorization))


def get_profile_store(conn=Depends(get_db)) -> PostgresProfileStore:
    return PostgresProfileStore(conn)


def get_photo_store() -> PathPhotoStore:
    return PathPhotoStore()


def get_notifier() -> RecordingNotifier:
    return RecordingNotifier()


def get_onboarding_service(
    profiles=Depends(get_profile_store),
    notifier: RecordingNotifier = Depends(get_notifier),
) -> OnboardingService:
    return OnboardingService(sessions=session_store, profiles=profiles, notifier=notifier)


async def get_premium_user_id(
    session: Optional[Session] = Depends(get_current_session),
    service: OnboardingService = Depends(get_onboarding_service),
) -> str:
    return await service.ensure_premium(session)


async def get_signed_in_user_id(session: Optional[Session] = Depends(get_current_session)) -> str:
    if session is None:
        raise UnauthorizedError(settings.AUTH_REDIRECT_PATH)
    return session.user_id
