"""Boundary collaborators of the onboarding flow and their default implementations."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol

import asyncpg

from .config import settings
from .db import fetch_plan_type, upsert_onboarded_profile, upsert_profile_details
from .models import Notification, PlanType, ProfileInput
from .onboarding import OnboardingState
from .observability import current_request_context, log_ctx_json

logger = logging.getLogger("fitin-collaborators")

NOTIFICATION_LEVELS = {"success", "error"}


class ProfileStore(Protocol):
    async def save_profile(self, user_id: str, state: OnboardingState) -> bool: ...

    async def save_details(self, user_id: str, profile: ProfileInput) -> bool: ...

    async def fetch_plan_type(self, user_id: str) -> PlanType: ...


class PhotoStore(Protocol):
    async def store(self, user_id: str, filename: Optional[str], data: bytes) -> str: ...


class Notifier(Protocol):
    def notify(self, level: str, message: str) -> None: ...


class PostgresProfileStore:
    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def fetch_plan_type(self, user_id: str) -> PlanType:
        return PlanType(await fetch_plan_type(self.conn, user_id))

    async def save_profile(self, user_id: str, state: OnboardingState) -> bool:
        try:
            await upsert_onboarded_profile(
                self.conn,
                user_id,
                biometrics=state.biometrics.as_dict() if state.biometrics else {},
                maintenance_calories=state.maintenance_calories,
                goal=state.goal.value if state.goal else None,
                target_calories=state.target_calories,
                photo_ref=state.photo_ref,
            )
        except (OSError, asyncpg.PostgresError) as exc:
            logger.warning("Profile save failed user_id=%s reason=%s", user_id, type(exc).__name__)
            return False
        return True

    async def save_details(self, user_id: str, profile: ProfileInput) -> bool:
        try:
            await upsert_profile_details(self.conn, user_id, profile.as_dict())
        except (OSError, asyncpg.PostgresError) as exc:
            logger.warning("Details save failed user_id=%s reason=%s", user_id, type(exc).__name__)
            return False
        return True


class PathPhotoStore:
    """Assigns an opaque storage path to an uploaded photo. Content is never inspected."""

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or settings.PHOTO_STORAGE_PREFIX

    async def store(self, user_id: str, filename: Optional[str], data: bytes) -> str:
        return f"{self.prefix}/{user_id}/{uuid.uuid4()}.bin"


class LoggingNotifier:
    def notify(self, level: str, message: str) -> None:
        if level not in NOTIFICATION_LEVELS:
            raise ValueError(f"Unknown notification level: {level!r}")
        context = dict(current_request_context(), level=level, message=message)
        if level == "error":
            logger.warning("NOTIFY context=%s", log_ctx_json(context))
        else:
            logger.info("NOTIFY context=%s", log_ctx_json(context))


class RecordingNotifier(LoggingNotifier):
    """Collects notifications for one request so they can be returned to the client."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, level: str, message: str) -> None:
        super().notify(level, message)
        self.notifications.append(Notification(level=level, message=message))


class InMemorySessionStore:
    """One OnboardingState per user, replaced whole on every transition."""

    def __init__(self):
        self._states: dict[str, OnboardingState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def lock(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                if user_id not in self._states:
                    self._locks.pop(user_id, None)

    def get(self, user_id: str) -> Optional[OnboardingState]:
        return self._states.get(user_id)

    def put(self, user_id: str, state: OnboardingState) -> None:
        self._states[user_id] = state

    def drop(self, user_id: str) -> None:
        self._states.pop(user_id, None)
        # A lock still held or awaited is released by its last user instead.
        if user_id not in self._lock_users:
            self._locks.pop(user_id, None)

    def clear(self) -> None:
        self._states.clear()
        self._locks.clear()
        self._lock_users.clear()


session_store = InMemorySessionStore()
