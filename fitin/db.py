import json
import logging
import time
import asyncpg
from typing import Optional
from .config import settings
from .observability import current_request_context

logger = logging.getLogger("fitin-db")


def _statement_timeout_ms() -> int:
    return max(0, int(settings.DB_STATEMENT_TIMEOUT_MS))


def _slow_query_threshold_ms() -> int:
    return max(0, int(settings.DB_SLOW_QUERY_MS))


def _log_slow_query(query_name: str, started_at: float) -> None:
    threshold_ms = _slow_query_threshold_ms()
    if threshold_ms <= 0:
        return

    duration = int((time.monotonic() - started_at) * 1000)
    if duration < threshold_ms:
        return

    context = current_request_context()
    payload = {
        "request_id": context.get("request_id", ""),
        "path": context.get("path", ""),
        "query_name": query_name,
        "duration_ms": duration,
        "threshold_ms": threshold_ms,
    }
    logger.warning("DB_SLOW_QUERY context=%s", payload)


async def fetchrow_named(conn: asyncpg.Connection, query_name: str, query: str, *args):
    started_at = time.monotonic()
    try:
        return await conn.fetchrow(query, *args)
    finally:
        _log_slow_query(query_name=query_name, started_at=started_at)


async def execute_named(conn: asyncpg.Connection, query_name: str, query: str, *args):
    started_at = time.monotonic()
    try:
        return await conn.execute(query, *args)
    finally:
        _log_slow_query(query_name=query_name, started_at=started_at)


class Database:
    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    async def create_pool(self):
        if not settings.DATABASE_URL:
            logger.warning("DATABASE_URL is not set, database pool will not be created.")
            return

        try:
            self.pool = await asyncpg.create_pool(
                dsn=settings.DATABASE_URL,
                min_size=1,
                max_size=10,
                max_inactive_connection_lifetime=300.0,
                command_timeout=60.0,
                statement_cache_size=0,
                server_settings={"statement_timeout": f"{_statement_timeout_ms()}ms"},
            )
            logger.info("Database pool created.")

            await self.init_db()
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Failed to create database pool: {e}")
            self.pool = None

    async def init_db(self):
        if not self.pool:
            return

        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS user_plans (
                    user_id UUID PRIMARY KEY,
                    plan_type TEXT NOT NULL DEFAULT 'free'
                        CHECK (plan_type IN ('free', 'paid')),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );

                CREATE TABLE IF NOT EXISTS premium_profiles (
                    user_id UUID PRIMARY KEY,
                    biometrics JSONB NOT NULL DEFAULT '{}'::jsonb,
                    details JSONB,
                    maintenance_calories INT,
                    goal TEXT CHECK (goal IS NULL OR goal IN ('cut', 'maintain', 'bulk')),
                    target_calories INT,
                    photo_ref TEXT,
                    onboarded_at TIMESTAMPTZ,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );
            """)
            logger.info("Database tables initialized.")

    async def close_pool(self):
        if self.pool:
            await self.pool.close()
            logger.info("Database pool closed.")

    async def db_check(self) -> str:
        if not settings.DATABASE_URL:
            return "disabled"

        if not self.pool:
            await self.create_pool()
            if not self.pool:
                return "fail"

        try:
            async with self.pool.acquire(timeout=5.0) as conn:
                await conn.execute("SELECT 1")
            return "ok"
        except (OSError, asyncpg.PostgresError, TimeoutError) as e:
            logger.error(f"Database health check failed: {e}")
            return "fail"


db = Database()


async def get_db():
    if not db.pool:
        if settings.DATABASE_URL:
            await db.create_pool()

        if not db.pool:
            raise RuntimeError("Database pool is not initialized and DATABASE_URL is missing or invalid")

    async with db.pool.acquire() as conn:
        yield conn


async def fetch_plan_type(conn: asyncpg.Connection, user_id: str) -> str:
    row = await fetchrow_named(
        conn,
        "plans.fetch_plan_type",
        "SELECT plan_type FROM user_plans WHERE user_id = $1::uuid",
        user_id,
    )
    if row is None:
        return "free"
    return "paid" if row["plan_type"] == "paid" else "free"


async def upsert_onboarded_profile(
    conn: asyncpg.Connection,
    user_id: str,
    *,
    biometrics: dict,
    maintenance_calories: Optional[int],
    goal: Optional[str],
    target_calories: Optional[int],
    photo_ref: Optional[str],
) -> None:
    await execute_named(
        conn,
        "profiles.upsert_onboarded",
        """
        INSERT INTO premium_profiles (
            user_id, biometrics, maintenance_calories, goal, target_calories, photo_ref, onboarded_at
        )
        VALUES ($1::uuid, $2::jsonb, $3, $4, $5, $6, NOW())
        ON CONFLICT (user_id) DO UPDATE
        SET biometrics = EXCLUDED.biometrics,
            maintenance_calories = EXCLUDED.maintenance_calories,
            goal = EXCLUDED.goal,
            target_calories = EXCLUDED.target_calories,
            photo_ref = EXCLUDED.photo_ref,
            onboarded_at = NOW(),
            updated_at = NOW()
        """,
        user_id,
        json.dumps(biometrics),
        maintenance_calories,
        goal,
        target_calories,
        photo_ref,
    )


async def upsert_profile_details(conn: asyncpg.Connection, user_id: str, details: dict) -> None:
    await execute_named(
        conn,
        "profiles.upsert_details",
        """
        INSERT INTO premium_profiles (user_id, details)
        VALUES ($1::uuid, $2::jsonb)
        ON CONFLICT (user_id) DO UPDATE
        SET details = EXCLUDED.details,
            updated_at = NOW()
        """,
        user_id,
        json.dumps(details),
    )
