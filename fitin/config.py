from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw_value: str) -> list[str]:
    return [part.strip() for part in raw_value.split(",") if part.strip()]


def _normalize_env(raw_value: str) -> str:
    normalized = raw_value.strip().lower()
    return "production" if normalized == "production" else "development"


VALIDATION_MODES = {"first", "aggregate"}


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "info"

    # CORS
    CORS_ALLOW_ORIGINS: str = ""

    # Auth
    JWT_SECRET: str
    JWT_EXPIRES_SEC: int = 604800  # 7 days

    # Database
    DATABASE_URL: str = ""
    DB_STATEMENT_TIMEOUT_MS: int = 5000
    DB_SLOW_QUERY_MS: int = 300

    # Onboarding
    ONBOARDING_VALIDATION_MODE: str = "first"  # "first" | "aggregate"
    AUTH_REDIRECT_PATH: str = "/auth"
    FREE_TRACKER_PATH: str = "/nutrition-tracker"
    PHOTO_STORAGE_PREFIX: str = "progress"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def env_mode(self) -> str:
        return _normalize_env(self.APP_ENV)

    def is_production(self) -> bool:
        return self.env_mode() == "production"

    def validation_mode(self) -> str:
        mode = self.ONBOARDING_VALIDATION_MODE.strip().lower()
        if mode not in VALIDATION_MODES:
            raise ValueError(f"Unknown ONBOARDING_VALIDATION_MODE: {self.ONBOARDING_VALIDATION_MODE!r}")
        return mode

    def get_cors_allow_origins(self) -> list[str]:
        configured = _split_csv(self.CORS_ALLOW_ORIGINS)
        if configured:
            if self.is_production() and "*" in configured:
                raise ValueError("Permissive CORS origin is not allowed in production")
            return configured

        if self.is_production():
            return []

        return [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]


settings = Settings()
