# rentez/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./rentez.db"
    client_url: str = "http://localhost:5173"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["http://localhost:5173"]

    # ---- Uploads ----
    uploads_dir: str = "./uploads"
    max_upload_bytes: int = 5 * 1024 * 1024  # 5 MB

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    dev_auto_provision: bool = True
    jwt_secret: str = "dev-change-me"
    jwt_exp_minutes: int = 60 * 24 * 7  # 7 days

    # ---- Chat presence ----
    presence_backend: str = "memory"  # memory|redis
    redis_url: str = "redis://localhost:6379/2"
    presence_ttl_seconds: int = 60 * 60 * 24

    # ---- Celery ----
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # ---- Rent schedule / sweeps ----
    reminder_window_days: int = 3
    reminder_hour_utc: int = 9
    overdue_sweep_hour_utc: int = 0

    # ---- Email (rent reminders) ----
    email_host: str | None = None
    email_port: int = 587
    email_user: str | None = None
    email_password: str | None = None
    email_from: str = "RentEz <no-reply@rentez.local>"
    email_use_tls: bool = True

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        # Hard fail: dev header auth or the default signing secret in prod
        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
            if self.jwt_secret == "dev-change-me":
                raise ValueError("SECURITY: jwt_secret must be set in prod")


settings = Settings()
