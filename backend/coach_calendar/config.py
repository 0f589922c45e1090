# backend/coach_calendar/config.py

import logging
from datetime import date
from pathlib import Path
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./booking.db"
    log_level: str = "INFO"

    # ===== Calendar =====
    business_timezone: str = "Europe/Amsterdam"
    day_start: str = "09:00"
    day_end: str = "20:00"
    slot_step_minutes: int = 30
    horizon_days: int = 31
    horizon_start: date | None = None
    business_days: list[int] = [0, 1, 2, 3, 4, 5, 6]  # 0 = Monday

    # ===== Feature toggles =====
    send_confirmation_email: bool = False
    create_zoom_meeting: bool = False

    # ===== SMTP =====
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_from: str = ""
    smtp_from_name: str = "Coach Calendar"
    smtp_password: str = ""
    smtp_timeout: float = 30.0

    # ===== Zoom (Server-to-Server OAuth) =====
    zoom_account_id: str = ""
    zoom_client_id: str = ""
    zoom_client_secret: str = ""
    zoom_timeout: float = 30.0

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path -> absolute, anchored at repo root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_port and self.smtp_from and self.smtp_password)

    @property
    def zoom_enabled(self) -> bool:
        return bool(self.zoom_account_id and self.zoom_client_id and self.zoom_client_secret)


settings = Settings()


def mask_secret(secret: str) -> str:
    if not secret:
        return "<not set>"
    if len(secret) <= 4:
        return "****"
    return secret[:4] + "****"


def mask_database_url(database_url: str) -> str:
    """Replace the password part of a DB URL with ****."""
    parsed = urlparse(database_url)
    if not parsed.password:
        return database_url
    netloc = parsed.netloc.replace(f":{parsed.password}@", ":****@", 1)
    return parsed._replace(netloc=netloc).geturl()


def log_config_summary(cfg: Settings) -> None:
    """Log the effective configuration with secrets masked."""
    logger.info("=" * 40)
    logger.info("Configuration summary")
    logger.info("=" * 40)
    logger.info(f"DATABASE_URL: {mask_database_url(cfg.database_url)}")
    logger.info(f"BUSINESS_TIMEZONE: {cfg.business_timezone}")
    logger.info(f"BUSINESS_HOURS: {cfg.day_start}-{cfg.day_end} every {cfg.slot_step_minutes} min")
    logger.info(f"HORIZON: {cfg.horizon_days} days from {cfg.horizon_start or 'today'}")
    logger.info(f"SMTP_HOST: {cfg.smtp_host or '<not set>'}")
    logger.info(f"SMTP_PORT: {cfg.smtp_port}")
    logger.info(f"SMTP_FROM: {cfg.smtp_from or '<not set>'}")
    logger.info(f"SMTP_PASSWORD: {mask_secret(cfg.smtp_password)}")
    logger.info(f"SEND_CONFIRMATION_EMAIL: {cfg.send_confirmation_email}")
    logger.info(f"CREATE_ZOOM_MEETING: {cfg.create_zoom_meeting}")
    logger.info(f"ZOOM_ACCOUNT_ID: {mask_secret(cfg.zoom_account_id)}")
    logger.info(f"ZOOM_CLIENT_ID: {mask_secret(cfg.zoom_client_id)}")
    logger.info(f"ZOOM_CLIENT_SECRET: {mask_secret(cfg.zoom_client_secret)}")
    logger.info("=" * 40)
