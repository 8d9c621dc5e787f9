"""
Configuration Management

Loads application settings from environment variables (and an optional .env file).
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_TARGET_URL = (
    "https://appsb.mardelplata.gob.ar/Consultas/nPolideportivos/Vistas/"
    "Inscripciones/InscripcionWeb/InscripcionWeb.aspx"
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime configuration for the registration monitor."""

    target_url: str = DEFAULT_TARGET_URL
    category_value: str = "1"  # DEPORTE
    activity_value: str = "16"  # BASQUET
    scrape_interval_hours: float = 6
    settle_delay: float = 3.0
    headless: bool = True
    database_url: str = "sqlite:///data/registrations.db"
    public_base_url: str = "http://localhost:5000"
    recipient_email: Optional[str] = None
    sender_email: Optional[str] = None
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    log_file: Optional[str] = "monitoring_daemon.log"
    timezone: str = "America/Argentina/Buenos_Aires"

    @classmethod
    def from_env(cls, dotenv_path=None):
        """
        Build settings from the process environment.

        Args:
            dotenv_path (str, optional): Explicit .env file to load first

        Returns:
            Settings: Populated settings instance
        """
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            target_url=os.getenv("TARGET_URL", defaults.target_url),
            category_value=os.getenv("CATEGORY_VALUE", defaults.category_value),
            activity_value=os.getenv("ACTIVITY_VALUE", defaults.activity_value),
            scrape_interval_hours=float(
                os.getenv("SCRAPE_INTERVAL_HOURS", defaults.scrape_interval_hours)
            ),
            settle_delay=float(os.getenv("SETTLE_DELAY_SECONDS", defaults.settle_delay)),
            headless=_env_bool("HEADLESS", defaults.headless),
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            public_base_url=os.getenv("PUBLIC_BASE_URL", defaults.public_base_url),
            recipient_email=os.getenv("RECIPIENT_EMAIL") or None,
            sender_email=os.getenv("FROM_EMAIL") or None,
            smtp_server=os.getenv("SMTP_SERVER", defaults.smtp_server),
            smtp_port=int(os.getenv("SMTP_PORT", defaults.smtp_port)),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            log_file=os.getenv("LOG_FILE", defaults.log_file) or None,
            timezone=os.getenv("TIMEZONE", defaults.timezone),
        )

    @property
    def scrape_interval_seconds(self):
        return int(self.scrape_interval_hours * 60 * 60)


def configure_logging(log_file=None, level=logging.INFO):
    """Install the file and console handlers used by the daemon and the web app."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
