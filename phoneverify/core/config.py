from pydantic import BaseModel
import os
import logging
from datetime import timedelta
from typing import List

logger = logging.getLogger(__name__)

# Verification lifecycle constants
VERIFICATION_CODE_LENGTH = 6
VERIFICATION_CODE_TTL = timedelta(minutes=10)
START_COOLDOWN = timedelta(minutes=5)  # spam window for repeated starts on the same number
RESEND_COOLDOWN = timedelta(seconds=60)


class Settings(BaseModel):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./phoneverify.db")

    # Environment and logging
    ENV: str = os.getenv("ENV", "dev")  # local, dev, staging, prod
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Comma-separated list of origins, "*" allows any
    CORS_ALLOWED_ORIGINS: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")

    # Phone Verification Configuration (Twilio Verify)
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_VERIFY_SERVICE_SID: str = os.getenv("TWILIO_VERIFY_SERVICE_SID", "")
    TWILIO_TIMEOUT_SECONDS: int = int(os.getenv("TWILIO_TIMEOUT_SECONDS", "10"))
    TWILIO_CHANNEL: str = os.getenv("TWILIO_CHANNEL", "sms")

    # Region whose country code is assumed for bare 10-digit numbers
    PHONE_DEFAULT_REGION: str = os.getenv("PHONE_DEFAULT_REGION", "US")

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL

    @property
    def twilio_verify_configured(self) -> bool:
        """
        True only when account SID, auth token and Verify service SID are all set.
        Anything less runs the service with locally issued codes.
        """
        return bool(
            self.TWILIO_ACCOUNT_SID and
            self.TWILIO_AUTH_TOKEN and
            self.TWILIO_VERIFY_SERVICE_SID
        )

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()


def validate_config(config: Settings = None):
    """Validate configuration at startup. Raises ValueError if invalid."""
    config = config or settings

    twilio_values = {
        "TWILIO_ACCOUNT_SID": config.TWILIO_ACCOUNT_SID,
        "TWILIO_AUTH_TOKEN": config.TWILIO_AUTH_TOKEN,
        "TWILIO_VERIFY_SERVICE_SID": config.TWILIO_VERIFY_SERVICE_SID,
    }
    missing = [name for name, value in twilio_values.items() if not value]

    if missing and len(missing) < len(twilio_values):
        logger.warning(
            f"Partial Twilio configuration, missing: {', '.join(missing)}. "
            "Falling back to locally issued verification codes."
        )

    if config.ENV.lower() in {"prod", "production"}:
        if missing:
            error_msg = (
                "Phone verification in production requires Twilio Verify, "
                f"missing required configuration: {', '.join(missing)}"
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        if config.database_url.startswith("sqlite"):
            error_msg = (
                "CRITICAL: SQLite database is not supported in production. "
                "Please use PostgreSQL (e.g., RDS, managed Postgres)."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        logger.info("Production safety gates validated")

    # Log final config summary (with secrets redacted)
    logger.info("Configuration validation complete")
    logger.info(f"Environment: {config.ENV}")
    logger.info(f"Code issuer: {'twilio_verify' if config.twilio_verify_configured else 'local'}")
    if config.TWILIO_ACCOUNT_SID:
        logger.info(f"Twilio Account SID: {config.TWILIO_ACCOUNT_SID[:8]}...")
