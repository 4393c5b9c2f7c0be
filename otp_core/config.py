# SPDX-License-Identifier: GPL-3.0-only
"""Provider and environment configuration, read once per process."""

from dataclasses import dataclass
from typing import Optional, Tuple

from base_logger import get_logger
from otp_core.phone_numbers import DEFAULT_COUNTRY_CODE
from otp_core.utils import get_configs, get_int_config

logger = get_logger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class DeliveryConfig:
    """Static configuration for the delivery adapters."""

    mode: str = "development"
    company_name: str = "E-Commerce Platform"
    from_email: str = "no-reply@ecommerce.com"
    sendgrid_api_key: Optional[str] = None
    sendgrid_api_url: str = SENDGRID_API_URL
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_messaging_service_sid: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    default_country_code: str = DEFAULT_COUNTRY_CODE
    provider_timeout_seconds: int = 5

    @classmethod
    def from_env(cls) -> "DeliveryConfig":
        """Build configuration from environment variables."""
        return cls(
            mode=get_configs("MODE", default_value="development").strip().lower(),
            company_name=get_configs(
                "COMPANY_NAME", default_value="E-Commerce Platform"
            ),
            from_email=get_configs("FROM_EMAIL", default_value="no-reply@ecommerce.com"),
            sendgrid_api_key=get_configs("SENDGRID_API_KEY") or None,
            sendgrid_api_url=get_configs(
                "SENDGRID_API_URL", default_value=SENDGRID_API_URL
            ),
            twilio_account_sid=get_configs("TWILIO_ACCOUNT_SID") or None,
            twilio_auth_token=get_configs("TWILIO_AUTH_TOKEN") or None,
            twilio_messaging_service_sid=get_configs("TWILIO_MESSAGING_SERVICE_SID")
            or None,
            twilio_phone_number=get_configs("TWILIO_PHONE_NUMBER") or None,
            default_country_code=get_configs(
                "DEFAULT_COUNTRY_CODE", default_value=DEFAULT_COUNTRY_CODE
            ).lstrip("+"),
            provider_timeout_seconds=get_int_config("PROVIDER_TIMEOUT_SECONDS", 5),
        )

    @property
    def is_production(self) -> bool:
        return self.mode == "production"

    @property
    def email_configured(self) -> bool:
        return bool(self.sendgrid_api_key)

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and (self.twilio_messaging_service_sid or self.twilio_phone_number)
        )


def validate_email_configuration(config: DeliveryConfig) -> Tuple[bool, str]:
    """Check the email settings and describe what is missing.

    Returns:
        Tuple of (is_valid, message).
    """
    if not config.company_name or not config.from_email:
        return False, "Missing company name or sender email address"

    if not config.sendgrid_api_key:
        return False, "SendGrid API key is missing"

    return True, "Email configuration is valid"


def validate_sms_configuration(config: DeliveryConfig) -> Tuple[bool, str]:
    """Check the SMS settings and describe what is missing.

    Returns:
        Tuple of (is_valid, message).
    """
    if not config.twilio_account_sid or not config.twilio_auth_token:
        return False, "Twilio account SID or auth token is missing"

    if not (config.twilio_messaging_service_sid or config.twilio_phone_number):
        return False, "Twilio messaging service SID or sender number is missing"

    return True, "SMS configuration is valid"
