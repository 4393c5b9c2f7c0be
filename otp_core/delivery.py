# SPDX-License-Identifier: GPL-3.0-only
"""Delivery adapters - email via SendGrid, SMS via Twilio, console fallback."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from base_logger import get_logger
from otp_core.config import DeliveryConfig
from otp_core.content import RenderedContent
from otp_core.phone_numbers import format_phone_number, get_phonenumber_region_code
from otp_core.types import DeliveryProvider
from otp_core.utils import mask_identifier

logger = get_logger(__name__)

TWILIO_ACCEPTED_STATUSES = ("accepted", "queued", "sending", "sent", "delivered")


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send.

    ``provider`` is where the code can be retrieved from: the network
    provider when ``delivered`` is True, otherwise the console log.
    """

    delivered: bool
    provider: DeliveryProvider
    attempted: bool = False


def log_to_console(kind: str, destination: str, content: RenderedContent) -> None:
    """Write a message to the log instead of sending it."""
    logger.info(
        "\n%s VERIFICATION (provider not available)\n"
        "===============================================\n"
        "To: %s\nSubject: %s\n\n%s\n",
        kind,
        destination,
        content.subject or "-",
        content.text or content.body,
    )


class OTPDeliveryMethod(ABC):
    """Base class for OTP delivery methods."""

    @property
    @abstractmethod
    def configured(self) -> bool:
        """Whether network dispatch is possible."""

    @abstractmethod
    def send(self, destination: str, content: RenderedContent) -> DeliveryResult:
        """Send a rendered message. Never raises on provider errors."""


class EmailDeliveryMethod(OTPDeliveryMethod):
    """Email delivery via the SendGrid v3 HTTP API."""

    def __init__(
        self, config: DeliveryConfig, session: Optional[requests.Session] = None
    ):
        self.config = config
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return self.config.email_configured

    def _payload(self, destination: str, content: RenderedContent) -> dict:
        contents = []
        if content.text:
            contents.append({"type": "text/plain", "value": content.text})
        contents.append({"type": "text/html", "value": content.body})

        return {
            "personalizations": [{"to": [{"email": destination}]}],
            "from": {
                "email": self.config.from_email,
                "name": self.config.company_name,
            },
            "subject": content.subject,
            "content": contents,
        }

    def send(self, destination: str, content: RenderedContent) -> DeliveryResult:
        """Send email, or log it when SendGrid is not configured."""
        if not self.configured:
            logger.warning("SendGrid not configured (SENDGRID_API_KEY). Skipping send.")
            log_to_console("EMAIL", destination, content)
            return DeliveryResult(delivered=False, provider=DeliveryProvider.CONSOLE)

        headers = {
            "Authorization": f"Bearer {self.config.sendgrid_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self.session.post(
                self.config.sendgrid_api_url,
                json=self._payload(destination, content),
                headers=headers,
                timeout=self.config.provider_timeout_seconds,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(
                "Email service request error for %s: %s",
                mask_identifier(destination),
                e,
            )
            log_to_console("EMAIL", destination, content)
            return DeliveryResult(
                delivered=False, provider=DeliveryProvider.CONSOLE, attempted=True
            )

        logger.info(
            "Verification email sent to %s (status %d)",
            mask_identifier(destination),
            response.status_code,
        )
        return DeliveryResult(
            delivered=True, provider=DeliveryProvider.SENDGRID, attempted=True
        )


class SMSDeliveryMethod(OTPDeliveryMethod):
    """SMS delivery via Twilio Programmable Messaging."""

    def __init__(self, config: DeliveryConfig, client: Optional[Client] = None):
        self.config = config
        self.client = client
        if self.client is None and config.sms_configured:
            self.client = Client(
                config.twilio_account_sid,
                config.twilio_auth_token,
                http_client=TwilioHttpClient(timeout=config.provider_timeout_seconds),
            )

    @property
    def configured(self) -> bool:
        return self.client is not None and self.config.sms_configured

    def _sender(self) -> dict:
        if self.config.twilio_messaging_service_sid:
            return {"messaging_service_sid": self.config.twilio_messaging_service_sid}
        return {"from_": self.config.twilio_phone_number}

    def send(self, destination: str, content: RenderedContent) -> DeliveryResult:
        """Send SMS, or log it when Twilio is not configured."""
        phone_number = format_phone_number(
            destination, self.config.default_country_code
        )

        if not self.configured:
            logger.warning(
                "Twilio not configured (TWILIO_ACCOUNT_SID/TWILIO_AUTH_TOKEN and "
                "sender). Skipping send."
            )
            log_to_console("SMS", phone_number, content)
            return DeliveryResult(delivered=False, provider=DeliveryProvider.CONSOLE)

        region_code, _ = get_phonenumber_region_code(phone_number)
        logger.debug("Sending SMS OTP to region: %s", region_code or "unknown")

        try:
            message = self.client.messages.create(
                body=content.body, to=phone_number, **self._sender()
            )
        except TwilioRestException as e:
            logger.error("Twilio error (%s): %s", e.status, e.msg)
            log_to_console("SMS", phone_number, content)
            return DeliveryResult(
                delivered=False, provider=DeliveryProvider.CONSOLE, attempted=True
            )
        except (TwilioException, requests.exceptions.RequestException) as e:
            logger.error("Twilio request error: %s", e)
            log_to_console("SMS", phone_number, content)
            return DeliveryResult(
                delivered=False, provider=DeliveryProvider.CONSOLE, attempted=True
            )

        if message.status not in TWILIO_ACCEPTED_STATUSES:
            logger.error("Twilio send failed: %s", message.status)
            log_to_console("SMS", phone_number, content)
            return DeliveryResult(
                delivered=False, provider=DeliveryProvider.CONSOLE, attempted=True
            )

        logger.info("OTP sent via Twilio to %s", mask_identifier(phone_number))
        return DeliveryResult(
            delivered=True, provider=DeliveryProvider.TWILIO, attempted=True
        )
