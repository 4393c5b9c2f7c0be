# SPDX-License-Identifier: GPL-3.0-only
"""Verification service - send, verify and cancel stored verification codes.

Codes are issued by an external step (registration and profile flows write
the code and expiry onto the user record). Sending only redelivers a code
that is already stored and still live.
"""

import datetime
import hmac
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Mapping, Optional, Union

from base_logger import get_logger
from otp_core.code_store import CodeStore, is_code_usable
from otp_core.config import (
    DeliveryConfig,
    validate_email_configuration,
    validate_sms_configuration,
)
from otp_core.content import MessageContext, render
from otp_core.delivery import (
    DeliveryResult,
    EmailDeliveryMethod,
    OTPDeliveryMethod,
    SMSDeliveryMethod,
)
from otp_core.exceptions import (
    CodeUnusableError,
    InvalidRequestError,
    UserNotFoundError,
)
from otp_core.identity import IdentityResolver, infer_channel
from otp_core.repositories import UserRecord, UserRepository, build_peewee_repositories
from otp_core.types import Channel, Purpose, Role, VerificationStatus
from otp_core.utils import coerce_enum, mask_identifier, remove_none_values

logger = get_logger(__name__)

EXPIRY_DISPLAY_FORMAT = "%B %d, %Y at %I:%M %p"

USER_NOT_FOUND_SEND = "User not found. Please register first."
USER_NOT_FOUND_VERIFY = "User not found."
NO_VALID_CODE = (
    "No valid verification code found. "
    "Please generate a new verification code from your profile."
)
INVALID_CODE = "Invalid verification code."
EXPIRED_CODE = "Verification code has expired. Please generate a new one."

CHANNEL_NAMES = {Channel.EMAIL: "Email", Channel.MOBILE: "Phone number"}


@dataclass
class VerificationResult:
    """Plain result returned by every public operation."""

    success: bool
    message: str
    status: Optional[str] = None
    delivered: Optional[bool] = None
    delivered_via: Optional[str] = None
    code: Optional[str] = None
    error: Optional[str] = None
    affected: Optional[int] = None
    role: Optional[str] = None
    verified: Optional[bool] = None
    has_pending_code: Optional[bool] = None
    expires_at: Optional[datetime.datetime] = None

    def to_dict(self) -> Dict[str, object]:
        """Serialise for transport, dropping unset fields."""
        data = remove_none_values(asdict(self))
        if self.expires_at is not None:
            data["expires_at"] = self.expires_at.isoformat()
        return data


class VerificationService:
    """Entry point for callers such as HTTP handlers or the CLI.

    Provider clients are built once from ``config`` (or injected) and held
    for the lifetime of the service.
    """

    def __init__(
        self,
        repositories: Mapping[Role, UserRepository],
        config: Optional[DeliveryConfig] = None,
        email_delivery: Optional[OTPDeliveryMethod] = None,
        sms_delivery: Optional[OTPDeliveryMethod] = None,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ):
        self.config = config or DeliveryConfig()
        self.clock = clock
        self.resolver = IdentityResolver(repositories, self.config.default_country_code)
        self.code_store = CodeStore(repositories, clock)
        self.email_delivery = email_delivery or EmailDeliveryMethod(self.config)
        self.sms_delivery = sms_delivery or SMSDeliveryMethod(self.config)

        for channel_name, (is_valid, message) in (
            ("Email", validate_email_configuration(self.config)),
            ("SMS", validate_sms_configuration(self.config)),
        ):
            if not is_valid:
                logger.warning(
                    "%s configuration warning: %s. Codes will be logged to console.",
                    channel_name,
                    message,
                )

    @classmethod
    def from_env(cls) -> "VerificationService":
        """Build a service over the default database and environment config."""
        return cls(build_peewee_repositories(), DeliveryConfig.from_env())

    def _delivery_for(self, channel: Channel) -> OTPDeliveryMethod:
        return self.email_delivery if channel == Channel.EMAIL else self.sms_delivery

    def _send_message(
        self, channel: Channel, delivery: DeliveryResult, destination: str
    ) -> str:
        masked = mask_identifier(destination)
        if delivery.delivered:
            return f"Verification code sent to {masked}"
        if delivery.attempted:
            return (
                f"Verification code found in database for {masked}, but delivery "
                "could not be confirmed. Please try again shortly."
            )
        return (
            f"Verification code found in database for {masked}. "
            f"{channel.value.capitalize()} delivery is not configured; "
            "the code was written to the server log."
        )

    def send_otp(
        self,
        identifier: str,
        role: Union[Role, str, None] = None,
        user_id=None,
        purpose: Union[Purpose, str, None] = None,
        channel: Union[Channel, str, None] = None,
    ) -> VerificationResult:
        """Deliver the stored, live code for an identifier.

        Args:
            identifier: Email address or phone number.
            role: Restrict lookup to one role store.
            user_id: Look up by id within ``role``.
            purpose: Why the code was requested. Defaults to registration.
            channel: Email or mobile. Inferred from ``identifier`` if omitted.

        Returns:
            VerificationResult: ``success`` is True whenever a live code
            exists, even if the provider failed; see ``delivered``.
        """
        logger.debug("Sending OTP")

        try:
            role = coerce_enum(Role, role)
            purpose = coerce_enum(Purpose, purpose) or Purpose.REGISTRATION
            channel = coerce_enum(Channel, channel) or infer_channel(identifier)

            try:
                record = self.resolver.resolve(identifier, role, user_id, channel)
            except UserNotFoundError:
                return VerificationResult(success=False, message=USER_NOT_FOUND_SEND)

            try:
                stored = self.code_store.read_code(record, channel)
            except CodeUnusableError:
                return VerificationResult(success=False, message=NO_VALID_CODE)

            now = self.clock()
            context = MessageContext(
                name=record.display_name,
                code=stored.code,
                expiry_display=stored.expiry.strftime(EXPIRY_DISPLAY_FORMAT),
                expiry_minutes=stored.minutes_remaining(now),
            )
            content = render(
                record.role, purpose, context, channel, self.config.company_name
            )

            destination = record.destination_for(channel) or identifier
            delivery = self._delivery_for(channel).send(destination, content)

            if delivery.attempted and not delivery.delivered:
                logger.warning(
                    "Provider failed to deliver %s code for %s record %s",
                    channel.value,
                    record.role.value,
                    record.id,
                )

            return VerificationResult(
                success=True,
                message=self._send_message(channel, delivery, destination),
                status=VerificationStatus.PENDING.value,
                delivered=delivery.delivered,
                delivered_via=delivery.provider.value,
                role=record.role.value,
                code=None if self.config.is_production else stored.code,
            )

        except InvalidRequestError as e:
            logger.info("Rejected send request: %s", e)
            return VerificationResult(success=False, message=str(e))
        except Exception as e:
            logger.exception("OTP send error for %s", mask_identifier(identifier))
            return VerificationResult(
                success=False,
                message="Failed to send verification code",
                error=str(e),
            )

    def verify_otp(
        self,
        identifier: str,
        code: str,
        role: Union[Role, str, None] = None,
        user_id=None,
        channel: Union[Channel, str, None] = None,
    ) -> VerificationResult:
        """Check a code against the stored one and mark the channel verified.

        Already verified channels are approved without comparing the code.
        """
        logger.debug("Verifying OTP")
        rejected = VerificationStatus.REJECTED.value

        try:
            role = coerce_enum(Role, role)
            channel = coerce_enum(Channel, channel) or infer_channel(identifier)

            try:
                record = self.resolver.resolve(identifier, role, user_id, channel)
            except UserNotFoundError:
                return VerificationResult(
                    success=False, message=USER_NOT_FOUND_VERIFY, status=rejected
                )

            channel_name = CHANNEL_NAMES[channel]

            if record.is_verified(channel):
                logger.info(
                    "%s already verified for %s record %s",
                    channel.value,
                    record.role.value,
                    record.id,
                )
                return VerificationResult(
                    success=True,
                    message=f"{channel_name} already verified",
                    status=VerificationStatus.APPROVED.value,
                    role=record.role.value,
                )

            stored_code = record.code_for(channel)
            supplied = (code or "").strip()
            if stored_code is None or not hmac.compare_digest(
                stored_code.encode("utf-8"), supplied.encode("utf-8")
            ):
                logger.warning(
                    "Incorrect %s code for %s record %s",
                    channel.value,
                    record.role.value,
                    record.id,
                )
                return VerificationResult(
                    success=False, message=INVALID_CODE, status=rejected
                )

            if not is_code_usable(stored_code, record.expiry_for(channel), self.clock()):
                logger.info(
                    "Expired %s code for %s record %s",
                    channel.value,
                    record.role.value,
                    record.id,
                )
                return VerificationResult(
                    success=False, message=EXPIRED_CODE, status=rejected
                )

            self.code_store.mark_verified(record, channel)

            return VerificationResult(
                success=True,
                message=f"{channel_name} verified successfully",
                status=VerificationStatus.APPROVED.value,
                role=record.role.value,
            )

        except InvalidRequestError as e:
            logger.info("Rejected verify request: %s", e)
            return VerificationResult(success=False, message=str(e), status=rejected)
        except Exception as e:
            logger.exception("OTP verify error for %s", mask_identifier(identifier))
            return VerificationResult(
                success=False,
                message="Failed to verify code",
                error=str(e),
            )

    def cancel_verification(
        self,
        identifier: str,
        role: Union[Role, str, None] = None,
        user_id=None,
        channel: Union[Channel, str, None] = None,
    ) -> VerificationResult:
        """Clear pending codes for an identifier.

        Without ``role`` or ``user_id`` every store holding the identifier is
        cleared, not just the first match.
        """
        logger.debug("Cancelling verification")

        try:
            role = coerce_enum(Role, role)
            channel = coerce_enum(Channel, channel) or infer_channel(identifier)

            records = self.resolver.resolve_all(identifier, role, user_id, channel)
            affected = sum(
                self.code_store.clear_code(record, channel) for record in records
            )

            logger.info(
                "Cancelled %s verification for %s: %d record(s) cleared",
                channel.value,
                mask_identifier(identifier),
                affected,
            )
            return VerificationResult(
                success=True,
                message=(
                    "Verification cancelled successfully. "
                    f"{affected} pending code(s) removed."
                ),
                affected=affected,
            )

        except InvalidRequestError as e:
            logger.info("Rejected cancel request: %s", e)
            return VerificationResult(success=False, message=str(e))
        except Exception as e:
            logger.exception("Cancel verification error for %s", mask_identifier(identifier))
            return VerificationResult(
                success=False,
                message="Failed to cancel verification",
                error=str(e),
            )

    def get_verification_status(
        self,
        identifier: str,
        role: Union[Role, str, None] = None,
        user_id=None,
        channel: Union[Channel, str, None] = None,
    ) -> VerificationResult:
        """Report whether a channel is verified and whether a live code exists."""
        try:
            role = coerce_enum(Role, role)
            channel = coerce_enum(Channel, channel) or infer_channel(identifier)

            try:
                record = self.resolver.resolve(identifier, role, user_id, channel)
            except UserNotFoundError:
                return VerificationResult(success=False, message=USER_NOT_FOUND_VERIFY)

            return self._status_for(record, channel)

        except InvalidRequestError as e:
            return VerificationResult(success=False, message=str(e))
        except Exception as e:
            logger.exception("Verification status error for %s", mask_identifier(identifier))
            return VerificationResult(
                success=False,
                message="Failed to fetch verification status",
                error=str(e),
            )

    def _status_for(self, record: UserRecord, channel: Channel) -> VerificationResult:
        expiry = record.expiry_for(channel)
        has_pending = is_code_usable(record.code_for(channel), expiry, self.clock())
        verified = record.is_verified(channel)

        if verified:
            status = VerificationStatus.APPROVED.value
        elif has_pending:
            status = VerificationStatus.PENDING.value
        else:
            status = None

        return VerificationResult(
            success=True,
            message=f"{CHANNEL_NAMES[channel]} verification status retrieved",
            status=status,
            role=record.role.value,
            verified=verified,
            has_pending_code=has_pending,
            expires_at=expiry if has_pending else None,
        )
