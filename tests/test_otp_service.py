"""Test module for the verification service."""

from datetime import timedelta

import pytest
import requests

from conftest import NOW, FakeSession, RecordingDelivery, fixed_clock
from otp_core.config import DeliveryConfig
from otp_core.delivery import EmailDeliveryMethod
from otp_core.otp_service import VerificationService
from otp_core.types import Channel, DeliveryProvider, Role

LIVE = NOW + timedelta(minutes=10)


def live_code_fields(channel, code="123456", expiry=LIVE):
    prefix = "email" if channel == Channel.EMAIL else "mobile"
    return {
        f"{prefix}_verification_code": code,
        f"{prefix}_verification_expiry": expiry,
    }


def identifier_for(channel):
    return "user@example.com" if channel == Channel.EMAIL else "9876543210"


def user_fields(channel, **extra):
    fields = {"email": "user@example.com", "mobile_no": "+919876543210"}
    fields.update(extra)
    return fields


@pytest.fixture()
def email_delivery():
    return RecordingDelivery(provider=DeliveryProvider.SENDGRID)


@pytest.fixture()
def sms_delivery():
    return RecordingDelivery(provider=DeliveryProvider.TWILIO)


@pytest.fixture()
def service(repositories, email_delivery, sms_delivery):
    return VerificationService(
        repositories,
        DeliveryConfig(company_name="ShopHub"),
        email_delivery=email_delivery,
        sms_delivery=sms_delivery,
        clock=fixed_clock,
    )


@pytest.fixture()
def console_service(repositories):
    return VerificationService(repositories, DeliveryConfig(), clock=fixed_clock)


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("channel", list(Channel))
def test_send_without_code_fails(service, make_user, email_delivery, sms_delivery, role, channel):
    """Test send reports no valid code for every role and channel."""
    make_user(role, **user_fields(channel))

    result = service.send_otp(identifier_for(channel), role=role)

    assert result.success is False
    assert result.message == (
        "No valid verification code found. "
        "Please generate a new verification code from your profile."
    )
    assert email_delivery.sent == [] and sms_delivery.sent == []


def test_send_without_code_fails_in_console_mode(console_service, make_customer):
    """Test missing code is reported without any provider configured."""
    make_customer(email="user@example.com")

    result = console_service.send_otp("user@example.com")

    assert result.success is False
    assert "No valid verification code" in result.message


def test_send_with_expired_code_fails(service, make_customer):
    """Test an expired code is not redelivered."""
    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL, expiry=NOW)))

    assert service.send_otp("user@example.com").success is False


def test_send_unknown_user(service):
    """Test send for unregistered identifiers."""
    result = service.send_otp("ghost@example.com")

    assert result.success is False
    assert result.message == "User not found. Please register first."


def test_send_email_delivered(service, make_vendor, email_delivery):
    """Test a live email code is rendered and delivered."""
    make_vendor(first_name="Vera", **user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    result = service.send_otp("user@example.com", purpose="password-reset")

    assert result.success is True
    assert result.status == "pending"
    assert result.delivered is True
    assert result.delivered_via == "sendgrid"
    assert result.role == "vendor"
    assert result.message.startswith("Verification code sent to")
    assert result.code == "123456"

    destination, content = email_delivery.sent[0]
    assert destination == "user@example.com"
    assert content.subject == "ShopHub - Vendor Account Verification"
    assert "reset your vendor password" in content.body
    assert "Hello Vera!" in content.body


def test_send_sms_uses_stored_number(service, make_admin, sms_delivery):
    """Test SMS goes to the stored number with the remaining minutes."""
    make_admin(first_name="Root", **user_fields(Channel.MOBILE, **live_code_fields(Channel.MOBILE)))

    result = service.send_otp("9876543210")

    assert result.success is True
    assert result.delivered_via == "twilio"

    destination, content = sms_delivery.sent[0]
    assert destination == "+919876543210"
    assert content.body.startswith("ADMIN ALERT: Root")
    assert "Expires in 10 mins" in content.body


def test_send_never_mints_a_code(service, make_customer):
    """Test send leaves the stored code untouched."""
    from otp_core.db_models import Customer

    customer = make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    service.send_otp("user@example.com")
    service.send_otp("user@example.com")

    row = Customer.get_by_id(customer.id)
    assert row.email_verification_code == "123456"
    assert row.email_verification_expiry == LIVE


def test_send_console_fallback(console_service, make_customer):
    """Test unconfigured providers fall back to the log."""
    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    result = console_service.send_otp("user@example.com")

    assert result.success is True
    assert result.delivered is False
    assert result.delivered_via == "console"
    assert "found in database" in result.message


def test_send_provider_failure_still_succeeds(repositories, make_customer):
    """Test email provider errors do not fail the send."""
    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))
    config = DeliveryConfig(sendgrid_api_key="SG.key")
    failing = EmailDeliveryMethod(
        config, session=FakeSession(error=requests.exceptions.ConnectionError("down"))
    )
    service = VerificationService(
        repositories, config, email_delivery=failing, clock=fixed_clock
    )

    result = service.send_otp("user@example.com")

    assert result.success is True
    assert result.delivered is False
    assert "found in database" in result.message
    assert "could not be confirmed" in result.message


def test_send_hides_code_in_production(repositories, make_customer, email_delivery):
    """Test the raw code is only returned outside production."""
    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))
    service = VerificationService(
        repositories,
        DeliveryConfig(mode="production"),
        email_delivery=email_delivery,
        clock=fixed_clock,
    )

    result = service.send_otp("user@example.com")

    assert result.success is True
    assert result.code is None
    assert "code" not in result.to_dict()


def test_send_invalid_role(service):
    """Test unknown role strings are rejected without raising."""
    result = service.send_otp("user@example.com", role="superuser")

    assert result.success is False
    assert "Invalid role" in result.message


def test_send_user_id_without_role(service):
    """Test id lookups need a role."""
    result = service.send_otp("user@example.com", user_id=1)

    assert result.success is False
    assert "role is required" in result.message


def test_send_by_user_id(service, make_customer, make_vendor, email_delivery):
    """Test id lookup picks the record in the given role store."""
    make_customer(**user_fields(Channel.EMAIL))
    vendor = make_vendor(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    result = service.send_otp("user@example.com", role=Role.VENDOR, user_id=vendor.id)

    assert result.success is True
    assert result.role == "vendor"


def test_verify_round_trip(service, make_customer):
    """Test verify approves, clears the code and stays approved."""
    from otp_core.db_models import Customer

    customer = make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    first = service.verify_otp("user@example.com", "123456")
    second = service.verify_otp("user@example.com", "123456")

    assert first.success is True
    assert first.status == "approved"
    assert second.success is True
    assert second.status == "approved"

    row = Customer.get_by_id(customer.id)
    assert row.is_email_verified is True
    assert row.email_verification_code is None
    assert row.email_verification_expiry is None


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("channel", list(Channel))
def test_verified_is_idempotent_for_any_code(service, make_user, role, channel):
    """Test verified channels approve any code without comparison."""
    flag = "is_email_verified" if channel == Channel.EMAIL else "is_mobile_verified"
    make_user(role, **user_fields(channel, **{flag: True}))

    for code in ("000000", "", "whatever"):
        result = service.verify_otp(identifier_for(channel), code, role=role)
        assert result.success is True
        assert result.status == "approved"


def test_verify_wrong_code(service, make_customer):
    """Test mismatched codes are rejected and the code is kept."""
    from otp_core.db_models import Customer

    customer = make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    result = service.verify_otp("user@example.com", "999999")

    assert result.success is False
    assert result.status == "rejected"
    assert result.message == "Invalid verification code."
    assert Customer.get_by_id(customer.id).email_verification_code == "123456"


def test_verify_without_stored_code(service, make_customer):
    """Test verify with nothing stored."""
    make_customer(**user_fields(Channel.MOBILE))

    result = service.verify_otp("9876543210", "123456")

    assert result.success is False
    assert result.message == "Invalid verification code."


def test_verify_expiry_equal_to_now_is_expired(service, make_vendor):
    """Test expiry equal to now is rejected as expired."""
    make_vendor(**user_fields(Channel.MOBILE, **live_code_fields(Channel.MOBILE, expiry=NOW)))

    result = service.verify_otp("+919876543210", "123456")

    assert result.success is False
    assert result.status == "rejected"
    assert result.message == "Verification code has expired. Please generate a new one."


def test_verify_unknown_user(service):
    """Test verify for unregistered identifiers."""
    result = service.verify_otp("ghost@example.com", "123456")

    assert result.success is False
    assert result.status == "rejected"
    assert result.message == "User not found."


def test_verify_mobile_leaves_email_untouched(service, make_customer):
    """Test channels are verified independently."""
    from otp_core.db_models import Customer

    fields = live_code_fields(Channel.EMAIL, code="111111")
    fields.update(live_code_fields(Channel.MOBILE, code="222222"))
    customer = make_customer(**user_fields(Channel.MOBILE, **fields))

    assert service.verify_otp("9876543210", "222222").success is True

    row = Customer.get_by_id(customer.id)
    assert row.is_mobile_verified is True
    assert row.is_email_verified is False
    assert row.email_verification_code == "111111"


def test_verify_repository_failure_is_reported(repositories, make_customer):
    """Test unexpected errors become failure results."""

    class BrokenRepository:
        role = Role.CUSTOMER

        def find_by_email(self, email):
            raise RuntimeError("database unreachable")

    broken = dict(repositories)
    broken[Role.CUSTOMER] = BrokenRepository()
    service = VerificationService(broken, DeliveryConfig(), clock=fixed_clock)

    result = service.verify_otp("user@example.com", "123456")

    assert result.success is False
    assert result.message == "Failed to verify code"
    assert result.error == "database unreachable"


def test_cancel_without_code(service, make_customer):
    """Test cancel with nothing pending succeeds with zero affected."""
    make_customer(**user_fields(Channel.EMAIL))

    result = service.cancel_verification("user@example.com")

    assert result.success is True
    assert result.affected == 0


def test_cancel_unknown_identifier(service):
    """Test cancel for an unknown identifier is not an error."""
    result = service.cancel_verification("ghost@example.com")

    assert result.success is True
    assert result.affected == 0


def test_cancel_clears_every_store(service, make_customer, make_vendor, make_admin):
    """Test cancel without a role clears all matching stores."""
    from otp_core.db_models import Admin, Customer, Vendor

    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))
    make_vendor(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))
    make_admin(**user_fields(Channel.EMAIL))

    result = service.cancel_verification("user@example.com")

    assert result.success is True
    assert result.affected == 2
    for model in (Customer, Vendor, Admin):
        row = model.get(model.email == "user@example.com")
        assert row.email_verification_code is None
        assert row.email_verification_expiry is None


def test_cancel_with_role_clears_one_store(service, make_customer, make_vendor):
    """Test a role hint narrows cancel to one store."""
    from otp_core.db_models import Customer

    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))
    make_vendor(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    result = service.cancel_verification("user@example.com", role="vendor")

    assert result.affected == 1
    assert Customer.get(Customer.email == "user@example.com").email_verification_code == "123456"


def test_send_after_cancel_has_no_code(service, make_customer):
    """Test a cancelled code can no longer be sent."""
    make_customer(**user_fields(Channel.MOBILE, **live_code_fields(Channel.MOBILE)))

    service.cancel_verification("9876543210")

    assert service.send_otp("9876543210").success is False


def test_verification_status(service, make_customer):
    """Test status reporting before and after verification."""
    make_customer(**user_fields(Channel.EMAIL, **live_code_fields(Channel.EMAIL)))

    pending = service.get_verification_status("user@example.com")
    assert pending.success is True
    assert pending.verified is False
    assert pending.has_pending_code is True
    assert pending.status == "pending"
    assert pending.to_dict()["expires_at"] == LIVE.isoformat()

    service.verify_otp("user@example.com", "123456")

    approved = service.get_verification_status("user@example.com")
    assert approved.verified is True
    assert approved.has_pending_code is False
    assert approved.status == "approved"


def test_verification_status_unknown_user(service):
    """Test status for unregistered identifiers."""
    assert service.get_verification_status("ghost@example.com").success is False


def test_result_to_dict_drops_unset_fields(service, make_customer):
    """Test serialised results omit fields that were never set."""
    make_customer(**user_fields(Channel.EMAIL))

    data = service.cancel_verification("user@example.com").to_dict()

    assert data == {
        "success": True,
        "message": "Verification cancelled successfully. 0 pending code(s) removed.",
        "affected": 0,
    }


def test_send_malformed_email(service):
    """Test malformed email identifiers are reported as request errors."""
    result = service.send_otp("not-an-email@", channel="email")

    assert result.success is False
    assert result.message == "Invalid email address format."
    assert result.error is None


def test_mixed_case_stored_email_round_trip(service, make_customer):
    """Test a mixed-case stored address can be sent to, verified and cancelled."""
    from otp_core.db_models import Customer

    customer = make_customer(
        email="User@Example.com", **live_code_fields(Channel.EMAIL)
    )

    sent = service.send_otp("User@Example.com")
    assert sent.success is True
    assert sent.role == "customer"

    status = service.get_verification_status("user@example.com")
    assert status.has_pending_code is True

    verified = service.verify_otp("USER@example.com", "123456")
    assert verified.success is True
    assert verified.status == "approved"
    assert Customer.get_by_id(customer.id).is_email_verified is True


def test_cancel_mixed_case_stored_email(service, make_vendor):
    """Test cancel clears a code stored on a mixed-case address."""
    make_vendor(email="Shop@Example.com", **live_code_fields(Channel.EMAIL))

    result = service.cancel_verification("shop@example.com")

    assert result.success is True
    assert result.affected == 1


class ValueErrorRepository:
    """Store whose lookups fail with a low-level conversion error."""

    role = Role.CUSTOMER

    def find_by_email(self, email):
        raise ValueError("invalid literal for int() with base 10: 'x'")

    def find_by_phone(self, phone_number):
        raise ValueError("invalid literal for int() with base 10: 'x'")


@pytest.fixture()
def value_error_service(repositories):
    broken = dict(repositories)
    broken[Role.CUSTOMER] = ValueErrorRepository()
    return VerificationService(broken, DeliveryConfig(), clock=fixed_clock)


@pytest.mark.parametrize(
    "operation, message",
    [
        (lambda s: s.send_otp("user@example.com"), "Failed to send verification code"),
        (lambda s: s.verify_otp("9876543210", "123456"), "Failed to verify code"),
        (lambda s: s.cancel_verification("user@example.com"), "Failed to cancel verification"),
        (
            lambda s: s.get_verification_status("9876543210"),
            "Failed to fetch verification status",
        ),
    ],
)
def test_internal_value_error_is_reported_as_failure(
    value_error_service, operation, message
):
    """Test store-level ValueErrors are not surfaced as user messages."""
    result = operation(value_error_service)

    assert result.success is False
    assert result.message == message
    assert result.error == "invalid literal for int() with base 10: 'x'"


def test_invalid_channel_is_a_request_error(service):
    """Test rejected input keeps its message and carries no error detail."""
    result = service.verify_otp("user@example.com", "123456", channel="fax")

    assert result.success is False
    assert result.status == "rejected"
    assert result.message.startswith("Invalid channel 'fax'")
    assert result.error is None
