# SPDX-License-Identifier: GPL-3.0-only
"""Plain-text SMS bodies for verification codes.

Only the vendor template varies its wording by purpose; the customer and
admin templates take no purpose at all.
"""

from otp_core.types import Purpose

MAX_SMS_LENGTH = 320
MAX_NAME_LENGTH = 30

VENDOR_PURPOSE_TEXTS = {
    Purpose.REGISTRATION: "complete your vendor registration",
    Purpose.LOGIN: "log into your vendor account",
    Purpose.PASSWORD_RESET: "reset your vendor password",
    Purpose.PROFILE_UPDATE: "update your vendor profile",
}


def _short_name(name: str) -> str:
    name = " ".join(name.split())
    return name[:MAX_NAME_LENGTH]


def customer_otp_sms(
    customer_name: str, otp: str, expiry_minutes: int, company_name: str
) -> str:
    return (
        f"Hello {_short_name(customer_name)}! Your verification code is: {otp}. "
        f"This code expires in {expiry_minutes} minutes. "
        f"Do not share this code with anyone. - {company_name}"
    )


def vendor_otp_sms(
    vendor_name: str,
    otp: str,
    expiry_minutes: int,
    purpose: Purpose,
    company_name: str,
) -> str:
    purpose_text = VENDOR_PURPOSE_TEXTS.get(purpose, "verify your vendor account")
    return (
        f"Hello {_short_name(vendor_name)}! Your OTP to {purpose_text} is: {otp}. "
        f"This code expires in {expiry_minutes} minutes. "
        f"Keep it secure and do not share it. - {company_name} Vendor Portal"
    )


def admin_otp_sms(
    admin_name: str, otp: str, expiry_minutes: int, company_name: str
) -> str:
    return (
        f"ADMIN ALERT: {_short_name(admin_name)}, your secure verification code is: "
        f"{otp}. Expires in {expiry_minutes} mins. Keep confidential, never share it. "
        f"- {company_name} Admin Portal"
    )


def fit_sms(body: str) -> str:
    """Trim a message to the SMS length limit."""
    if len(body) <= MAX_SMS_LENGTH:
        return body
    return body[: MAX_SMS_LENGTH - 3].rstrip() + "..."
