# SPDX-License-Identifier: GPL-3.0-only
"""Render role- and purpose-specific verification messages."""

from dataclasses import dataclass
from typing import Optional

from otp_core import email_templates, sms_templates
from otp_core.types import Channel, Purpose, Role

DEFAULT_NAMES = {
    Role.CUSTOMER: "Customer",
    Role.VENDOR: "Vendor",
    Role.ADMIN: "Administrator",
}

EMAIL_SUBJECTS = {
    Role.CUSTOMER: "{company} - Customer Account Verification",
    Role.VENDOR: "{company} - Vendor Account Verification",
    Role.ADMIN: "{company} - Admin Access Verification",
}


@dataclass(frozen=True)
class MessageContext:
    """Values substituted into a message."""

    name: Optional[str]
    code: str
    expiry_display: str
    expiry_minutes: int


@dataclass(frozen=True)
class RenderedContent:
    """A message ready for a delivery adapter.

    ``subject`` and ``text`` are only set for email; ``body`` is HTML for
    email and plain text for SMS.
    """

    body: str
    subject: Optional[str] = None
    text: Optional[str] = None


def _email_text(role: Role, name: str, context: MessageContext, company: str) -> str:
    return (
        f"Hello {name},\n\n"
        f"Your verification code for {company} ({role.value}) is: {context.code}\n\n"
        f"This code expires at {context.expiry_display}. "
        "Never share this code with anyone.\n"
    )


def render_email(
    role: Role, purpose: Purpose, context: MessageContext, company_name: str
) -> RenderedContent:
    name = context.name or DEFAULT_NAMES[role]

    if role == Role.CUSTOMER:
        html = email_templates.customer_verification_email(
            name, context.code, purpose, context.expiry_display, company_name
        )
    elif role == Role.VENDOR:
        html = email_templates.vendor_verification_email(
            name, context.code, purpose, context.expiry_display, company_name
        )
    elif role == Role.ADMIN:
        html = email_templates.admin_verification_email(
            name, context.code, context.expiry_display, company_name
        )
    else:
        raise ValueError(f"Unsupported user role: {role}")

    return RenderedContent(
        body=html,
        subject=EMAIL_SUBJECTS[role].format(company=company_name),
        text=_email_text(role, name, context, company_name),
    )


def render_sms(
    role: Role, purpose: Purpose, context: MessageContext, company_name: str
) -> RenderedContent:
    name = context.name or DEFAULT_NAMES[role]

    if role == Role.CUSTOMER:
        body = sms_templates.customer_otp_sms(
            name, context.code, context.expiry_minutes, company_name
        )
    elif role == Role.VENDOR:
        body = sms_templates.vendor_otp_sms(
            name, context.code, context.expiry_minutes, purpose, company_name
        )
    elif role == Role.ADMIN:
        body = sms_templates.admin_otp_sms(
            name, context.code, context.expiry_minutes, company_name
        )
    else:
        raise ValueError(f"Unsupported user role: {role}")

    return RenderedContent(body=sms_templates.fit_sms(body))


def render(
    role: Role,
    purpose: Purpose,
    context: MessageContext,
    channel: Channel,
    company_name: str = "E-Commerce Platform",
) -> RenderedContent:
    """Render the verification message for a role, purpose and channel."""
    if channel == Channel.EMAIL:
        return render_email(role, purpose, context, company_name)
    return render_sms(role, purpose, context, company_name)
