# SPDX-License-Identifier: GPL-3.0-only
"""Common type definitions for the verification core."""

from enum import Enum


class Role(Enum):
    """Principal types, one record store each."""

    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


# Identity resolution scans stores in this order.
ROLE_PRECEDENCE = (Role.CUSTOMER, Role.VENDOR, Role.ADMIN)


class Channel(Enum):
    """Delivery channels for verification codes."""

    EMAIL = "email"
    MOBILE = "mobile"


class Purpose(Enum):
    """Reasons a verification code is requested."""

    REGISTRATION = "registration"
    LOGIN = "login"
    PASSWORD_RESET = "password-reset"
    PROFILE_UPDATE = "profile-update"


class VerificationStatus(Enum):
    """Status values reported by the verification service."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DeliveryProvider(Enum):
    """Where a rendered message ended up."""

    SENDGRID = "sendgrid"
    TWILIO = "twilio"
    CONSOLE = "console"
