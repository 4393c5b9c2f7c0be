# SPDX-License-Identifier: GPL-3.0-only
"""Exceptions raised inside the verification core."""


class VerificationError(Exception):
    """Base class for expected verification failures."""


class UserNotFoundError(VerificationError):
    """No role store holds a record for the identifier."""


class CodeUnusableError(VerificationError):
    """The record exists but holds no live code for the channel."""


class InvalidRequestError(VerificationError, ValueError):
    """Caller input was rejected before any lookup, e.g. an unknown role."""
