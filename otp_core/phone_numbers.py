# SPDX-License-Identifier: GPL-3.0-only
"""Phone number formatting and validation helpers."""

import re
from typing import Optional, Tuple

import phonenumbers
from phonenumbers import geocoder

from base_logger import get_logger

DEFAULT_COUNTRY_CODE = "91"

LOCAL_MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")
NON_DIGITS = re.compile(r"\D")

logger = get_logger(__name__)


def format_phone_number(
    phone_number: str, country_code: str = DEFAULT_COUNTRY_CODE
) -> str:
    """Format a phone number into E.164-style form.

    Args:
        phone_number: Number as typed by the user, with or without a prefix.
        country_code: Calling code prepended to 10-digit local numbers.

    Returns:
        str: The number with a leading ``+``.

    Examples:
        >>> format_phone_number("9876543210")
        '+919876543210'
        >>> format_phone_number("919876543210")
        '+919876543210'
    """
    cleaned = NON_DIGITS.sub("", phone_number)
    prefixed_length = len(country_code) + 10

    if len(cleaned) == 10:
        return f"+{country_code}{cleaned}"
    if len(cleaned) == prefixed_length and cleaned.startswith(country_code):
        return f"+{cleaned}"
    if len(cleaned) == prefixed_length + 1 and cleaned.startswith(country_code):
        return f"+{cleaned[:prefixed_length]}"

    return phone_number if phone_number.startswith("+") else f"+{cleaned}"


def is_valid_local_mobile(
    phone_number: str, country_code: str = DEFAULT_COUNTRY_CODE
) -> bool:
    """Check whether a number is a valid local mobile number.

    Accepts a bare 10-digit mobile number starting with 6-9, or the same
    number prefixed with ``country_code`` (with or without ``+``).
    """
    cleaned = NON_DIGITS.sub("", phone_number)

    if len(cleaned) == 10:
        return bool(LOCAL_MOBILE_PATTERN.match(cleaned))

    if len(cleaned) == len(country_code) + 10 and cleaned.startswith(country_code):
        return bool(LOCAL_MOBILE_PATTERN.match(cleaned[len(country_code) :]))

    return False


def phone_lookup_variants(
    phone_number: str, country_code: str = DEFAULT_COUNTRY_CODE
) -> Tuple[str, ...]:
    """Return the distinct spellings a stored phone number may have."""
    stripped = phone_number.strip()
    formatted = format_phone_number(stripped, country_code)
    variants = [stripped, formatted, formatted.lstrip("+")]
    if formatted.startswith(f"+{country_code}"):
        variants.append(formatted[len(country_code) + 1 :])

    return tuple(dict.fromkeys(v for v in variants if v))


def get_phonenumber_region_code(
    phone_number: str,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Get the region code for a given phone number.

    Args:
        phone_number (str): The phone number in E.164 format.

    Returns:
        tuple: The region code and country name, or ``(None, None)`` when the
        number cannot be parsed.
    """
    try:
        parsed_number = phonenumbers.parse(phone_number)
    except phonenumbers.NumberParseException as e:
        logger.debug("Unable to parse phone number for region lookup: %s", e)
        return None, None

    region_code = phonenumbers.region_code_for_number(parsed_number)
    country_name = geocoder.description_for_number(parsed_number, "en")
    return region_code, country_name
