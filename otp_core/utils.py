# SPDX-License-Identifier: GPL-3.0-only
"""Utilities module."""

import os
import re
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

import mysql.connector
from peewee import DatabaseError

from base_logger import get_logger
from otp_core.exceptions import InvalidRequestError

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATABASE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_$]{1,64}$")

E = TypeVar("E", bound=Enum)


def create_tables(models: List[Any]) -> List[str]:
    """Create the missing tables for the role models.

    Models are grouped by the database they are bound to, so a test database
    bound with ``Database.bind`` is honoured.

    Args:
        models: Peewee model classes, e.g. ``USER_MODELS``.

    Returns:
        list: Names of the tables that were created.

    Raises:
        DatabaseError: If the database rejects the DDL.
    """
    if not models:
        logger.warning("No models provided for table creation.")
        return []

    by_database: Dict[Any, List[Any]] = {}
    for model in models:
        by_database.setdefault(model._meta.database, []).append(model)

    created = []
    for database, bound_models in by_database.items():
        try:
            with database.atomic():
                existing = set(database.get_tables())
                missing = [
                    m for m in bound_models if m._meta.table_name not in existing
                ]
                if missing:
                    database.create_tables(missing)
        except DatabaseError as e:
            logger.error("Could not create user tables: %s", e)
            raise

        created.extend(m._meta.table_name for m in missing)

    if created:
        logger.info("Created tables: %s", ", ".join(created))
    else:
        logger.debug("All user tables already exist.")
    return created


def ensure_database_exists(
    host: str, user: str, password: str, database_name: str
) -> Callable:
    """Decorator that creates the MySQL schema before connecting to it.

    Args:
        host: MySQL server host address.
        user: MySQL username.
        password: MySQL password.
        database_name: Schema holding the user tables.

    Raises:
        ValueError: If ``database_name`` is not a plain MySQL identifier.
    """
    if not DATABASE_NAME_PATTERN.match(database_name or ""):
        raise ValueError(f"Invalid MySQL database name '{database_name}'.")

    statement = (
        f"CREATE DATABASE IF NOT EXISTS `{database_name}` "
        "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
    )

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                with mysql.connector.connect(
                    host=host, user=user, password=password
                ) as connection:
                    with connection.cursor() as cursor:
                        cursor.execute(statement)
            except mysql.connector.Error as error:
                logger.error("Could not create database '%s': %s", database_name, error)

            return func(*args, **kwargs)

        return wrapper

    return decorator


def get_configs(config_name: str, strict: bool = False, default_value: str = "") -> str:
    """Read a setting from the environment.

    Args:
        config_name: Environment variable name.
        strict: Require the variable to be present and non-blank.
        default_value: Returned when the variable is unset or empty.

    Raises:
        KeyError: If ``strict`` and the variable is unset.
        ValueError: If ``strict`` and the variable is blank.
    """
    value = os.environ.get(config_name)

    if not strict:
        return value or default_value

    if value is None:
        logger.error("Required setting '%s' is not set.", config_name)
        raise KeyError(config_name)
    if not value.strip():
        logger.error("Required setting '%s' is empty.", config_name)
        raise ValueError(f"Configuration '{config_name}' is missing or empty.")
    return value


def get_int_config(key: str, default_value: int) -> int:
    """Retrieve config value as integer, falling back on invalid input."""
    value = get_configs(key)
    if not value:
        return default_value

    try:
        return int(value.strip())
    except ValueError:
        logger.warning(
            "Configuration '%s' is not an integer: %r. Using %d.",
            key,
            value,
            default_value,
        )
        return default_value


def set_configs(config_name: str, config_value: Any) -> None:
    """Write a setting to the environment. Booleans become ``true``/``false``."""
    if not config_name:
        raise ValueError("Cannot set a configuration without a name.")

    if isinstance(config_value, bool):
        config_value = "true" if config_value else "false"
    os.environ[config_name] = str(config_value)


def remove_none_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Remove None values from a dictionary."""
    return {k: v for k, v in values.items() if v is not None}


def coerce_enum(enum_cls: Type[E], value: Union[E, str, None]) -> Optional[E]:
    """Convert a plain string to a member of ``enum_cls``.

    Args:
        enum_cls: Target enum class.
        value: Enum member, its value, or None.

    Returns:
        Enum member or None.

    Raises:
        InvalidRequestError: If the string is not a value of ``enum_cls``.
    """
    if value is None or isinstance(value, enum_cls):
        return value

    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidRequestError(
            f"Invalid {enum_cls.__name__.lower()} '{value}'. Expected one of: {allowed}."
        ) from e


def is_valid_email(email: str) -> bool:
    """Check if email is a plausible address."""
    return bool(email) and bool(EMAIL_PATTERN.match(email.strip()))


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address."""
    return email.strip().lower()


def mask_identifier(identifier: str) -> str:
    """Mask an email or phone number for logging.

    Keeps the first two characters of the local part (or the last four digits
    of a phone number) and replaces the rest with asterisks.
    """
    if not identifier:
        return ""

    if "@" in identifier:
        local, _, domain = identifier.partition("@")
        return f"{local[:2]}{'*' * max(len(local) - 2, 1)}@{domain}"

    visible = identifier[-4:]
    return f"{'*' * max(len(identifier) - 4, 1)}{visible}"
