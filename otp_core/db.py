# SPDX-License-Identifier: GPL-3.0-only
"""Database connection factory."""

from peewee import Database, SqliteDatabase
from playhouse.mysql_ext import MySQLConnectorDatabase

from base_logger import get_logger
from otp_core.utils import ensure_database_exists, get_configs

logger = get_logger(__name__)


def connect_to_mysql() -> Database:
    """Connect to MySQL, creating the database first if needed."""
    host = get_configs("MYSQL_HOST", strict=True)
    user = get_configs("MYSQL_USER", strict=True)
    password = get_configs("MYSQL_PASSWORD", strict=True)
    database_name = get_configs("MYSQL_DATABASE", strict=True)

    @ensure_database_exists(host, user, password, database_name)
    def _connect():
        return MySQLConnectorDatabase(
            database_name,
            host=host,
            user=user,
            password=password,
            charset="utf8mb4",
            collation="utf8mb4_unicode_ci",
        )

    logger.debug("Using MySQL database '%s' on %s", database_name, host)
    return _connect()


def connect_to_sqlite() -> Database:
    """Connect to a SQLite file, the default for local development."""
    path = get_configs("SQLITE_DATABASE_PATH", default_value="verification.db")
    logger.debug("Using SQLite database at %s", path)
    return SqliteDatabase(path, pragmas={"foreign_keys": 1})


def connect() -> Database:
    """Return the configured database. MySQL when MYSQL_HOST is set."""
    if get_configs("MYSQL_HOST"):
        return connect_to_mysql()
    return connect_to_sqlite()
