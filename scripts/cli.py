# SPDX-License-Identifier: GPL-3.0-only
"""Verification CLI"""

import argparse
import datetime
import json
import secrets
import string
import sys

from peewee import DatabaseError

from base_logger import get_logger
from otp_core.db_models import USER_MODELS
from otp_core.exceptions import InvalidRequestError, UserNotFoundError
from otp_core.identity import IdentityResolver, infer_channel
from otp_core.otp_service import VerificationService
from otp_core.repositories import build_peewee_repositories
from otp_core.types import Channel, Purpose, Role
from otp_core.utils import coerce_enum, create_tables, get_int_config

logger = get_logger("verification.cli")

ROLE_CHOICES = [role.value for role in Role]
CHANNEL_CHOICES = [channel.value for channel in Channel]
PURPOSE_CHOICES = [purpose.value for purpose in Purpose]

CODE_EXPIRY_MINUTES = get_int_config("CODE_EXPIRY_MINUTES", 10)


def generate_otp(length: int = 6) -> str:
    """Generate random numeric OTP."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def print_result(result) -> None:
    print(json.dumps(result.to_dict(), indent=2))
    sys.exit(0 if result.success else 1)


def init_db():
    """Create the role tables."""
    try:
        created = create_tables(USER_MODELS)
    except DatabaseError:
        logger.error("Database setup failed.")
        sys.exit(1)

    logger.info("Database tables are ready (%d created)", len(created))
    sys.exit(0)


def issue(identifier, role=None, channel=None, minutes=CODE_EXPIRY_MINUTES):
    """Write a fresh code onto a user record (for development only).

    This stands in for the registration and profile flows that normally
    issue codes.
    """
    repositories = build_peewee_repositories()
    resolver = IdentityResolver(repositories)
    channel = coerce_enum(Channel, channel) or infer_channel(identifier)

    try:
        record = resolver.resolve(identifier, coerce_enum(Role, role), channel=channel)
    except UserNotFoundError:
        logger.error("No user found for this identifier.")
        sys.exit(1)
    except InvalidRequestError as e:
        logger.error("%s", e)
        sys.exit(1)

    code = generate_otp()
    expiry = datetime.datetime.now() + datetime.timedelta(minutes=minutes)
    repositories[record.role].set_code(record.id, channel, code, expiry)

    logger.info(
        "Issued %s code for %s record %s, expires %s",
        channel.value,
        record.role.value,
        record.id,
        expiry.isoformat(timespec="seconds"),
    )
    sys.exit(0)


def main():
    """Entry function"""

    parser = argparse.ArgumentParser(description="Verification CLI")
    subparsers = parser.add_subparsers(dest="command", description="Expected commands")

    subparsers.add_parser("init-db", help="Creates the user tables.")

    def add_lookup_arguments(sub):
        sub.add_argument(
            "identifier", type=str, help="Email address or phone number."
        )
        sub.add_argument("-r", "--role", choices=ROLE_CHOICES, help="User role.")
        sub.add_argument("-u", "--user-id", help="User id (requires --role).")
        sub.add_argument("-c", "--channel", choices=CHANNEL_CHOICES, help="Channel.")

    issue_parser = subparsers.add_parser("issue", help="Issues a code (development).")
    issue_parser.add_argument("identifier", type=str, help="Email or phone number.")
    issue_parser.add_argument("-r", "--role", choices=ROLE_CHOICES, help="User role.")
    issue_parser.add_argument("-c", "--channel", choices=CHANNEL_CHOICES)
    issue_parser.add_argument(
        "-m", "--minutes", type=int, default=CODE_EXPIRY_MINUTES, help="Validity."
    )

    send_parser = subparsers.add_parser("send", help="Sends the stored code.")
    add_lookup_arguments(send_parser)
    send_parser.add_argument(
        "-p", "--purpose", choices=PURPOSE_CHOICES, help="Reason for the code."
    )

    verify_parser = subparsers.add_parser("verify", help="Verifies a code.")
    add_lookup_arguments(verify_parser)
    verify_parser.add_argument("code", type=str, help="Code entered by the user.")

    cancel_parser = subparsers.add_parser("cancel", help="Clears pending codes.")
    add_lookup_arguments(cancel_parser)

    status_parser = subparsers.add_parser("status", help="Shows verification state.")
    add_lookup_arguments(status_parser)

    args = parser.parse_args()

    if args.command == "init-db":
        init_db()
    elif args.command == "issue":
        issue(args.identifier, args.role, args.channel, args.minutes)
    elif args.command in ("send", "verify", "cancel", "status"):
        service = VerificationService.from_env()
        lookup = {
            "role": args.role,
            "user_id": args.user_id,
            "channel": args.channel,
        }
        if args.command == "send":
            print_result(
                service.send_otp(args.identifier, purpose=args.purpose, **lookup)
            )
        elif args.command == "verify":
            print_result(service.verify_otp(args.identifier, args.code, **lookup))
        elif args.command == "cancel":
            print_result(service.cancel_verification(args.identifier, **lookup))
        else:
            print_result(service.get_verification_status(args.identifier, **lookup))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
