# SPDX-License-Identifier: GPL-3.0-only
"""Read, clear and consume the verification code stored on a user record."""

import datetime
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from base_logger import get_logger
from otp_core.exceptions import CodeUnusableError
from otp_core.repositories import UserRecord, UserRepository
from otp_core.types import Channel, Role

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredCode:
    """A live code and the moment it stops being valid."""

    code: str
    expiry: datetime.datetime

    def minutes_remaining(self, now: datetime.datetime) -> int:
        seconds = (self.expiry - now).total_seconds()
        return max(1, -(-int(seconds) // 60))


def is_code_usable(
    code: Optional[str],
    expiry: Optional[datetime.datetime],
    now: datetime.datetime,
) -> bool:
    """A code is usable only if both fields are set and expiry is after now."""
    return code is not None and expiry is not None and expiry > now


class CodeStore:
    """Accessor for the code, expiry and verified fields of each channel.

    Codes are written by an external issuing step (registration or profile
    flows). This class never creates one.
    """

    def __init__(
        self,
        repositories: Mapping[Role, UserRepository],
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ):
        self.repositories = repositories
        self.clock = clock

    def read_code(self, record: UserRecord, channel: Channel) -> StoredCode:
        """Return the live code for a channel.

        Raises:
            CodeUnusableError: If the code or expiry is missing, or expired.
        """
        code = record.code_for(channel)
        expiry = record.expiry_for(channel)

        if not is_code_usable(code, expiry, self.clock()):
            logger.info(
                "No usable %s code on %s record %s",
                channel.value,
                record.role.value,
                record.id,
            )
            raise CodeUnusableError(
                f"No live {channel.value} code for {record.role.value} {record.id}"
            )

        return StoredCode(code=code, expiry=expiry)

    def clear_code(self, record: UserRecord, channel: Channel) -> int:
        """Clear code and expiry. Returns the number of records changed."""
        rows = self.repositories[record.role].clear_code(record.id, channel)
        if rows:
            logger.info(
                "Cleared %s code on %s record %s",
                channel.value,
                record.role.value,
                record.id,
            )
        return rows

    def mark_verified(self, record: UserRecord, channel: Channel) -> None:
        """Set the verified flag and clear the code in a single update."""
        rows = self.repositories[record.role].mark_verified(record.id, channel)
        if rows == 0:
            logger.error(
                "Failed to mark %s record %s verified - record may have been deleted",
                record.role.value,
                record.id,
            )
            raise RuntimeError("Verification update failed")

        logger.info(
            "%s verified for %s record %s",
            channel.value.capitalize(),
            record.role.value,
            record.id,
        )
