# SPDX-License-Identifier: GPL-3.0-only
"""Per-role user record repositories."""

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Type

from peewee import DoesNotExist, Model, fn

from base_logger import get_logger
from otp_core.types import Channel, Role
from otp_core.utils import normalize_email

logger = get_logger(__name__)


@dataclass(frozen=True)
class UserRecord:
    """Verification-relevant view of a user in one role store."""

    id: int
    role: Role
    display_name: str
    email: Optional[str]
    phone_number: Optional[str]
    email_verified: bool = False
    mobile_verified: bool = False
    email_verification_code: Optional[str] = None
    email_verification_expiry: Optional[datetime.datetime] = None
    mobile_verification_code: Optional[str] = None
    mobile_verification_expiry: Optional[datetime.datetime] = None

    def is_verified(self, channel: Channel) -> bool:
        if channel == Channel.EMAIL:
            return self.email_verified
        return self.mobile_verified

    def code_for(self, channel: Channel) -> Optional[str]:
        if channel == Channel.EMAIL:
            return self.email_verification_code
        return self.mobile_verification_code

    def expiry_for(self, channel: Channel) -> Optional[datetime.datetime]:
        if channel == Channel.EMAIL:
            return self.email_verification_expiry
        return self.mobile_verification_expiry

    def destination_for(self, channel: Channel) -> Optional[str]:
        if channel == Channel.EMAIL:
            return self.email
        return self.phone_number


class UserRepository(ABC):
    """Record store for a single role.

    Writes touch only the verification fields. Code and expiry are always
    written together.
    """

    role: Role

    @abstractmethod
    def find_by_id(self, user_id) -> Optional[UserRecord]:
        """Fetch a record by primary key."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Fetch a record by email address, ignoring case."""

    @abstractmethod
    def find_by_phone(self, phone_number: str) -> Optional[UserRecord]:
        """Fetch a record by stored mobile number."""

    @abstractmethod
    def set_code(
        self,
        user_id,
        channel: Channel,
        code: str,
        expiry: datetime.datetime,
    ) -> int:
        """Store a code and its expiry. Used by the external issuing step."""

    @abstractmethod
    def clear_code(self, user_id, channel: Channel) -> int:
        """Clear a pending code and expiry.

        Returns:
            int: 1 if a pending code was cleared, else 0.
        """

    @abstractmethod
    def mark_verified(self, user_id, channel: Channel) -> int:
        """Set the verified flag and clear code and expiry in one update."""


CHANNEL_FIELDS = {
    Channel.EMAIL: (
        "email_verification_code",
        "email_verification_expiry",
        "is_email_verified",
    ),
    Channel.MOBILE: (
        "mobile_verification_code",
        "mobile_verification_expiry",
        "is_mobile_verified",
    ),
}


class PeeweeUserRepository(UserRepository):
    """Repository backed by one of the peewee role models."""

    def __init__(self, model: Type[Model], role: Role):
        self.model = model
        self.role = role

    def __repr__(self):
        return f"<PeeweeUserRepository role={self.role.value} table={self.model._meta.table_name}>"

    def _to_record(self, row) -> UserRecord:
        return UserRecord(
            id=row.id,
            role=self.role,
            display_name=row.first_name,
            email=row.email,
            phone_number=row.mobile_no,
            email_verified=bool(row.is_email_verified),
            mobile_verified=bool(row.is_mobile_verified),
            email_verification_code=row.email_verification_code,
            email_verification_expiry=row.email_verification_expiry,
            mobile_verification_code=row.mobile_verification_code,
            mobile_verification_expiry=row.mobile_verification_expiry,
        )

    def _get_or_none(self, *expressions) -> Optional[UserRecord]:
        row = self.model.get_or_none(*expressions)
        return self._to_record(row) if row else None

    def find_by_id(self, user_id) -> Optional[UserRecord]:
        try:
            row = self.model.get_by_id(user_id)
        except (DoesNotExist, ValueError, TypeError):
            return None
        return self._to_record(row)

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        return self._get_or_none(
            fn.LOWER(self.model.email) == normalize_email(email)
        )

    def find_by_phone(self, phone_number: str) -> Optional[UserRecord]:
        return self._get_or_none(self.model.mobile_no == phone_number)

    def _update(self, user_id, values: Dict[str, object], *conditions) -> int:
        query = self.model.update(**values).where(self.model.id == user_id, *conditions)
        rows = query.execute()
        logger.debug(
            "Updated %d %s record(s): %s", rows, self.role.value, sorted(values)
        )
        return rows

    def set_code(self, user_id, channel, code, expiry) -> int:
        if not code or expiry is None:
            raise ValueError("A verification code requires both a value and an expiry.")

        code_field, expiry_field, _ = CHANNEL_FIELDS[channel]
        return self._update(user_id, {code_field: code, expiry_field: expiry})

    def clear_code(self, user_id, channel) -> int:
        code_field, expiry_field, _ = CHANNEL_FIELDS[channel]
        pending = getattr(self.model, code_field).is_null(False) | getattr(
            self.model, expiry_field
        ).is_null(False)
        return self._update(user_id, {code_field: None, expiry_field: None}, pending)

    def mark_verified(self, user_id, channel) -> int:
        code_field, expiry_field, verified_field = CHANNEL_FIELDS[channel]
        return self._update(
            user_id, {verified_field: True, code_field: None, expiry_field: None}
        )


def build_peewee_repositories() -> Dict[Role, UserRepository]:
    """Repositories over the default Customer, Vendor and Admin tables."""
    from otp_core.db_models import Admin, Customer, Vendor

    return {
        Role.CUSTOMER: PeeweeUserRepository(Customer, Role.CUSTOMER),
        Role.VENDOR: PeeweeUserRepository(Vendor, Role.VENDOR),
        Role.ADMIN: PeeweeUserRepository(Admin, Role.ADMIN),
    }
