# SPDX-License-Identifier: GPL-3.0-only
"""Locate the user record that owns an email address or phone number."""

from typing import List, Mapping, Optional

from base_logger import get_logger
from otp_core.exceptions import InvalidRequestError, UserNotFoundError
from otp_core.phone_numbers import DEFAULT_COUNTRY_CODE, phone_lookup_variants
from otp_core.repositories import UserRecord, UserRepository
from otp_core.types import ROLE_PRECEDENCE, Channel, Role
from otp_core.utils import is_valid_email, mask_identifier, normalize_email

logger = get_logger(__name__)


def infer_channel(identifier: str) -> Channel:
    """Email when the identifier contains ``@``, otherwise mobile."""
    return Channel.EMAIL if "@" in identifier else Channel.MOBILE


class IdentityResolver:
    """Resolve identifiers across the role-partitioned stores.

    Without a role hint the stores are searched customer, vendor, then admin,
    and the first match wins.
    """

    def __init__(
        self,
        repositories: Mapping[Role, UserRepository],
        country_code: str = DEFAULT_COUNTRY_CODE,
    ):
        missing = [role.value for role in ROLE_PRECEDENCE if role not in repositories]
        if missing:
            raise ValueError(f"Missing repositories for roles: {', '.join(missing)}")

        self.repositories = repositories
        self.country_code = country_code

    def _find_in_store(
        self, repository: UserRepository, identifier: str, channel: Channel
    ) -> Optional[UserRecord]:
        if channel == Channel.EMAIL:
            return repository.find_by_email(normalize_email(identifier))

        for variant in phone_lookup_variants(identifier, self.country_code):
            record = repository.find_by_phone(variant)
            if record:
                return record
        return None

    def _lookup_channel(self, identifier: str, channel: Optional[Channel]) -> Channel:
        channel = channel or infer_channel(identifier)
        if channel == Channel.EMAIL and not is_valid_email(identifier):
            raise InvalidRequestError("Invalid email address format.")
        return channel

    def _stores(self, role: Optional[Role]) -> List[UserRepository]:
        if role:
            return [self.repositories[role]]
        return [self.repositories[r] for r in ROLE_PRECEDENCE]

    def resolve(
        self,
        identifier: str,
        role: Optional[Role] = None,
        user_id=None,
        channel: Optional[Channel] = None,
    ) -> UserRecord:
        """Find the record for an identifier.

        Args:
            identifier: Email address or phone number.
            role: Restrict the search to one store.
            user_id: Fetch directly by id. Requires ``role``.
            channel: Lookup field; inferred from the identifier if omitted.

        Returns:
            UserRecord: The first matching record.

        Raises:
            InvalidRequestError: If ``user_id`` is given without ``role``, or
                the email identifier is malformed.
            UserNotFoundError: If no searched store holds the identifier.
        """
        if user_id is not None:
            if role is None:
                raise InvalidRequestError(
                    "A role is required when looking up a user by id."
                )

            record = self.repositories[role].find_by_id(user_id)
            if not record:
                logger.info("No %s record with id %s", role.value, user_id)
                raise UserNotFoundError(f"No {role.value} with id {user_id}")
            return record

        channel = self._lookup_channel(identifier, channel)

        for repository in self._stores(role):
            record = self._find_in_store(repository, identifier, channel)
            if record:
                logger.debug(
                    "Resolved %s to a %s record",
                    mask_identifier(identifier),
                    record.role.value,
                )
                return record

        logger.info("No record found for %s", mask_identifier(identifier))
        raise UserNotFoundError(f"No user registered with {mask_identifier(identifier)}")

    def resolve_all(
        self,
        identifier: str,
        role: Optional[Role] = None,
        user_id=None,
        channel: Optional[Channel] = None,
    ) -> List[UserRecord]:
        """Find every record matching an identifier, one per searched store.

        Narrowing by ``user_id`` or ``role`` behaves as in :meth:`resolve`.
        Returns an empty list instead of raising when nothing matches.
        """
        if user_id is not None:
            try:
                return [self.resolve(identifier, role, user_id, channel)]
            except UserNotFoundError:
                return []

        channel = self._lookup_channel(identifier, channel)
        records = []
        for repository in self._stores(role):
            record = self._find_in_store(repository, identifier, channel)
            if record:
                records.append(record)
        return records

    def repository_for(self, record: UserRecord) -> UserRepository:
        return self.repositories[record.role]
