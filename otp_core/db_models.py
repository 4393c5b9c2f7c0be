# SPDX-License-Identifier: GPL-3.0-only
"""Peewee database models, one table per role."""

import datetime

from peewee import BooleanField, CharField, DateTimeField, Model

from otp_core.db import connect

database = connect()


class BaseModel(Model):
    """Base model bound to the configured database."""

    class Meta:
        database = database


class UserModel(BaseModel):
    """Fields every role record carries.

    ``*_verification_code`` and ``*_verification_expiry`` are written and
    cleared as a pair.
    """

    first_name = CharField()
    last_name = CharField(null=True)
    email = CharField(unique=True)
    mobile_no = CharField(unique=True, null=True)
    is_email_verified = BooleanField(default=False)
    is_mobile_verified = BooleanField(default=False)
    email_verification_code = CharField(null=True)
    email_verification_expiry = DateTimeField(null=True)
    mobile_verification_code = CharField(null=True)
    mobile_verification_expiry = DateTimeField(null=True)
    date_created = DateTimeField(default=datetime.datetime.now)


class Customer(UserModel):
    """Customer accounts."""

    class Meta:
        table_name = "customers"


class Vendor(UserModel):
    """Vendor accounts. A vendor always has business details."""

    business_name = CharField()
    gst_number = CharField(null=True)

    class Meta:
        table_name = "vendors"


class Admin(UserModel):
    """Administrator accounts."""

    class Meta:
        table_name = "admins"


USER_MODELS = [Customer, Vendor, Admin]
