"""Shared fixtures for the verification core tests."""

import datetime
from types import SimpleNamespace

import pytest
from peewee import SqliteDatabase

from otp_core.utils import create_tables

NOW = datetime.datetime(2026, 1, 15, 12, 0, 0)


def fixed_clock():
    return NOW


@pytest.fixture()
def set_testing_mode(monkeypatch):
    """Set test mode."""
    monkeypatch.setenv("MODE", "testing")
    for key in (
        "SENDGRID_API_KEY",
        "TWILIO_ACCOUNT_SID",
        "TWILIO_AUTH_TOKEN",
        "TWILIO_MESSAGING_SERVICE_SID",
        "TWILIO_PHONE_NUMBER",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def setup_teardown_database(tmp_path, set_testing_mode):
    """Setup and teardown test database."""
    from otp_core.db_models import USER_MODELS

    db_path = tmp_path / "test.db"
    test_db = SqliteDatabase(db_path)
    test_db.bind(USER_MODELS)
    test_db.connect()
    create_tables(USER_MODELS)

    yield

    test_db.drop_tables(USER_MODELS)
    test_db.close()


@pytest.fixture()
def repositories():
    from otp_core.repositories import build_peewee_repositories

    return build_peewee_repositories()


def _create(model, **fields):
    defaults = {"first_name": "Test"}
    defaults.update(fields)
    return model.create(**defaults)


@pytest.fixture()
def make_customer():
    from otp_core.db_models import Customer

    return lambda **fields: _create(Customer, **fields)


@pytest.fixture()
def make_vendor():
    from otp_core.db_models import Vendor

    def factory(**fields):
        fields.setdefault("business_name", "Test Traders")
        return _create(Vendor, **fields)

    return factory


@pytest.fixture()
def make_admin():
    from otp_core.db_models import Admin

    return lambda **fields: _create(Admin, **fields)


@pytest.fixture()
def make_user(make_customer, make_vendor, make_admin):
    from otp_core.types import Role

    factories = {
        Role.CUSTOMER: make_customer,
        Role.VENDOR: make_vendor,
        Role.ADMIN: make_admin,
    }
    return lambda role, **fields: factories[role](**fields)


class RecordingDelivery:
    """Delivery stand-in that records every message it is given."""

    def __init__(self, delivered=True, provider=None, attempted=True):
        from otp_core.types import DeliveryProvider

        self.delivered = delivered
        self.provider = provider or DeliveryProvider.SENDGRID
        self.attempted = attempted
        self.sent = []

    @property
    def configured(self):
        return self.attempted

    def send(self, destination, content):
        from otp_core.delivery import DeliveryResult

        self.sent.append((destination, content))
        return DeliveryResult(
            delivered=self.delivered, provider=self.provider, attempted=self.attempted
        )


class FakeResponse:
    def __init__(self, status_code=202, error=None):
        self.status_code = status_code
        self._error = error

    def raise_for_status(self):
        if self._error:
            raise self._error


class FakeSession:
    """Minimal requests.Session replacement."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


class FakeTwilioClient:
    """Minimal twilio.rest.Client replacement."""

    def __init__(self, status="queued", error=None):
        self.calls = []
        self._status = status
        self._error = error
        self.messages = SimpleNamespace(create=self._create)

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self._error:
            raise self._error
        return SimpleNamespace(sid="SM123", status=self._status)
