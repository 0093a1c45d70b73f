"""Shared fixtures: an app on in-memory SQLite with a controllable clock and codes."""

from datetime import date, datetime, time, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.court import Court
from scheduling.schemas import BookingDetails
from scheduling.time_range import TimeRange

DAY = date(2026, 3, 2)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int):
        self.now += timedelta(seconds=seconds)


class FixedCodes:
    """Hands out queued codes first, then the default."""

    def __init__(self, default: str = "123456"):
        self.default = default
        self.queue = []

    def __call__(self) -> str:
        if self.queue:
            return self.queue.pop(0)
        return self.default


def rng(start: str, end: str) -> TimeRange:
    return TimeRange.parse(start, end)


def make_details(**overrides) -> BookingDetails:
    fields = dict(
        customer_name="Ali Khan",
        phone="03001234567",
        email="ali@example.com",
        online_price=2000,
        cash_price=500,
        add_on_description="Bibs",
        add_on_price=200,
    )
    fields.update(overrides)
    return BookingDetails(**fields)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def codes():
    return FixedCodes()


@pytest.fixture
def outbox():
    return []


@pytest.fixture
def notices():
    return []


@pytest.fixture
def app(clock, codes, outbox, notices):
    def capture(booking, code, expires_at):
        outbox.append({"booking_id": booking.id, "code": code, "expires_at": expires_at})

    def confirm(booking, message):
        notices.append({"booking_id": booking.id, "message": message})

    flask_app = create_app(TestConfig, clock=clock, code_factory=codes, code_sender=capture, booking_notifier=confirm)
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return app.extensions["schedule_service"]


@pytest.fixture
def court(app):
    """Open 09:00-12:00 with one-hour slots: three default slots."""
    c = Court(
        name="Futsal Court 1",
        name_normalized="futsal court 1",
        category_id=1,
        opening_time=time(9, 0),
        closing_time=time(12, 0),
        slot_minutes=60,
    )
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture
def booking(service, court):
    return service.book_slot(court.id, DAY, rng("09:00:00", "10:00:00"), make_details())
