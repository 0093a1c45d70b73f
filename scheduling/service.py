from contextlib import contextmanager
from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from models.booking import Booking, BOOKING_CONFIRMED
from models.court import Court
from models.custom_message import CustomMessage, CUSTOM_MESSAGE_MAX_LENGTH, CUSTOM_MESSAGE_MIN_LENGTH
from scheduling import grid as grids
from scheduling.errors import (
    CourtExists,
    CourtNotFound,
    SchedulingError,
    SlotNotFound,
    SlotUnavailable,
    ValidationError,
)
from scheduling.ledger import BookingLedger
from scheduling.locks import KeyedLocks
from scheduling.schemas import BookingDetails
from scheduling.time_range import TimeRange
from security.cancellation_gate import CancellationGate
from utils.audit import log_event


class ScheduleService:
    """
    Entry point for everything that reads or changes a court's schedule.

    Each public write runs as one transaction and, for a given
    (court_id, date) grid, one at a time. Cancellation is sequenced
    issue -> verify -> cancel; the ledger refuses to cancel without the
    Authorization that a successful verify returns.
    """

    def __init__(self, session, secret_key: str, timezone: str = "Asia/Karachi",
                 code_ttl_seconds: int = 600, code_max_attempts: int = 5, code_length: int = 6,
                 clock=datetime.utcnow, code_factory=None, code_sender=None, booking_notifier=None,
                 locks=None):
        self.session = session
        self.timezone = ZoneInfo(timezone)
        self.clock = clock
        self.code_sender = code_sender
        self.booking_notifier = booking_notifier
        self.locks = locks or KeyedLocks()
        self.ledger = BookingLedger(session, clock=clock)
        self.gate = CancellationGate(
            session,
            secret_key,
            ttl_seconds=code_ttl_seconds,
            max_attempts=code_max_attempts,
            code_length=code_length,
            clock=clock,
            code_factory=code_factory,
        )

    @classmethod
    def from_config(cls, session, config, **overrides):
        kwargs = dict(
            secret_key=config.get("SECRET_KEY"),
            timezone=config.get("SCHEDULE_TIMEZONE", "Asia/Karachi"),
            code_ttl_seconds=config.get("CANCELLATION_CODE_TTL_SECONDS", 600),
            code_max_attempts=config.get("CANCELLATION_MAX_ATTEMPTS", 5),
            code_length=config.get("CANCELLATION_CODE_LENGTH", 6),
        )
        kwargs.update(overrides)
        return cls(session, **kwargs)

    # ---------- plumbing ----------
    @contextmanager
    def _transaction(self):
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _grid_key(self, court_id: int, day: date):
        return ("grid", court_id, day)

    def today(self) -> date:
        return datetime.now(self.timezone).date()

    def get_court(self, court_id: int) -> Court:
        court = self.session.get(Court, court_id)
        if court is None or not court.is_active:
            raise CourtNotFound()
        return court

    # ---------- grid ----------
    def get_grid(self, court_id: int, day: date) -> grids.ScheduleGrid:
        court = self.get_court(court_id)
        grid = grids.load_grid(self.session, court_id, day)
        if grid is not None:
            return grid

        with self.locks.hold(self._grid_key(court_id, day)):
            grid = grids.load_grid(self.session, court_id, day)
            if grid is not None:
                return grid
            try:
                with self._transaction():
                    grids.materialize_default(self.session, court, day)
            except IntegrityError:
                # another process generated the same default grid first
                current_app.logger.info("Default grid for court %s on %s already created", court_id, day)
            return grids.load_grid(self.session, court_id, day)

    def grid_payload(self, grid: grids.ScheduleGrid) -> dict:
        ids = grid.booking_ids()
        bookings = {}
        if ids:
            bookings = {b.id: b for b in self.session.query(Booking).filter(Booking.id.in_(ids)).all()}
        return grid.to_dict(bookings)

    def save_custom_slots(self, court_id: int, day: date, ranges) -> grids.ScheduleGrid:
        self.get_court(court_id)
        with self.locks.hold(self._grid_key(court_id, day)):
            with self._transaction():
                grid = grids.apply_custom_slots(self.session, court_id, day, ranges)
                log_event(
                    "GRID_CUSTOM_SAVE",
                    entity="schedule",
                    entity_id=f"{court_id}:{day.isoformat()}",
                    court_id=court_id,
                    metadata={"slots": [str(r) for r in grid.ranges]},
                    session=self.session,
                )
        current_app.logger.info("Custom schedule saved for court %s on %s (%d slots)", court_id, day, len(grid))
        return grid

    def _slot_key(self, slot_id: int):
        slot = grids.get_slot(self.session, slot_id)
        return self._grid_key(slot.court_id, slot.date)

    def remove_slot(self, slot_id: int) -> grids.ScheduleGrid:
        with self.locks.hold(self._slot_key(slot_id)):
            with self._transaction():
                slot = grids.get_slot(self.session, slot_id)
                court_id, removed = slot.court_id, str(slot.time_range)
                grid = grids.remove_slot(self.session, slot_id)
                log_event("SLOT_REMOVE", entity="slot", entity_id=slot_id, court_id=court_id,
                          metadata={"range": removed}, session=self.session)
        return grid

    def edit_slot_time(self, slot_id: int, new_range: TimeRange) -> grids.ScheduleGrid:
        with self.locks.hold(self._slot_key(slot_id)):
            with self._transaction():
                grid = grids.edit_slot_time(self.session, slot_id, new_range)
                log_event("SLOT_EDIT", entity="slot", entity_id=slot_id, court_id=grid.court_id,
                          metadata={"range": str(new_range)}, session=self.session)
        return grid

    # ---------- bookings ----------
    def book_slot(self, court_id: int, day: date, time_range: TimeRange, details: BookingDetails) -> Booking:
        self.get_grid(court_id, day)
        with self.locks.hold(self._grid_key(court_id, day)):
            try:
                with self._transaction():
                    grid = grids.load_grid(self.session, court_id, day)
                    slot = grid.slot_for(time_range)
                    if slot is None:
                        raise SlotNotFound(f"No slot {time_range} on court {court_id} for {day.isoformat()}")
                    booking = self.ledger.create(slot, details)
                    log_event("BOOKING_CREATE", entity="booking", entity_id=booking.id, court_id=court_id,
                              metadata={"slot_id": slot.id, "range": str(time_range)}, session=self.session)
            except IntegrityError:
                raise SlotUnavailable()
        current_app.logger.info("Booking %s created on court %s %s %s", booking.id, court_id, day, time_range)

        if self.booking_notifier is not None:
            message = self.get_custom_message()
            self.booking_notifier(booking, message.body if message else None)
        return booking

    def get_booking(self, booking_id: int) -> Booking:
        return self.ledger.get(booking_id)

    def edit_booking(self, booking_id: int, changes: dict, new_range: TimeRange = None) -> Booking:
        booking = self.ledger.get_active(booking_id)
        key = self._grid_key(booking.court_id, booking.booking_date)
        with self.locks.hold(("booking", booking_id)), self.locks.hold(key):
            with self._transaction():
                booking = self.ledger.get_active(booking_id)
                details = BookingDetails.from_booking(booking).merged_with(changes)
                old_range = str(booking.time_range)
                booking = self.ledger.edit(booking_id, details, new_range)
                log_event("BOOKING_EDIT", entity="booking", entity_id=booking_id, court_id=booking.court_id,
                          metadata={"from": old_range, "to": str(booking.time_range)}, session=self.session)
        return booking

    # ---------- cancellation ----------
    def request_cancellation(self, booking_id: int, ip: str = None):
        with self.locks.hold(("booking", booking_id)):
            with self._transaction():
                booking = self.ledger.get_active(booking_id)
                request, code = self.gate.issue(booking_id, ip=ip)
                log_event("CANCEL_CODE_ISSUE", entity="booking", entity_id=booking_id, court_id=booking.court_id,
                          metadata={"expires_at": request.expires_at.isoformat()}, session=self.session)

        if self.code_sender is not None:
            self.code_sender(booking, code, request.expires_at)
        return request, code

    def confirm_cancellation(self, booking_id: int, code: str) -> Booking:
        booking = self.ledger.get(booking_id)
        key = self._grid_key(booking.court_id, booking.booking_date)
        with self.locks.hold(("booking", booking_id)), self.locks.hold(key):
            try:
                authorization = self.gate.verify(booking_id, code)
            except SchedulingError as exc:
                # keep the attempt counter and the audit trail of the failure
                with self._transaction():
                    log_event("CANCEL_VERIFY_FAIL", entity="booking", entity_id=booking_id,
                              court_id=booking.court_id, metadata={"reason": exc.code}, session=self.session)
                raise

            with self._transaction():
                booking = self.ledger.cancel(booking_id, authorization)
                log_event("BOOKING_CANCEL", entity="booking", entity_id=booking_id, court_id=booking.court_id,
                          metadata={"request_id": authorization.request_id}, session=self.session)
        current_app.logger.info("Booking %s cancelled after code verification", booking_id)
        return booking

    # ---------- listings ----------
    def booked_slots(self, court_id: int, day: date):
        return (
            self.session.query(Booking)
            .filter_by(court_id=court_id, booking_date=day, status=BOOKING_CONFIRMED)
            .order_by(Booking.start_time.asc())
            .all()
        )

    def recent_bookings(self, limit: int = 5):
        return (
            self.session.query(Booking)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    def booking_history(self, court_id: int = None, search: str = None, page: int = 1, per_page: int = 10):
        """All bookings, cancelled ones included, newest booking date first. Returns (rows, total)."""
        q = self.session.query(Booking)
        if court_id:
            q = q.filter(Booking.court_id == court_id)
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(Booking.customer_name.ilike(pattern), Booking.phone.ilike(pattern)))

        total = q.count()
        rows = (
            q.order_by(Booking.booking_date.desc(), Booking.start_time.desc(), Booking.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return rows, total

    def summary(self) -> dict:
        confirmed = self.session.query(Booking).filter(Booking.status == BOOKING_CONFIRMED)
        revenue = (
            self.session.query(
                func.coalesce(func.sum(Booking.online_price + Booking.cash_price + Booking.add_on_price), 0)
            )
            .filter(Booking.status == BOOKING_CONFIRMED)
            .scalar()
        )
        customers = (
            self.session.query(func.count(func.distinct(Booking.phone)))
            .filter(Booking.status == BOOKING_CONFIRMED)
            .scalar()
        )
        return {
            "totalBookings": confirmed.count(),
            "totalPrice": int(revenue or 0),
            "totalUsers": customers or 0,
            "totalCourts": self.session.query(Court).filter_by(is_active=True).count(),
        }

    # ---------- courts ----------
    def list_courts(self, category_id: int = None):
        q = self.session.query(Court).filter_by(is_active=True)
        if category_id:
            q = q.filter_by(category_id=category_id)
        return q.order_by(Court.id.asc()).all()

    def create_court(self, name: str, category_id: int, opening_time, closing_time, slot_minutes: int) -> Court:
        # validates the template before anything is stored
        TimeRange(opening_time, closing_time)
        court = Court(
            name=name,
            category_id=category_id,
            name_normalized=name.strip().lower(),
            opening_time=opening_time,
            closing_time=closing_time,
            slot_minutes=slot_minutes,
        )
        try:
            with self._transaction():
                self.session.add(court)
                self.session.flush()
                log_event("COURT_CREATE", entity="court", entity_id=court.id, court_id=court.id, session=self.session)
        except IntegrityError:
            raise CourtExists(category_id=category_id)
        return court

    # ---------- customer message ----------
    def get_custom_message(self):
        return self.session.query(CustomMessage).order_by(CustomMessage.id.asc()).first()

    def set_custom_message(self, text) -> CustomMessage:
        if not isinstance(text, str):
            raise ValidationError("message is required")
        text = text.strip()
        if len(text) < CUSTOM_MESSAGE_MIN_LENGTH:
            raise ValidationError(f"Message must be at least {CUSTOM_MESSAGE_MIN_LENGTH} characters.")
        if len(text) > CUSTOM_MESSAGE_MAX_LENGTH:
            raise ValidationError(f"Message must be at most {CUSTOM_MESSAGE_MAX_LENGTH} characters.")

        with self.locks.hold(("custom_message",)):
            with self._transaction():
                message = self.get_custom_message()
                if message is None:
                    message = CustomMessage(body=text)
                    self.session.add(message)
                message.body = text
                message.updated_at = self.clock()
                log_event("CUSTOM_MESSAGE_UPDATE", entity="custom_message", metadata={"length": len(text)},
                          session=self.session)
        return message
