from datetime import datetime
from models.db import db
from scheduling.time_range import TimeRange, format_time

SLOT_AVAILABLE = "AVAILABLE"
SLOT_BOOKED = "BOOKED"


class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    label = db.Column(db.String(60), nullable=False)

    state = db.Column(db.String(20), nullable=False, default=SLOT_AVAILABLE)
    # status values: AVAILABLE, BOOKED
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id", use_alter=True), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("court_id", "date", "start_time", "end_time", name="uq_court_day_timeslot"),
        # A booking can only ever sit in one slot
        db.UniqueConstraint("booking_id", name="uq_slot_booking_once"),
    )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def is_booked(self) -> bool:
        return self.state == SLOT_BOOKED

    def mark_booked(self, booking_id: int):
        self.state = SLOT_BOOKED
        self.booking_id = booking_id

    def mark_available(self):
        self.state = SLOT_AVAILABLE
        self.booking_id = None

    def to_dict(self, booking=None):
        out = {
            "id": self.id,
            "court_id": self.court_id,
            "date": self.date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "name": self.label,
            "booked": self.is_booked,
            "booking_id": self.booking_id,
        }
        if booking is not None:
            out["booking_details"] = booking.details_dict()
        return out
