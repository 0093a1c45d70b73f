from datetime import datetime
from models.db import db
from scheduling.time_range import TimeRange, format_time

BOOKING_CONFIRMED = "CONFIRMED"
BOOKING_CANCELLED = "CANCELLED"


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id"), nullable=True, index=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    booking_date = db.Column(db.Date, nullable=False, index=True)
    # time range is copied so cancelled bookings keep their history after the grid changes
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    customer_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(30), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    # prices are whole PKR
    online_price = db.Column(db.Integer, nullable=False, default=0)
    cash_price = db.Column(db.Integer, nullable=False, default=0)
    add_on_description = db.Column(db.String(255), nullable=True)
    add_on_price = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default=BOOKING_CONFIRMED)
    # status values: CONFIRMED, CANCELLED

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status == BOOKING_CONFIRMED

    @property
    def total_price(self) -> int:
        return (self.online_price or 0) + (self.cash_price or 0) + (self.add_on_price or 0)

    def details_dict(self):
        return {
            "name": self.customer_name,
            "phone": self.phone,
            "email": self.email,
            "online_price": self.online_price,
            "cash_price": self.cash_price,
            "add_on": self.add_on_description,
            "add_on_price": self.add_on_price,
        }

    def to_dict(self):
        out = {
            "id": self.id,
            "slot_id": self.slot_id,
            "court_id": self.court_id,
            "booking_date": self.booking_date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
        out.update(self.details_dict())
        return out
