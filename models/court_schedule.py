from datetime import datetime
from models.db import db

class CourtSchedule(db.Model):
    """
    One row per (court, date) grid that has been materialised.
    is_custom=False means the slots came from the court's default template.
    """
    __tablename__ = "court_schedules"

    id = db.Column(db.Integer, primary_key=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    is_custom = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("court_id", "date", name="uq_court_schedule_day"),
    )
