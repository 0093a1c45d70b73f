from datetime import datetime, time
from models.db import db

class Court(db.Model):
    __tablename__ = "courts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    # sport category the court belongs to (e.g. futsal, padel, cricket)
    category_id = db.Column(db.Integer, nullable=False, default=1, index=True)
    name_normalized = db.Column(db.String(120), nullable=False)

    # Default slot template, used for any date without a custom schedule
    opening_time = db.Column(db.Time, nullable=False, default=time(9, 0))
    closing_time = db.Column(db.Time, nullable=False, default=time(23, 0))
    slot_minutes = db.Column(db.Integer, nullable=False, default=60)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("category_id", "name_normalized", name="uq_courts_category_name"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "opening_time": self.opening_time.strftime("%H:%M:%S"),
            "closing_time": self.closing_time.strftime("%H:%M:%S"),
            "slot_minutes": self.slot_minutes,
        }
