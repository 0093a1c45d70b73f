from datetime import datetime
from models.db import db


class CancellationRequest(db.Model):
    __tablename__ = "cancellation_requests"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    code_hash = db.Column(db.String(128), nullable=False)

    issued_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    verified_at = db.Column(db.DateTime, nullable=True)
    # set when a newer code is issued or attempts run out
    invalidated_at = db.Column(db.DateTime, nullable=True)

    attempts = db.Column(db.Integer, default=0, nullable=False)

    ip = db.Column(db.String(64), nullable=True)

    @property
    def verified(self) -> bool:
        return self.verified_at is not None
