from datetime import datetime
from models.db import db

CUSTOM_MESSAGE_MIN_LENGTH = 10
CUSTOM_MESSAGE_MAX_LENGTH = 1000


class CustomMessage(db.Model):
    """
    Operator-editable text appended to every booking confirmation.
    The table holds at most one row.
    """
    __tablename__ = "custom_messages"

    id = db.Column(db.Integer, primary_key=True)
    body = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "message": self.body,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
