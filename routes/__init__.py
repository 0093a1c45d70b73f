from flask import Blueprint, jsonify

from .audit_logs import audit_bp
from .booking import booking_bp
from .courts import court_bp
from .custom_message import message_bp
from .schedule import schedule_bp

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    return jsonify(status="ok"), 200
