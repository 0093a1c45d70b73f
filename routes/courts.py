from flask import Blueprint, current_app, jsonify, request

from scheduling.errors import ValidationError
from scheduling.schemas import parse_id
from scheduling.time_range import parse_time

court_bp = Blueprint("court", __name__, url_prefix="/courts")


def _service():
    return current_app.extensions["schedule_service"]


@court_bp.get("")
def list_courts():
    category_id = request.args.get("category_id")
    if category_id is not None:
        category_id = parse_id(category_id, "category_id")
    courts = _service().list_courts(category_id)
    return jsonify(courts=[c.to_dict() for c in courts]), 200


# the original client asks for courts of a category with POST {cat_id}
@court_bp.post("/by-category")
def list_courts_by_category():
    data = request.get_json(silent=True) or {}
    category_id = parse_id(data.get("cat_id"), "cat_id")
    courts = _service().list_courts(category_id)
    return jsonify(courts=[c.to_dict() for c in courts]), 200


@court_bp.post("")
def create_court():
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("Court name required")

    cfg = current_app.config
    category_id = parse_id(data.get("category_id") or 1, "category_id")
    slot_minutes = parse_id(data.get("slot_minutes") or cfg.get("DEFAULT_SLOT_MINUTES", 60), "slot_minutes")

    opening = parse_time(data.get("opening_time") or cfg.get("DEFAULT_OPENING_TIME", "09:00:00"))
    closing = parse_time(data.get("closing_time") or cfg.get("DEFAULT_CLOSING_TIME", "23:00:00"))

    court = _service().create_court(name, category_id, opening, closing, slot_minutes)
    return jsonify(court.to_dict()), 201
