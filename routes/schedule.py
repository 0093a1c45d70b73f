from flask import Blueprint, current_app, jsonify, request

from scheduling.schemas import parse_court_id, parse_custom_slots, parse_date, parse_range

schedule_bp = Blueprint("schedule", __name__)


def _service():
    return current_app.extensions["schedule_service"]


# ---------- view a day's grid (with booking details) ----------
@schedule_bp.get("/slots")
def get_grid():
    service = _service()
    court_id = parse_court_id(request.args.get("court_id"))
    date_str = request.args.get("date")
    day = parse_date(date_str) if date_str else service.today()

    grid = service.get_grid(court_id, day)
    return jsonify(service.grid_payload(grid)), 200


# the booking screen of the original client polls /booking for the same payload
@schedule_bp.get("/booking")
def get_grid_alias():
    return get_grid()


# ---------- OPERATOR: replace the grid with custom slots ----------
@schedule_bp.put("/schedule")
def save_schedule():
    data = request.get_json(silent=True) or {}
    court_id = parse_court_id(data.get("court_id"))
    day = parse_date(data.get("date"))
    ranges = parse_custom_slots(data.get("custom_slots"))

    service = _service()
    grid = service.save_custom_slots(court_id, day, ranges)
    return jsonify(service.grid_payload(grid)), 200


@schedule_bp.post("/set-court-schedule")
def save_schedule_alias():
    return save_schedule()


# ---------- OPERATOR: edit / remove a single slot ----------
@schedule_bp.put("/slots/<int:slot_id>")
def edit_slot(slot_id: int):
    data = request.get_json(silent=True) or {}
    new_range = parse_range(data)

    service = _service()
    grid = service.edit_slot_time(slot_id, new_range)
    return jsonify(service.grid_payload(grid)), 200


@schedule_bp.delete("/slots/<int:slot_id>")
def remove_slot(slot_id: int):
    service = _service()
    grid = service.remove_slot(slot_id)
    return jsonify(service.grid_payload(grid)), 200
