from flask import Blueprint, current_app, jsonify, request

from scheduling.errors import ValidationError
from scheduling.schemas import BookingDetails, parse_court_id, parse_date, parse_range

booking_bp = Blueprint("booking", __name__)


def _service():
    return current_app.extensions["schedule_service"]


def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr) or "unknown"


# ---------- book a slot (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("/bookings")
def create_booking():
    data = request.get_json(silent=True) or {}
    court_id = parse_court_id(data.get("court_id"))
    day = parse_date(data.get("booking_date"))
    time_range = parse_range(data)
    details = BookingDetails.from_dict(data)

    booking = _service().book_slot(court_id, day, time_range, details)
    return jsonify(booking.to_dict()), 201


@booking_bp.post("/book-slot")
def create_booking_alias():
    return create_booking()


# ---------- list confirmed bookings of a court/day ----------
@booking_bp.get("/bookings")
def list_bookings():
    service = _service()
    court_id = parse_court_id(request.args.get("court_id"))
    date_str = request.args.get("date")
    day = parse_date(date_str) if date_str else service.today()

    rows = service.booked_slots(court_id, day)
    return jsonify(bookedSlots=[b.to_dict() for b in rows]), 200


@booking_bp.get("/bookings/recent")
def recent_bookings():
    default_limit = current_app.config.get("RECENT_BOOKINGS_LIMIT", 5)
    limit = request.args.get("limit", default_limit, type=int)
    if limit <= 0 or limit > 100:
        raise ValidationError("limit must be between 1 and 100")

    rows = _service().recent_bookings(limit)
    return jsonify([b.to_dict() for b in rows]), 200


# ---------- full history, paged; cancelled bookings included ----------
@booking_bp.get("/bookings/history")
def booking_history():
    court_id = request.args.get("court_id")
    if court_id is not None:
        court_id = parse_court_id(court_id)
    search = (request.args.get("q") or "").strip() or None
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", 10, type=int)
    if page <= 0:
        raise ValidationError("page must be 1 or more")
    if per_page <= 0 or per_page > 100:
        raise ValidationError("per_page must be between 1 and 100")

    rows, total = _service().booking_history(court_id, search, page, per_page)
    return jsonify(
        bookings=[b.to_dict() for b in rows],
        total=total,
        page=page,
        per_page=per_page,
    ), 200


@booking_bp.get("/booking-history")
def booking_history_alias():
    return booking_history()


@booking_bp.get("/bookings/<int:booking_id>")
def get_booking(booking_id: int):
    booking = _service().get_booking(booking_id)
    return jsonify(booking.to_dict()), 200


# ---------- edit details and/or move to another time ----------
@booking_bp.put("/bookings/<int:booking_id>")
def edit_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    new_range = parse_range(data, required=False)

    booking = _service().edit_booking(booking_id, data, new_range)
    return jsonify(booking.to_dict()), 200


@booking_bp.put("/edit-booking/<int:booking_id>")
def edit_booking_alias(booking_id: int):
    return edit_booking(booking_id)


# ---------- two-step cancellation ----------
@booking_bp.post("/bookings/<int:booking_id>/cancellation-code")
def issue_cancellation_code(booking_id: int):
    request_row, _code = _service().request_cancellation(booking_id, ip=_client_ip())
    return jsonify(
        issued=True,
        message="Cancellation code sent",
        expires_at=request_row.expires_at.isoformat(),
    ), 200


@booking_bp.post("/bookings/<int:booking_id>/cancellation-verify")
def verify_cancellation_code(booking_id: int):
    data = request.get_json(silent=True) or {}
    # the original client posts {"otp": ...}
    code = data.get("code") or data.get("otp")
    if not code:
        raise ValidationError("code is required")

    _service().confirm_cancellation(booking_id, str(code))
    return jsonify(cancelled=True, message="Booking cancelled"), 200


@booking_bp.post("/delete-booking/<int:booking_id>/generate-otp")
def issue_cancellation_code_alias(booking_id: int):
    return issue_cancellation_code(booking_id)


@booking_bp.post("/delete-booking/<int:booking_id>/verify-otp")
def verify_cancellation_code_alias(booking_id: int):
    return verify_cancellation_code(booking_id)


# ---------- dashboard counters ----------
@booking_bp.get("/summary")
def summary():
    return jsonify(_service().summary()), 200
