import math
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from scheduling.errors import ValidationError
from scheduling.time_range import TimeRange

# prices are whole PKR and land in a 32-bit Integer column
MAX_PRICE = 2**31 - 1


def parse_date(value) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError):
        raise ValidationError("Invalid date. Use YYYY-MM-DD")


def parse_id(value, field: str) -> int:
    """Positive integer id from JSON or a query string; "12" is fine, 1.5 and True are not."""
    if value in (None, ""):
        raise ValidationError(f"{field} is required")
    if isinstance(value, (bool, float)):
        raise ValidationError(f"Invalid {field}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")
    if number <= 0:
        raise ValidationError(f"Invalid {field}")
    return number


def parse_court_id(value) -> int:
    return parse_id(value, "court_id")


def _price(data: dict, field: str) -> int:
    raw = data.get(field)
    if raw is None or raw == "":
        return 0
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise ValidationError(f"Invalid {field}")
    try:
        value = float(raw)
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}")
    if not math.isfinite(value) or not value.is_integer():
        raise ValidationError(f"{field} must be a whole amount")
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    if value > MAX_PRICE:
        raise ValidationError(f"{field} is too large")
    return int(value)


def _text(data: dict, field: str, max_len: int) -> Optional[str]:
    raw = data.get(field)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"Invalid {field}")
    raw = raw.strip()
    if len(raw) > max_len:
        raise ValidationError(f"{field} is too long")
    return raw or None


@dataclass(frozen=True)
class BookingDetails:
    customer_name: str
    phone: str
    email: Optional[str] = None
    online_price: int = 0
    cash_price: int = 0
    add_on_description: Optional[str] = None
    add_on_price: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "BookingDetails":
        name = _text(data, "name", 120)
        phone = _text(data, "phone", 30)
        if not name or not phone:
            raise ValidationError("name and phone are required")

        email = _text(data, "email", 255)
        if email and "@" not in email:
            raise ValidationError("Invalid email")

        return cls(
            customer_name=name,
            phone=phone,
            email=email,
            online_price=_price(data, "online_price"),
            cash_price=_price(data, "cash_price"),
            add_on_description=_text(data, "add_on", 255),
            add_on_price=_price(data, "add_on_price"),
        )

    def merged_with(self, data: dict) -> "BookingDetails":
        """Partial update: only the fields present in data change."""
        changes = {}
        if "name" in data or "phone" in data:
            base = {"name": self.customer_name, "phone": self.phone}
            base.update({k: data[k] for k in ("name", "phone") if k in data})
            parsed = BookingDetails.from_dict(base)
            changes["customer_name"] = parsed.customer_name
            changes["phone"] = parsed.phone
        if "email" in data:
            email = _text(data, "email", 255)
            if email and "@" not in email:
                raise ValidationError("Invalid email")
            changes["email"] = email
        if "add_on" in data:
            changes["add_on_description"] = _text(data, "add_on", 255)
        for field in ("online_price", "cash_price", "add_on_price"):
            if field in data:
                changes[field] = _price(data, field)
        return replace(self, **changes)

    @classmethod
    def from_booking(cls, booking) -> "BookingDetails":
        return cls(
            customer_name=booking.customer_name,
            phone=booking.phone,
            email=booking.email,
            online_price=booking.online_price,
            cash_price=booking.cash_price,
            add_on_description=booking.add_on_description,
            add_on_price=booking.add_on_price,
        )


def parse_range(data: dict, required: bool = True) -> Optional[TimeRange]:
    start = data.get("start_time")
    end = data.get("end_time")
    if not start and not end and not required:
        return None
    if not start or not end:
        raise ValidationError("start_time and end_time are required")
    return TimeRange.parse(start, end)


def parse_custom_slots(items) -> list:
    if not isinstance(items, list):
        raise ValidationError("custom_slots must be a list")
    ranges = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each custom slot needs start_time and end_time")
        ranges.append(parse_range(item))
    return ranges
